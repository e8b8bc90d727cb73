"""表单对象.

FormObject 把一个或多个持久化模型(通常是 Flask-SQLAlchemy 模型)以统一的接口
展示给视图层,职责包括:

* 提供被展示模型的访问器
* 把选定字段委托给对应的模型
* 委托模型的校验与持久化,并在同一个事务范围内保存全部模型

子类可以声明只属于表单的校验规则(例如密码确认、服务条款勾选),
也可以覆盖默认行为:

* 模型通过 ``build_<name>`` 构建(默认调用模型类型的无参构造)
* 模型通过 ``persist_<name>`` 保存(默认 ``save()``)
* 模型通过 ``validate_<name>`` 校验(默认 ``is_valid()``)

新的行为通过 ``validation`` / ``save`` / ``persist`` 回调添加.

Example:
    >>> class SignupForm(FormObject):
    ...     presenting = {Account: ("name",), User: ("email", "password")}
    ...     validations = {"password": {"confirmation": True}}
    ...
    ...     def persist_user(self):
    ...         return self.user.save()

"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import ClassVar

from formfacade.constants import ErrorMessages
from formfacade.core.exceptions import UnknownAttributeError
from formfacade.forms.callbacks import CALLBACK_MARKER, Callback, CallbackChain
from formfacade.forms.errors import BASE_FIELD, FormErrors
from formfacade.forms.naming import ModelName
from formfacade.forms.presenting import FormAttribute, PresentedRecord, Presenting
from formfacade.forms.transactions import TransactionScope, Transactions
from formfacade.forms.validations import Validations
from formfacade.utils.structlog_config import log_debug, log_info, log_warning


class FormObject(Validations, Transactions, Presenting):
    """展示多个模型的表单对象基类."""

    _callbacks: ClassVar[CallbackChain] = CallbackChain()

    presenting: ClassVar[Mapping[type, tuple[str, ...] | list[str]] | None] = None
    validations: ClassVar[Mapping[str, Mapping[str, object]] | None] = None

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._callbacks = cls._callbacks.copy()
        for member in list(cls.__dict__.values()):
            for kind, event in getattr(member, CALLBACK_MARKER, ()):
                cls._callbacks.add(kind, event, member.__name__)

        presenting = cls.__dict__.get("presenting")
        if presenting:
            cls.present_models(presenting)
        validations = cls.__dict__.get("validations")
        if validations:
            cls._apply_declared_validations(validations)

    def __init__(
        self,
        params: Mapping[str, object] | None = None,
        /,
        *,
        transaction_scope: TransactionScope | None = None,
        **attributes: object,
    ) -> None:
        self._values: dict[str, object] = {}
        self._records: dict[str, object] = {}
        self._errors = FormErrors()
        self._invalid_records: list[str] = []
        self._transaction_scope = transaction_scope
        self.assign_attributes(params)
        self.assign_attributes(attributes)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.attributes()!r}>"

    @property
    def errors(self) -> FormErrors:  # type: ignore[override]
        return self._errors

    # ------------------------------------------------------------------ #
    # 属性赋值
    # ------------------------------------------------------------------ #
    def assign_attributes(self, params: Mapping[str, object] | None) -> None:
        """通过各属性的 setter 逐个赋值.

        Raises:
            UnknownAttributeError: 表单对象不存在可写的同名属性时抛出.

        """
        if not params:
            return
        for key, value in params.items():
            self._assign(str(key), value)

    def _assign(self, key: str, value: object) -> None:
        descriptor = inspect.getattr_static(type(self), key, None)
        writable = hasattr(type(descriptor), "__set__") and not (
            isinstance(descriptor, property) and descriptor.fset is None
        )
        if key.startswith("_") or not writable:
            raise UnknownAttributeError(extra={"attribute": key, "form": type(self).__name__})
        setattr(self, key, value)

    def attributes(self) -> dict[str, object]:
        """返回绑定字段与表单属性的当前值."""
        values = {field: getattr(self, field) for binding in self._presented for field in binding.fields}
        for name in self._form_attribute_names():
            values.setdefault(name, getattr(self, name))
        return values

    @classmethod
    def _form_attribute_names(cls) -> list[str]:
        names: list[str] = []
        for klass in reversed(cls.__mro__):
            for name, member in vars(klass).items():
                if isinstance(member, FormAttribute) and name not in names:
                    names.append(name)
        return names

    # ------------------------------------------------------------------ #
    # 主流程
    # ------------------------------------------------------------------ #
    def is_persisted(self) -> bool:
        """全部被展示的模型都已持久化时返回 True(没有绑定时恒为 True)."""
        return all(binding.is_persisted(getattr(self, binding.name)) for binding in self._presented)

    def is_valid(self) -> bool:
        """重建错误集合并执行完整的校验回调链."""
        self._errors.clear()
        self._invalid_records = []
        return self._callbacks.run(self, "validation", self.run_validations)

    def save(self) -> bool:
        """全部模型校验通过时,在同一事务范围内保存它们.

        Returns:
            全部模型保存成功时返回 True;校验失败或任一模型保存失败时返回 False,
            此时事务范围内的写入全部回滚.

        """
        saved = self._callbacks.run(self, "save", self.persist_records)
        if saved:
            log_info("表单保存成功", module="forms", form=type(self).__name__, records=self._binding_names())
        else:
            log_warning(
                "表单保存失败",
                module="forms",
                form=type(self).__name__,
                records=self._binding_names(),
                error_fields=self._errors.fields(),
                invalid_records=list(self._invalid_records),
            )
        return saved

    def update_attributes(self, values: Mapping[str, object]) -> bool:
        """赋值后保存."""
        self.assign_attributes(values)
        return self.save()

    def delegate_attributes(self) -> None:
        for binding in self._presented:
            getattr(self, binding.hook("delegate"))()

    def persist_records(self) -> bool:
        return self._callbacks.run(self, "persist", self._persist_each)

    def _persist_each(self) -> bool:
        # 每个模型都会尝试保存,原子性由事务范围保证
        all_saved = True
        for binding in self._presented:
            record_saved = bool(getattr(self, binding.hook("persist"))())
            if not record_saved:
                self._copy_persist_errors(binding)
                log_debug("模型保存失败", module="forms", form=type(self).__name__, record=binding.name)
            all_saved = all_saved and record_saved
        return all_saved

    def _copy_persist_errors(self, binding: PresentedRecord) -> None:
        record_errors = binding.errors_of(getattr(self, binding.name))
        if any(record_errors.values()):
            self._errors.merge(record_errors)
        else:
            self._errors.add(BASE_FIELD, ErrorMessages.RECORD_SAVE_FAILED)
        if binding.name not in self._invalid_records:
            self._invalid_records.append(binding.name)

    def _binding_names(self) -> list[str]:
        return [binding.name for binding in self._presented]

    # ------------------------------------------------------------------ #
    # 回调登记
    # ------------------------------------------------------------------ #
    @classmethod
    def before_validation(cls, cb: Callback) -> None:
        cls._callbacks.add("before", "validation", cb)

    @classmethod
    def after_validation(cls, cb: Callback) -> None:
        cls._callbacks.add("after", "validation", cb)

    @classmethod
    def before_save(cls, cb: Callback) -> None:
        cls._callbacks.add("before", "save", cb)

    @classmethod
    def after_save(cls, cb: Callback) -> None:
        cls._callbacks.add("after", "save", cb)

    @classmethod
    def around_save(cls, cb: Callback) -> None:
        cls._callbacks.add("around", "save", cb)

    @classmethod
    def before_persist(cls, cb: Callback) -> None:
        cls._callbacks.add("before", "persist", cb)

    @classmethod
    def after_persist(cls, cb: Callback) -> None:
        cls._callbacks.add("after", "persist", cb)

    @classmethod
    def around_persist(cls, cb: Callback) -> None:
        cls._callbacks.add("around", "persist", cb)

    # ------------------------------------------------------------------ #
    # 视图层约定
    # ------------------------------------------------------------------ #
    @classmethod
    def model_name(cls) -> ModelName:
        return ModelName.for_class(cls)

    def to_key(self) -> list[object] | None:
        """返回第一个具备主键的模型的主键,未持久化时返回 None."""
        if not self.is_persisted():
            return None
        for binding in self._presented:
            to_key = getattr(getattr(self, binding.name), "to_key", None)
            key = to_key() if callable(to_key) else None
            if key:
                return list(key)
        return None

    def to_param(self) -> str | None:
        key = self.to_key() if self.is_persisted() else None
        if not key:
            return None
        return "-".join(str(part) for part in key)

    def to_partial_path(self) -> str:
        name = self.model_name()
        return f"{name.plural}/_{name.singular}"


FormObject.before_validation("delegate_attributes")
FormObject.before_validation("validate_records")
FormObject.before_validation("copy_validation_errors")
FormObject.before_save("delegate_attributes")
FormObject.before_save("is_valid")
FormObject.around_persist("wrap_in_transaction")

"""模型展示声明(Presenting).

为表单对象声明被展示的模型及其字段,并为每个绑定生成一组固定的具名操作.
给定模型 ``User``(标签 ``user``),以下方法都可以在子类中覆盖:

- ``build_user``: 返回新的模型实例,默认 ``User()``
- ``user``: 当前展示的模型实例(首次访问时惰性构建,之后复用)
- ``user = record``: 注入模型实例,并立即执行 ``load_user_attributes``
- ``persist_user``: 持久化模型,默认 ``user.save()``,返回 bool
- ``load_user_attributes``: 把模型字段读入表单对象
- ``delegate_user_attributes``: 把表单对象字段写回模型
- ``validate_user``: 校验模型,默认 ``user.is_valid()``

Example:
    >>> class SignupForm(FormObject):
    ...     presenting = {User: ("email", "password"), Profile: ("twitter", "bio")}
    ...
    ...     def build_profile(self):
    ...         return self.user.build_profile()

"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import ClassVar

from formfacade.core.exceptions import ConfigurationError, DuplicateBindingError
from formfacade.forms.naming import ModelName

HOOK_TEMPLATES: dict[str, str] = {
    "build": "build_{name}",
    "load": "load_{name}_attributes",
    "delegate": "delegate_{name}_attributes",
    "validate": "validate_{name}",
    "persist": "persist_{name}",
}


def record_name(record_type: type) -> str:
    """返回模型类型的绑定标签(单数下划线名)."""
    model_name = getattr(record_type, "model_name", None)
    if callable(model_name):
        resolved = model_name()
        if isinstance(resolved, ModelName):
            return resolved.singular
    return ModelName.for_class(record_type).singular


@dataclass(frozen=True, slots=True)
class PresentedRecord:
    """单个模型绑定的描述.

    Attributes:
        record_type: 被展示的模型类型.
        fields: 通过表单对象暴露的字段名.
        name: 模型标签,同时是记录访问器名称与钩子名称的组成部分.

    """

    record_type: type
    fields: tuple[str, ...]
    name: str

    @classmethod
    def for_record(cls, record_type: type, fields: tuple[str, ...] | list[str]) -> PresentedRecord:
        return cls(record_type=record_type, fields=tuple(fields), name=record_name(record_type))

    def hook(self, operation: str) -> str:
        return HOOK_TEMPLATES[operation].format(name=self.name)

    def build(self) -> object:
        return self.record_type()

    def load(self, form: object, record: object) -> None:
        for field in self.fields:
            setattr(form, field, getattr(record, field))

    def delegate(self, form: object, record: object) -> None:
        for field in self.fields:
            setattr(record, field, getattr(form, field))

    @staticmethod
    def validate(record: object) -> bool:
        return bool(record.is_valid())  # type: ignore[attr-defined]

    @staticmethod
    def persist(record: object) -> bool:
        return bool(record.save())  # type: ignore[attr-defined]

    @staticmethod
    def is_persisted(record: object) -> bool:
        return bool(record.is_persisted())  # type: ignore[attr-defined]

    @staticmethod
    def errors_of(record: object) -> Mapping[str, object]:
        """读取模型的字段错误,兼容 ``errors_by_field()`` 与映射型 ``errors``."""
        errors_by_field = getattr(record, "errors_by_field", None)
        if callable(errors_by_field):
            return errors_by_field()
        errors = getattr(record, "errors", None)
        if errors is None:
            return {}
        to_dict = getattr(errors, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        if isinstance(errors, Mapping):
            return errors
        raise ConfigurationError(f"无法读取模型错误: {type(record).__name__}")


class FormAttribute:
    """表单对象上的可读写属性,值保存在表单实例内.

    用于表单自身的字段(如 ``terms_of_service``、``password_confirmation``),
    也是绑定字段访问器的基类.
    """

    def __init__(self, default: object = None) -> None:
        self.default = default
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: object, owner: type | None = None) -> object:
        if instance is None:
            return self
        return instance._values.get(self.name, self.default)  # type: ignore[attr-defined]

    def __set__(self, instance: object, value: object) -> None:
        instance._values[self.name] = value  # type: ignore[attr-defined]


class FieldAccessor(FormAttribute):
    """绑定字段的访问器,记录所属的模型标签."""

    def __init__(self, name: str, binding_name: str) -> None:
        super().__init__()
        self.name = name
        self.binding_name = binding_name


class RecordAccessor:
    """模型实例访问器: 读取时惰性构建并缓存,赋值时立即把模型字段读入表单."""

    def __init__(self, binding: PresentedRecord) -> None:
        self.binding = binding

    def __get__(self, instance: object, owner: type | None = None) -> object:
        if instance is None:
            return self
        records = instance._records  # type: ignore[attr-defined]
        record = records.get(self.binding.name)
        if record is None:
            record = getattr(instance, self.binding.hook("build"))()
            records[self.binding.name] = record
        return record

    def __set__(self, instance: object, record: object) -> None:
        records = instance._records  # type: ignore[attr-defined]
        if record is None:
            records.pop(self.binding.name, None)
            return
        records[self.binding.name] = record
        getattr(instance, self.binding.hook("load"))()


def _default_hooks(binding: PresentedRecord) -> dict[str, Callable[..., object]]:
    def build(self: object) -> object:
        return binding.build()

    def load_attributes(self: object) -> None:
        binding.load(self, getattr(self, binding.name))

    def delegate_attributes(self: object) -> None:
        binding.delegate(self, getattr(self, binding.name))

    def validate(self: object) -> bool:
        return binding.validate(getattr(self, binding.name))

    def persist(self: object) -> bool:
        return binding.persist(getattr(self, binding.name))

    return {
        "build": build,
        "load": load_attributes,
        "delegate": delegate_attributes,
        "validate": validate,
        "persist": persist,
    }


class Presenting:
    """为表单对象类提供模型绑定声明."""

    _presented: ClassVar[tuple[PresentedRecord, ...]] = ()

    @classmethod
    def presents(cls, *args: object) -> None:
        """根据参数个数选择 ``present_models`` 或 ``present_model``.

        Example:
            >>> SignupForm.presents(User, "email", "password")
            >>> SignupForm.presents({User: ["email"], Profile: ["bio"]})

        """
        if len(args) == 1 and isinstance(args[0], Mapping):
            cls.present_models(args[0])
            return
        if not args:
            raise ConfigurationError("presents 至少需要一个模型类型")
        record_type, *fields = args
        cls.present_model(record_type, *fields)  # type: ignore[arg-type]

    @classmethod
    def present_models(cls, records: Mapping[type, tuple[str, ...] | list[str]]) -> None:
        """按映射顺序绑定多个模型."""
        for record_type, fields in records.items():
            if isinstance(fields, str):
                fields = (fields,)
            cls.present_model(record_type, *fields)

    @classmethod
    def present_model(cls, record_type: type, *fields: str) -> PresentedRecord:
        """绑定单个模型及其字段,生成访问器与默认钩子.

        Raises:
            DuplicateBindingError: 同一模型类型、同一标签或同名字段被重复绑定时抛出.
            ConfigurationError: 字段名或标签与表单对象已有成员冲突时抛出.

        """
        if not isinstance(record_type, type):
            raise ConfigurationError(f"只能绑定模型类型: {record_type!r}")
        binding = PresentedRecord.for_record(record_type, fields)
        cls._check_binding(binding)

        setattr(cls, binding.name, RecordAccessor(binding))
        for field in binding.fields:
            setattr(cls, field, FieldAccessor(field, binding.name))
        for operation, hook in _default_hooks(binding).items():
            hook_name = binding.hook(operation)
            if callable(getattr(cls, hook_name, None)):
                continue
            hook.__name__ = hook_name
            hook.__qualname__ = f"{cls.__qualname__}.{hook_name}"
            setattr(cls, hook_name, hook)

        cls._presented = (*cls._presented, binding)
        return binding

    @classmethod
    def presented_records(cls) -> tuple[type, ...]:
        """按声明顺序返回已绑定的模型类型."""
        return tuple(binding.record_type for binding in cls._presented)

    @classmethod
    def bindings(cls) -> tuple[PresentedRecord, ...]:
        return cls._presented

    @classmethod
    def _check_binding(cls, binding: PresentedRecord) -> None:
        taken_fields: dict[str, str] = {}
        for existing in cls._presented:
            if existing.record_type is binding.record_type or existing.name == binding.name:
                raise DuplicateBindingError(extra={"record": binding.name})
            taken_fields[existing.name] = existing.name
            taken_fields.update({field: existing.name for field in existing.fields})

        if len(set(binding.fields)) != len(binding.fields):
            raise DuplicateBindingError(f"模型 {binding.name} 的字段重复声明", extra={"record": binding.name})

        for name in (binding.name, *binding.fields):
            if name in taken_fields:
                raise DuplicateBindingError(
                    f"字段 {name} 已由模型 {taken_fields[name]} 绑定",
                    extra={"record": binding.name, "field": name},
                )
            if name.startswith("_"):
                raise ConfigurationError(f"绑定名不能以下划线开头: {name}")
            existing_attr = getattr(cls, name, None)
            if existing_attr is not None and not isinstance(existing_attr, FormAttribute):
                raise ConfigurationError(f"绑定名与表单对象成员冲突: {name}")
        if binding.name in binding.fields:
            raise ConfigurationError(f"字段名不能与模型标签相同: {binding.name}")

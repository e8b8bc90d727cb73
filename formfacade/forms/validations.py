"""表单对象的校验行为.

校验前先把表单字段写回被展示的模型,再逐个校验模型并把模型的字段错误复制到
表单对象上,最后执行表单自身声明的规则.这些步骤以 ``before_validation`` 回调
的形式登记,``validate_<name>`` 可在子类中覆盖.

表单自身的规则适合放置只属于展示层的约束,例如:

* 两次输入的密码一致(confirmation)
* 勾选服务条款(acceptance)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, ClassVar

from formfacade.core.exceptions import ConfigurationError
from formfacade.forms.presenting import FormAttribute
from formfacade.forms.validators import (
    AcceptanceRule,
    CallableRule,
    ConfirmationRule,
    ValidationRule,
    build_rules,
)

if TYPE_CHECKING:
    from formfacade.forms.errors import FormErrors
    from formfacade.forms.presenting import PresentedRecord

Rule = ValidationRule | CallableRule


class Validations:
    """声明并执行表单自身的校验规则,同时汇总模型的校验结果."""

    _rules: ClassVar[tuple[Rule, ...]] = ()
    _presented: ClassVar[tuple[PresentedRecord, ...]]
    _invalid_records: list[str]

    errors: FormErrors

    @classmethod
    def validates(cls, *fields: str, **options: object) -> None:
        """为一个或多个字段声明校验规则.

        Example:
            >>> SignupForm.validates("title", length={"minimum": 2, "allow_blank": True})
            >>> SignupForm.validates("password", confirmation=True)

        """
        if not fields:
            raise ConfigurationError("validates 至少需要一个字段名")
        rules: list[Rule] = []
        for field in fields:
            rules.extend(build_rules(field, **dict(options)))
        for rule in rules:
            cls._ensure_rule_attributes(rule)
        cls._rules = (*cls._rules, *rules)

    @classmethod
    def validate_with(cls, fn: Callable[[object], None]) -> Callable[[object], None]:
        """登记自定义校验,可作为装饰器使用;fn 直接向 ``form.errors`` 写入错误."""
        if not callable(fn):
            raise ConfigurationError(f"自定义校验必须可调用: {fn!r}")
        cls._rules = (*cls._rules, CallableRule(fn))
        return fn

    @classmethod
    def validators_on(cls, field: str) -> list[ValidationRule]:
        return [rule for rule in cls._rules if isinstance(rule, ValidationRule) and rule.field == field]

    @classmethod
    def _apply_declared_validations(cls, validations: Mapping[str, Mapping[str, object]]) -> None:
        for field, options in validations.items():
            cls.validates(field, **options)

    @classmethod
    def _ensure_rule_attributes(cls, rule: Rule) -> None:
        """confirmation/acceptance 依赖的表单属性不存在时自动创建."""
        names: list[str] = []
        if isinstance(rule, ConfirmationRule):
            names.append(rule.confirmation_field)
        if isinstance(rule, AcceptanceRule):
            names.append(rule.field)
        for name in names:
            if getattr(cls, name, None) is None:
                attribute = FormAttribute()
                attribute.__set_name__(cls, name)
                setattr(cls, name, attribute)

    # ------------------------------------------------------------------ #
    # before_validation 回调
    # ------------------------------------------------------------------ #
    def validate_records(self) -> None:
        self._invalid_records = [
            binding.name for binding in self._presented if not getattr(self, binding.hook("validate"))()
        ]

    def copy_validation_errors(self) -> None:
        for binding in self._presented:
            record = getattr(self, binding.name)
            self.errors.merge(binding.errors_of(record))

    # ------------------------------------------------------------------ #
    # 表单自身规则
    # ------------------------------------------------------------------ #
    def run_validations(self) -> bool:
        for rule in self._rules:
            rule.validate(self, self.errors)
        return not self._invalid_records and not self.errors

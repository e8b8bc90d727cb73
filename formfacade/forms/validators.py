"""字段校验规则.

表单对象与模型(`RecordMixin`)共用同一组规则:

- presence / absence
- length (minimum / maximum / is / in)
- format (with / without)
- inclusion / exclusion
- confirmation (``<field>_confirmation`` 必须一致)
- acceptance (条款勾选)

规则通过 ``build_rules(field, presence=True, length={...})`` 从声明式选项构造,
选项非法时在定义期抛出 ConfigurationError.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from formfacade.constants import ValidationMessages
from formfacade.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from formfacade.forms.errors import FormErrors

DEFAULT_ACCEPT_VALUES: tuple[object, ...] = (True, "1", "true", "on", "yes")
COMMON_OPTIONS = ("allow_blank", "allow_none", "message")
_OPTION_ALIASES = {"is": "is_", "in": "in_", "within": "in_", "with": "with_"}


def is_blank(value: object) -> bool:
    """判断值是否为空: None、空白字符串或空集合."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Collection):
        return len(value) == 0
    return False


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationRule:
    """单条字段校验规则的基类."""

    kind: ClassVar[str] = ""

    field: str
    message: str | None = None
    allow_blank: bool = False
    allow_none: bool = False

    def validate(self, target: object, errors: FormErrors) -> None:
        """读取目标对象上的字段值并执行校验,错误写入 errors."""
        value = getattr(target, self.field, None)
        if self.allow_none and value is None:
            return
        if self.allow_blank and is_blank(value):
            return
        self.check(target, value, errors)

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        raise NotImplementedError

    def add_error(self, errors: FormErrors, default: str, **params: object) -> None:
        template = self.message or default
        errors.add(self.field, template.format(**params))


@dataclass(frozen=True, slots=True, kw_only=True)
class PresenceRule(ValidationRule):
    kind: ClassVar[str] = "presence"

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        if is_blank(value):
            self.add_error(errors, ValidationMessages.BLANK)


@dataclass(frozen=True, slots=True, kw_only=True)
class AbsenceRule(ValidationRule):
    kind: ClassVar[str] = "absence"

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        if not is_blank(value):
            self.add_error(errors, ValidationMessages.PRESENT)


@dataclass(frozen=True, slots=True, kw_only=True)
class LengthRule(ValidationRule):
    """长度校验,None 视为长度 0."""

    kind: ClassVar[str] = "length"

    minimum: int | None = None
    maximum: int | None = None
    is_: int | None = None
    in_: range | tuple[int, int] | None = None

    def __post_init__(self) -> None:
        if self.minimum is None and self.maximum is None and self.is_ is None and self.in_ is None:
            raise ConfigurationError(message_key="INVALID_VALIDATION_OPTIONS", extra={"rule": self.kind})

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        length = 0 if value is None else len(value)  # type: ignore[arg-type]
        minimum, maximum = self.minimum, self.maximum
        if self.in_ is not None:
            minimum, maximum = self._bounds(self.in_)
        if self.is_ is not None and length != self.is_:
            self.add_error(errors, ValidationMessages.WRONG_LENGTH, count=self.is_)
        if minimum is not None and length < minimum:
            self.add_error(errors, ValidationMessages.TOO_SHORT, count=minimum)
        if maximum is not None and length > maximum:
            self.add_error(errors, ValidationMessages.TOO_LONG, count=maximum)

    @staticmethod
    def _bounds(span: range | tuple[int, int]) -> tuple[int, int]:
        if isinstance(span, range):
            return span.start, span.stop - 1
        return span[0], span[1]


@dataclass(frozen=True, slots=True, kw_only=True)
class FormatRule(ValidationRule):
    kind: ClassVar[str] = "format"

    with_: str | re.Pattern[str] | None = None
    without: str | re.Pattern[str] | None = None

    def __post_init__(self) -> None:
        if self.with_ is None and self.without is None:
            raise ConfigurationError(message_key="INVALID_VALIDATION_OPTIONS", extra={"rule": self.kind})

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        text = "" if value is None else str(value)
        if self.with_ is not None and not re.search(self.with_, text):
            self.add_error(errors, ValidationMessages.INVALID)
        elif self.without is not None and re.search(self.without, text):
            self.add_error(errors, ValidationMessages.INVALID)


@dataclass(frozen=True, slots=True, kw_only=True)
class InclusionRule(ValidationRule):
    kind: ClassVar[str] = "inclusion"

    in_: Collection[object] = ()

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        if value not in self.in_:
            self.add_error(errors, ValidationMessages.INCLUSION)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExclusionRule(ValidationRule):
    kind: ClassVar[str] = "exclusion"

    in_: Collection[object] = ()

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        if value in self.in_:
            self.add_error(errors, ValidationMessages.EXCLUSION)


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfirmationRule(ValidationRule):
    """``<field>_confirmation`` 为 None 时跳过,与网页表单未提交确认字段的场景一致."""

    kind: ClassVar[str] = "confirmation"

    @property
    def confirmation_field(self) -> str:
        return f"{self.field}_confirmation"

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        confirmation = getattr(target, self.confirmation_field, None)
        if confirmation is None or confirmation == value:
            return
        template = self.message or ValidationMessages.CONFIRMATION
        errors.add(self.confirmation_field, template.format(attribute=self.field))


@dataclass(frozen=True, slots=True, kw_only=True)
class AcceptanceRule(ValidationRule):
    kind: ClassVar[str] = "acceptance"

    accept: tuple[object, ...] = DEFAULT_ACCEPT_VALUES

    def validate(self, target: object, errors: FormErrors) -> None:
        value = getattr(target, self.field, None)
        if value is None:
            return
        self.check(target, value, errors)

    def check(self, target: object, value: object, errors: FormErrors) -> None:
        if value not in self.accept:
            self.add_error(errors, ValidationMessages.ACCEPTED)


@dataclass(frozen=True, slots=True)
class CallableRule:
    """自定义校验: ``fn(target)`` 自行向 ``target.errors`` 写入错误."""

    fn: Callable[[object], None]

    def validate(self, target: object, errors: FormErrors) -> None:
        del errors
        self.fn(target)


RULE_TYPES: dict[str, type[ValidationRule]] = {
    rule.kind: rule
    for rule in (
        PresenceRule,
        AbsenceRule,
        LengthRule,
        FormatRule,
        InclusionRule,
        ExclusionRule,
        ConfirmationRule,
        AcceptanceRule,
    )
}


def build_rules(field: str, **options: object) -> list[ValidationRule]:
    """根据声明式选项构造字段的校验规则.

    Args:
        field: 字段名.
        **options: 规则名到选项的映射(``True`` 或选项字典),以及作用于所有规则的
            ``allow_blank`` / ``allow_none`` / ``message``.

    Returns:
        按声明顺序排列的规则列表.

    Raises:
        ConfigurationError: 规则名未知或规则选项非法时抛出.

    Example:
        >>> build_rules("title", presence=True, length={"minimum": 2, "allow_blank": True})

    """
    common = {key: options.pop(key) for key in COMMON_OPTIONS if key in options}
    rules: list[ValidationRule] = []
    for kind, rule_options in options.items():
        rule_type = RULE_TYPES.get(kind)
        if rule_type is None:
            raise ConfigurationError(message_key="INVALID_VALIDATION_OPTIONS", extra={"rule": kind})
        if rule_options is None or rule_options is False:
            continue
        kwargs = dict(common)
        kwargs.update(_normalize_options(kind, rule_options))
        try:
            rules.append(rule_type(field=field, **kwargs))
        except TypeError as exc:
            raise ConfigurationError(
                message_key="INVALID_VALIDATION_OPTIONS",
                extra={"rule": kind, "field": field},
            ) from exc
    return rules


def _normalize_options(kind: str, rule_options: object) -> dict[str, object]:
    if rule_options is True:
        return {}
    if isinstance(rule_options, Mapping):
        return {_OPTION_ALIASES.get(key, key): value for key, value in rule_options.items()}
    if kind in {"inclusion", "exclusion", "length"} and isinstance(rule_options, (range, list, tuple, set, frozenset)):
        return {"in_": rule_options}
    if kind == "format" and isinstance(rule_options, (str, re.Pattern)):
        return {"with_": rule_options}
    raise ConfigurationError(message_key="INVALID_VALIDATION_OPTIONS", extra={"rule": kind})

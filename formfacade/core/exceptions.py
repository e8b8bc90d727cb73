"""FormFacade - 统一异常定义(Shared Kernel).

说明:
- 本模块只负责定义异常类型与语义字段,不包含 HTTP/Flask/Werkzeug 等框架细节.
- 异常到 HTTP status 的映射在 HTTP 边界完成(见 `formfacade/infra/error_mapping.py`).
- 字段级校验失败不抛异常,统一收集到表单对象的 `errors` 中.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from formfacade.constants.system_constants import ErrorCategory, ErrorMessages, ErrorSeverity


@dataclass(frozen=True, slots=True)
class ExceptionMetadata:
    """异常的元信息(不包含传输层信息)."""

    category: ErrorCategory
    severity: ErrorSeverity
    default_message_key: str


class AppError(Exception):
    """统一的基础业务异常.

    Args:
        message: 自定义错误文案,若为空则根据 ``message_key`` 推导.
        message_key: 自定义消息键.
        extra: 结构化日志附加字段,同时用于填充消息模板中的占位符.
        severity: 错误严重度.
        category: 错误分类.
    """

    metadata = ExceptionMetadata(
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        message_key: str | None = None,
        extra: Mapping[str, object] | None = None,
        severity: ErrorSeverity | None = None,
        category: ErrorCategory | None = None,
    ) -> None:
        self.message_key = message_key or self.metadata.default_message_key
        self.extra = dict(extra or {})
        self.message = message or self._resolve_message(self.message_key, self.extra)
        self.severity = severity or self.metadata.severity
        self.category = category or self.metadata.category
        super().__init__(self.message)

    @staticmethod
    def _resolve_message(message_key: str, extra: Mapping[str, object]) -> str:
        template = getattr(ErrorMessages, message_key, ErrorMessages.INTERNAL_ERROR)
        try:
            return template.format(**extra)
        except (KeyError, IndexError):
            return template

    @property
    def recoverable(self) -> bool:
        """表示该异常是否可恢复."""

        return self.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)


class ValidationError(AppError):
    """表示输入参数或请求体验证失败."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="VALIDATION_ERROR",
    )


class UnknownAttributeError(ValidationError):
    """表示向表单对象赋值了未声明的属性."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="UNKNOWN_ATTRIBUTE",
    )


class ConfigurationError(AppError):
    """表示表单对象在定义期的配置不合法(钩子、校验规则等)."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.HIGH,
        default_message_key="CONFIGURATION_ERROR",
    )


class DuplicateBindingError(ConfigurationError):
    """表示同一个模型类型(或同名字段)被重复绑定到表单对象."""

    metadata = ExceptionMetadata(
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.HIGH,
        default_message_key="DUPLICATE_BINDING",
    )


class SystemError(AppError):
    """表示系统级未知错误或底层故障."""


__all__ = [
    "AppError",
    "ConfigurationError",
    "DuplicateBindingError",
    "SystemError",
    "UnknownAttributeError",
    "ValidationError",
]

"""FormFacade - 常量定义模块

统一管理错误分类、错误消息与字段校验提示.
"""

from enum import Enum


class LogLevel(Enum):
    """日志级别枚举."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 错误消息常量
class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"

    # 表单对象配置错误
    CONFIGURATION_ERROR = "表单配置错误"
    UNKNOWN_ATTRIBUTE = "未知属性: {attribute}"
    DUPLICATE_BINDING = "重复绑定的模型: {record}"
    INVALID_VALIDATION_OPTIONS = "无效的校验配置: {rule}"

    # 持久化错误
    RECORD_SAVE_FAILED = "记录保存失败,请稍后再试"
    FORM_SAVE_FAILED = "保存失败"


# 字段校验提示
class ValidationMessages:
    """字段校验提示.

    支持 ``str.format`` 占位符,例如 ``{count}``.
    """

    BLANK = "不能为空"
    PRESENT = "必须为空"
    TOO_SHORT = "长度过短(最少 {count} 个字符)"
    TOO_LONG = "长度过长(最多 {count} 个字符)"
    WRONG_LENGTH = "长度错误(应为 {count} 个字符)"
    INVALID = "格式不正确"
    INCLUSION = "不在可选范围内"
    EXCLUSION = "为保留值"
    CONFIRMATION = "与 {attribute} 不一致"
    ACCEPTED = "必须接受"


# 成功消息常量
class SuccessMessages:
    """成功消息常量."""

    OPERATION_SUCCESS = "操作成功"
    DATA_SAVED = "数据保存成功"


__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "LogLevel",
    "SuccessMessages",
    "ValidationMessages",
]

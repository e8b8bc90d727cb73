"""常量模块。

集中管理表单对象层使用的常量，包括错误分类、错误消息与校验提示。

主要常量：
- ErrorCategory: 错误分类
- ErrorSeverity: 错误严重度
- ErrorMessages: 错误消息常量
- ValidationMessages: 字段校验提示
- HttpStatus: HTTP 状态码常量
"""

from http import HTTPStatus as HttpStatus

from .flash_categories import FlashCategory
from .system_constants import (
    ErrorCategory,
    ErrorMessages,
    ErrorSeverity,
    LogLevel,
    SuccessMessages,
    ValidationMessages,
)

__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "FlashCategory",
    "HttpStatus",
    "LogLevel",
    "SuccessMessages",
    "ValidationMessages",
]

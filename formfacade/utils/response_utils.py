"""FormFacade - 统一响应工具.

提供统一的成功/错误响应结构,避免在视图层散落 JSON 拼装逻辑.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from flask import Response, jsonify

from formfacade.constants import ErrorMessages, HttpStatus, SuccessMessages
from formfacade.core.exceptions import AppError
from formfacade.infra.error_mapping import map_exception_to_status


def unified_success_response(
    data: object | None = None,
    message: object | None = None,
    *,
    status: int = HttpStatus.OK,
    meta: Mapping[str, object] | None = None,
) -> tuple[dict[str, object], int]:
    """生成统一的成功响应载荷.

    Args:
        data: 响应数据,可选.
        message: 成功消息,可选,默认为"操作成功".
        status: HTTP 状态码,默认为 200.
        meta: 元数据,可选.

    Returns:
        响应载荷字典与 HTTP 状态码.

    """
    payload: dict[str, object] = {
        "success": True,
        "error": False,
        "message": str(message) if message is not None else SuccessMessages.OPERATION_SUCCESS,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if data is not None:
        payload["data"] = data
    if meta:
        payload["meta"] = dict(meta)
    return payload, status


def unified_error_response(
    error: Exception,
    *,
    status_code: int | None = None,
    extra: Mapping[str, object] | None = None,
) -> tuple[dict[str, object], int]:
    """生成统一的错误响应载荷,非 AppError 的异常只暴露通用文案."""
    if isinstance(error, AppError):
        payload: dict[str, object] = {
            "message": error.message,
            "message_key": error.message_key,
            "category": error.category.value,
            "severity": error.severity.value,
            "recoverable": error.recoverable,
        }
    else:
        payload = {"message": ErrorMessages.INTERNAL_ERROR, "message_key": "INTERNAL_ERROR"}
    payload.update({"success": False, "error": True, "timestamp": datetime.now(UTC).isoformat()})
    if extra:
        payload["extra"] = dict(extra)
    final_status = status_code or map_exception_to_status(error)
    return payload, final_status


def jsonify_unified_success(*args: object, **kwargs: object) -> tuple[Response, int]:
    """返回 Flask Response 对象的成功响应便捷函数."""
    payload, status = unified_success_response(*args, **kwargs)  # type: ignore[arg-type]
    return jsonify(payload), status


def jsonify_unified_error(error: Exception, **kwargs: object) -> tuple[Response, int]:
    """返回 Flask Response 对象的错误响应便捷函数."""
    payload, status = unified_error_response(error, **kwargs)  # type: ignore[arg-type]
    return jsonify(payload), status

"""请求 payload 解析与规范化.

目标:
- 统一处理 JSON dict 与 Werkzeug MultiDict(form/query).
- 提供最小的输入规范化(字符串 strip/NUL 清理),并允许对敏感字段保留 raw 值.
- 支持按表单参数根键(``param_key``)取出嵌套的表单数据.

注意:
- 本模块只负责 "取参形状" 与 "基础规范化",不做业务校验,校验交给表单对象.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

_STRING_LIKE_TYPES = (str, bytes, bytearray)


def parse_payload(
    payload: object | None,
    *,
    list_fields: Sequence[str] = (),
    preserve_raw_fields: Sequence[str] = (),
    param_key: str | None = None,
) -> dict[str, object]:
    """解析并规范化 payload.

    Args:
        payload: JSON dict 或 MultiDict 兼容对象.
        list_fields: 需要固定为 list 形状的字段名集合(单值也输出 list).
        preserve_raw_fields: 需要保留 raw 字符串的字段名集合,字段名包含 "password" 时总是保留.
        param_key: 表单参数根键;JSON 中存在该键且为 mapping 时只解析其内容.

    Returns:
        规范化后的 payload dict.

    Raises:
        TypeError: payload 既不是 mapping 也不是 MultiDict 时抛出.

    """
    if payload is None:
        return {}

    list_field_set = set(list_fields)
    raw_field_set = set(preserve_raw_fields)

    if hasattr(payload, "getlist"):
        return _parse_multidict(payload, list_fields=list_field_set, preserve_raw_fields=raw_field_set)

    if isinstance(payload, Mapping):
        nested = payload.get(param_key) if param_key else None
        source = nested if isinstance(nested, Mapping) else payload
        return {
            str(key): _sanitize_value(
                value,
                field_name=str(key),
                force_list=key in list_field_set,
                preserve_raw_fields=raw_field_set,
            )
            for key, value in source.items()
        }

    raise TypeError("payload 必须为 mapping 或 MultiDict 兼容对象")


def _parse_multidict(
    payload: object,
    *,
    list_fields: set[str],
    preserve_raw_fields: set[str],
) -> dict[str, object]:
    multi_dict = cast(Any, payload)
    sanitized: dict[str, object] = {}
    for key in list(multi_dict.keys()):
        values = [
            _sanitize_scalar(value, field_name=key, preserve_raw_fields=preserve_raw_fields)
            for value in multi_dict.getlist(key) or []
        ]
        if key in list_fields:
            sanitized[key] = values
        else:
            sanitized[key] = values[-1] if values else None
    return sanitized


def _sanitize_value(
    value: object,
    *,
    field_name: str,
    force_list: bool,
    preserve_raw_fields: set[str],
) -> object:
    is_sequence = isinstance(value, Sequence) and not isinstance(value, _STRING_LIKE_TYPES)
    if force_list:
        if value is None:
            return []
        items = value if is_sequence else [value]
        return [
            _sanitize_scalar(item, field_name=field_name, preserve_raw_fields=preserve_raw_fields)
            for item in items  # type: ignore[union-attr]
        ]
    if is_sequence:
        if not value:
            return None
        return _sanitize_scalar(value[-1], field_name=field_name, preserve_raw_fields=preserve_raw_fields)  # type: ignore[index]
    return _sanitize_scalar(value, field_name=field_name, preserve_raw_fields=preserve_raw_fields)


def _sanitize_scalar(value: object, *, field_name: str, preserve_raw_fields: set[str]) -> object:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode(errors="ignore")
    if not isinstance(value, str):
        return value
    if field_name in preserve_raw_fields or "password" in field_name.lower():
        return value
    return value.replace("\x00", "").strip()

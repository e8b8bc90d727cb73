"""Flask Flash消息类别常量.

定义表单视图使用的 Flash 消息类别,避免魔法字符串.
"""

from __future__ import annotations


class FlashCategory:
    """Flask Flash消息类别常量."""

    SUCCESS = "success"  # 保存成功
    ERROR = "error"  # 保存失败/校验失败

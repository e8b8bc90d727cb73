"""表单对象的字段错误集合.

按字段名收集错误消息,保持添加顺序;读取不存在的字段时返回空列表.
每一轮校验开始前由表单对象整体清空重建,保证多次校验结果一致.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

BASE_FIELD = "base"


class FormErrors:
    """字段级错误集合."""

    def __init__(self) -> None:
        self._messages: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        """为字段追加一条错误消息."""
        self._messages.setdefault(field, []).append(message)

    def merge(self, errors: Mapping[str, object]) -> None:
        """按字段合并另一组错误,保持各字段内的消息顺序.

        Args:
            errors: 字段名到消息(或消息列表)的映射,通常来自被展示模型.

        """
        for field, messages in errors.items():
            if isinstance(messages, str):
                self.add(field, messages)
                continue
            for message in messages:  # type: ignore[attr-defined]
                self.add(field, str(message))

    def clear(self) -> None:
        self._messages.clear()

    def __getitem__(self, field: str) -> list[str]:
        return list(self._messages.get(field, ()))

    def __contains__(self, field: object) -> bool:
        return bool(self._messages.get(field))  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for field, messages in self._messages.items():
            for message in messages:
                yield field, message

    def __len__(self) -> int:
        return sum(len(messages) for messages in self._messages.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __repr__(self) -> str:
        return f"FormErrors({self._messages!r})"

    def fields(self) -> list[str]:
        """返回存在错误的字段名,按首次出现顺序."""
        return [field for field, messages in self._messages.items() if messages]

    def full_messages(self) -> list[str]:
        """返回带字段名前缀的完整消息,``base`` 错误不加前缀."""
        return [message if field == BASE_FIELD else f"{field} {message}" for field, message in self]

    def to_dict(self) -> dict[str, list[str]]:
        """返回可序列化的字段错误字典."""
        return {field: list(messages) for field, messages in self._messages.items() if messages}

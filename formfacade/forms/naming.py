"""模型命名工具.

为表单对象与被展示的模型生成统一的名称(单数、复数、参数键、路由键),
绑定时使用单数名作为模型标签,例如 ``BlogPost`` -> ``blog_post``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_ES_SUFFIXES = ("s", "x", "z", "ch", "sh")
_VOWELS = "aeiou"


def underscore(name: str) -> str:
    """将驼峰类名转换为下划线形式."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def pluralize(word: str) -> str:
    """对英文单词做最基础的复数化."""
    if word.endswith(_ES_SUFFIXES):
        return f"{word}es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in _VOWELS:
        return f"{word[:-1]}ies"
    return f"{word}s"


@dataclass(frozen=True, slots=True)
class ModelName:
    """模型名称集合.

    Attributes:
        name: 原始类名.
        singular: 单数下划线名,作为绑定标签与访问器名称.
        plural: 复数下划线名.
        human: 适合展示的名称.
        param_key: 表单参数的根键.
        route_key: 路由使用的集合名.

    """

    name: str
    singular: str
    plural: str
    human: str
    param_key: str
    route_key: str

    @classmethod
    def for_class(cls, klass: type) -> ModelName:
        """根据类生成名称,类可通过 ``model_name_override`` 属性自定义单数名."""
        singular = getattr(klass, "model_name_override", None) or underscore(klass.__name__)
        plural = pluralize(singular)
        return cls(
            name=klass.__name__,
            singular=singular,
            plural=plural,
            human=singular.replace("_", " ").capitalize(),
            param_key=singular,
            route_key=plural,
        )

    def __str__(self) -> str:
        return self.name

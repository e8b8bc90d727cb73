"""表单对象的回调链.

支持 ``validation`` / ``save`` / ``persist`` 三类事件,每类事件有
``before`` / ``after`` / ``around`` 三种回调:

- before 回调返回 ``False`` 时中断整条链,操作结果为 ``False``.
- around 回调接收无参的 ``proceed``,必须返回 ``proceed()`` 的结果.
- after 回调仅在操作结果不为 ``False`` 时执行.

回调既可以是方法名(字符串),也可以是可调用对象(``fn(form)`` / ``fn(form, proceed)``).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from formfacade.core.exceptions import ConfigurationError

CALLBACK_KINDS = ("before", "after", "around")
CALLBACK_EVENTS = ("validation", "save", "persist")
CALLBACK_MARKER = "__form_callback__"

Callback = str | Callable[..., object]
F = TypeVar("F", bound=Callable[..., object])


def callback(kind: str, event: str) -> Callable[[F], F]:
    """把方法标记为回调,类创建时按定义顺序登记.

    Example:
        >>> class SignupForm(FormObject):
        ...     @callback("after", "save")
        ...     def send_welcome_mail(self):
        ...         ...

    """
    _ensure_known(kind, event)

    def decorator(func: F) -> F:
        markers = (*getattr(func, CALLBACK_MARKER, ()), (kind, event))
        setattr(func, CALLBACK_MARKER, markers)
        return func

    return decorator


def _ensure_known(kind: str, event: str) -> None:
    if kind not in CALLBACK_KINDS or event not in CALLBACK_EVENTS:
        raise ConfigurationError(f"未知回调: {kind}_{event}")
    if kind == "around" and event == "validation":
        raise ConfigurationError("validation 事件不支持 around 回调")


class CallbackChain:
    """按事件与类型保存回调的不可变登记表,子类通过 ``copy`` 继承."""

    def __init__(self, entries: dict[tuple[str, str], tuple[Callback, ...]] | None = None) -> None:
        self._entries: dict[tuple[str, str], tuple[Callback, ...]] = dict(entries or {})

    def copy(self) -> CallbackChain:
        return CallbackChain(self._entries)

    def add(self, kind: str, event: str, cb: Callback) -> None:
        _ensure_known(kind, event)
        if not isinstance(cb, str) and not callable(cb):
            raise ConfigurationError(f"回调必须是方法名或可调用对象: {cb!r}")
        key = (kind, event)
        self._entries[key] = (*self._entries.get(key, ()), cb)

    def get(self, kind: str, event: str) -> tuple[Callback, ...]:
        return self._entries.get((kind, event), ())

    def run(self, target: object, event: str, block: Callable[[], bool]) -> bool:
        """执行事件的完整回调链并返回操作结果."""
        for cb in self.get("before", event):
            if _invoke(target, cb) is False:
                return False

        proceed = block
        for cb in reversed(self.get("around", event)):
            proceed = _wrap_around(target, cb, proceed)
        result = proceed()

        if result is not False:
            for cb in self.get("after", event):
                _invoke(target, cb)
        return result


def _invoke(target: object, cb: Callback, *args: object) -> object:
    if isinstance(cb, str):
        return getattr(target, cb)(*args)
    return cb(target, *args)


def _wrap_around(target: object, cb: Callback, proceed: Callable[[], bool]) -> Callable[[], bool]:
    def around() -> bool:
        return bool(_invoke(target, cb, proceed))

    return around

from __future__ import annotations

import pytest

from formfacade.core.exceptions import ConfigurationError
from formfacade.forms import FormObject, callback
from formfacade.forms.callbacks import CallbackChain


class _PassThroughScope:
    def run_in_transaction(self, fn):  # type: ignore[no-untyped-def]
        return fn()


class Draft:
    def __init__(self) -> None:
        self.body: str | None = None
        self.saved = False
        self.errors: dict[str, list[str]] = {}

    def is_persisted(self) -> bool:
        return self.saved

    def is_valid(self) -> bool:
        return True

    def save(self) -> bool:
        self.saved = True
        return True


@pytest.mark.unit
def test_chain_runs_before_around_block_after_in_order() -> None:
    events: list[str] = []
    chain = CallbackChain()
    chain.add("before", "save", lambda target: events.append("before"))
    chain.add("after", "save", lambda target: events.append("after"))

    def _around(target, proceed):  # type: ignore[no-untyped-def]
        events.append("around:enter")
        result = proceed()
        events.append("around:exit")
        return result

    chain.add("around", "save", _around)

    def _block() -> bool:
        events.append("block")
        return True

    assert chain.run(object(), "save", _block) is True
    assert events == ["before", "around:enter", "block", "around:exit", "after"]


@pytest.mark.unit
def test_before_callback_returning_false_halts_chain() -> None:
    events: list[str] = []
    chain = CallbackChain()
    chain.add("before", "persist", lambda target: False)
    chain.add("after", "persist", lambda target: events.append("after"))

    def _block() -> bool:
        events.append("block")
        return True

    assert chain.run(object(), "persist", _block) is False
    assert events == []


@pytest.mark.unit
def test_after_callbacks_are_skipped_when_result_is_false() -> None:
    events: list[str] = []
    chain = CallbackChain()
    chain.add("after", "save", lambda target: events.append("after"))

    assert chain.run(object(), "save", lambda: False) is False
    assert events == []


@pytest.mark.unit
def test_unknown_or_unsupported_callbacks_are_rejected() -> None:
    chain = CallbackChain()

    with pytest.raises(ConfigurationError):
        chain.add("around", "validation", lambda target, proceed: proceed())
    with pytest.raises(ConfigurationError):
        chain.add("before", "destroy", lambda target: None)
    with pytest.raises(ConfigurationError):
        chain.add("before", "save", 42)  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        callback("after", "commit")


@pytest.mark.unit
def test_decorated_methods_are_registered_on_the_form() -> None:
    class DraftForm(FormObject):
        presenting = {Draft: ("body",)}
        transaction_scope = _PassThroughScope()

        def __init__(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
            self.events: list[str] = []
            super().__init__(*args, **kwargs)

        @callback("before", "validation")
        def _normalize(self) -> None:
            self.events.append("before_validation")

        @callback("after", "persist")
        def _notify(self) -> None:
            self.events.append("after_persist")

        @callback("after", "save")
        def _audit(self) -> None:
            self.events.append("after_save")

    form = DraftForm(body="hello")

    assert form.save() is True
    assert form.events == ["before_validation", "after_persist", "after_save"]


@pytest.mark.unit
def test_before_save_returning_false_skips_persistence() -> None:
    class LockedForm(FormObject):
        presenting = {Draft: ("body",)}
        transaction_scope = _PassThroughScope()

    LockedForm.before_save(lambda form: False)
    form = LockedForm(body="hello")

    assert form.save() is False
    assert form.draft.saved is False


@pytest.mark.unit
def test_before_validation_returning_false_makes_form_invalid() -> None:
    class GuardedForm(FormObject):
        presenting = {Draft: ("body",)}

        @callback("before", "validation")
        def _reject(self) -> bool:
            return False

    assert GuardedForm(body="hello").is_valid() is False


@pytest.mark.unit
def test_around_persist_wraps_transaction_scope() -> None:
    events: list[str] = []

    class TracedForm(FormObject):
        presenting = {Draft: ("body",)}
        transaction_scope = _PassThroughScope()

    def _trace(form, proceed):  # type: ignore[no-untyped-def]
        events.append("enter")
        result = proceed()
        events.append(f"exit:{result}")
        return result

    TracedForm.around_persist(_trace)

    assert TracedForm(body="hello").save() is True
    assert events == ["enter", "exit:True"]


@pytest.mark.unit
def test_subclass_callbacks_do_not_leak_to_parent() -> None:
    class ParentForm(FormObject):
        pass

    class ChildForm(ParentForm):
        pass

    ChildForm.after_save("audit")

    assert "audit" in ChildForm._callbacks.get("after", "save")
    assert "audit" not in ParentForm._callbacks.get("after", "save")
    assert ParentForm._callbacks.get("before", "save") == ("delegate_attributes", "is_valid")

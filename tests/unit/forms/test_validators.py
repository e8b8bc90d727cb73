from __future__ import annotations

import re
from types import SimpleNamespace

import pytest

from formfacade.core.exceptions import ConfigurationError
from formfacade.forms import FormAttribute, FormErrors, FormObject
from formfacade.forms.validators import (
    AcceptanceRule,
    LengthRule,
    PresenceRule,
    build_rules,
    is_blank,
)


def _errors_for(rules, **values):  # type: ignore[no-untyped-def]
    target = SimpleNamespace(**values)
    errors = FormErrors()
    for rule in rules:
        rule.validate(target, errors)
    return errors.to_dict()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, True), ("", True), ("   ", True), ([], True), ({}, True), ("x", False), (0, False), (False, False)],
)
def test_is_blank(value, expected) -> None:  # type: ignore[no-untyped-def]
    assert is_blank(value) is expected


@pytest.mark.unit
def test_build_rules_keeps_declaration_order_and_common_options() -> None:
    rules = build_rules("name", presence=True, length={"maximum": 3}, message="自定义")

    assert [type(rule) for rule in rules] == [PresenceRule, LengthRule]
    assert all(rule.message == "自定义" for rule in rules)
    assert _errors_for(rules, name="abcd") == {"name": ["自定义"]}


@pytest.mark.unit
def test_length_rule_bounds_and_aliases() -> None:
    rules = build_rules("code", length={"is": 3})
    assert _errors_for(rules, code="ab") == {"code": ["长度错误(应为 3 个字符)"]}

    rules = build_rules("code", length=range(2, 4))
    assert _errors_for(rules, code="abcd") == {"code": ["长度过长(最多 3 个字符)"]}
    assert _errors_for(rules, code=None) == {"code": ["长度过短(最少 2 个字符)"]}

    rules = build_rules("code", length={"within": (1, 2)}, allow_blank=True)
    assert _errors_for(rules, code="") == {}


@pytest.mark.unit
def test_format_inclusion_exclusion_and_absence() -> None:
    rules = build_rules("slug", format=re.compile(r"^[a-z-]+$"))
    assert _errors_for(rules, slug="Hello") == {"slug": ["格式不正确"]}
    assert _errors_for(rules, slug="hello-world") == {}

    rules = build_rules("slug", format={"without": r"\s"})
    assert _errors_for(rules, slug="a b") == {"slug": ["格式不正确"]}

    rules = build_rules("state", inclusion=["draft", "published"])
    assert _errors_for(rules, state="archived") == {"state": ["不在可选范围内"]}

    rules = build_rules("name", exclusion={"in": ("admin",)})
    assert _errors_for(rules, name="admin") == {"name": ["为保留值"]}

    rules = build_rules("nickname", absence=True)
    assert _errors_for(rules, nickname="x") == {"nickname": ["必须为空"]}


@pytest.mark.unit
def test_allow_none_skips_only_none() -> None:
    rules = build_rules("age", inclusion={"in": range(0, 150), "allow_none": True})

    assert _errors_for(rules, age=None) == {}
    assert _errors_for(rules, age=200) == {"age": ["不在可选范围内"]}


@pytest.mark.unit
def test_confirmation_rule_reports_on_confirmation_field() -> None:
    rules = build_rules("password", confirmation=True)

    assert _errors_for(rules, password="a", password_confirmation=None) == {}
    assert _errors_for(rules, password="a", password_confirmation="a") == {}
    assert _errors_for(rules, password="a", password_confirmation="b") == {
        "password_confirmation": ["与 password 不一致"],
    }


@pytest.mark.unit
def test_acceptance_rule_skips_none_and_checks_accepted_values() -> None:
    rules = build_rules("terms", acceptance=True)

    assert _errors_for(rules, terms=None) == {}
    assert _errors_for(rules, terms="1") == {}
    assert _errors_for(rules, terms="0") == {"terms": ["必须接受"]}
    assert isinstance(rules[0], AcceptanceRule)


@pytest.mark.unit
def test_false_options_are_ignored() -> None:
    assert build_rules("name", presence=False, absence=None) == []


@pytest.mark.unit
@pytest.mark.parametrize(
    "options",
    [
        {"uniqueness": True},
        {"length": True},
        {"length": {"minimum": 1, "bogus": 2}},
        {"format": 3},
    ],
)
def test_invalid_rule_options_fail_fast(options) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ConfigurationError):
        build_rules("name", **options)


@pytest.mark.unit
def test_form_validations_create_confirmation_and_acceptance_attributes() -> None:
    class SignupForm(FormObject):
        validations = {
            "password": {"confirmation": True},
            "terms_of_service": {"acceptance": True},
        }
        password = FormAttribute()

    form = SignupForm(password="secret", password_confirmation="other", terms_of_service="no")

    assert isinstance(SignupForm.__dict__["password_confirmation"], FormAttribute)
    assert form.is_valid() is False
    assert form.errors.to_dict() == {
        "password_confirmation": ["与 password 不一致"],
        "terms_of_service": ["必须接受"],
    }
    assert [rule.kind for rule in SignupForm.validators_on("password")] == ["confirmation"]


@pytest.mark.unit
def test_validate_with_registers_custom_checks() -> None:
    class ContactForm(FormObject):
        email = FormAttribute()

    @ContactForm.validate_with
    def _email_has_at(form) -> None:  # type: ignore[no-untyped-def]
        if "@" not in (form.email or ""):
            form.errors.add("email", "格式不正确")

    form = ContactForm(email="nobody")

    assert form.is_valid() is False
    assert form.errors["email"] == ["格式不正确"]
    form.email = "a@b.c"
    assert form.is_valid() is True


@pytest.mark.unit
def test_validates_requires_a_field() -> None:
    class BareForm(FormObject):
        pass

    with pytest.raises(ConfigurationError):
        BareForm.validates(presence=True)

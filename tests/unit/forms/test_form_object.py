from __future__ import annotations

import pytest

from formfacade import db
from formfacade.core.exceptions import UnknownAttributeError
from formfacade.forms import FormErrors, FormObject


@pytest.fixture
def post_form_class(post_model):
    class ExampleForm(FormObject):
        presenting = {post_model: ("title",)}
        validations = {"title": {"length": {"minimum": 2, "allow_blank": True}}}

    return ExampleForm


@pytest.fixture
def post_comment_form_class(post_model, comment_model):
    class PostWithCommentForm(FormObject):
        presenting = {post_model: ("title",), comment_model: ("body",)}

    return PostWithCommentForm


@pytest.mark.unit
def test_form_object_without_bindings_is_persisted() -> None:
    class EmptyForm(FormObject):
        pass

    form = EmptyForm()

    assert EmptyForm.presented_records() == ()
    assert form.is_persisted() is True
    assert isinstance(form.errors, FormErrors)


@pytest.mark.unit
def test_single_binding_builds_record_lazily(app, post_form_class, post_model) -> None:
    form = post_form_class()

    assert post_form_class.presented_records() == (post_model,)
    assert isinstance(form.post, post_model)
    assert form.post is form.post
    assert form.is_persisted() is False


@pytest.mark.unit
def test_single_binding_is_persisted_after_saving(app, post_form_class, post_model) -> None:
    form = post_form_class()
    form.title = "foo"

    assert form.save() is True
    assert form.is_persisted() is True
    assert post_model.query.count() == 1
    assert post_model.query.first().title == "foo"


@pytest.mark.unit
def test_injecting_existing_record_keeps_identity(app, post_form_class, post_model) -> None:
    post = post_model()

    form = post_form_class(post=post)

    assert form.post is post


@pytest.mark.unit
def test_injecting_record_loads_bound_fields_immediately(app, post_form_class, post_model) -> None:
    post = post_model(title="foo")

    form = post_form_class(post=post)

    assert form.title == "foo"


@pytest.mark.unit
def test_instance_can_customize_build_strategy(app, post_form_class) -> None:
    form = post_form_class()
    form.build_post = lambda: "foo"

    assert form.post == "foo"


@pytest.mark.unit
def test_assigning_none_resets_record_to_lazy_build(app, post_form_class, post_model) -> None:
    form = post_form_class()
    first = form.post

    form.post = None

    assert isinstance(form.post, post_model)
    assert form.post is not first


@pytest.mark.unit
def test_delegates_bound_fields_before_validating(app, post_form_class) -> None:
    form = post_form_class()
    form.title = "foo"

    form.is_valid()

    assert form.post.title == "foo"


@pytest.mark.unit
def test_validating_form_validates_each_record(app, post_form_class) -> None:
    form = post_form_class(title="foo")
    record = form.post
    calls: list[bool] = []
    original = record.is_valid

    def _spy() -> bool:
        calls.append(True)
        return original()

    record.is_valid = _spy

    assert form.is_valid() is True
    assert calls == [True]


@pytest.mark.unit
def test_copies_record_errors_to_form(app, post_form_class) -> None:
    form = post_form_class()

    assert form.is_valid() is False
    assert len(form.errors) == 1
    assert form.errors["title"] == ["不能为空"]


@pytest.mark.unit
def test_saves_record_when_valid(app, post_form_class, post_model) -> None:
    form = post_form_class(title="foo")

    assert form.is_valid() is True
    assert form.save() is True
    assert post_model.query.count() == 1


@pytest.mark.unit
def test_does_not_save_record_when_invalid(app, post_form_class, post_model) -> None:
    form = post_form_class()

    def _fail_if_called() -> bool:
        pytest.fail("invalid form must not persist records")

    form.post.save = _fail_if_called

    assert form.save() is False
    assert form.is_persisted() is False
    assert post_model.query.count() == 0


@pytest.mark.unit
def test_update_attributes_assigns_and_saves(app, post_form_class, post_model) -> None:
    form = post_form_class(title="foo")
    assert form.save() is True

    assert form.update_attributes({"title": "bla"}) is True

    assert form.post.title == "bla"
    db.session.expire(form.post)
    assert post_model.query.one().title == "bla"


@pytest.mark.unit
def test_update_attributes_invalid_changes_record_in_memory_but_not_in_database(
    app, post_form_class, post_model
) -> None:
    """校验失败时新值已委托给模型实例,但数据库中的值保持不变."""
    form = post_form_class(title="foo")
    assert form.save() is True

    assert form.update_attributes({"title": ""}) is False

    assert form.post.title == ""
    db.session.expire(form.post)
    assert form.post.title == "foo"


@pytest.mark.unit
def test_saved_record_survives_session_end(app, post_form_class, post_model) -> None:
    form = post_form_class(title="foo")

    assert form.save() is True
    db.session.remove()

    assert post_model.query.count() == 1
    assert post_model.query.one().title == "foo"


@pytest.mark.unit
def test_save_inside_open_transaction_leaves_commit_to_caller(app, post_form_class, post_model) -> None:
    db.session.add(post_model(title="outer"))
    db.session.flush()
    form = post_form_class(title="foo")

    assert form.save() is True
    db.session.rollback()

    assert post_model.query.count() == 0


@pytest.mark.unit
def test_form_rules_generate_errors(app, post_form_class) -> None:
    form = post_form_class(title="x")

    assert form.is_valid() is False
    assert "长度过短(最少 2 个字符)" in form.errors["title"]


@pytest.mark.unit
def test_form_and_record_errors_share_a_field(app, post_model) -> None:
    class StrictPostForm(FormObject):
        presenting = {post_model: ("title",)}
        validations = {"title": {"length": {"minimum": 2}}}

    form = StrictPostForm(title="")

    assert form.is_valid() is False
    assert form.errors["title"] == ["不能为空", "长度过短(最少 2 个字符)"]


@pytest.mark.unit
def test_validating_twice_yields_identical_errors(app, post_form_class) -> None:
    form = post_form_class(title="x")

    form.is_valid()
    first = form.errors.to_dict()
    form.is_valid()

    assert form.errors.to_dict() == first
    assert len(form.errors) == 1


@pytest.mark.unit
def test_two_bindings_are_exposed_in_declaration_order(app, post_comment_form_class, post_model, comment_model) -> None:
    form = post_comment_form_class()

    assert post_comment_form_class.presented_records() == (post_model, comment_model)
    assert isinstance(form.comment, comment_model)
    assert form.is_persisted() is False


@pytest.mark.unit
def test_two_bindings_are_persisted_after_saving(app, post_comment_form_class, post_model, comment_model) -> None:
    form = post_comment_form_class(title="foo", body="bar")

    assert form.save() is True

    assert form.is_persisted() is True
    assert post_model.query.count() == 1
    assert comment_model.query.count() == 1


@pytest.mark.unit
def test_failing_record_rolls_back_the_others(
    app, monkeypatch, post_comment_form_class, post_model, comment_model
) -> None:
    form = post_comment_form_class(title="foo", body="bar")
    monkeypatch.setattr(post_model, "save", lambda self: False)

    assert form.save() is False

    assert comment_model.query.count() == 0
    assert form.comment.is_persisted() is False
    assert form.errors.to_dict() == {"base": ["记录保存失败,请稍后再试"]}


@pytest.mark.unit
def test_database_failure_is_reported_on_form_errors(app, post_model, tag_model) -> None:
    db.session.add(tag_model(name="python"))
    db.session.commit()

    class TaggedPostForm(FormObject):
        presenting = {post_model: ("title",), tag_model: ("name",)}

    form = TaggedPostForm(title="foo", name="python")

    assert form.save() is False

    assert post_model.query.count() == 0
    assert tag_model.query.count() == 1
    assert form.errors.to_dict() == {"base": ["记录保存失败,请稍后再试"]}
    assert form.errors.full_messages() == ["记录保存失败,请稍后再试"]


@pytest.mark.unit
def test_exception_in_persist_hook_rolls_back_and_propagates(app, post_model, comment_model) -> None:
    class BrokenCommentForm(FormObject):
        presenting = {post_model: ("title",), comment_model: ("body",)}

        def persist_comment(self) -> bool:
            raise RuntimeError("boom")

    form = BrokenCommentForm(title="foo", body="bar")

    with pytest.raises(RuntimeError, match="boom"):
        form.save()

    assert post_model.query.count() == 0


@pytest.mark.unit
def test_unknown_attribute_is_rejected(app, post_form_class) -> None:
    with pytest.raises(UnknownAttributeError) as exc_info:
        post_form_class(nope=1)

    assert exc_info.value.extra["attribute"] == "nope"
    assert exc_info.value.message == "未知属性: nope"


@pytest.mark.unit
def test_read_only_members_cannot_be_assigned(app, post_form_class) -> None:
    form = post_form_class()

    with pytest.raises(UnknownAttributeError):
        form.assign_attributes({"errors": {}})
    with pytest.raises(UnknownAttributeError):
        form.assign_attributes({"save": True})


@pytest.mark.unit
def test_positional_params_are_assigned(app, post_form_class) -> None:
    form = post_form_class({"title": "foo"})

    assert form.title == "foo"
    assert form.attributes() == {"title": "foo"}


@pytest.mark.unit
def test_to_key_and_to_param_are_none_until_persisted(app, post_form_class) -> None:
    form = post_form_class()

    assert form.to_key() is None
    form.to_key = lambda: [1]
    form.is_persisted = lambda: False
    assert form.to_param() is None


@pytest.mark.unit
def test_to_key_uses_first_record_identity(app, post_form_class) -> None:
    form = post_form_class(title="foo")
    form.save()

    assert form.to_key() == [form.post.id]
    assert form.to_param() == str(form.post.id)


@pytest.mark.unit
def test_view_layer_naming(post_form_class) -> None:
    form = post_form_class()
    model_name = post_form_class.model_name()

    assert str(model_name) == "ExampleForm"
    assert model_name.singular == "example_form"
    assert model_name.plural == "example_forms"
    assert model_name.human == "Example form"
    assert form.to_partial_path() == "example_forms/_example_form"
    assert form.errors["hello"] == []

"""模型侧协作约定.

`RecordMixin` 让 Flask-SQLAlchemy 模型满足表单对象所需的协作接口:
``is_persisted`` / ``is_valid`` / ``save`` / ``errors_by_field``.
模型自身的校验规则与表单共用 ``formfacade.forms.validators``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from formfacade.constants import ErrorMessages
from formfacade.extensions import db
from formfacade.forms.errors import BASE_FIELD, FormErrors
from formfacade.forms.naming import ModelName
from formfacade.forms.validators import ValidationRule, build_rules
from formfacade.utils.structlog_config import log_error


class RecordMixin:
    """为 Flask-SQLAlchemy 模型提供校验、错误收集与保存.

    Attributes:
        validations: 字段名到校验选项的映射,例如 ``{"title": {"presence": True}}``.

    Example:
        >>> class Post(RecordMixin, db.Model):
        ...     __tablename__ = "posts"
        ...     id = db.Column(db.Integer, primary_key=True)
        ...     title = db.Column(db.String(255))
        ...     validations = {"title": {"presence": True}}

    """

    validations: ClassVar[Mapping[str, Mapping[str, object]]] = {}

    @classmethod
    def model_name(cls) -> ModelName:
        return ModelName.for_class(cls)

    @classmethod
    def validation_rules(cls) -> list[ValidationRule]:
        rules: list[ValidationRule] = []
        for field, options in cls.validations.items():
            rules.extend(build_rules(field, **dict(options)))
        return rules

    @property
    def errors(self) -> FormErrors:
        # ORM 从查询结果构造实例时不会调用 __init__
        errors = self.__dict__.get("_record_errors")
        if errors is None:
            errors = FormErrors()
            self.__dict__["_record_errors"] = errors
        return errors

    def errors_by_field(self) -> dict[str, list[str]]:
        return self.errors.to_dict()

    def is_persisted(self) -> bool:
        return bool(sa_inspect(self).persistent)

    def to_key(self) -> list[object] | None:
        identity = sa_inspect(self).identity
        return list(identity) if identity else None

    def validate(self) -> None:
        """模型自定义校验钩子,子类可直接向 ``self.errors`` 写入错误."""

    def is_valid(self) -> bool:
        self.errors.clear()
        for rule in self.validation_rules():
            rule.validate(self, self.errors)
        self.validate()
        return not self.errors

    def save(self) -> bool:
        """校验通过后在 SAVEPOINT 中写入数据库,只 flush 不 commit.

        Returns:
            写入成功返回 True;校验失败或数据库异常返回 False,异常时在 ``base`` 字段记录错误.

        """
        if not self.is_valid():
            return False
        try:
            with db.session.begin_nested():
                db.session.add(self)
                db.session.flush()
        except SQLAlchemyError as exc:
            self.errors.add(BASE_FIELD, ErrorMessages.RECORD_SAVE_FAILED)
            log_error(
                "模型保存失败",
                module="records",
                exception=exc,
                record=type(self).__name__,
            )
            return False
        return True

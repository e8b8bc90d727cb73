"""通用表单对象视图.

集成 GET/POST 逻辑,子类只需设置 ``form_class``:

- 配置了 ``template`` 时渲染模板,保存成功后 flash 并重定向;
- 否则返回统一 JSON 响应,校验失败时返回 422 与字段错误.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from flask import Request, abort, flash, jsonify, redirect, render_template, request, url_for
from flask.views import MethodView

from formfacade.constants import ErrorMessages, FlashCategory, HttpStatus, SuccessMessages
from formfacade.core.exceptions import AppError
from formfacade.extensions import db
from formfacade.forms.form_object import FormObject
from formfacade.infra.route_safety import safe_route_call
from formfacade.utils.request_payload import parse_payload
from formfacade.utils.response_utils import (
    jsonify_unified_error,
    jsonify_unified_success,
    unified_success_response,
)

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

FormT = TypeVar("FormT", bound=FormObject)


class FormObjectView(MethodView, Generic[FormT]):
    """表单对象的 GET/POST 视图.

    Attributes:
        form_class: 视图使用的表单对象类型.
        template: 模板路径,为空时返回 JSON.
        success_message: 保存成功后的提示语.
        redirect_endpoint: 保存成功后跳转的端点(仅模板模式).
        list_fields: 需要固定为 list 形状的字段.
        preserve_raw_fields: 不做 strip 的字段.

    """

    form_class: type[FormT]
    template: str | None = None
    success_message: str = SuccessMessages.DATA_SAVED
    redirect_endpoint: str | None = None
    list_fields: tuple[str, ...] = ()
    preserve_raw_fields: tuple[str, ...] = ()

    def __init__(self) -> None:
        """初始化视图.

        Raises:
            RuntimeError: 当子类未配置 form_class 时抛出.

        """
        if not getattr(self, "form_class", None):
            msg = f"{self.__class__.__name__} 未配置 form_class"
            raise RuntimeError(msg)

    # ------------------------------------------------------------------ #
    # HTTP Methods
    # ------------------------------------------------------------------ #
    def get(self, resource_id: int | None = None, **kwargs: object) -> ResponseReturnValue:
        """GET 请求处理,显示表单."""
        del kwargs
        form = self.build_form(resource_id, {})
        if self.template:
            return render_template(self.template, **self._build_context(form, resource_id))
        return jsonify_unified_success(self._serialize(form))

    def post(self, resource_id: int | None = None, **kwargs: object) -> ResponseReturnValue:
        """POST 请求处理,提交表单.

        Returns:
            成功时返回重定向或 JSON;校验失败时重新渲染模板或返回 422.

        """
        del kwargs
        param_key = self.form_class.model_name().param_key
        payload = parse_payload(
            self._extract_payload(request),
            list_fields=self.list_fields,
            preserve_raw_fields=self.preserve_raw_fields,
            param_key=param_key,
        )

        def _execute() -> tuple[FormT, bool]:
            form = self.build_form(resource_id, payload)
            return form, form.save()

        try:
            form, saved = safe_route_call(
                _execute,
                module="forms",
                action=f"{param_key}_save",
                public_error=ErrorMessages.FORM_SAVE_FAILED,
                context={
                    "form": self.form_class.__name__,
                    "resource_id": resource_id,
                    "form_mode": "create" if resource_id is None else "edit",
                },
            )
        except AppError as exc:
            if self.template:
                flash(exc.message, FlashCategory.ERROR)
                return render_template(self.template, form=None, form_errors=exc.message, form_data=payload)
            return jsonify_unified_error(exc)

        if not saved:
            return self._render_invalid(form, resource_id)

        if self.template:
            flash(self.success_message, FlashCategory.SUCCESS)
            return redirect(self._resolve_success_redirect(form))
        status = HttpStatus.CREATED if resource_id is None else HttpStatus.OK
        return jsonify_unified_success(self._serialize(form), self.success_message, status=status)

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #
    def build_form(self, resource_id: int | None, payload: dict[str, object]) -> FormT:
        """构建表单对象;编辑场景下先注入已有模型再赋值."""
        form = self.form_class()
        if resource_id is not None:
            self.load_records(form, resource_id)
        form.assign_attributes(payload)
        return form

    def load_records(self, form: FormT, resource_id: int) -> None:
        """按主键加载第一个绑定的模型并注入表单,不存在时返回 404."""
        bindings = form.bindings()
        if not bindings:
            return
        primary = bindings[0]
        record = db.session.get(primary.record_type, resource_id)
        if record is None:
            abort(HttpStatus.NOT_FOUND)
        setattr(form, primary.name, record)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _render_invalid(self, form: FormT, resource_id: int | None) -> ResponseReturnValue:
        if self.template:
            flash(ErrorMessages.VALIDATION_ERROR, FlashCategory.ERROR)
            context = self._build_context(form, resource_id)
            return render_template(self.template, **context), HttpStatus.UNPROCESSABLE_ENTITY
        payload, _ = unified_success_response(self._serialize(form), ErrorMessages.VALIDATION_ERROR)
        payload.update({"success": False, "error": True})
        return jsonify(payload), HttpStatus.UNPROCESSABLE_ENTITY

    def _extract_payload(self, req: Request) -> object:
        if req.is_json:
            return req.get_json(silent=True) or {}
        return req.form

    def _serialize(self, form: FormT) -> dict[str, object]:
        return {
            "form": form.model_name().param_key,
            "attributes": form.attributes(),
            "errors": form.errors.to_dict(),
            "persisted": form.is_persisted(),
            "id": form.to_param(),
        }

    def _build_context(self, form: FormT, resource_id: int | None) -> dict[str, object]:
        return {
            "form": form,
            "form_mode": "create" if resource_id is None else "edit",
            "form_errors": form.errors.full_messages(),
            "form_data": form.attributes(),
        }

    def _resolve_success_redirect(self, form: FormT) -> str:
        endpoint = self.redirect_endpoint
        if not endpoint:
            return request.referrer or request.path
        param = form.to_param()
        return url_for(endpoint, resource_id=param) if param else url_for(endpoint)

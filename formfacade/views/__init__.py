"""视图层适配."""

from .form_object_view import FormObjectView

__all__ = ["FormObjectView"]

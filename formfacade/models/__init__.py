"""模型侧协作约定."""

from .record import RecordMixin

__all__ = ["RecordMixin"]

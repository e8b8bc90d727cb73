"""表单对象包.

把一个或多个持久化模型组合成一个面向视图层的表单对象.
"""

from .callbacks import callback
from .errors import FormErrors
from .form_object import FormObject
from .naming import ModelName
from .presenting import FormAttribute, PresentedRecord
from .transactions import SessionTransactionScope, TransactionScope

__all__ = [
    "FormAttribute",
    "FormErrors",
    "FormObject",
    "ModelName",
    "PresentedRecord",
    "SessionTransactionScope",
    "TransactionScope",
    "callback",
]

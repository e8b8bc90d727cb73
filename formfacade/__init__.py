"""FormFacade - Flask 应用初始化.

把一个或多个 Flask-SQLAlchemy 模型组合成面向视图层的表单对象,
并在同一个事务范围内完成校验与保存.
"""

from __future__ import annotations

import logging

from flask import Flask

from formfacade.core.exceptions import (
    AppError,
    ConfigurationError,
    DuplicateBindingError,
    UnknownAttributeError,
)
from formfacade.extensions import db, enable_sqlite_savepoints
from formfacade.forms import (
    FormAttribute,
    FormErrors,
    FormObject,
    SessionTransactionScope,
    TransactionScope,
    callback,
)
from formfacade.models import RecordMixin
from formfacade.settings import Settings
from formfacade.utils.response_utils import jsonify_unified_error
from formfacade.utils.structlog_config import configure_structlog, get_logger


def create_app(settings: Settings | None = None) -> Flask:
    """创建 Flask 应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.

    Returns:
        Flask: 已初始化数据库与日志的 Flask 应用实例.

    """
    resolved_settings = settings or Settings.load()
    app = Flask(__name__)
    app.config.from_mapping(resolved_settings.to_flask_config())

    db.init_app(app)
    if resolved_settings.use_savepoints:
        with app.app_context():
            enable_sqlite_savepoints(db.engine)

    configure_structlog(app)

    # 设置全局日志级别
    log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(getattr(logging, log_level_name, logging.INFO))

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> tuple[object, int]:
        """业务异常统一转换为 JSON 错误响应."""
        get_logger("app").warning(
            "业务异常",
            module="system",
            error_type=error.__class__.__name__,
            message_key=error.message_key,
        )
        return jsonify_unified_error(error)

    return app


__all__ = [
    "AppError",
    "ConfigurationError",
    "DuplicateBindingError",
    "FormAttribute",
    "FormErrors",
    "FormObject",
    "RecordMixin",
    "SessionTransactionScope",
    "Settings",
    "TransactionScope",
    "UnknownAttributeError",
    "callback",
    "create_app",
    "db",
]

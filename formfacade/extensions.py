"""Flask 扩展实例."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

db = SQLAlchemy()


def enable_sqlite_savepoints(engine: Engine) -> None:
    """让 pysqlite 把事务控制交给 SQLAlchemy,SAVEPOINT 才能正确回滚.

    pysqlite 默认会自行发出 BEGIN 并在 DDL/SAVEPOINT 前隐式提交,
    这里关闭驱动层的事务管理,改为在 SQLAlchemy 的 ``begin`` 事件中显式发出 BEGIN.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: object, connection_record: object) -> None:
        del connection_record
        dbapi_connection.isolation_level = None  # type: ignore[attr-defined]

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")

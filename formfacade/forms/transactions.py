"""表单对象持久化阶段的事务包装.

持久化阶段只尝试一次: 回调返回 ``False`` 时回滚范围内的全部写入(即便没有异常),
返回 ``True`` 时提交;回调抛出异常时回滚并继续向上抛出.

事务范围以依赖注入的方式提供,查找顺序:
1. 构造表单对象时传入的 ``transaction_scope``
2. 表单类属性 ``transaction_scope``
3. 基于 Flask-SQLAlchemy ``db.session`` 的 ``SessionTransactionScope``
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from flask import current_app, has_app_context

from formfacade.settings import get_settings
from formfacade.utils.structlog_config import log_debug, log_warning

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, SessionTransaction

    from formfacade.forms.presenting import PresentedRecord


@runtime_checkable
class TransactionScope(Protocol):
    """可回滚的事务范围协议."""

    def run_in_transaction(self, fn: Callable[[], bool]) -> bool:
        """执行 fn,fn 返回 False 或抛出异常时回滚其中的全部写入."""
        ...


class SessionTransactionScope:
    """基于 SQLAlchemy Session 的事务范围.

    默认在 SAVEPOINT(``session.begin_nested()``) 中执行持久化,失败时只回滚该保存点.
    调用前 Session 没有打开的事务时,由本范围开启最外层事务并在成功后提交;
    已处于外层事务中(例如 ``safe_route_call`` 包裹的请求)时只释放保存点,
    外层事务交给调用方提交.

    Attributes:
        commit_on_success: 已处于外层事务中时,成功后是否仍立即提交整个 Session.
        use_savepoint: 是否使用 SAVEPOINT;为 False 时失败会回滚整个 Session.

    """

    def __init__(
        self,
        session: Session | None = None,
        *,
        commit_on_success: bool = False,
        use_savepoint: bool = True,
    ) -> None:
        self._session = session
        self.commit_on_success = commit_on_success
        self.use_savepoint = use_savepoint

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        from formfacade.extensions import db

        return db.session

    def run_in_transaction(self, fn: Callable[[], bool]) -> bool:
        session = self.session
        owns_outer = not session.in_transaction()
        transaction = session.begin_nested() if self.use_savepoint else None
        try:
            succeeded = bool(fn())
        except Exception:
            self._rollback(session, transaction, owns_outer=owns_outer)
            raise

        if not succeeded:
            self._rollback(session, transaction, owns_outer=owns_outer)
            log_warning("表单持久化失败,事务已回滚", module="forms", savepoint=transaction is not None)
            return False

        if transaction is not None:
            transaction.commit()
        committed = self.commit_on_success or owns_outer
        if committed:
            session.commit()
        log_debug("表单持久化事务已完成", module="forms", committed=committed, owns_outer=owns_outer)
        return True

    @staticmethod
    def _rollback(session: Session, transaction: SessionTransaction | None, *, owns_outer: bool) -> None:
        if transaction is None or owns_outer:
            session.rollback()
            return
        if transaction.is_active:
            transaction.rollback()


def default_transaction_scope() -> SessionTransactionScope:
    """按 Flask 配置(无应用上下文时按 Settings)构造默认事务范围."""
    if has_app_context():
        config = current_app.config
        return SessionTransactionScope(
            commit_on_success=bool(config.get("FORMFACADE_COMMIT_ON_SAVE", False)),
            use_savepoint=bool(config.get("FORMFACADE_SAVEPOINTS", True)),
        )
    settings = get_settings()
    return SessionTransactionScope(
        commit_on_success=settings.commit_on_save,
        use_savepoint=settings.use_savepoints,
    )


class Transactions:
    """为表单对象提供事务包装,作为 ``around_persist`` 回调登记."""

    transaction_scope: ClassVar[TransactionScope | None] = None
    _transaction_scope: TransactionScope | None = None
    _presented: ClassVar[tuple[PresentedRecord, ...]]

    def resolve_transaction_scope(self) -> TransactionScope:
        return self._transaction_scope or type(self).transaction_scope or default_transaction_scope()

    def wrap_in_transaction(self, proceed: Callable[[], bool]) -> bool:
        # 没有绑定模型时无需事务,也不要求应用上下文
        if not self._presented:
            return proceed()
        return self.resolve_transaction_scope().run_in_transaction(proceed)

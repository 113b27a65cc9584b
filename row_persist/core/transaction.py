"""Transaction management.

A TransactionManager demarcates a scope on one Session's connection.
It auto-commits on success and auto-rolls-back on exception. Opening a
transaction while one is already active on the session joins the outer
scope: only the outermost scope commits or rolls back.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from row_persist.core.exceptions import TransactionStateError

if TYPE_CHECKING:
    from row_persist.core.session import Session

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionManager:
    """Synchronous transaction context manager."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._state = _TxState.IDLE
        self._joined = False

    @property
    def joined(self) -> bool:
        """True when this scope runs inside an enclosing transaction."""
        return self._joined

    def __enter__(self) -> TransactionManager:
        if self._session.in_transaction:
            self._joined = True
        else:
            self._session._bind_transaction(self)
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._joined:
            self._state = _TxState.COMMITTED if exc_type is None else _TxState.ROLLED_BACK
            return
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    logger.warning("Rolling back transaction after %s", exc_type.__name__)
                    self._session.connection.rollback()
                    self._state = _TxState.ROLLED_BACK
                else:
                    self._session.connection.commit()
                    self._state = _TxState.COMMITTED
        finally:
            self._session._bind_transaction(None)

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._joined:
            raise TransactionStateError("joined", "commit")
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        self._session.connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._joined:
            raise TransactionStateError("joined", "rollback")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        self._session.connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def check_active(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")

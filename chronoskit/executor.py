# chronoskit/executor.py
from typing import Optional
from sqlalchemy import text
from sqlalchemy.exc import StatementError
from chronoskit.calls import BackendCall
from chronoskit.connection import ConnectionProvider
from chronoskit.exceptions import BackendError, ConnectionError, EmptyResultError
from chronoskit.models.row_set import RowSet
import logging

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Runs backend calls over connections from a ConnectionProvider.

    Each call gets its own connection and transaction. Nothing is retried:
    backend functions are not guaranteed to be idempotent.
    """

    def __init__(self, provider: ConnectionProvider):
        self.provider = provider

    def _handle_db_error(self, e: StatementError, call: BackendCall):
        orig = getattr(e, "orig", None)
        diagnostic = str(orig if orig is not None else e).strip()
        sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        logger.error(f"Backend rejected {call.operation}: {diagnostic}")
        raise BackendError(
            diagnostic, operation=call.operation, parameters=call.redacted_parameters(), sqlstate=sqlstate
        ) from e

    def _handle_connection_error(self, e: ConnectionError, call: BackendCall):
        raise ConnectionError(
            e.message, provider=e.provider, operation=call.operation, parameters=call.redacted_parameters()
        ) from e

    def execute_query(self, call: BackendCall) -> RowSet:
        """Execute a call that produces rows and return them as a snapshot."""
        logger.debug(f"{call.operation}: {call.render()}")
        try:
            with self.provider.open() as conn:
                try:
                    with conn.begin():
                        result = conn.execute(text(call.sql), dict(call.parameters))
                        if not result.returns_rows:
                            return RowSet([])
                        return RowSet.from_result(result)
                except StatementError as e:
                    self._handle_db_error(e, call)
        except ConnectionError as e:
            self._handle_connection_error(e, call)

    def execute_command(self, call: BackendCall):
        """Execute a call that produces no result rows."""
        logger.debug(f"{call.operation}: {call.render()}")
        try:
            with self.provider.open() as conn:
                try:
                    with conn.begin():
                        conn.execute(text(call.sql), dict(call.parameters))
                except StatementError as e:
                    self._handle_db_error(e, call)
        except ConnectionError as e:
            self._handle_connection_error(e, call)

    @staticmethod
    def extract_scalar(row_set: RowSet, call: Optional[BackendCall] = None) -> str:
        """Return the first column of the first row as text; SQL NULL becomes ''.

        Raises:
            EmptyResultError: If the row-set has no rows.
        """
        row = row_set.first()
        if row is None or not row_set.columns:
            raise EmptyResultError(
                "Result contains no rows",
                operation=call.operation if call else None,
                parameters=call.redacted_parameters() if call else None,
            )
        value = row[row_set.columns[0]]
        return "" if value is None else str(value)

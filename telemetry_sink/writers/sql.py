"""Generic SQL writer committing one telemetry record per transaction."""

import logging
from contextlib import closing, contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from ..config import WriterConfig, config
from ..errors import ExecutionError, TransactionError
from ..log import configure_logging
from ..records import EventTelemetryRecord, ScriptTelemetryRecord
from .connection import Backend, BackendDriver, get_driver, open_connection
from .query import Query, build_event_insert, build_script_insert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result:
    message: str


def _rollback(driver: BackendDriver, cursor) -> None:
    logger.debug("rolling back transaction")
    try:
        cursor.execute(driver.rollback_sql)
    except Exception as e:
        # the error that caused the rollback is the one the caller sees
        logger.error(f"Failed to roll back transaction: {e}")


@contextmanager
def transaction(driver: BackendDriver, conn) -> Iterator:
    """
    Bound a unit of work on an autocommit connection.

    Yields a cursor inside an open transaction. The transaction is committed
    when the block exits cleanly and rolled back otherwise, including when
    the commit itself fails. The cursor is always closed.

    Raises:
        TransactionError: If the transaction cannot be opened or committed
    """
    cursor = conn.cursor()
    try:
        logger.debug("opening transaction")
        try:
            cursor.execute(driver.begin_sql)
        except Exception as e:
            logger.error(f"Failed to open transaction: {e}")
            raise TransactionError(f"failed to open transaction: {e}") from e

        committed = False
        try:
            yield cursor
            logger.debug("committing transaction")
            try:
                cursor.execute(driver.commit_sql)
            except Exception as e:
                logger.error(f"Failed to commit transaction: {e}")
                raise TransactionError(f"failed to commit transaction: {e}") from e
            committed = True
        finally:
            if not committed:
                _rollback(driver, cursor)
    finally:
        cursor.close()


def commit_sql(backend: Union[Backend, str], conn_string: str, query: Query) -> Result:
    """
    Execute a single INSERT inside its own connection and transaction.

    Args:
        backend: Target backend
        conn_string: Backend connection string
        query: Rendered statement and parameters

    Returns:
        Result with a confirmation message

    Raises:
        BackendConnectionError: If the connection cannot be opened
        TransactionError: If the transaction cannot be opened or committed
        ExecutionError: If the backend rejects the statement
    """
    driver = get_driver(backend)
    with closing(open_connection(driver.backend, conn_string)) as conn:
        with transaction(driver, conn) as cursor:
            logger.debug("executing insert query")
            try:
                cursor.execute(query.text, query.params)
            except Exception as e:
                logger.error(f"Failed to execute insert query: {e}")
                raise ExecutionError(f"failed to execute insert query: {e}") from e

    logger.debug("preparing report")
    return Result(message="successfully inserted usage record")


class GenericSQLWriter:
    """Writer for storing script and event telemetry in a SQL database."""

    def __init__(self, writer_config: Optional[WriterConfig] = None):
        """Initialize the writer."""
        self.config = writer_config or config.writer_config
        self.backend = Backend.parse(self.config.backend)

    @classmethod
    def from_env(cls) -> "GenericSQLWriter":
        """Build a writer from environment config, setting up logging on the way."""
        configure_logging(config.LOG_LEVEL)
        logger.info(f"Telemetry sink: backend={config.DB_BACKEND}, "
                    f"scripts={config.SCRIPT_TABLE}, events={config.EVENT_TABLE}")
        return cls(config.writer_config)

    def write_script_telemetry(self, record: ScriptTelemetryRecord) -> Result:
        """
        Write a script telemetry record to the script table.

        Args:
            record: Script record, legacy or "2.0" schema

        Returns:
            Result with a confirmation message
        """
        logger.debug("generating query")
        query = build_script_insert(self.config.script_target, record, self.backend)
        return commit_sql(self.backend, self.config.conn_string, query)

    def write_event_telemetry(self, record: EventTelemetryRecord) -> Result:
        """
        Write an event telemetry record to the event table.

        Args:
            record: Event record, "2.0" schema only

        Returns:
            Result with a confirmation message
        """
        logger.debug("generating query")
        query = build_event_insert(self.config.event_target, record, self.backend)
        return commit_sql(self.backend, self.config.conn_string, query)

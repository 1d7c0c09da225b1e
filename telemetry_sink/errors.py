"""Error taxonomy for telemetry persistence."""


class TelemetrySinkError(Exception):
    """Base class for all persistence failures."""

    stage = "unknown"
    retryable = True


class QueryBuildError(TelemetrySinkError):
    """Raised when a record cannot be turned into an INSERT statement."""

    stage = "query"


class RecordIdError(QueryBuildError):
    """Raised when a record id cannot be generated.

    This points at a broken runtime (no randomness source), so callers
    must not retry it.
    """

    stage = "record-id"
    retryable = False


class BackendConnectionError(TelemetrySinkError):
    """Raised for unknown backends, malformed DSNs and failed connects."""

    stage = "connection"


class TransactionError(TelemetrySinkError):
    """Raised when a transaction cannot be opened or committed."""

    stage = "transaction"


class ExecutionError(TelemetrySinkError):
    """Raised when the backend rejects the INSERT statement."""

    stage = "execution"

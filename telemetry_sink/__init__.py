"""Transactional SQL persistence for script and event telemetry records."""

from .errors import (
    BackendConnectionError,
    ExecutionError,
    QueryBuildError,
    RecordIdError,
    TelemetrySinkError,
    TransactionError,
)
from .records import (
    EngineInfo,
    EventTelemetryRecord,
    LogMeta,
    SchemaVersion,
    ScriptTelemetryRecord,
    TraceInfo,
)

__all__ = [
    "BackendConnectionError",
    "ExecutionError",
    "QueryBuildError",
    "RecordIdError",
    "TelemetrySinkError",
    "TransactionError",
    "EngineInfo",
    "EventTelemetryRecord",
    "LogMeta",
    "SchemaVersion",
    "ScriptTelemetryRecord",
    "TraceInfo",
]

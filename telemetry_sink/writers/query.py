"""INSERT query generation for telemetry records."""

import logging
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

import orjson

from ..errors import QueryBuildError, RecordIdError
from ..log import trace
from ..records import EventTelemetryRecord, SchemaVersion, ScriptTelemetryRecord
from .connection import Backend, get_driver

logger = logging.getLogger(__name__)

CLOCK_TIME_PATTERN = re.compile(r"(\d+:\d+:\d+)")
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class RecordKind(str, Enum):
    SCRIPT = "script"
    EVENT = "event"


class ColumnType(str, Enum):
    ID = "id"
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"


@dataclass(frozen=True)
class BuildContext:
    """Per-call values that are not part of the record itself."""

    record_id: Optional[str]
    command_results: Optional[str]


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType
    extract: Callable[[Any, BuildContext], Any]


@dataclass(frozen=True)
class RecordLayout:
    """Ordered destination columns for one record kind and schema version."""

    kind: RecordKind
    version: SchemaVersion
    columns: Tuple[Column, ...]

    @property
    def has_record_id(self) -> bool:
        return any(column.type is ColumnType.ID for column in self.columns)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)


@dataclass(frozen=True)
class Query:
    """Rendered statement text and its bound parameters."""

    text: str
    params: Tuple[Any, ...]


def extract_clock_time(value: str) -> str:
    """
    Extract the H:M:S portion of a free-form time string.

    Args:
        value: Time string as sent by legacy producers, e.g. "14:03:22 (UTC+1)"

    Returns:
        The first clock time found, or an empty string if there is none
    """
    match = CLOCK_TIME_PATTERN.search(value or "")
    return match.group(1) if match else ""


def _field(name: str) -> Callable[[Any, BuildContext], Any]:
    return lambda record, ctx: getattr(record, name)


def _record_id(record, ctx: BuildContext) -> Optional[str]:
    return ctx.record_id


def _command_results(record, ctx: BuildContext) -> Optional[str]:
    return ctx.command_results


def _text(name: str) -> Column:
    return Column(name, ColumnType.TEXT, _field(name))


def _flag(name: str, attr: str) -> Column:
    return Column(name, ColumnType.BOOLEAN, _field(attr))


SCRIPT_LEGACY_LAYOUT = RecordLayout(
    RecordKind.SCRIPT,
    SchemaVersion.LEGACY,
    (
        _text("date"),
        Column("time", ColumnType.TEXT, lambda record, ctx: extract_clock_time(record.time)),
        _text("username"),
        _text("host_version"),
        _text("host_build"),
        _text("session_id"),
        _text("tool_version"),
        _flag("debug_mode", "is_debug_mode"),
        _flag("config_mode", "is_config_mode"),
        _text("command_name"),
        _text("bundle_name"),
        _text("extension_name"),
        _text("command_unique_name"),
        Column("result_code", ColumnType.INTEGER, _field("result_code")),
        Column("command_results", ColumnType.TEXT, _command_results),
        _text("script_path"),
        Column("engine_version", ColumnType.TEXT, lambda record, ctx: record.trace_info.engine.version),
        Column("interpreter_trace", ColumnType.TEXT,
               lambda record, ctx: record.trace_info.interpreter_trace_dump),
        Column("runtime_trace", ColumnType.TEXT, lambda record, ctx: record.trace_info.runtime_trace_dump),
    ),
)

SCRIPT_V2_LAYOUT = RecordLayout(
    RecordKind.SCRIPT,
    SchemaVersion.V2,
    (
        Column("record_id", ColumnType.ID, _record_id),
        _text("timestamp"),
        _text("username"),
        _text("host_version"),
        _text("host_build"),
        _text("session_id"),
        _text("tool_version"),
        _text("clone"),
        _flag("debug_mode", "is_debug_mode"),
        _flag("config_mode", "is_config_mode"),
        _flag("exec_from_gui", "is_exec_from_gui"),
        _flag("clean_engine", "needs_clean_engine"),
        _flag("full_frame_engine", "needs_full_frame_engine"),
        _text("command_name"),
        _text("bundle_name"),
        _text("extension_name"),
        _text("command_unique_name"),
        _text("document_name"),
        _text("document_path"),
        Column("result_code", ColumnType.INTEGER, _field("result_code")),
        Column("command_results", ColumnType.TEXT, _command_results),
        _text("script_path"),
        Column("engine_type", ColumnType.TEXT, lambda record, ctx: record.trace_info.engine.type),
        Column("engine_version", ColumnType.TEXT, lambda record, ctx: record.trace_info.engine.version),
        Column("trace_message", ColumnType.TEXT, lambda record, ctx: record.trace_info.message),
    ),
)

EVENT_V2_LAYOUT = RecordLayout(
    RecordKind.EVENT,
    SchemaVersion.V2,
    (
        Column("record_id", ColumnType.ID, _record_id),
        _text("timestamp"),
        _text("event_type"),
        _text("username"),
    ),
)

# Every supported (kind, version) pair; anything missing here is rejected.
LAYOUTS: Dict[Tuple[RecordKind, SchemaVersion], RecordLayout] = {
    (layout.kind, layout.version): layout
    for layout in (SCRIPT_LEGACY_LAYOUT, SCRIPT_V2_LAYOUT, EVENT_V2_LAYOUT)
}


def get_layout(kind: RecordKind, version: SchemaVersion) -> RecordLayout:
    """
    Get the column layout for a record kind and schema version.

    Raises:
        QueryBuildError: If the combination has no layout
    """
    try:
        return LAYOUTS[(kind, version)]
    except KeyError:
        raise QueryBuildError(
            f"unsupported schema version {version.value!r} for {kind.value} records"
        ) from None


def generate_record_id() -> str:
    """Generate a fresh v4 record id, failing hard if the runtime cannot."""
    try:
        return str(uuid.uuid4())
    except (NotImplementedError, OSError) as e:
        logger.error(f"Failed to generate record id: {e}")
        raise RecordIdError(f"failed to generate record id: {e}") from e


def serialize_command_results(results: Optional[Dict[str, Any]]) -> str:
    """Encode command results as compact JSON text."""
    try:
        return orjson.dumps(results).decode("utf-8")
    except TypeError as e:
        logger.error(f"Failed to serialize command results: {e}")
        raise QueryBuildError(f"failed to serialize command results: {e}") from e


def validate_table_name(table: str) -> str:
    if not table or not TABLE_NAME_PATTERN.match(table):
        raise QueryBuildError(f"invalid table name: {table!r}")
    return table


def build_values(layout: RecordLayout, record: Any) -> Tuple[Any, ...]:
    """
    Build the ordered value tuple for a record.

    Args:
        layout: Destination layout matching the record's kind and version
        record: Script or event telemetry record

    Returns:
        One value per layout column, in column order
    """
    record_id = generate_record_id() if layout.has_record_id else None
    command_results = None
    if layout.kind is RecordKind.SCRIPT:
        command_results = serialize_command_results(record.command_results)

    ctx = BuildContext(record_id=record_id, command_results=command_results)
    return tuple(column.extract(record, ctx) for column in layout.columns)


def render_insert(table: str, values: Tuple[Any, ...], backend: Union[Backend, str]) -> Query:
    """Render a single-row parameterized INSERT for the backend."""
    placeholder = get_driver(backend).placeholder
    placeholders = ", ".join([placeholder] * len(values))
    text = f"INSERT INTO {validate_table_name(table)} VALUES ({placeholders});\n"
    trace(logger, text)
    return Query(text=text, params=values)


def _build_insert(table: str, kind: RecordKind, record: Any, backend: Union[Backend, str]) -> Query:
    logger.debug(f"generating insert query for {kind.value} record")
    validate_table_name(table)
    layout = get_layout(kind, record.schema_version)
    values = build_values(layout, record)
    trace(logger, repr(values))
    query = render_insert(table, values, backend)
    logger.debug("building query completed")
    return query


def build_script_insert(table: str, record: ScriptTelemetryRecord,
                        backend: Union[Backend, str]) -> Query:
    """
    Build the INSERT statement for a script telemetry record.

    Args:
        table: Destination table
        record: Script record, legacy or "2.0" schema
        backend: Target backend, selects the placeholder style

    Returns:
        Query with one bound parameter per destination column

    Raises:
        QueryBuildError: On unknown schema versions, invalid table names or
            unserializable command results
        RecordIdError: If no record id can be generated
    """
    return _build_insert(table, RecordKind.SCRIPT, record, backend)


def build_event_insert(table: str, record: EventTelemetryRecord,
                       backend: Union[Backend, str]) -> Query:
    """
    Build the INSERT statement for an event telemetry record.

    Only "2.0" event records have a layout; any other tag raises
    QueryBuildError.
    """
    return _build_insert(table, RecordKind.EVENT, record, backend)

"""Telemetry record data model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import QueryBuildError


class SchemaVersion(str, Enum):
    """Field layout discriminant carried in each record's log meta."""

    LEGACY = ""
    V2 = "2.0"

    @classmethod
    def parse(cls, tag: Optional[str]) -> "SchemaVersion":
        """
        Map a raw schema tag onto a known version.

        Args:
            tag: Schema tag as sent by the producer, None for legacy records

        Returns:
            The matching SchemaVersion

        Raises:
            QueryBuildError: If the tag is not a known schema version
        """
        try:
            return cls(tag or "")
        except ValueError:
            raise QueryBuildError(f"unsupported schema version: {tag!r}") from None


@dataclass(frozen=True)
class LogMeta:
    schema_version: str = ""


@dataclass(frozen=True)
class EngineInfo:
    type: str = ""
    version: str = ""


@dataclass(frozen=True)
class TraceInfo:
    """Interpreter trace attached to a script execution."""
    engine: EngineInfo = field(default_factory=EngineInfo)
    message: str = ""
    interpreter_trace_dump: str = ""
    runtime_trace_dump: str = ""


@dataclass(frozen=True)
class ScriptTelemetryRecord:
    """One script execution reported by the host application."""

    log_meta: LogMeta = field(default_factory=LogMeta)
    date: str = ""
    time: str = ""
    timestamp: str = ""
    username: str = ""
    host_version: str = ""
    host_build: str = ""
    session_id: str = ""
    tool_version: str = ""
    clone: str = ""
    is_debug_mode: bool = False
    is_config_mode: bool = False
    is_exec_from_gui: bool = False
    needs_clean_engine: bool = False
    needs_full_frame_engine: bool = False
    command_name: str = ""
    bundle_name: str = ""
    extension_name: str = ""
    command_unique_name: str = ""
    document_name: str = ""
    document_path: str = ""
    result_code: int = 0
    command_results: Optional[Dict[str, Any]] = None
    script_path: str = ""
    trace_info: TraceInfo = field(default_factory=TraceInfo)

    @property
    def schema_version(self) -> SchemaVersion:
        return SchemaVersion.parse(self.log_meta.schema_version)


@dataclass(frozen=True)
class EventTelemetryRecord:
    """Generic application event such as a document open or sync."""

    log_meta: LogMeta = field(default_factory=LogMeta)
    timestamp: str = ""
    event_type: str = ""
    username: str = ""

    @property
    def schema_version(self) -> SchemaVersion:
        return SchemaVersion.parse(self.log_meta.schema_version)

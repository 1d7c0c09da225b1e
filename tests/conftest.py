"""Pytest configuration and fixtures for telemetry sink tests."""

import sqlite3
from contextlib import closing

import pytest

from telemetry_sink.config import WriterConfig
from telemetry_sink.records import (
    EngineInfo,
    EventTelemetryRecord,
    LogMeta,
    ScriptTelemetryRecord,
    TraceInfo,
)
from telemetry_sink.writers.schema import ensure_table


@pytest.fixture
def legacy_script_record() -> ScriptTelemetryRecord:
    """Script record as sent by producers that predate schema tags."""
    return ScriptTelemetryRecord(
        date="2019/03/14",
        time="14:03:22 (UTC+01:00)",
        username="jdoe",
        host_version="2019",
        host_build="20190225_1515(x64)",
        session_id="7c4f1a2e-5d1b-4a0c-9e3f-0b2d5c8e1f6a",
        tool_version="4.6.22",
        is_debug_mode=False,
        is_config_mode=True,
        command_name="Sync Views",
        bundle_name="Sync Views.pushbutton",
        extension_name="toolsExtension",
        command_unique_name="toolsextension-tools-views-syncviews",
        result_code=0,
        command_results={"outcome": "ok", "views": 3},
        script_path="C:\\tools\\Sync Views.pushbutton\\script.py",
        trace_info=TraceInfo(
            engine=EngineInfo(type="ironpython", version="277"),
            interpreter_trace_dump="ipy trace",
            runtime_trace_dump="clr trace",
        ),
    )


@pytest.fixture
def script_record() -> ScriptTelemetryRecord:
    """Script record in the 2.0 schema."""
    return ScriptTelemetryRecord(
        log_meta=LogMeta(schema_version="2.0"),
        timestamp="2020-05-04T17:22:31.123456+02:00",
        username="jdoe",
        host_version="2020",
        host_build="20200426_1515(x64)",
        session_id="0b9d3c6e-2f47-4a8b-b1d0-7e5c9f2a3d14",
        tool_version="4.8.0",
        clone="master",
        is_debug_mode=True,
        is_config_mode=False,
        is_exec_from_gui=True,
        needs_clean_engine=False,
        needs_full_frame_engine=True,
        command_name="Purge Unused",
        bundle_name="Purge Unused.pushbutton",
        extension_name="toolsExtension",
        command_unique_name="toolsextension-tools-purge-purgeunused",
        document_name="Tower A.rvt",
        document_path="C:\\projects\\Tower A.rvt",
        result_code=0,
        command_results={"purged": 12, "skipped": []},
        script_path="C:\\tools\\Purge Unused.pushbutton\\script.py",
        trace_info=TraceInfo(
            engine=EngineInfo(type="cpython", version="378"),
            message="done",
        ),
    )


@pytest.fixture
def event_record() -> EventTelemetryRecord:
    """Application event in the 2.0 schema."""
    return EventTelemetryRecord(
        log_meta=LogMeta(schema_version="2.0"),
        timestamp="2020-05-04T17:25:00.000000+02:00",
        event_type="doc-synced",
        username="jdoe",
    )


@pytest.fixture
def sqlite_db(tmp_path) -> str:
    """Path to an empty sqlite database file."""
    return str(tmp_path / "telemetry.db")


@pytest.fixture
def sqlite_config(sqlite_db) -> WriterConfig:
    """Writer config targeting sqlite tables created for the 2.0 schema."""
    conn_string = f"sqlite:{sqlite_db}"
    ensure_table("script", "2.0", "scripts", "sqlite", conn_string)
    ensure_table("event", "2.0", "events", "sqlite", conn_string)
    return WriterConfig(
        backend="sqlite",
        conn_string=conn_string,
        script_target="scripts",
        event_target="events",
    )


@pytest.fixture
def row_count(sqlite_db):
    """Count the rows of a table in the test database."""
    def _count(table: str) -> int:
        with closing(sqlite3.connect(sqlite_db)) as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    return _count

"""Configuration module for the telemetry sink."""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class WriterConfig:
    """Target database and tables for one writer."""

    backend: str
    conn_string: str
    script_target: str
    event_target: str


class Config:
    """Configuration class for the telemetry sink."""

    # Database configuration
    DB_BACKEND: str = os.getenv("TELEMETRY_DB_BACKEND", "sqlite")
    DB_CONNSTRING: str = os.getenv("TELEMETRY_DB_CONNSTRING", "sqlite:telemetry.db")

    # Destination tables
    SCRIPT_TABLE: str = os.getenv("TELEMETRY_SCRIPT_TABLE", "scripts")
    EVENT_TABLE: str = os.getenv("TELEMETRY_EVENT_TABLE", "events")

    LOG_LEVEL: str = os.getenv("TELEMETRY_LOG_LEVEL", "INFO")

    @property
    def writer_config(self) -> WriterConfig:
        """Get the writer configuration."""
        return WriterConfig(
            backend=self.DB_BACKEND,
            conn_string=self.DB_CONNSTRING,
            script_target=self.SCRIPT_TABLE,
            event_target=self.EVENT_TABLE,
        )


# Global config instance
config = Config()

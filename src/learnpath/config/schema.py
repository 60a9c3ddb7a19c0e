from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class PathsConfig(BaseModel):
    """Filesystem layout for persisted collections and logs."""

    data_dir: Path = Field(Path("data"))
    logs_dir: Path = Field(Path("logs"))


class StoreConfig(BaseModel):
    """File names for each persisted collection, relative to ``paths.data_dir``."""

    users_file: str = Field("users.jsonl")
    learning_paths_file: str = Field("learning_paths.jsonl")
    progress_file: str = Field("progress.jsonl")

    @field_validator("users_file", "learning_paths_file", "progress_file")
    @classmethod
    def plain_file_name(cls, value: str) -> str:
        """Reject names that would escape the data directory."""
        if not value or Path(value).name != value:
            raise ValueError("store file names must be bare file names")
        return value


class LoggingConfig(BaseModel):
    """Controls for log level, renderer, and optional log file."""

    level: str = Field("INFO")
    use_json: bool = False
    to_file: bool = False


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("Learning Path Tracker")
    paths: PathsConfig = Field(default_factory=PathsConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def log_file(self) -> Path | None:
        if not self.logging.to_file:
            return None
        return self.paths.logs_dir / "learnpath.log"

from __future__ import annotations

import logging
from pathlib import Path

from learnpath.config import Settings, load_settings
from learnpath.services import LearningPathService
from learnpath.storage import CollectionStore
from learnpath.utils.logging import configure_logging

logger = logging.getLogger(__name__)


class LearningSystem:
    """
    Facade wiring configuration, logging, storage, and the service layer.

    Attributes
    ----------
    settings : Settings
        Validated configuration, usually read from ``config/default.yaml``.
    store : CollectionStore
        JSONL snapshots of users, learning paths, and progress records under
        ``settings.paths.data_dir``.
    service : LearningPathService
        Entry point for every teacher and student operation.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        configure_logging(
            settings.logging.level,
            settings.logging.use_json,
            log_file=settings.log_file,
        )
        self.store = CollectionStore(settings.paths.data_dir, settings.store)
        self.service = LearningPathService(self.store)

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> "LearningSystem":
        """
        Build the system from a YAML configuration file.

        Raises
        ------
        FileNotFoundError
            If ``config_path`` is given but does not exist.
        ValueError
            If the configuration fails validation.
        """
        settings = load_settings(config_path)
        settings.paths.data_dir.mkdir(parents=True, exist_ok=True)
        if settings.logging.to_file:
            settings.paths.logs_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Using data directory %s", settings.paths.data_dir)
        return cls(settings)

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from pydantic import BaseModel

from learnpath.config.schema import StoreConfig
from learnpath.data_models import USER_ADAPTER
from learnpath.learning.path import LearningPath
from learnpath.learning.progress import Progress

logger = logging.getLogger(__name__)


class CollectionKind(str, Enum):
    USERS = "users"
    LEARNING_PATHS = "learning-paths"
    PROGRESS_RECORDS = "progress-records"


_DECODERS: Dict[CollectionKind, Callable[[Any], BaseModel]] = {
    CollectionKind.USERS: USER_ADAPTER.validate_python,
    CollectionKind.LEARNING_PATHS: LearningPath.model_validate,
    CollectionKind.PROGRESS_RECORDS: Progress.model_validate,
}


class CollectionStore:
    """
    JSONL snapshots of the three top-level collections.

    Each collection lives in its own file and is rewritten in full on every
    save; records carry no references into the other files. A missing file
    loads as an empty collection. Saves are not transactional across
    collections, so a failure between two saves can leave them out of step.
    """

    def __init__(self, base_dir: Path, config: StoreConfig | None = None):
        """Ensure the backing directory exists and resolve the file for each collection."""
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        config = config or StoreConfig()
        self._files = {
            CollectionKind.USERS: config.users_file,
            CollectionKind.LEARNING_PATHS: config.learning_paths_file,
            CollectionKind.PROGRESS_RECORDS: config.progress_file,
        }

    def path_for(self, kind: CollectionKind) -> Path:
        return self.base_dir / self._files[kind]

    def load(self, kind: CollectionKind) -> List[Any]:
        """Read every stored record of ``kind`` in file order."""
        path = self.path_for(kind)
        if not path.exists():
            return []
        decode = _DECODERS[kind]
        items: List[Any] = []
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                items.append(decode(json.loads(line)))
        logger.debug("Loaded %s %s from %s", len(items), kind.value, path)
        return items

    def save(self, kind: CollectionKind, items: Sequence[BaseModel]) -> bool:
        """Overwrite the snapshot for ``kind``; returns ``False`` if the write fails."""
        path = self.path_for(kind)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                for item in items:
                    handle.write(item.model_dump_json())
                    handle.write("\n")
            tmp_path.replace(path)
        except OSError as exc:
            logger.error("Failed to save %s to %s: %s", kind.value, path, exc)
            tmp_path.unlink(missing_ok=True)
            return False
        logger.debug("Saved %s %s to %s", len(items), kind.value, path)
        return True

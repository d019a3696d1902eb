"""Export Checkpointing.

Records the keys of fully completed month windows in a JSON file, so a re-run
over the same range can skip them. Aborted windows are never recorded.
"""

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ExportCheckpoint:
    """JSON-file checkpoint of completed window keys.

    Parameters:
        path: Checkpoint file (created on the first completed window)

    Example Usage:
        ```python
        checkpoint = ExportCheckpoint(settings.checkpoint_path)
        if not checkpoint.is_completed(window.key):
            ...
            checkpoint.mark_completed(window.key)
        ```
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._completed: set[str] = set(self._load())

    def _load(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid checkpoint file {self.path}: {str(e)}")
        completed = data.get("completed_windows", []) if isinstance(data, dict) else []
        logger.info(f"Loaded checkpoint {self.path} with {len(completed)} completed window(s)")
        return completed

    def is_completed(self, key: str) -> bool:
        return key in self._completed

    def mark_completed(self, key: str) -> None:
        self._completed.add(key)
        self._save()

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"completed_windows": sorted(self._completed)}, f, indent=2)
        tmp_path.replace(self.path)

    @property
    def completed(self) -> list[str]:
        return sorted(self._completed)


def load_checkpoint(path: Optional[str]) -> Optional[ExportCheckpoint]:
    """Open the checkpoint at ``path``, or None when checkpointing is off."""
    return ExportCheckpoint(path) if path else None

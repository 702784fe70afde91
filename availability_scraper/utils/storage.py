"""Checkpoint storage for the appointments dataset."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from loguru import logger

from ..exceptions import PersistenceError
from ..models.dataset import Dataset


def write_json_atomic(path: Union[str, Path], payload: Any) -> None:
    """
    Write JSON to a temp file in the target directory, then rename it over the target.

    Readers never observe a partially written document.
    """
    path = Path(path)
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2, ensure_ascii=False)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise PersistenceError(f"Could not write {path.name}: {e}", path=str(path)) from e


class DatasetStore:
    """Reads and fully overwrites the persisted dataset document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Dataset:
        """
        Load the persisted dataset.

        Returns:
            Dataset (empty when no checkpoint exists yet)

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            return Dataset()
        try:
            return Dataset.from_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not load dataset: {e}", path=str(self.path)) from e

    def save(self, dataset: Dataset) -> None:
        write_json_atomic(self.path, dataset.to_json())
        logger.debug(f"Checkpoint written to {self.path} ({len(dataset)} clinicians)")

    def clear(self) -> bool:
        """Delete the persisted dataset. Returns True if a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Could not remove dataset: {e}", path=str(self.path)) from e
        return True

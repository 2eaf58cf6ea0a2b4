"""Device-local snapshot store backed by a single JSON file."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from focus.state import TimerStateSnapshot

from .codec import decode_snapshot, encode_snapshot
from .errors import PersistenceCorrupt, PersistenceError, PersistenceWriteError


class JsonFileSnapshotStore:
    """Stores the latest timer snapshot; each save replaces the file atomically."""

    def __init__(self, path: str | Path, logger: Optional[logging.Logger] = None):
        self._path = Path(path).expanduser()
        self._logger = logger or logging.getLogger("persistence")

    @property
    def path(self) -> Path:
        return self._path

    def save(self, snapshot: TimerStateSnapshot) -> None:
        payload = encode_snapshot(snapshot)
        temp_path: Optional[Path] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, raw_temp = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            temp_path = Path(raw_temp)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(temp_path, self._path)
        except OSError as error:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self._logger.debug("Could not remove temp snapshot %s", temp_path)
            raise PersistenceWriteError(
                f"Failed to write snapshot to {self._path}: {error}"
            ) from error

    def load(self) -> Optional[TimerStateSnapshot]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as error:
            raise PersistenceCorrupt(
                f"Snapshot {self._path} is not valid UTF-8: {error}"
            ) from error
        except OSError as error:
            raise PersistenceError(
                f"Failed to read snapshot from {self._path}: {error}"
            ) from error
        return decode_snapshot(text)

    def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        except OSError as error:
            raise PersistenceWriteError(
                f"Failed to remove snapshot {self._path}: {error}"
            ) from error
        self._logger.debug("Removed timer snapshot %s", self._path)

"""Draft persistence behind a small load/save/delete interface.

Two implementations:

* ``InMemoryDraftStore`` -- process-local list, used by tests and as a
  zero-config default.
* ``JsonFileDraftStore`` -- one JSON array on disk.  Writes go to a temp
  file in the same directory followed by ``os.replace()`` so readers never
  see partial data.  Reads detect the encoding with charset-normalizer.

Tool handlers run in worker threads, so every load-modify-save sequence
holds the store's ``lock`` (re-entrant, so ``delete`` may be called while
it is held).
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, Protocol

from charset_normalizer import from_bytes
from pydantic import ValidationError

from .models import Draft

logger = logging.getLogger(__name__)


class DraftStore(Protocol):
    """Storage medium for drafts."""

    @property
    def lock(self) -> AbstractContextManager[Any]: ...

    def load(self) -> list[Draft]: ...

    def save(self, drafts: list[Draft]) -> None: ...

    def delete(self, draft_id: str) -> bool: ...


class InMemoryDraftStore:
    """Keeps drafts in a list owned by the instance."""

    def __init__(self, drafts: list[Draft] | None = None) -> None:
        self._drafts: list[Draft] = list(drafts or [])
        self._lock = threading.RLock()

    @property
    def lock(self) -> AbstractContextManager[Any]:
        return self._lock

    def load(self) -> list[Draft]:
        return list(self._drafts)

    def save(self, drafts: list[Draft]) -> None:
        self._drafts = list(drafts)

    def delete(self, draft_id: str) -> bool:
        with self._lock:
            remaining = [d for d in self._drafts if d.id != draft_id]
            if len(remaining) == len(self._drafts):
                return False
            self._drafts = remaining
            return True


class JsonFileDraftStore:
    """Persists drafts as a JSON array in a single file.

    Records that fail validation are skipped. Whenever a load finds
    unreadable content, the file is first copied to ``<name>.corrupt`` so
    the next save cannot destroy the only copy.

    Args:
        path: Location of the drafts file. Parent directories are created
            on first save.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(self._path.name + ".corrupt")

    @property
    def lock(self) -> AbstractContextManager[Any]:
        return self._lock

    def _preserve_corrupt(self) -> None:
        shutil.copy2(self._path, self.backup_path)
        logger.warning(
            "Copied unreadable drafts file %s to %s",
            self._path,
            self.backup_path,
        )

    def load(self) -> list[Draft]:
        """Return all readable drafts.

        A missing or blank file means no drafts. An undecodable file, or one
        whose root is not a list, yields no drafts; a record that does not
        validate is left out. Both cases are logged and backed up.
        """
        if not self._path.exists():
            return []

        raw = self._path.read_bytes()
        if not raw.strip():
            return []

        match = from_bytes(raw).best()
        text = str(match) if match is not None else raw.decode(
            "utf-8", errors="replace"
        )

        try:
            records = json.loads(text)
            if not isinstance(records, list):
                raise ValueError("drafts file root must be a list")
        except ValueError as e:
            logger.error("Error loading drafts from %s: %s", self._path, e)
            self._preserve_corrupt()
            return []

        drafts: list[Draft] = []
        skipped = 0
        for index, record in enumerate(records):
            try:
                drafts.append(Draft.model_validate(record))
            except ValidationError as e:
                skipped += 1
                logger.error(
                    "Skipping draft record %d in %s: %s",
                    index,
                    self._path,
                    e.errors()[0]["msg"],
                )
        if skipped:
            self._preserve_corrupt()
        return drafts

    def save(self, drafts: list[Draft]) -> None:
        """Replace the stored drafts atomically.

        Raises:
            OSError: If the file cannot be written (disk full, permissions).
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [
            d.model_dump(mode="json", by_alias=True) for d in drafts
        ]

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def delete(self, draft_id: str) -> bool:
        with self._lock:
            drafts = self.load()
            remaining = [d for d in drafts if d.id != draft_id]
            if len(remaining) == len(drafts):
                return False
            self.save(remaining)
            return True

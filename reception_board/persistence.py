"""JSON file persistence for the reception board document."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from .errors import PersistenceError
from .models import Document
from .normalize import default_document, normalize_document

logger = logging.getLogger(__name__)


class StateFile:
    """Reads and atomically rewrites the single state document on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self, initialize: bool = True) -> Document:
        """Return the stored document, falling back to the default one.

        A missing file yields the default document. So does an unreadable or
        corrupt one, after logging a warning. With ``initialize`` the fallback
        document is written out so the next start finds a valid file.
        """

        try:
            with self._path.open(encoding="utf-8") as handle:
                raw = json.load(handle)
        except FileNotFoundError:
            document = default_document()
        except (OSError, UnicodeDecodeError, ValueError, RecursionError) as exc:
            logger.warning("Could not read state file %s, using defaults: %s", self._path, exc)
            document = default_document()
        else:
            return normalize_document(raw)

        if initialize:
            self.save(document)
        return document

    def save(self, document: Document) -> None:
        payload = json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._replace() as handle:
                handle.write(payload)
        except OSError as exc:
            raise PersistenceError(self._path, str(exc)) from exc
        logger.debug("Wrote state file %s", self._path)

    @contextmanager
    def _replace(self) -> Iterator[IO[str]]:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent),
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yield handle
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise


__all__ = ["StateFile"]

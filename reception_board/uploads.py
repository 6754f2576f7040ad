"""Placement and cleanup of uploaded image files."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi import UploadFile

from .errors import UploadRejected

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class UploadStorage:
    """Stores images under ``root/<kind>`` and hands out ``/uploads/...`` references."""

    def __init__(self, root: Path, max_bytes: int) -> None:
        self._root = Path(root)
        self._max_bytes = max_bytes

    async def save(self, upload: UploadFile, kind: str, field: str) -> str:
        if not upload.content_type or not upload.content_type.startswith("image/"):
            raise UploadRejected("The file must be an image")
        data = await upload.read(self._max_bytes + 1)
        if len(data) > self._max_bytes:
            raise UploadRejected(f"The file is larger than {self._max_bytes} bytes")

        suffix = PurePosixPath(upload.filename or "").suffix or ".png"
        filename = f"{field}-{uuid.uuid4()}{suffix}"
        target_dir = self._root / kind
        await asyncio.to_thread(self._write, target_dir, filename, data)
        return f"{URL_PREFIX}/{kind}/{filename}"

    async def remove(self, reference: str) -> None:
        """Delete the file behind a reference; anything outside the root is ignored."""

        target = self._resolve(reference)
        if target is None:
            return
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete upload %s: %s", target, exc)

    def _resolve(self, reference: str) -> Optional[Path]:
        if not reference:
            return None
        relative = PurePosixPath("/" + reference.lstrip("/"))
        try:
            inner = relative.relative_to(URL_PREFIX)
        except ValueError:
            return None
        root = self._root.resolve()
        target = (root / inner).resolve()
        if target == root or root not in target.parents:
            return None
        return target

    @staticmethod
    def _write(directory: Path, filename: str, data: bytes) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_bytes(data)


__all__ = ["UploadStorage", "URL_PREFIX"]

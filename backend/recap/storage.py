"""Staging area for uploaded meeting audio."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAudio:
    """A staged audio file and the reference used to find it again."""

    reference: str
    path: Path
    original_name: str
    size: int


def _safe_name(filename: str) -> str:
    """Reduce a client-supplied filename to a bare basename."""
    name = Path(filename.replace("\\", "/")).name.strip()
    return name or "audio"


class AudioStorage:
    """Writes uploaded audio under a content root, keyed by ingestion time."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    async def save(self, data: bytes, filename: str) -> StoredAudio:
        """
        Stage audio bytes on disk.

        Args:
            data: Raw audio bytes, written unchanged
            filename: Original client filename

        Returns:
            StoredAudio whose reference resolves back to the written file

        Raises:
            ValidationError: If no bytes were provided
        """
        if not data:
            raise ValidationError("Uploaded audio file is empty")

        original_name = _safe_name(filename)
        stamp = int(time.time() * 1000)
        reference = f"{stamp}-{original_name}"
        attempt = 0
        while True:
            path = self.root / reference
            try:
                await asyncio.to_thread(self._write, path, data)
                break
            except FileExistsError:
                attempt += 1
                reference = f"{stamp}-{attempt}-{original_name}"

        logger.info(f"Audio staged at {path} ({len(data)} bytes)")

        return StoredAudio(
            reference=reference,
            path=path,
            original_name=original_name,
            size=len(data),
        )

    def _write(self, path: Path, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with path.open("xb") as fh:
            fh.write(data)

    def resolve(self, reference: str) -> Path:
        """Map a reference returned by save() back to the staged file."""
        path = (self.root / reference).resolve()
        if path.parent != self.root.resolve():
            raise ValidationError(f"Invalid audio reference: {reference}")
        if not path.is_file():
            raise ValidationError(f"Staged audio not found: {reference}")
        return path

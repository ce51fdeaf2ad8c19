from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path
from typing import BinaryIO

from .errors import PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5 MiB
CHUNK_SIZE = 64 * 1024


def generate_filename(original_name: str | None) -> str:
    """patient-<millis>-<9 random digits><original extension>"""
    millis = time.time_ns() // 1_000_000
    suffix = f"{secrets.randbelow(10**9):09d}"
    ext = Path(original_name or "").suffix
    return f"patient-{millis}-{suffix}{ext}"


class UploadStore:
    """
    Profile picture intake.
    Files land flat in `directory`; the stored reference is the bare file name,
    so it can be served as /uploads/<name>.
    """

    def __init__(self, directory: Path, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
        self.directory = Path(directory)
        self.max_bytes = max_bytes

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.directory / name

    def accept(
        self,
        stream: BinaryIO,
        original_name: str | None,
        media_type: str | None,
        declared_size: int | None = None,
    ) -> str:
        if not (media_type or "").startswith("image/"):
            logger.warning("Upload rejected: media type %r", media_type)
            raise UnsupportedMediaType()

        if declared_size is not None and declared_size > self.max_bytes:
            logger.warning("Upload rejected: declared size %d bytes", declared_size)
            raise PayloadTooLarge()

        self.ensure_directory()
        name = generate_filename(original_name)
        target = self.path_for(name)

        written = 0
        try:
            with target.open("xb") as out:
                # the declared size can lie: count what actually arrives
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLarge()
                    out.write(chunk)
        except PayloadTooLarge:
            target.unlink(missing_ok=True)
            logger.warning("Upload rejected: more than %d bytes received", self.max_bytes)
            raise

        logger.info("Stored upload %s (%d bytes)", name, written)
        return name

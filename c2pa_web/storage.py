"""
Temp-file storage keyed by opaque identifiers.

Identifiers double as filenames (``{random}{ext}`` for uploads,
``signed_{random}{ext}`` for signed output), so the only index is the
directory listing itself. Every path is derived from an identifier that has
already passed the filename-safety pattern.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from c2pa_web.errors import InvalidIdentifier, NotFound

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+\.[A-Za-z0-9]+$")

SIGNED_PREFIX = "signed_"

_UNSAFE_CHARS = re.compile(r'[/\\?%*:|"<>]')
_WHITESPACE = re.compile(r"\s+")
_REPEATED_DOTS = re.compile(r"\.{2,}")


def generate_identifier() -> str:
    """16 random bytes, hex encoded."""
    return secrets.token_hex(16)


def is_valid_identifier(identifier: object) -> bool:
    """Accept only bare filenames with a single alphanumeric extension."""
    if not isinstance(identifier, str):
        return False
    return IDENTIFIER_PATTERN.fullmatch(identifier) is not None


def sanitize_filename(filename: str) -> str:
    """Strip path-unsafe characters and collapse whitespace and repeated dots."""
    sanitized = _UNSAFE_CHARS.sub("_", filename.strip())
    sanitized = _WHITESPACE.sub("_", sanitized)
    sanitized = _REPEATED_DOTS.sub(".", sanitized)
    return sanitized.strip()


@dataclass(frozen=True)
class FileReference:
    """A stored file: its identifier and the path derived from it."""

    identifier: str
    path: Path

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()


class TempStorage:
    """
    Flat temp directory addressed by validated identifiers.

    Usage:
        storage = TempStorage(settings.temp_dir)
        file_id = storage.save(data, ".jpg")
        ref = storage.locate(file_id)   # raises NotFound if missing
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def ensure_directory(self) -> Path:
        """Create the storage directory if absent (idempotent)."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        return self.base_dir

    def resolve(self, identifier: str) -> Path:
        """
        Map an identifier to its storage path.

        Raises:
            InvalidIdentifier: If the identifier fails validation. The
                filesystem is never consulted.
        """
        if not is_valid_identifier(identifier):
            raise InvalidIdentifier()
        return self.base_dir / identifier

    def reference(self, identifier: str) -> FileReference:
        return FileReference(identifier=identifier, path=self.resolve(identifier))

    def locate(self, identifier: str) -> FileReference:
        """Resolve an identifier and check the file exists."""
        ref = self.reference(identifier)
        if not ref.path.is_file():
            raise NotFound()
        return ref

    def read_bytes(self, identifier: str) -> bytes:
        return self.locate(identifier).path.read_bytes()

    def new_identifier(self, extension: str, prefix: str = "") -> str:
        """Reserve a fresh identifier (nothing is written)."""
        if extension and not extension.startswith("."):
            extension = f".{extension}"
        identifier = f"{prefix}{generate_identifier()}{extension.lower()}"
        if not is_valid_identifier(identifier):
            raise InvalidIdentifier(f"Cannot build a file ID with extension {extension!r}.")
        return identifier

    def save(self, data: bytes, extension: str, prefix: str = "") -> str:
        """Persist bytes under a fresh identifier and return it."""
        identifier = self.new_identifier(extension, prefix=prefix)
        self.ensure_directory()
        self.resolve(identifier).write_bytes(data)
        logger.debug(f"Stored {len(data)} bytes as {identifier}")
        return identifier

    def purge_expired(self, max_age_seconds: int, now: Optional[float] = None) -> List[str]:
        """
        Delete stored files older than the retention window.

        Args:
            max_age_seconds: Retention window in seconds
            now: Reference timestamp (defaults to the current time)

        Returns:
            Names of the deleted files
        """
        if not self.base_dir.is_dir():
            return []

        cutoff = (time.time() if now is None else now) - max_age_seconds
        removed: List[str] = []
        for entry in sorted(self.base_dir.iterdir()):
            if not entry.is_file() or not is_valid_identifier(entry.name):
                continue
            if entry.stat().st_mtime < cutoff:
                entry.unlink(missing_ok=True)
                removed.append(entry.name)

        if removed:
            logger.info(f"Purged {len(removed)} expired file(s) from {self.base_dir}")
        return removed

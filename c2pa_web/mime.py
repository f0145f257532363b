"""
MIME/extension registry for the image formats the C2PA library can embed into.

The same registry instance validates uploads, picks the ``Content-Type`` of
served files and gates every call into the C2PA library.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ImageFormat:
    """A supported image format."""

    extension: str
    mime_type: str
    name: str


SUPPORTED_IMAGE_FORMATS = (
    ImageFormat(".jpg", "image/jpeg", "JPEG"),
    ImageFormat(".jpeg", "image/jpeg", "JPEG"),
    ImageFormat(".png", "image/png", "PNG"),
    ImageFormat(".webp", "image/webp", "WebP"),
    ImageFormat(".tif", "image/tiff", "TIFF"),
    ImageFormat(".tiff", "image/tiff", "TIFF"),
    ImageFormat(".avif", "image/avif", "AVIF"),
    ImageFormat(".heic", "image/heic", "HEIC"),
    ImageFormat(".heif", "image/heif", "HEIF"),
    ImageFormat(".gif", "image/gif", "GIF"),
)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MimeRegistry:
    """
    Static mapping between file extensions and supported image MIME types.

    Usage:
        registry = MimeRegistry()
        registry.lookup("photo.JPG")       # "image/jpeg"
        registry.lookup(".bmp")            # None (unsupported)
        registry.extension_for("image/png")  # ".png"
    """

    def __init__(self, formats: Iterable[ImageFormat] = SUPPORTED_IMAGE_FORMATS):
        self._formats = tuple(formats)
        self._by_extension: Dict[str, ImageFormat] = {}
        self._by_mime: Dict[str, ImageFormat] = {}
        for fmt in self._formats:
            self._by_extension[fmt.extension.lower()] = fmt
            # First extension listed for a MIME type is its canonical one
            self._by_mime.setdefault(fmt.mime_type, fmt)

    @staticmethod
    def _extension_of(extension_or_filename: str) -> str:
        value = extension_or_filename.strip().lower()
        if value.startswith(".") and value.count(".") == 1:
            return value
        suffix = PurePath(value).suffix
        if suffix:
            return suffix
        # A bare extension without the leading dot ("jpg")
        return f".{value}" if value and "/" not in value else ""

    def lookup(self, extension_or_filename: str) -> Optional[str]:
        """Return the MIME type for an extension or filename, or None if unsupported."""
        if not extension_or_filename:
            return None
        fmt = self._by_extension.get(self._extension_of(extension_or_filename))
        return fmt.mime_type if fmt else None

    def content_type(self, extension_or_filename: str) -> str:
        """MIME type for serving a file, falling back to a generic byte stream."""
        return self.lookup(extension_or_filename) or DEFAULT_CONTENT_TYPE

    def is_supported(self, mime_type: Optional[str]) -> bool:
        return bool(mime_type) and mime_type.lower() in self._by_mime

    def extension_for(self, mime_type: str) -> Optional[str]:
        """Return the canonical extension (with dot) for a MIME type."""
        fmt = self._by_mime.get((mime_type or "").lower())
        return fmt.extension if fmt else None

    @property
    def supported_types(self) -> List[str]:
        return list(self._by_mime)

    @property
    def extensions(self) -> List[str]:
        return list(self._by_extension)

    def describe(self) -> str:
        """Human readable list of format names, e.g. 'JPEG, PNG, WebP'."""
        names: List[str] = []
        for fmt in self._formats:
            if fmt.name not in names:
                names.append(fmt.name)
        return ", ".join(names)


DEFAULT_REGISTRY = MimeRegistry()

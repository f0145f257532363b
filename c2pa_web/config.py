# c2pa_web/config.py
"""
Centralized configuration for the C2PA web service.

All configurable values are read from environment variables with sensible
defaults, then handed to each component explicitly. Nothing reads the
environment after start-up, so tests can build a Settings per run.

Usage:
    from c2pa_web.config import Settings

    settings = Settings.from_env()
    url = settings.build_url("http://127.0.0.1:3001", "/api/temp/abc.jpg")

Environment Variables:
    C2PA_WEB_TEMP_DIR: Storage root for uploaded and signed files
    C2PA_WEB_HOST / C2PA_WEB_PORT: Bind address for `c2pa-web serve`
    C2PA_WEB_PUBLIC_BASE_URL: Externally reachable base URL (default: request origin)
    C2PA_WEB_MAX_UPLOAD_SIZE: Upload ceiling in bytes (default: 10 MiB)
    C2PA_WEB_MAX_REQUEST_SIZE: Request-body ceiling in bytes (default: 12 MiB)
    C2PA_WEB_RETENTION_SECONDS: Age after which `c2pa-web cleanup` deletes files
    C2PA_WEB_SIGNING_ALG: Signing algorithm passed to the C2PA signer (default: es256)
    C2PA_WEB_TSA_URL: Timestamp authority URL for signatures
    C2PA_WEB_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    C2PA_WEB_LOG_LEVEL: Logging level (default: INFO)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

ENV_PREFIX = "C2PA_WEB_"

DEFAULT_HOST = "127.0.0.1"  # Localhost only unless told otherwise
DEFAULT_PORT = 3001
DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_REQUEST_SIZE = 12 * 1024 * 1024
DEFAULT_RETENTION_SECONDS = 60 * 60
DEFAULT_SIGNING_ALG = "es256"
DEFAULT_TSA_URL = "http://timestamp.digicert.com"


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "c2pa-web"


@dataclass
class Settings:
    """Runtime settings for the storage root, limits, signing and the HTTP server."""

    temp_dir: Path = field(default_factory=default_temp_dir)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    public_base_url: Optional[str] = None
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    max_request_size: int = DEFAULT_MAX_REQUEST_SIZE
    retention_seconds: int = DEFAULT_RETENTION_SECONDS
    signing_alg: str = DEFAULT_SIGNING_ALG
    tsa_url: str = DEFAULT_TSA_URL
    cors_origins: str = "*"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.temp_dir = Path(self.temp_dir)
        if self.max_upload_size <= 0:
            raise ValueError("max_upload_size must be positive")
        if self.max_request_size < self.max_upload_size:
            # Multipart overhead must fit on top of the largest allowed upload
            self.max_request_size = self.max_upload_size + 1024 * 1024

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables (C2PA_WEB_* prefix)."""
        env = os.environ if environ is None else environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{name}")
            return value if value not in (None, "") else default

        return cls(
            temp_dir=Path(get("TEMP_DIR") or default_temp_dir()),
            host=get("HOST", DEFAULT_HOST),
            port=int(get("PORT", str(DEFAULT_PORT))),
            public_base_url=get("PUBLIC_BASE_URL"),
            max_upload_size=int(get("MAX_UPLOAD_SIZE", str(DEFAULT_MAX_UPLOAD_SIZE))),
            max_request_size=int(get("MAX_REQUEST_SIZE", str(DEFAULT_MAX_REQUEST_SIZE))),
            retention_seconds=int(get("RETENTION_SECONDS", str(DEFAULT_RETENTION_SECONDS))),
            signing_alg=get("SIGNING_ALG", DEFAULT_SIGNING_ALG),
            tsa_url=get("TSA_URL", DEFAULT_TSA_URL),
            cors_origins=get("CORS_ORIGINS", "*"),
            log_level=get("LOG_LEVEL", "INFO").upper(),
        )

    # =========================================================================
    # Helper Functions
    # =========================================================================

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def max_upload_size_mb(self) -> float:
        return self.max_upload_size / (1024 * 1024)

    def build_url(self, request_base_url: str, path: str) -> str:
        """
        Build an absolute URL for a path served by this service.

        Args:
            request_base_url: Origin of the incoming request (used when no
                public base URL is configured)
            path: Absolute path, e.g. "/api/temp/abc.jpg"

        Returns:
            Full URL (e.g. "https://c2pa.example.com/api/temp/abc.jpg")
        """
        base = (self.public_base_url or request_base_url).rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    def summary(self) -> dict:
        """Current configuration (useful for debugging)."""
        return {
            "temp_dir": str(self.temp_dir),
            "host": self.host,
            "port": self.port,
            "public_base_url": self.public_base_url,
            "max_upload_size": self.max_upload_size,
            "max_request_size": self.max_request_size,
            "retention_seconds": self.retention_seconds,
            "signing_alg": self.signing_alg,
            "tsa_url": self.tsa_url,
            "cors_origins": self.cors_origin_list,
            "log_level": self.log_level,
        }

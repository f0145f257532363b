"""
C2PA Web - read, sign and verify Content Credentials embedded in images.

This package provides a small HTTP service (with a browser page and a CLI)
around the c2pa-python library: temp-file storage for uploads, a MIME
registry, the upload/serve/download pipeline, and reshaping of the
library's manifest and validation output for display.
"""

__version__ = "1.0.0"

APP_NAME = "c2pa-web"

from .errors import (  # noqa: E402
    C2PAWebError,
    InvalidInput,
    InvalidIdentifier,
    NotFound,
    ExternalServiceFailure,
    SigningError,
    InternalFailure,
)
from .config import Settings  # noqa: E402
from .mime import MimeRegistry, DEFAULT_REGISTRY  # noqa: E402
from .storage import TempStorage, FileReference, is_valid_identifier  # noqa: E402
from .signers import TestSigner, LocalSigner, choose_signer  # noqa: E402
from .verification import VerificationResult, normalize_verification  # noqa: E402


# The service and app pull in c2pa-python and FastAPI; load them on demand
def __getattr__(name):
    """Lazy loading of the library boundary and the web application."""
    if name in ("C2PAService", "build_manifest_definition", "C2PA_AVAILABLE"):
        from . import provenance

        return getattr(provenance, name)
    elif name in ("create_app",):
        from . import server

        return getattr(server, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "APP_NAME",
    "C2PAWebError",
    "InvalidInput",
    "InvalidIdentifier",
    "NotFound",
    "ExternalServiceFailure",
    "SigningError",
    "InternalFailure",
    "Settings",
    "MimeRegistry",
    "DEFAULT_REGISTRY",
    "TempStorage",
    "FileReference",
    "is_valid_identifier",
    "TestSigner",
    "LocalSigner",
    "choose_signer",
    "VerificationResult",
    "normalize_verification",
    "C2PAService",
    "build_manifest_definition",
    "C2PA_AVAILABLE",
    "create_app",
]

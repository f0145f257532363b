"""
Shared pytest fixtures for C2PA Web tests.
"""

import io
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from c2pa_web.config import Settings
from c2pa_web.mime import DEFAULT_REGISTRY
from c2pa_web.storage import TempStorage
from c2pa_web.verification import VerificationResult, normalize_verification


class FakeC2PAService:
    """
    Stand-in for C2PAService that never touches c2pa-python.

    Set ``store`` to the manifest store read() should return (None means the
    file has no C2PA data), or ``read_error`` / ``sign_error`` to an exception
    to raise.
    """

    def __init__(self):
        self.available = True
        self.store: Optional[Dict[str, Any]] = None
        self.read_error: Optional[Exception] = None
        self.sign_error: Optional[Exception] = None
        self.read_calls: List[Path] = []
        self.sign_calls: List[Dict[str, Any]] = []

    def sdk_version(self) -> str:
        return "0.0.0-fake"

    def read(self, path, mime_type=None):
        self.read_calls.append(Path(path))
        if self.read_error is not None:
            raise self.read_error
        return self.store

    def verify(self, path, mime_type=None) -> VerificationResult:
        return normalize_verification(self.read(path, mime_type))

    def sign(self, source_path, output_path, manifest_definition, signer, mime_type=None):
        self.sign_calls.append(
            {
                "source": Path(source_path),
                "output": Path(output_path),
                "manifest": manifest_definition,
                "signer": signer,
                "mime_type": mime_type,
            }
        )
        if self.sign_error is not None:
            raise self.sign_error
        shutil.copyfile(source_path, output_path)


def make_image(fmt: str = "JPEG", size=(32, 24), color=(200, 40, 40)) -> bytes:
    """Encode a small solid-color image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a per-test temp directory with a small upload limit."""
    return Settings(temp_dir=tmp_path / "store", max_upload_size=64 * 1024)


@pytest.fixture
def storage(settings) -> TempStorage:
    return TempStorage(settings.temp_dir)


@pytest.fixture
def fake_service() -> FakeC2PAService:
    return FakeC2PAService()


@pytest.fixture
def app(settings, storage, fake_service):
    """Application wired to the temp storage and the fake C2PA service."""
    from c2pa_web.server import create_app

    return create_app(
        settings=settings,
        storage=storage,
        registry=DEFAULT_REGISTRY,
        service=fake_service,
    )


@pytest.fixture
def client_for():
    """Build an httpx client bound to an ASGI app."""

    def _client(app) -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _client


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def stored_jpeg(storage, jpeg_bytes) -> str:
    """A JPEG already present in temp storage; returns its file ID."""
    return storage.save(jpeg_bytes, ".jpg")


@pytest.fixture
def manifest_store() -> Dict[str, Any]:
    """Manifest store as reported by c2pa-python for a file signed by an unlisted issuer."""
    return {
        "active_manifest": "urn:uuid:1234",
        "manifests": {
            "urn:uuid:1234": {
                "claim_generator": "c2pa-web/1.0.0",
                "title": "photo.jpg",
                "format": "image/jpeg",
                "assertions": [
                    {"label": "c2pa.actions", "data": {"actions": [{"action": "c2pa.created"}]}},
                    {"label": "dc.creator", "data": "Jane Doe"},
                ],
                "ingredients": [],
                "signature_info": {
                    "issuer": "C2PA Web Test Signer",
                    "time": "2024-05-01T12:00:00+00:00",
                    "alg": "Es256",
                },
            }
        },
        "validation_state": "Valid",
        "validation_status": [
            {
                "code": "signingCredential.untrusted",
                "explanation": "signing certificate untrusted",
            }
        ],
    }

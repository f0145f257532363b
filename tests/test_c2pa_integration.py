"""
C2PA Integration Tests for C2PA Web.

Runs the real c2pa-python library: reading unsigned images, then signing
with the built-in test signer and verifying the result. Signing contacts the
configured timestamp authority and is skipped when it cannot be reached.
"""

import socket
from pathlib import Path
from urllib.parse import urlparse

import pytest
from PIL import Image

from c2pa_web.config import Settings
from c2pa_web.models import ManifestData
from c2pa_web.provenance import C2PA_AVAILABLE, C2PAService, build_manifest_definition
from c2pa_web.signers import TestSigner
from c2pa_web.verification import STATUS_INVALID, STATUS_VALID, STATUS_WARNING

pytestmark = pytest.mark.skipif(not C2PA_AVAILABLE, reason="c2pa-python not installed")


SUPPORTED_FORMATS = [
    ("JPEG", "image/jpeg", ".jpg"),
    ("PNG", "image/png", ".png"),
    ("WEBP", "image/webp", ".webp"),
]


def create_test_image(path: Path, img_format: str) -> None:
    """Create a simple test image in the specified format."""
    img = Image.new("RGB", (100, 100), color="blue")
    for x in range(50):
        for y in range(50):
            img.putpixel((x, y), (0, 200, 100))
    img.save(path, img_format)


@pytest.fixture
def service(tmp_path):
    return C2PAService(Settings(temp_dir=tmp_path))


@pytest.fixture
def tsa_reachable(service):
    """Skip when the timestamp authority cannot be reached."""
    url = urlparse(service.settings.tsa_url)
    port = url.port or (443 if url.scheme == "https" else 80)
    try:
        socket.create_connection((url.hostname, port), timeout=3).close()
    except OSError:
        pytest.skip(f"Timestamp authority {url.hostname} unreachable")


class TestReadUnsigned:
    """Images without Content Credentials."""

    @pytest.mark.parametrize("img_format,mime_type,ext", SUPPORTED_FORMATS)
    def test_unsigned_has_no_manifest(self, service, tmp_path, img_format, mime_type, ext):
        source = tmp_path / f"plain{ext}"
        create_test_image(source, img_format)

        assert service.read(source, mime_type) is None

        result = service.verify(source, mime_type)
        assert result.has_manifest is False
        assert result.status == STATUS_INVALID
        assert result.errors


@pytest.mark.usefixtures("tsa_reachable")
class TestSignAndVerify:
    """Round trip through the library with the test signer."""

    @pytest.mark.parametrize("img_format,mime_type,ext", SUPPORTED_FORMATS)
    def test_sign_then_read(self, service, tmp_path, img_format, mime_type, ext):
        source = tmp_path / f"source{ext}"
        output = tmp_path / f"signed_source{ext}"
        create_test_image(source, img_format)
        manifest = build_manifest_definition(
            ManifestData(title="Integration", creator="Test Suite"), mime_type
        )

        service.sign(source, output, manifest, TestSigner(), mime_type)

        assert output.stat().st_size > source.stat().st_size
        store = service.read(output, mime_type)
        assert store is not None
        active = store["manifests"][store["active_manifest"]]
        assert active["title"] == "Integration"
        labels = [a["label"] for a in active["assertions"]]
        assert "dc.creator" in labels or any(label.startswith("c2pa.actions") for label in labels)

    def test_test_signer_is_not_trusted(self, service, tmp_path):
        source = tmp_path / "source.jpg"
        output = tmp_path / "signed_source.jpg"
        create_test_image(source, "JPEG")
        manifest = build_manifest_definition(ManifestData(), "image/jpeg")

        service.sign(source, output, manifest, TestSigner(), "image/jpeg")
        result = service.verify(output, "image/jpeg")

        assert result.has_manifest is True
        assert result.status in (STATUS_VALID, STATUS_WARNING)
        assert result.trust is not None
        assert result.trust.is_trusted is False

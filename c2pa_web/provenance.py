# c2pa_web/provenance.py
"""
C2PA library boundary.

Every manifest read, signature and validation goes through c2pa-python;
this module only prepares its inputs and translates its failures into the
service's error taxonomy.

Key Features:
- Reads the manifest store embedded in an image (None when absent)
- Signs images with a manifest built from the sign form
- Classifies validation results reported by the library
- Adds heuristic hints to signing failures (bad PEM, rejected certificate)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

try:
    import c2pa

    C2PA_AVAILABLE = True
except ImportError:
    C2PA_AVAILABLE = False

from c2pa_web import APP_NAME, __version__
from c2pa_web.config import Settings
from c2pa_web.errors import C2PAUnavailable, ExternalServiceFailure, InvalidInput, SigningError
from c2pa_web.mime import DEFAULT_REGISTRY, MimeRegistry
from c2pa_web.models import ManifestData
from c2pa_web.signers import LocalSigner, SignerConfig, credentials_for
from c2pa_web.verification import VerificationResult, normalize_verification

logger = logging.getLogger(__name__)

CLAIM_GENERATOR = f"{APP_NAME}/{__version__}"

DIGITAL_CREATION = "http://cv.iptc.org/newscodes/digitalsourcetype/digitalCreation"

# Error text the library uses when a file simply carries no manifest
_MISSING_MANIFEST_MARKERS = (
    "manifestnotfound",
    "no manifest",
    "jumbfnotfound",
    "no jumbf",
    "jumbf not found",
)


# =============================================================================
# Manifest Construction
# =============================================================================


def build_manifest_definition(
    manifest_data: ManifestData,
    mime_type: str,
    default_title: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the C2PA manifest JSON from the sign form.

    Args:
        manifest_data: Title, creator, copyright, description and assertions
        mime_type: MIME type of the asset being signed
        default_title: Title used when the form leaves it empty

    Returns:
        Manifest definition accepted by ``c2pa.Builder``
    """
    assertions = [assertion.model_dump() for assertion in manifest_data.assertions]

    if not any(a["label"].startswith("c2pa.actions") for a in assertions):
        assertions.insert(
            0,
            {
                "label": "c2pa.actions",
                "data": {
                    "actions": [
                        {
                            "action": "c2pa.created",
                            "when": datetime.now(timezone.utc).isoformat(),
                            "softwareAgent": CLAIM_GENERATOR,
                            "digitalSourceType": DIGITAL_CREATION,
                        }
                    ]
                },
            },
        )

    if manifest_data.creator:
        assertions.append({"label": "dc.creator", "data": manifest_data.creator})
    if manifest_data.copyright:
        assertions.append({"label": "dc.rights", "data": manifest_data.copyright})
    if manifest_data.description:
        assertions.append({"label": "dc.description", "data": manifest_data.description})

    return {
        "claim_generator": manifest_data.claim_generator or CLAIM_GENERATOR,
        "claim_generator_info": [
            {
                "name": APP_NAME,
                "version": __version__,
            }
        ],
        "format": manifest_data.format or mime_type,
        "title": manifest_data.title or default_title or "Untitled",
        "assertions": assertions,
    }


def is_manifest_missing(error: BaseException) -> bool:
    """True when a library error only means the file has no C2PA data."""
    if C2PA_AVAILABLE:
        not_found = getattr(getattr(c2pa, "C2paError", None), "ManifestNotFound", None)
        if isinstance(not_found, type) and isinstance(error, not_found):
            return True
    text = f"{type(error).__name__} {error}".lower()
    return any(marker in text for marker in _MISSING_MANIFEST_MARKERS)


def diagnose_signing_error(message: str, signer: SignerConfig, alg: str) -> Optional[str]:
    """Guess a human-readable cause for a signing failure from its text."""
    text = message.lower()
    own = isinstance(signer, LocalSigner)

    if "pem" in text or "private key" in text or "privatekey" in text:
        return (
            "Check that the certificate and private key are PEM-encoded and belong to each other."
        )
    if "timestamp" in text or "tsa" in text or "time stamp" in text:
        return "The timestamp authority could not be reached or rejected the request."
    if "certificate" in text or "cert" in text:
        if own:
            return (
                "The signing certificate was rejected. C2PA requires an end-entity certificate "
                "with the digitalSignature key usage, issued by a CA (self-signed certificates "
                "are not accepted)."
            )
        return "The built-in test certificate was rejected by the C2PA library."
    if "alg" in text or "algorithm" in text:
        return f"The private key must match the configured signing algorithm ({alg})."
    return None


# =============================================================================
# Service
# =============================================================================


class C2PAService:
    """
    Reads, signs and verifies C2PA manifests through c2pa-python.

    Usage:
        service = C2PAService(settings)
        store = service.read(path)                 # dict or None
        service.sign(src, dest, manifest, TestSigner())
        result = service.verify(dest)
    """

    def __init__(self, settings: Settings, registry: MimeRegistry = DEFAULT_REGISTRY):
        self.settings = settings
        self.registry = registry

    @property
    def available(self) -> bool:
        return C2PA_AVAILABLE

    def sdk_version(self) -> Optional[str]:
        if not C2PA_AVAILABLE:
            return None
        try:
            return c2pa.sdk_version()
        except Exception as e:
            logger.warning(f"Could not determine c2pa version: {e}")
            return None

    def _require_library(self) -> None:
        if not C2PA_AVAILABLE:
            raise C2PAUnavailable()

    def _mime_type_for(self, path: Path, mime_type: Optional[str]) -> str:
        mime_type = mime_type or self.registry.lookup(path.name)
        if not self.registry.is_supported(mime_type):
            raise InvalidInput("Unsupported file format.")
        return mime_type

    def read(self, path: Union[str, Path], mime_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Read the manifest store embedded in a file.

        Args:
            path: Path to the asset
            mime_type: MIME type (looked up from the extension when omitted)

        Returns:
            Manifest store JSON, or None when the file carries no C2PA data

        Raises:
            ExternalServiceFailure: If the library fails for any other reason
        """
        self._require_library()
        path = Path(path)
        mime_type = self._mime_type_for(path, mime_type)

        try:
            with open(path, "rb") as stream:
                with c2pa.Reader(mime_type, stream) as reader:
                    store = json.loads(reader.json())
        except Exception as e:
            if is_manifest_missing(e):
                logger.info(f"No C2PA manifest in {path.name}")
                return None
            logger.error(f"C2PA read failed for {path.name}: {e}")
            raise ExternalServiceFailure(f"Could not read C2PA data: {e}") from e

        if not isinstance(store, dict):
            raise ExternalServiceFailure("The C2PA library returned an unexpected result.")
        return store

    def verify(self, path: Union[str, Path], mime_type: Optional[str] = None) -> VerificationResult:
        """Classify the validation results the library reports for a file."""
        return normalize_verification(self.read(path, mime_type))

    def sign(
        self,
        source_path: Union[str, Path],
        output_path: Union[str, Path],
        manifest_definition: Dict[str, Any],
        signer: SignerConfig,
        mime_type: Optional[str] = None,
    ) -> None:
        """
        Embed a signed manifest into a copy of the source image.

        Args:
            source_path: Path to the source image
            output_path: Path for the signed output
            manifest_definition: Manifest JSON (see build_manifest_definition)
            signer: TestSigner or LocalSigner
            mime_type: MIME type (looked up from the extension when omitted)

        Raises:
            SigningError: If the library fails; nothing is left at output_path
        """
        self._require_library()
        source_path = Path(source_path)
        output_path = Path(output_path)
        mime_type = self._mime_type_for(source_path, mime_type)
        credentials = credentials_for(signer)

        try:
            signer_info = c2pa.C2paSignerInfo(
                alg=self.settings.signing_alg,
                sign_cert=credentials.certificate_chain,
                private_key=credentials.private_key,
                ta_url=self.settings.tsa_url,
            )
            with c2pa.Signer.from_info(signer_info) as c2pa_signer:
                with c2pa.Builder(json.dumps(manifest_definition)) as builder:
                    with open(source_path, "rb") as source, open(output_path, "w+b") as dest:
                        builder.sign(c2pa_signer, mime_type, source, dest)
        except Exception as e:
            output_path.unlink(missing_ok=True)
            hint = diagnose_signing_error(str(e), signer, self.settings.signing_alg)
            logger.error(f"C2PA signing failed for {source_path.name} ({signer.kind} signer): {e}")
            raise SigningError(f"Signing failed: {e}", hint=hint) from e

        logger.info(f"Signed {source_path.name} -> {output_path.name} ({signer.kind} signer)")

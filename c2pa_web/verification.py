"""
Reshape C2PA library output into the JSON the web page displays.

Nothing here is verified independently: the classification is read off the
fields the C2PA library has already computed (``validation_state``,
``validation_status``, ``validation_results`` and, for older library
releases, ``validation_errors`` / ``validation_warnings``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

STATUS_VALID = "valid"
STATUS_INVALID = "invalid"
STATUS_WARNING = "warning"

NO_MANIFEST_MESSAGE = "This file does not contain C2PA information."
INVALID_SIGNATURE_MESSAGE = "C2PA signature is invalid."
WARNING_MESSAGE = "C2PA signature has warnings."
UNTRUSTED_MESSAGE = "This certificate is not from a known trusted issuer."

# Status codes that only say the issuer is not on the trust list
UNTRUSTED_CODES = frozenset(
    {
        "signingCredential.untrusted",
        "signingCredential.ocsp.unknown",
    }
)
TRUSTED_CODE = "signingCredential.trusted"


@dataclass
class CertificateTrust:
    """Trust information for the active manifest's signing certificate."""

    is_trusted: bool = False
    issuer: Optional[str] = None
    timestamp: Optional[str] = None
    algorithm: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isTrusted": self.is_trusted,
            "issuer": self.issuer,
            "timestamp": self.timestamp,
            "algorithm": self.algorithm,
            "errorMessage": self.error_message,
        }


@dataclass
class VerificationResult:
    """UI-facing verification outcome."""

    is_valid: bool
    status: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)
    trust: Optional[CertificateTrust] = None
    has_manifest: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "status": self.status,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "details": self.details,
            "certificateTrust": self.trust.to_dict() if self.trust else None,
        }


# =============================================================================
# Manifest Store Helpers
# =============================================================================


def active_manifest(store: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the active manifest of a manifest store, if any."""
    manifests = store.get("manifests") or {}
    label = store.get("active_manifest")
    if label and isinstance(manifests, dict):
        manifest = manifests.get(label)
        if isinstance(manifest, dict):
            return manifest
    if isinstance(manifests, dict) and len(manifests) == 1:
        only = next(iter(manifests.values()))
        return only if isinstance(only, dict) else None
    return None


def _format_entry(entry: Any) -> str:
    if isinstance(entry, dict):
        code = entry.get("code")
        explanation = entry.get("explanation")
        if code and explanation:
            return f"{code}: {explanation}"
        return str(code or explanation or entry)
    return str(entry)


def _entry_code(entry: Any) -> Optional[str]:
    if isinstance(entry, dict):
        return entry.get("code")
    if isinstance(entry, str):
        return entry.split(":", 1)[0].strip()
    return None


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _status_entries(store: Dict[str, Any], kind: str) -> List[Any]:
    results = store.get("validation_results")
    if isinstance(results, dict):
        active = results.get("activeManifest") or {}
        if isinstance(active, dict) and kind in active:
            return _as_list(active.get(kind))
    if kind == "failure":
        status = store.get("validation_status")
        if isinstance(status, list):
            return status
    return []


def certificate_trust(store: Dict[str, Any], trusted: bool) -> CertificateTrust:
    manifest = active_manifest(store) or {}
    signature_info = manifest.get("signature_info") or {}
    return CertificateTrust(
        is_trusted=trusted,
        issuer=signature_info.get("issuer") or signature_info.get("common_name"),
        timestamp=signature_info.get("time"),
        algorithm=signature_info.get("alg"),
        error_message=None if trusted else UNTRUSTED_MESSAGE,
    )


# =============================================================================
# Normalization
# =============================================================================


def no_manifest_result(extra_errors: Iterable[str] = ()) -> VerificationResult:
    return VerificationResult(
        is_valid=False,
        status=STATUS_INVALID,
        errors=[NO_MANIFEST_MESSAGE, *extra_errors],
        has_manifest=False,
    )


def _normalize_legacy(store: Dict[str, Any]) -> VerificationResult:
    status = store["validation_status"]
    trusted = bool(
        store.get("certificate_trusted", store.get("is_trusted", status == STATUS_VALID))
    )
    details = {"validationType": status, "activeManifest": store.get("active_manifest")}

    if status == STATUS_VALID:
        return VerificationResult(
            is_valid=True,
            status=STATUS_VALID,
            details=details,
            trust=certificate_trust(store, trusted),
        )
    if status == STATUS_INVALID:
        errors = [INVALID_SIGNATURE_MESSAGE]
        errors.extend(_format_entry(e) for e in _as_list(store.get("validation_errors")))
        return VerificationResult(
            is_valid=False,
            status=STATUS_INVALID,
            errors=errors,
            details=details,
            trust=certificate_trust(store, trusted),
        )
    warnings = [WARNING_MESSAGE]
    warnings.extend(_format_entry(w) for w in _as_list(store.get("validation_warnings")))
    return VerificationResult(
        is_valid=False,
        status=STATUS_WARNING,
        warnings=warnings,
        details=details,
        trust=certificate_trust(store, trusted),
    )


def normalize_verification(store: Optional[Dict[str, Any]]) -> VerificationResult:
    """
    Classify a manifest store as valid, invalid or warning.

    Args:
        store: Manifest store JSON from the C2PA library, or None when the
            file carries no provenance data

    Returns:
        VerificationResult
    """
    if store is None:
        return no_manifest_result()

    if isinstance(store.get("validation_status"), str):
        return _normalize_legacy(store)

    state = store.get("validation_state")
    failures = _status_entries(store, "failure")
    successes = _status_entries(store, "success")

    untrusted = [f for f in failures if _entry_code(f) in UNTRUSTED_CODES]
    hard_failures = [f for f in failures if _entry_code(f) not in UNTRUSTED_CODES]
    trusted = state == "Trusted" or (
        not untrusted and any(_entry_code(s) == TRUSTED_CODE for s in successes)
    )

    details = {
        "validationType": state or ("Invalid" if hard_failures else "Valid"),
        "activeManifest": store.get("active_manifest"),
        "failureCodes": [_entry_code(f) for f in failures],
    }
    trust = certificate_trust(store, trusted)

    if state == "Invalid" or hard_failures:
        errors = [INVALID_SIGNATURE_MESSAGE]
        errors.extend(_format_entry(f) for f in hard_failures)
        return VerificationResult(
            is_valid=False,
            status=STATUS_INVALID,
            errors=errors,
            warnings=[_format_entry(u) for u in untrusted],
            details=details,
            trust=trust,
        )

    if untrusted:
        warnings = [WARNING_MESSAGE, UNTRUSTED_MESSAGE]
        warnings.extend(_format_entry(u) for u in untrusted)
        return VerificationResult(
            is_valid=False,
            status=STATUS_WARNING,
            warnings=warnings,
            details=details,
            trust=trust,
        )

    return VerificationResult(is_valid=True, status=STATUS_VALID, details=details, trust=trust)


def summarize_manifest_store(store: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick out the fields the manifest viewer shows for the active manifest."""
    if not store:
        return None

    manifest = active_manifest(store) or {}
    signature_info = manifest.get("signature_info") or {}
    generator = manifest.get("claim_generator")
    if not generator:
        info = manifest.get("claim_generator_info") or []
        if info and isinstance(info[0], dict):
            generator = " ".join(
                str(part) for part in (info[0].get("name"), info[0].get("version")) if part
            )

    return {
        "activeManifest": store.get("active_manifest"),
        "manifestCount": len(store.get("manifests") or {}),
        "title": manifest.get("title"),
        "format": manifest.get("format"),
        "claimGenerator": generator or None,
        "signatureIssuer": signature_info.get("issuer"),
        "signedAt": signature_info.get("time"),
        "assertions": [
            a.get("label") for a in manifest.get("assertions") or [] if isinstance(a, dict)
        ],
        "ingredients": [
            i.get("title") for i in manifest.get("ingredients") or [] if isinstance(i, dict)
        ],
    }

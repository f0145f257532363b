"""
Tests for reshaping C2PA validation output.
"""

import copy

import pytest

from c2pa_web.verification import (
    INVALID_SIGNATURE_MESSAGE,
    NO_MANIFEST_MESSAGE,
    STATUS_INVALID,
    STATUS_VALID,
    STATUS_WARNING,
    UNTRUSTED_MESSAGE,
    WARNING_MESSAGE,
    active_manifest,
    no_manifest_result,
    normalize_verification,
    summarize_manifest_store,
)


@pytest.fixture
def trusted_store(manifest_store):
    store = copy.deepcopy(manifest_store)
    store["validation_state"] = "Trusted"
    store["validation_status"] = []
    return store


# ============================================================================
# No Manifest
# ============================================================================

class TestNoManifest:
    """Files without provenance data."""

    def test_none_is_invalid(self):
        result = normalize_verification(None)

        assert result.is_valid is False
        assert result.status == STATUS_INVALID
        assert result.errors == [NO_MANIFEST_MESSAGE]
        assert result.has_manifest is False
        assert result.trust is None

    def test_extra_errors_follow_message(self):
        result = no_manifest_result(["unreadable"])
        assert result.errors == [NO_MANIFEST_MESSAGE, "unreadable"]


# ============================================================================
# Current Library Shape
# ============================================================================

class TestCurrentShape:
    """validation_state / validation_status / validation_results."""

    def test_trusted_is_valid(self, trusted_store):
        result = normalize_verification(trusted_store)

        assert result.is_valid is True
        assert result.status == STATUS_VALID
        assert result.errors == []
        assert result.trust.is_trusted is True
        assert result.trust.error_message is None
        assert result.details["validationType"] == "Trusted"

    def test_untrusted_signer_is_warning(self, manifest_store):
        result = normalize_verification(manifest_store)

        assert result.is_valid is False
        assert result.status == STATUS_WARNING
        assert result.warnings[:2] == [WARNING_MESSAGE, UNTRUSTED_MESSAGE]
        assert any("signingCredential.untrusted" in w for w in result.warnings)
        assert result.trust.is_trusted is False
        assert result.trust.error_message == UNTRUSTED_MESSAGE

    def test_hard_failure_is_invalid(self, manifest_store):
        manifest_store["validation_state"] = "Invalid"
        manifest_store["validation_status"].append(
            {"code": "assertion.dataHash.mismatch", "explanation": "hash mismatch"}
        )

        result = normalize_verification(manifest_store)

        assert result.status == STATUS_INVALID
        assert result.errors[0] == INVALID_SIGNATURE_MESSAGE
        assert "assertion.dataHash.mismatch: hash mismatch" in result.errors
        assert result.details["failureCodes"] == [
            "signingCredential.untrusted",
            "assertion.dataHash.mismatch",
        ]

    def test_failure_without_state(self, trusted_store):
        del trusted_store["validation_state"]
        trusted_store["validation_status"] = [{"code": "claimSignature.mismatch"}]

        result = normalize_verification(trusted_store)

        assert result.status == STATUS_INVALID
        assert result.details["validationType"] == "Invalid"

    def test_validation_results_take_precedence(self, trusted_store):
        del trusted_store["validation_state"]
        trusted_store["validation_results"] = {
            "activeManifest": {
                "success": [{"code": "signingCredential.trusted"}],
                "failure": [],
            }
        }

        result = normalize_verification(trusted_store)

        assert result.status == STATUS_VALID
        assert result.trust.is_trusted is True

    def test_certificate_details(self, manifest_store):
        trust = normalize_verification(manifest_store).trust

        assert trust.issuer == "C2PA Web Test Signer"
        assert trust.timestamp == "2024-05-01T12:00:00+00:00"
        assert trust.algorithm == "Es256"

    def test_to_dict(self, manifest_store):
        data = normalize_verification(manifest_store).to_dict()

        assert set(data) == {"isValid", "status", "errors", "warnings", "details", "certificateTrust"}
        assert data["certificateTrust"]["isTrusted"] is False


# ============================================================================
# Legacy Shape
# ============================================================================

class TestLegacyShape:
    """Older stores that report validation_status as a string."""

    def test_valid(self):
        result = normalize_verification({"validation_status": "valid"})
        assert result.is_valid is True
        assert result.status == STATUS_VALID

    def test_invalid(self):
        result = normalize_verification(
            {"validation_status": "invalid", "validation_errors": ["bad signature"]}
        )
        assert result.status == STATUS_INVALID
        assert result.errors == [INVALID_SIGNATURE_MESSAGE, "bad signature"]

    def test_other_is_warning(self):
        result = normalize_verification(
            {"validation_status": "unknown", "validation_warnings": ["expired"]}
        )
        assert result.status == STATUS_WARNING
        assert result.is_valid is False
        assert result.warnings == [WARNING_MESSAGE, "expired"]


# ============================================================================
# Summary
# ============================================================================

class TestSummary:
    """Manifest viewer summary."""

    def test_summary_fields(self, manifest_store):
        summary = summarize_manifest_store(manifest_store)

        assert summary["activeManifest"] == "urn:uuid:1234"
        assert summary["manifestCount"] == 1
        assert summary["title"] == "photo.jpg"
        assert summary["claimGenerator"] == "c2pa-web/1.0.0"
        assert summary["signatureIssuer"] == "C2PA Web Test Signer"
        assert summary["assertions"] == ["c2pa.actions", "dc.creator"]
        assert summary["ingredients"] == []

    def test_generator_info_fallback(self, manifest_store):
        manifest = manifest_store["manifests"]["urn:uuid:1234"]
        del manifest["claim_generator"]
        manifest["claim_generator_info"] = [{"name": "c2pa-web", "version": "1.0.0"}]

        assert summarize_manifest_store(manifest_store)["claimGenerator"] == "c2pa-web 1.0.0"

    def test_empty_store(self):
        assert summarize_manifest_store(None) is None

    def test_active_manifest_missing_label(self, manifest_store):
        manifest_store["active_manifest"] = "urn:uuid:other"
        manifest_store["manifests"]["urn:uuid:second"] = {}
        assert active_manifest(manifest_store) is None

"""
Signer selection for C2PA signing requests.

A sign request picks exactly one signer at the handler boundary:

- TestSigner: an ephemeral ES256 development chain generated once per
  process. Signatures verify but the issuer is not on any trust list.
- LocalSigner: a caller-supplied PEM certificate chain and private key.

The C2PA library itself has no notion of either; it receives a
``C2paSignerInfo`` built from the resolved credentials.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from c2pa_web.errors import InvalidInput

logger = logging.getLogger(__name__)

TEST_SIGNER_ORGANIZATION = "C2PA Web Test Signer"


# =============================================================================
# Signer Variants
# =============================================================================


@dataclass(frozen=True)
class TestSigner:
    """Built-in development signer."""

    __test__ = False  # not a pytest test class

    kind = "test"


@dataclass(frozen=True)
class LocalSigner:
    """Caller-supplied certificate chain and private key (PEM text)."""

    certificate_pem: str
    private_key_pem: str

    kind = "local"

    def __repr__(self) -> str:
        return "LocalSigner(certificate_pem=..., private_key_pem=<redacted>)"


SignerConfig = Union[TestSigner, LocalSigner]


@dataclass(frozen=True)
class SignerCredentials:
    """PEM bytes handed to the C2PA signer."""

    certificate_chain: bytes
    private_key: bytes


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def choose_signer(
    use_local_signer: Optional[bool],
    certificate: Optional[str],
    private_key: Optional[str],
) -> SignerConfig:
    """
    Decide the signer variant for a request.

    Args:
        use_local_signer: Explicit choice from the request (None when unset)
        certificate: PEM-encoded certificate chain, if supplied
        private_key: PEM-encoded private key, if supplied

    Returns:
        TestSigner or LocalSigner

    Raises:
        InvalidInput: If a local signer is requested without both credentials
    """
    if use_local_signer:
        if _is_blank(certificate) or _is_blank(private_key):
            raise InvalidInput(
                "A certificate and a private key are required to sign with your own credentials."
            )
        return LocalSigner(certificate_pem=certificate.strip(), private_key_pem=private_key.strip())

    if use_local_signer is None and not _is_blank(certificate) and not _is_blank(private_key):
        return LocalSigner(certificate_pem=certificate.strip(), private_key_pem=private_key.strip())

    return TestSigner()


def validate_local_credentials(signer: LocalSigner) -> None:
    """
    Parse caller-supplied PEM text before handing it to the C2PA library.

    Raises:
        InvalidInput: If either the certificate chain or the key is not valid PEM
    """
    try:
        certificates = x509.load_pem_x509_certificates(signer.certificate_pem.encode("utf-8"))
    except ValueError as e:
        raise InvalidInput(f"The certificate is not a valid PEM-encoded X.509 certificate: {e}") from e
    if not certificates:
        raise InvalidInput("The certificate file does not contain any certificates.")

    try:
        serialization.load_pem_private_key(signer.private_key_pem.encode("utf-8"), password=None)
    except (ValueError, TypeError) as e:
        raise InvalidInput(
            f"The private key is not a valid unencrypted PEM private key: {e}"
        ) from e


def credentials_for(signer: SignerConfig) -> SignerCredentials:
    """Resolve a signer variant to the PEM bytes used for signing."""
    if isinstance(signer, LocalSigner):
        return SignerCredentials(
            certificate_chain=signer.certificate_pem.encode("utf-8"),
            private_key=signer.private_key_pem.encode("utf-8"),
        )
    return development_credentials()


# =============================================================================
# Test Signer Certificate Generation
# =============================================================================


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, TEST_SIGNER_ORGANIZATION),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


@lru_cache(maxsize=1)
def development_credentials() -> SignerCredentials:
    """
    Generate the ES256 development chain (root CA + end-entity certificate).

    C2PA rejects self-signed end-entity certificates, so the signing
    certificate is issued by a throwaway root and the chain is returned
    leaf first.

    Note: For production, use certificates from a trusted CA.
    """
    now = datetime.now(timezone.utc)

    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_name = _name("C2PA Web Test Root CA")
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(ca_name)
        .issuer_name(ca_name)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=0), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    signing_key = ec.generate_private_key(ec.SECP256R1())
    signing_cert = (
        x509.CertificateBuilder()
        .subject_name(_name("C2PA Web Test Signer"))
        .issuer_name(ca_name)
        .public_key(signing_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.EMAIL_PROTECTION]),
            critical=False,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(signing_key.public_key()), critical=False
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False
        )
        .sign(ca_key, hashes.SHA256())
    )

    logger.info("Generated ephemeral test signer certificate chain")

    chain = signing_cert.public_bytes(serialization.Encoding.PEM) + ca_cert.public_bytes(
        serialization.Encoding.PEM
    )
    private_key = signing_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return SignerCredentials(certificate_chain=chain, private_key=private_key)

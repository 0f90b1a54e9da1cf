"""Certificate builder for X.509 certificate construction."""

from datetime import UTC, datetime, timedelta

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from .models import CertificateProfile, KeyPair, SigningRequest

# How far not_valid_before is set before the signing time
CLOCK_SKEW = timedelta(minutes=5)


class CertificateBuilder:
    """Builds X.509 certificates for the root CA and profile-governed leaves."""

    @staticmethod
    def build_root_ca(
        profile: CertificateProfile,
        key_pair: KeyPair,
        serial_number: int,
    ) -> x509.Certificate:
        """Build self-signed Root CA certificate.

        Args:
            profile: CA profile supplying subject, validity and extensions
            key_pair: Root key pair, both subject key and signing key
            serial_number: Serial for the root certificate

        Returns:
            Self-signed X.509 certificate with the profile's CA extensions
        """
        subject = profile.subject.to_x509_name()
        now = datetime.now(UTC)
        not_before = now - CLOCK_SKEW
        not_after = now + timedelta(days=profile.validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(key_pair.public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        for extension, critical in profile.extensions():
            builder = builder.add_extension(extension, critical=critical)

        return builder.sign(key_pair.private_key, hashes.SHA256())

    @staticmethod
    def build_leaf_certificate(
        request: SigningRequest,
        profile: CertificateProfile,
        issuer_cert: x509.Certificate,
        issuer_key: KeyPair,
        serial_number: int,
    ) -> x509.Certificate:
        """Build end-entity certificate from a vetted CSR, signed by the root CA.

        Only the CSR's subject and public key are taken from the request;
        extensions come from the profile. The validity window never outlives
        the issuer.

        Args:
            request: Signing request whose signature has already been checked
            profile: Leaf profile supplying validity and extensions
            issuer_cert: Root CA certificate (issuer)
            issuer_key: Root CA key pair for signing
            serial_number: Serial allocated by the issuing authority

        Returns:
            X.509 end-entity certificate signed by the root CA
        """
        now = datetime.now(UTC)
        not_before = now - CLOCK_SKEW
        not_after = min(
            now + timedelta(days=profile.validity_days),
            issuer_cert.not_valid_after_utc,
        )

        builder = (
            x509.CertificateBuilder()
            .subject_name(request.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(request.public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        for extension, critical in profile.extensions():
            builder = builder.add_extension(extension, critical=critical)

        return builder.sign(issuer_key.private_key, hashes.SHA256())

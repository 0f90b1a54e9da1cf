"""PKCS#10 certificate signing request construction."""

from cryptography import x509
from cryptography.hazmat.primitives import hashes

from .errors import ProfileValidationError
from .models import CertificateProfile, KeyPair, SigningRequest


class CsrBuilder:
    """Builds leaf CSRs that carry exactly the extensions a profile declares."""

    @staticmethod
    def build(key_pair: KeyPair, profile: CertificateProfile) -> SigningRequest:
        """Build and self-sign a CSR for a leaf profile.

        Args:
            key_pair: Leaf key pair; its private half signs the request
            profile: Leaf certificate profile supplying subject and extensions

        Returns:
            SigningRequest whose signature verifies against its own public key

        Raises:
            ProfileValidationError: If profile is a CA profile or has no common name
        """
        if profile.is_ca:
            raise ProfileValidationError(
                f"profile {profile.name!r} is a CA profile and cannot be used for a leaf request"
            )
        if not profile.subject.common_name.strip():
            raise ProfileValidationError(f"profile {profile.name!r} has an empty common name")

        builder = x509.CertificateSigningRequestBuilder().subject_name(
            profile.subject.to_x509_name()
        )
        for extension, critical in profile.extensions():
            builder = builder.add_extension(extension, critical=critical)

        return SigningRequest(builder.sign(key_pair.private_key, hashes.SHA256()))

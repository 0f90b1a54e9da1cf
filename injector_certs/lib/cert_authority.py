"""Single-level certificate authority: root bootstrap, load and leaf signing."""

import logging
from enum import Enum

from cryptography import x509

from .cert_utils import get_common_name, is_directly_issued_by, validate_csr_signature
from .certificate_builder import CertificateBuilder
from .errors import BootstrapError, InvalidAuthorityError, KeyGenerationError, SigningError
from .key_generator import KeyGenerator
from .models import CertificateProfile, KeyPair, SigningRequest

logger = logging.getLogger(__name__)

ROOT_SERIAL = 1


class AuthorityState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class CertAuthority:
    """Holds the root key pair and certificate and signs leaf CSRs.

    Serial numbers are allocated from a counter that starts at the root's
    serial and only ever increments.
    """

    def __init__(self, key_generator: KeyGenerator | None = None) -> None:
        self.key_generator = key_generator or KeyGenerator()
        self.state = AuthorityState.UNINITIALIZED
        self._key_pair: KeyPair | None = None
        self._certificate: x509.Certificate | None = None
        self._serial = 0

    @property
    def key_pair(self) -> KeyPair:
        if self._key_pair is None:
            raise InvalidAuthorityError("certificate authority is not initialized")
        return self._key_pair

    @property
    def certificate(self) -> x509.Certificate:
        if self._certificate is None:
            raise InvalidAuthorityError("certificate authority is not initialized")
        return self._certificate

    @property
    def last_serial(self) -> int:
        return self._serial

    def bootstrap(self, profile: CertificateProfile) -> x509.Certificate:
        """Generate the root key and self-signed root certificate.

        Args:
            profile: CA profile for the root certificate

        Returns:
            Self-signed root certificate

        Raises:
            BootstrapError: If already READY, the profile is not a CA profile,
                or the root key cannot be generated
        """
        if self.state is AuthorityState.READY:
            raise BootstrapError(
                "certificate authority is already initialized; refusing to replace root"
            )
        if not profile.is_ca:
            raise BootstrapError(f"profile {profile.name!r} is not a CA profile")

        try:
            key_pair = self.key_generator.generate(profile.key_algorithm, profile.key_strength)
        except KeyGenerationError as e:
            raise BootstrapError(f"root key generation failed: {e}") from e

        certificate = CertificateBuilder.build_root_ca(
            profile=profile, key_pair=key_pair, serial_number=ROOT_SERIAL
        )
        self._key_pair = key_pair
        self._certificate = certificate
        self._serial = ROOT_SERIAL
        self.state = AuthorityState.READY
        logger.info("Bootstrapped root CA %s", get_common_name(certificate.subject))
        return certificate

    @classmethod
    def load(
        cls,
        key_pair: KeyPair,
        certificate: x509.Certificate,
        last_serial: int | None = None,
        key_generator: KeyGenerator | None = None,
    ) -> "CertAuthority":
        """Restore a READY authority from persisted root material.

        Args:
            key_pair: Persisted root key pair
            certificate: Persisted root certificate
            last_serial: Highest serial already issued by this root, if known

        Returns:
            CertAuthority in READY state

        Raises:
            InvalidAuthorityError: If the certificate is not a self-signed CA
                certificate or does not match key_pair
        """
        if certificate.issuer != certificate.subject or not is_directly_issued_by(
            certificate, certificate
        ):
            raise InvalidAuthorityError("CA certificate is not self-signed")
        try:
            constraints = certificate.extensions.get_extension_for_class(x509.BasicConstraints)
        except x509.ExtensionNotFound as e:
            raise InvalidAuthorityError("CA certificate has no basic constraints") from e
        if not constraints.value.ca:
            raise InvalidAuthorityError("CA certificate is not marked CA:true")
        if not key_pair.matches(certificate.public_key()):
            raise InvalidAuthorityError("CA private key does not match CA certificate")

        authority = cls(key_generator)
        authority._key_pair = key_pair
        authority._certificate = certificate
        authority._serial = max(certificate.serial_number, last_serial or 0)
        authority.state = AuthorityState.READY
        return authority

    def sign(self, request: SigningRequest, profile: CertificateProfile) -> x509.Certificate:
        """Issue a leaf certificate for a CSR under a leaf profile.

        The profile overrides the request: only the subject and public key are
        taken from the CSR, and requested extensions not granted by the
        profile are dropped.

        Args:
            request: Leaf signing request
            profile: Leaf profile authorizing subject and extensions

        Returns:
            Leaf certificate issued by the root CA

        Raises:
            SigningError: If the authority is not READY, the profile is a CA
                profile, the CSR signature is invalid, or the subject differs
                from the profile
        """
        if self.state is not AuthorityState.READY:
            raise SigningError("certificate authority is not initialized")
        if profile.is_ca:
            raise SigningError(f"profile {profile.name!r} would issue a CA certificate")
        if not validate_csr_signature(request.csr):
            raise SigningError("CSR signature validation failed")
        if request.subject != profile.subject.to_x509_name():
            raise SigningError(
                f"CSR subject {request.subject.rfc4514_string()!r} does not match "
                f"profile {profile.name!r}"
            )
        granted = {extension.oid: extension for extension, _ in profile.extensions()}
        for requested in request.extensions:
            if granted.get(requested.oid) != requested.value:
                logger.warning(
                    "Dropping requested extension %s not granted by profile %s",
                    requested.oid.dotted_string,
                    profile.name,
                )

        serial_number = self._serial + 1
        try:
            certificate = CertificateBuilder.build_leaf_certificate(
                request=request,
                profile=profile,
                issuer_cert=self.certificate,
                issuer_key=self.key_pair,
                serial_number=serial_number,
            )
        except (ValueError, TypeError) as e:
            raise SigningError(f"certificate signing failed: {e}") from e

        self._serial = serial_number
        logger.info("Issued %s certificate serial %d", profile.name, serial_number)
        return certificate

"""Issuance pipeline: ensure CA, generate leaf key, build CSR, sign, persist."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path, PurePath

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm

from .cert_authority import CertAuthority
from .cert_utils import (
    deserialize_certificate,
    deserialize_key_pair,
    get_certificate_serial_hex,
    get_common_name,
    is_currently_valid,
    is_directly_issued_by,
    serialize_certificate,
    serialize_private_key,
)
from .config import IssuerConfig
from .csr_builder import CsrBuilder
from .errors import (
    InputValidationError,
    InvalidAuthorityError,
    IssuanceError,
    OverwriteRefusedError,
    VerificationError,
    WorkspaceIOError,
)
from .key_generator import KeyGenerator
from .models import CertificateProfile, IssuanceResult, VerificationResult
from .profiles import build_ca_profile, build_leaf_profile
from .workspace import Workspace

logger = logging.getLogger(__name__)

LEAF_ARTIFACTS = ("leaf-key", "leaf-csr", "leaf-cert")

# Raised by cryptography for corrupt, encrypted or unsupported PEM material
UNREADABLE_MATERIAL = (ValueError, TypeError, UnsupportedAlgorithm)


def normalize_scope(az: str | None, cluster: str | None) -> tuple[str, str]:
    """Validate and normalize scope inputs (az lower-case, cluster upper-case).

    Raises:
        InputValidationError: If either value is empty or not a single path segment
    """
    normalized = []
    for label, value in (("az", az), ("cluster", cluster)):
        value = (value or "").strip()
        if not value:
            raise InputValidationError(f"{label} must be a non-empty string")
        if value in (".", "..") or PurePath(value).name != value or "\\" in value:
            raise InputValidationError(f"{label} must be a single path segment, got {value!r}")
        normalized.append(value)
    return normalized[0].lower(), normalized[1].upper()


class IssuanceOrchestrator:
    """Drives CA bootstrap/load and leaf issuance for one (az, cluster) scope."""

    def __init__(
        self,
        workspace: Workspace,
        config: IssuerConfig,
        key_generator: KeyGenerator | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            workspace: Artifact storage; its force flag governs overwrites
            config: Issuer configuration used to build CA and leaf profiles
            key_generator: Key generator shared by the CA and leaf steps
        """
        self.workspace = workspace
        self.config = config
        self.key_generator = key_generator or KeyGenerator()

    @contextmanager
    def _step(self, name: str, scope: Path | None = None) -> Iterator[None]:
        """Annotate failures with the step and scope, wrapping OSError."""
        logger.info("Step %s", name)
        try:
            yield
        except IssuanceError as e:
            e.step = e.step or name
            e.scope = e.scope or scope
            raise
        except OSError as e:
            error = WorkspaceIOError(f"{e.strerror or e}: {e.filename or scope}")
            error.step = name
            error.scope = scope
            raise error from e

    def _build_profiles(
        self, az: str, cluster: str
    ) -> tuple[CertificateProfile, CertificateProfile]:
        try:
            return build_ca_profile(self.config, az, cluster), build_leaf_profile(self.config)
        except ValueError as e:
            raise InputValidationError(f"invalid issuer configuration: {e}") from e

    def _load_authority(self, scope: Path) -> CertAuthority:
        try:
            key_pair = deserialize_key_pair(self.workspace.read(scope, "ca-key"))
            certificate = deserialize_certificate(self.workspace.read(scope, "ca-cert"))
            last_serial = None
            if self.workspace.exists(scope, "leaf-cert"):
                last_serial = deserialize_certificate(
                    self.workspace.read(scope, "leaf-cert")
                ).serial_number
        except UNREADABLE_MATERIAL as e:
            raise InvalidAuthorityError(f"unreadable CA material in {scope}: {e}") from e
        return CertAuthority.load(
            key_pair, certificate, last_serial=last_serial, key_generator=self.key_generator
        )

    def issue(self, az: str | None, cluster: str | None) -> IssuanceResult:
        """Run the full issuance pipeline for a scope, aborting on first failure.

        Args:
            az: Availability zone / deployment (lower-cased)
            cluster: Cluster name (upper-cased)

        Returns:
            IssuanceResult with scope path, artifact paths and serials

        Raises:
            IssuanceError: Subclass annotated with the failing step and scope
        """
        with self._step("validate-input"):
            az, cluster = normalize_scope(az, cluster)
            ca_profile, leaf_profile = self._build_profiles(az, cluster)

        scope = self.workspace.resolve(az, cluster)
        result = IssuanceResult(scope=scope)
        logger.info("Generating certs for %s-%s", az, cluster)

        with self._step("prepare-workspace", scope):
            self.workspace.ensure_dir(scope)
            if not self.workspace.force:
                existing = [a for a in LEAF_ARTIFACTS if self.workspace.exists(scope, a)]
                if existing:
                    raise OverwriteRefusedError(
                        f"leaf artifacts already exist in {scope}: {', '.join(existing)}; "
                        "pass --force to reissue"
                    )

        with self._step("ensure-ca", scope):
            if self.workspace.exists(scope, "ca-key") and self.workspace.exists(scope, "ca-cert"):
                authority = self._load_authority(scope)
                logger.info("Reusing existing CA in %s", scope)
            else:
                logger.info("Generating a new CA key and self-signed certificate")
                authority = CertAuthority(self.key_generator)
                authority.bootstrap(ca_profile)
                result.artifacts["ca-key"] = self.workspace.write(
                    scope, "ca-key", serialize_private_key(authority.key_pair.private_key)
                )
                result.artifacts["ca-cert"] = self.workspace.write(
                    scope, "ca-cert", serialize_certificate(authority.certificate)
                )
                result.ca_bootstrapped = True
            result.ca_serial = get_certificate_serial_hex(authority.certificate)

        with self._step("generate-leaf-key", scope):
            leaf_key = self.key_generator.generate(
                leaf_profile.key_algorithm, leaf_profile.key_strength
            )
            result.artifacts["leaf-key"] = self.workspace.write(
                scope, "leaf-key", serialize_private_key(leaf_key.private_key)
            )

        with self._step("build-csr", scope):
            request = CsrBuilder.build(leaf_key, leaf_profile)
            result.artifacts["leaf-csr"] = self.workspace.write(scope, "leaf-csr", request.to_pem())

        with self._step("sign-leaf", scope):
            leaf_cert = authority.sign(request, leaf_profile)
            result.artifacts["leaf-cert"] = self.workspace.write(
                scope, "leaf-cert", serialize_certificate(leaf_cert)
            )
            result.leaf_serial = get_certificate_serial_hex(leaf_cert)

        result.artifacts.setdefault("ca-key", self.workspace.path(scope, "ca-key"))
        result.artifacts.setdefault("ca-cert", self.workspace.path(scope, "ca-cert"))
        return result

    def verify(self, az: str | None, cluster: str | None) -> VerificationResult:
        """Check a scope's leaf certificate and key against its stored CA.

        Raises:
            VerificationError: If the leaf is not issued by the CA, is outside
                its validity window, or does not match the leaf key
        """
        with self._step("validate-input"):
            az, cluster = normalize_scope(az, cluster)

        scope = self.workspace.resolve(az, cluster)
        with self._step("verify-leaf", scope):
            try:
                ca_cert = deserialize_certificate(self.workspace.read(scope, "ca-cert"))
                leaf_cert = deserialize_certificate(self.workspace.read(scope, "leaf-cert"))
                leaf_key = deserialize_key_pair(self.workspace.read(scope, "leaf-key"))
            except UNREADABLE_MATERIAL as e:
                raise VerificationError(f"unreadable artifact in {scope}: {e}") from e

            if not is_directly_issued_by(leaf_cert, ca_cert):
                raise VerificationError("leaf certificate was not issued by the stored CA")
            if not is_currently_valid(leaf_cert):
                raise VerificationError("leaf certificate is outside its validity window")
            if not leaf_key.matches(leaf_cert.public_key()):
                raise VerificationError("leaf private key does not match leaf certificate")
            try:
                constraints = leaf_cert.extensions.get_extension_for_class(x509.BasicConstraints)
            except x509.ExtensionNotFound as e:
                raise VerificationError("leaf certificate has no basic constraints") from e
            if constraints.value.ca:
                raise VerificationError("leaf certificate is marked CA:true")

        return VerificationResult(
            scope=scope,
            subject=get_common_name(leaf_cert.subject),
            issuer=get_common_name(leaf_cert.issuer),
            not_after=leaf_cert.not_valid_after_utc.isoformat(),
        )

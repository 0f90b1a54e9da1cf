"""Error taxonomy for certificate issuance."""

from pathlib import Path


class IssuanceError(Exception):
    """Base class for every failure surfaced by the issuance pipeline.

    The orchestrator annotates errors with the pipeline step and scope they
    were raised in so operators know where to resume.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.step: str | None = None
        self.scope: Path | None = None


class InputValidationError(IssuanceError):
    """Missing or malformed az / cluster input."""


class WorkspaceIOError(IssuanceError):
    """Filesystem failure while reading or writing scope artifacts."""


class OverwriteRefusedError(IssuanceError):
    """Artifact already exists and overwrite was not forced."""


class KeyGenerationError(IssuanceError):
    """Key pair could not be generated at the requested strength."""


class ProfileValidationError(IssuanceError):
    """Certificate profile cannot be used for the requested operation."""


class BootstrapError(IssuanceError):
    """CA root could not be bootstrapped."""


class InvalidAuthorityError(IssuanceError):
    """Persisted CA material is inconsistent."""


class SigningError(IssuanceError):
    """CSR was refused by the CA."""


class VerificationError(IssuanceError):
    """Issued leaf does not verify against the stored CA."""

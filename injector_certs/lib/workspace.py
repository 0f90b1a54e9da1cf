"""On-disk layout for scope-qualified certificate artifacts."""

import logging
from pathlib import Path

from .errors import OverwriteRefusedError

logger = logging.getLogger(__name__)

ARTIFACT_FILES = {
    "ca-key": "ca.key",
    "ca-cert": "ca.crt",
    "leaf-key": "sidecar-injector.key",
    "leaf-csr": "sidecar-injector.csr",
    "leaf-cert": "sidecar-injector.crt",
}

PRIVATE_ARTIFACTS = frozenset({"ca-key", "leaf-key"})


class Workspace:
    """Maps artifact names to files under {base_dir}/{az}/{cluster}/.

    Existing artifacts are never overwritten unless force is set.
    """

    def __init__(self, base_dir: Path, force: bool = False) -> None:
        self.base_dir = base_dir
        self.force = force

    def resolve(self, az: str, cluster: str) -> Path:
        return self.base_dir / az / cluster

    def ensure_dir(self, scope: Path) -> None:
        """Create the scope directory and parents; no-op if present."""
        if not scope.is_dir():
            logger.info("Creating %s", scope)
        scope.mkdir(parents=True, exist_ok=True)

    def path(self, scope: Path, artifact: str) -> Path:
        try:
            return scope / ARTIFACT_FILES[artifact]
        except KeyError as e:
            raise ValueError(f"unknown artifact: {artifact}") from e

    def exists(self, scope: Path, artifact: str) -> bool:
        return self.path(scope, artifact).exists()

    def read(self, scope: Path, artifact: str) -> bytes:
        return self.path(scope, artifact).read_bytes()

    def write(self, scope: Path, artifact: str, data: bytes) -> Path:
        """Write artifact bytes, refusing to replace an existing file.

        Args:
            scope: Scope directory returned by resolve()
            artifact: Artifact name (see ARTIFACT_FILES)
            data: PEM bytes to persist

        Returns:
            Path the artifact was written to

        Raises:
            OverwriteRefusedError: If the artifact exists and force is not set
        """
        target = self.path(scope, artifact)
        if target.exists() and not self.force:
            raise OverwriteRefusedError(f"{target} already exists; pass --force to overwrite")

        # Private keys are 0600 before any bytes are written, including on --force
        if artifact in PRIVATE_ARTIFACTS:
            target.touch(mode=0o600, exist_ok=True)
            target.chmod(0o600)
        target.write_bytes(data)
        return target

"""Value objects and result models for certificate issuance."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .config import DistinguishedName

PrivateKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey
PublicKey = rsa.RSAPublicKey | ec.EllipticCurvePublicKey

# x509.KeyUsage constructor arguments, in constructor order
KEY_USAGE_FLAGS = (
    "digital_signature",
    "content_commitment",
    "key_encipherment",
    "data_encipherment",
    "key_agreement",
    "key_cert_sign",
    "crl_sign",
    "encipher_only",
    "decipher_only",
)


class KeyAlgorithm(str, Enum):
    """Supported asymmetric key algorithms."""

    RSA = "rsa"
    EC = "ec"


def public_key_der(public_key: PublicKey) -> bytes:
    """Return DER SubjectPublicKeyInfo bytes, used for key comparison."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@dataclass(frozen=True)
class KeyPair:
    """Private key with its algorithm tag and strength (RSA bits or curve size)."""

    private_key: PrivateKey
    algorithm: KeyAlgorithm
    strength: int

    @classmethod
    def from_private_key(cls, private_key: PrivateKey) -> "KeyPair":
        """Wrap an existing private key, deriving algorithm and strength."""
        if isinstance(private_key, rsa.RSAPrivateKey):
            return cls(private_key, KeyAlgorithm.RSA, private_key.key_size)
        if isinstance(private_key, ec.EllipticCurvePrivateKey):
            return cls(private_key, KeyAlgorithm.EC, private_key.curve.key_size)
        raise ValueError("expected RSA or EC private key")

    @property
    def public_key(self) -> PublicKey:
        return self.private_key.public_key()

    def matches(self, public_key: object) -> bool:
        """Return True if public_key is the public half of this key pair."""
        if not isinstance(public_key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
            return False
        return public_key_der(self.public_key) == public_key_der(public_key)


@dataclass(frozen=True)
class CertificateProfile:
    """Immutable issuance policy for one kind of certificate.

    The profile is authoritative: a certificate issued under it carries
    exactly the extensions returned by extensions(), whatever the CSR asked for.
    """

    name: str
    subject: DistinguishedName
    validity_days: int
    is_ca: bool = False
    path_length: int | None = None
    key_usage: frozenset[str] = frozenset()
    extended_key_usage: tuple[x509.ObjectIdentifier, ...] = ()
    dns_names: tuple[str, ...] = ()
    key_algorithm: KeyAlgorithm = KeyAlgorithm.RSA
    key_strength: int = 2048

    def __post_init__(self) -> None:
        unknown = self.key_usage - set(KEY_USAGE_FLAGS)
        if unknown:
            raise ValueError(f"unknown key usage flags: {sorted(unknown)}")
        if self.validity_days <= 0:
            raise ValueError("validity_days must be positive")

    def extensions(self) -> list[tuple[x509.ExtensionType, bool]]:
        """Return (extension, critical) pairs declared by this profile."""
        extensions: list[tuple[x509.ExtensionType, bool]] = [
            (
                x509.BasicConstraints(
                    ca=self.is_ca, path_length=self.path_length if self.is_ca else None
                ),
                True,
            )
        ]
        if self.key_usage:
            extensions.append(
                (
                    x509.KeyUsage(**{flag: flag in self.key_usage for flag in KEY_USAGE_FLAGS}),
                    self.is_ca,
                )
            )
        if self.extended_key_usage:
            extensions.append((x509.ExtendedKeyUsage(list(self.extended_key_usage)), False))
        if self.dns_names:
            extensions.append(
                (x509.SubjectAlternativeName([x509.DNSName(n) for n in self.dns_names]), False)
            )
        return extensions


@dataclass(frozen=True)
class SigningRequest:
    """PKCS#10 request produced by CsrBuilder and consumed by CertAuthority."""

    csr: x509.CertificateSigningRequest

    @property
    def subject(self) -> x509.Name:
        return self.csr.subject

    @property
    def public_key(self) -> PublicKey:
        public_key = self.csr.public_key()
        if not isinstance(public_key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
            raise ValueError("CSR public key must be RSA or EC type")
        return public_key

    @property
    def extensions(self) -> x509.Extensions:
        return self.csr.extensions

    def to_pem(self) -> bytes:
        return self.csr.public_bytes(serialization.Encoding.PEM)

    @classmethod
    def from_pem(cls, pem_data: bytes) -> "SigningRequest":
        return cls(x509.load_pem_x509_csr(pem_data))


@dataclass
class IssuanceResult:
    """Result from a full issuance run for one (az, cluster) scope."""

    scope: Path
    artifacts: dict[str, Path] = field(default_factory=dict)
    ca_bootstrapped: bool = False
    ca_serial: str = ""
    leaf_serial: str = ""


@dataclass
class VerificationResult:
    """Result from verifying a scope's leaf certificate against its CA."""

    scope: Path
    subject: str
    issuer: str
    not_after: str

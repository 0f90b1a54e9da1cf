"""Issuer configuration dataclasses."""

from dataclasses import dataclass

from cryptography import x509
from cryptography.x509 import oid

# (ca_key_bits, leaf_key_bits) when no strength is given
DEFAULT_KEY_BITS = {"rsa": (4096, 2048), "ec": (384, 256)}


@dataclass
class IssuerConfig:
    """Issuer configuration for CA bootstrap and sidecar-injector leaf issuance."""

    country: str = "US"
    state: str = "New York"
    locality: str = "New York"
    organization: str = "Tumblr"
    organizational_unit: str = "Infrastructure"
    key_algorithm: str = "rsa"
    ca_key_bits: int = 4096
    leaf_key_bits: int = 2048
    ca_validity_days: int = 999999
    leaf_validity_days: int = 999999
    service_name: str = "k8s-sidecar-injector"
    namespace: str = "kube-system"

    @classmethod
    def for_algorithm(
        cls,
        key_algorithm: str,
        ca_key_bits: int | None = None,
        leaf_key_bits: int | None = None,
        **kwargs,
    ) -> "IssuerConfig":
        """Build a config whose unset key sizes follow DEFAULT_KEY_BITS for the algorithm."""
        ca_default, leaf_default = DEFAULT_KEY_BITS.get(key_algorithm, DEFAULT_KEY_BITS["rsa"])
        return cls(
            key_algorithm=key_algorithm,
            ca_key_bits=ca_default if ca_key_bits is None else ca_key_bits,
            leaf_key_bits=leaf_default if leaf_key_bits is None else leaf_key_bits,
            **kwargs,
        )


@dataclass(frozen=True)
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    common_name: str
    country: str = ""
    state: str = ""
    locality: str = ""
    organization: str = ""
    organizational_unit: str = ""

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name, skipping empty optional fields."""
        fields = [
            (oid.NameOID.COUNTRY_NAME, self.country),
            (oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
            (oid.NameOID.LOCALITY_NAME, self.locality),
            (oid.NameOID.ORGANIZATION_NAME, self.organization),
            (oid.NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit),
            (oid.NameOID.COMMON_NAME, self.common_name),
        ]
        return x509.Name(
            [x509.NameAttribute(name_oid, value) for name_oid, value in fields if value]
        )

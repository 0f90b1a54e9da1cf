"""Certificate profiles for the sidecar-injector CA and webhook leaf."""

from cryptography.x509.oid import ExtendedKeyUsageOID

from .config import DistinguishedName, IssuerConfig
from .models import CertificateProfile, KeyAlgorithm


def build_dn_from_config(config: IssuerConfig, common_name: str) -> DistinguishedName:
    """Build DN from IssuerConfig fields + common_name."""
    return DistinguishedName(
        country=config.country,
        state=config.state,
        locality=config.locality,
        organization=config.organization,
        organizational_unit=config.organizational_unit,
        common_name=common_name,
    )


def service_dns_names(config: IssuerConfig) -> tuple[str, ...]:
    """Return the in-cluster DNS names the webhook service is reached by."""
    return (
        config.service_name,
        f"{config.service_name}.{config.namespace}",
        f"{config.service_name}.{config.namespace}.svc",
    )


def build_ca_profile(config: IssuerConfig, az: str, cluster: str) -> CertificateProfile:
    """Root CA profile for one (az, cluster) scope."""
    return CertificateProfile(
        name="ca",
        subject=build_dn_from_config(config, f"{az}-{cluster} {config.service_name} CA"),
        validity_days=config.ca_validity_days,
        is_ca=True,
        path_length=0,
        key_usage=frozenset({"key_cert_sign", "crl_sign"}),
        key_algorithm=KeyAlgorithm(config.key_algorithm),
        key_strength=config.ca_key_bits,
    )


def build_leaf_profile(config: IssuerConfig) -> CertificateProfile:
    """Webhook server certificate profile (serverAuth, service SANs)."""
    dns_names = service_dns_names(config)
    return CertificateProfile(
        name="sidecar-injector",
        subject=build_dn_from_config(config, dns_names[-1]),
        validity_days=config.leaf_validity_days,
        key_usage=frozenset({"digital_signature", "key_encipherment"}),
        extended_key_usage=(ExtendedKeyUsageOID.SERVER_AUTH,),
        dns_names=dns_names,
        key_algorithm=KeyAlgorithm(config.key_algorithm),
        key_strength=config.leaf_key_bits,
    )

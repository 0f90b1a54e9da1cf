"""Test fixtures for injector_certs tests."""

from pathlib import Path

import pytest

from injector_certs.lib.cert_authority import CertAuthority
from injector_certs.lib.config import IssuerConfig
from injector_certs.lib.csr_builder import CsrBuilder
from injector_certs.lib.key_generator import KeyGenerator
from injector_certs.lib.models import CertificateProfile, KeyPair, SigningRequest
from injector_certs.lib.profiles import build_ca_profile, build_leaf_profile
from injector_certs.lib.workspace import Workspace


@pytest.fixture
def issuer_config() -> IssuerConfig:
    """Return test issuer configuration with small keys and short validity."""
    return IssuerConfig(
        organization="Test Org",
        organizational_unit="Test Unit",
        ca_key_bits=2048,  # Faster for tests
        leaf_key_bits=2048,
        ca_validity_days=365,
        leaf_validity_days=30,
    )


@pytest.fixture
def key_generator() -> KeyGenerator:
    return KeyGenerator()


@pytest.fixture
def ca_profile(issuer_config: IssuerConfig) -> CertificateProfile:
    return build_ca_profile(issuer_config, "us-east-1", "PRODUCTION")


@pytest.fixture
def leaf_profile(issuer_config: IssuerConfig) -> CertificateProfile:
    return build_leaf_profile(issuer_config)


@pytest.fixture
def authority(ca_profile: CertificateProfile, key_generator: KeyGenerator) -> CertAuthority:
    """Return a bootstrapped (READY) certificate authority."""
    ca = CertAuthority(key_generator)
    ca.bootstrap(ca_profile)
    return ca


@pytest.fixture
def leaf_key(key_generator: KeyGenerator) -> KeyPair:
    return key_generator.generate("rsa", 2048)


@pytest.fixture
def leaf_request(leaf_key: KeyPair, leaf_profile: CertificateProfile) -> SigningRequest:
    return CsrBuilder.build(leaf_key, leaf_profile)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(tmp_path)


"""Tests for the issue_cert command-line entry point."""

from pathlib import Path
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives import serialization

from injector_certs.lib.cert_utils import deserialize_certificate, deserialize_key_pair
from injector_certs.scripts.issue_cert import main

FAST_KEYS = ["--ca-key-bits", "2048", "--leaf-key-bits", "2048"]


def _run(*argv: str) -> int:
    with patch("sys.argv", ["injector-certs", *argv]):
        return main()


def test_issue_creates_scope(tmp_path: Path) -> None:
    """issue --az us-east-1 --cluster production creates 5 artifacts and exits 0."""
    exit_code = _run(
        "issue", "--az", "us-east-1", "--cluster", "production",
        "--output-dir", str(tmp_path), *FAST_KEYS,
    )

    scope = tmp_path / "us-east-1" / "PRODUCTION"
    assert exit_code == 0
    assert len(list(scope.iterdir())) == 5

    ca_cert = deserialize_certificate((scope / "ca.crt").read_bytes())
    leaf_cert = deserialize_certificate((scope / "sidecar-injector.crt").read_bytes())
    leaf_cert.verify_directly_issued_by(ca_cert)


def test_issue_then_verify(tmp_path: Path) -> None:
    scope_args = ["--az", "dc01", "--cluster", "staging", "--output-dir", str(tmp_path)]
    assert _run("issue", *scope_args, *FAST_KEYS) == 0
    assert _run("verify", *scope_args) == 0


def test_issue_empty_az_fails_without_writing(tmp_path: Path) -> None:
    exit_code = _run(
        "issue", "--az", "", "--cluster", "production",
        "--output-dir", str(tmp_path), *FAST_KEYS,
    )

    assert exit_code == 1
    assert list(tmp_path.iterdir()) == []


def test_issue_reads_scope_from_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """DEPLOYMENT and CLUSTER env vars stand in for --az/--cluster."""
    monkeypatch.setenv("DEPLOYMENT", "US-WEST-2")
    monkeypatch.setenv("CLUSTER", "canary")

    assert _run("issue", "--output-dir", str(tmp_path), *FAST_KEYS) == 0
    assert (tmp_path / "us-west-2" / "CANARY" / "sidecar-injector.crt").exists()


def test_issue_missing_environment_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("DEPLOYMENT", raising=False)
    monkeypatch.delenv("CLUSTER", raising=False)

    assert _run("issue", "--output-dir", str(tmp_path), *FAST_KEYS) == 1


def test_second_issue_requires_force(tmp_path: Path) -> None:
    args = [
        "issue", "--az", "us-east-1", "--cluster", "production",
        "--output-dir", str(tmp_path), *FAST_KEYS,
    ]
    assert _run(*args) == 0
    leaf_path = tmp_path / "us-east-1" / "PRODUCTION" / "sidecar-injector.crt"
    original = leaf_path.read_bytes()

    assert _run(*args) == 1
    assert leaf_path.read_bytes() == original

    assert _run(*args, "--force") == 0
    assert leaf_path.read_bytes() != original


def test_weak_key_fails(tmp_path: Path) -> None:
    exit_code = _run(
        "issue", "--az", "us-east-1", "--cluster", "production",
        "--output-dir", str(tmp_path), "--ca-key-bits", "1024",
    )
    assert exit_code == 1


def test_verify_missing_scope_fails(tmp_path: Path) -> None:
    exit_code = _run(
        "verify", "--az", "us-east-1", "--cluster", "production", "--output-dir", str(tmp_path)
    )
    assert exit_code == 1


def test_missing_command_exits_with_usage() -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run()
    assert excinfo.value.code == 2


def test_issue_ec_uses_curve_sized_defaults(tmp_path: Path) -> None:
    """--key-algorithm ec without explicit bits issues P-384 CA and P-256 leaf keys."""
    exit_code = _run(
        "issue", "--az", "dc01", "--cluster", "staging",
        "--output-dir", str(tmp_path), "--key-algorithm", "ec",
    )

    scope = tmp_path / "dc01" / "STAGING"
    assert exit_code == 0
    assert deserialize_key_pair((scope / "ca.key").read_bytes()).strength == 384
    assert deserialize_key_pair((scope / "sidecar-injector.key").read_bytes()).strength == 256
    verify_args = ["--az", "dc01", "--cluster", "staging", "--output-dir", str(tmp_path)]
    assert _run("verify", *verify_args) == 0


def test_encrypted_ca_key_reports_failing_step(tmp_path: Path) -> None:
    args = [
        "issue", "--az", "us-east-1", "--cluster", "production",
        "--output-dir", str(tmp_path), *FAST_KEYS,
    ]
    assert _run(*args) == 0
    ca_key_path = tmp_path / "us-east-1" / "PRODUCTION" / "ca.key"
    key = serialization.load_pem_private_key(ca_key_path.read_bytes(), password=None)
    ca_key_path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(b"passphrase"),
        )
    )

    with patch("injector_certs.scripts.issue_cert.LOGGER") as mock_logger:
        assert _run(*args, "--force") == 1

    mock_logger.exception.assert_not_called()
    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.args[2] == "ensure-ca"

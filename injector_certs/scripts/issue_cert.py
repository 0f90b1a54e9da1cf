#!/usr/bin/env python3
"""Issue or verify k8s-sidecar-injector webhook certificates for an (az, cluster) scope."""

import argparse
import os
import sys
from pathlib import Path

from injector_certs.lib.config import IssuerConfig
from injector_certs.lib.errors import IssuanceError
from injector_certs.lib.logging_config import LOGGER
from injector_certs.lib.orchestrator import IssuanceOrchestrator
from injector_certs.lib.workspace import Workspace


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--az",
        default=os.environ.get("DEPLOYMENT"),
        help="Deployment / availability zone, e.g. us-east-1 or dc01 (default: $DEPLOYMENT)",
    )
    parser.add_argument(
        "--cluster",
        default=os.environ.get("CLUSTER"),
        help="Cluster name, e.g. PRODUCTION (default: $CLUSTER)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Base directory holding {az}/{cluster}/ scopes (default: .)",
    )


def build_parser() -> argparse.ArgumentParser:
    defaults = IssuerConfig()
    parser = argparse.ArgumentParser(
        description="Bootstrap a per-cluster CA and issue the sidecar-injector webhook certificate"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    issue = commands.add_parser("issue", help="Bootstrap or reuse the CA and issue a leaf cert")
    _add_scope_arguments(issue)
    issue.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing artifacts in the scope",
    )
    issue.add_argument(
        "--service-name",
        default=defaults.service_name,
        help=f"Webhook service name (default: {defaults.service_name})",
    )
    issue.add_argument(
        "--namespace",
        default=defaults.namespace,
        help=f"Webhook service namespace (default: {defaults.namespace})",
    )
    issue.add_argument(
        "--key-algorithm",
        choices=["rsa", "ec"],
        default=defaults.key_algorithm,
        help=f"Key algorithm for CA and leaf keys (default: {defaults.key_algorithm})",
    )
    issue.add_argument(
        "--ca-key-bits",
        type=int,
        default=None,
        help="CA key strength (default: 4096 for rsa, 384 for ec)",
    )
    issue.add_argument(
        "--leaf-key-bits",
        type=int,
        default=None,
        help="Leaf key strength (default: 2048 for rsa, 256 for ec)",
    )

    verify = commands.add_parser("verify", help="Verify a scope's leaf cert against its CA")
    _add_scope_arguments(verify)
    return parser


def _issue(args: argparse.Namespace) -> int:
    config = IssuerConfig.for_algorithm(
        args.key_algorithm,
        ca_key_bits=args.ca_key_bits,
        leaf_key_bits=args.leaf_key_bits,
        service_name=args.service_name,
        namespace=args.namespace,
    )
    orchestrator = IssuanceOrchestrator(Workspace(args.output_dir, force=args.force), config)
    result = orchestrator.issue(args.az, args.cluster)

    LOGGER.info("Certs for %s:", result.scope)
    for name, path in result.artifacts.items():
        LOGGER.info("  %s: %s", name, path)
    LOGGER.info(
        "  CA serial: %s (%s)", result.ca_serial, "new" if result.ca_bootstrapped else "reused"
    )
    LOGGER.info("  Leaf serial: %s", result.leaf_serial)
    LOGGER.info("Please commit these!")
    return 0


def _verify(args: argparse.Namespace) -> int:
    orchestrator = IssuanceOrchestrator(Workspace(args.output_dir), IssuerConfig())
    result = orchestrator.verify(args.az, args.cluster)

    LOGGER.info("Leaf certificate in %s verified:", result.scope)
    LOGGER.info("  Subject: %s", result.subject)
    LOGGER.info("  Issuer: %s", result.issuer)
    LOGGER.info("  Expires: %s", result.not_after)
    return 0


def main() -> int:
    """Run the requested subcommand.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args()

    try:
        if args.command == "issue":
            return _issue(args)
        return _verify(args)

    except IssuanceError as e:
        LOGGER.error(
            "%s failed at step %s for scope %s: %s",
            args.command,
            e.step or "unknown",
            e.scope or "-",
            e,
        )
        return 1
    except Exception as e:
        LOGGER.exception("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

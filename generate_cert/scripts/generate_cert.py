#!/usr/bin/env python3
"""Generate a CA plus server and client certificates for local TLS."""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

from generate_cert.lib.ca_manager import issue_pki_bundle
from generate_cert.lib.cert_utils import extract_certificate_metadata
from generate_cert.lib.cert_writer import write_bundle
from generate_cert.lib.config import (
    DEFAULT_LEAF_VALIDITY,
    DEFAULT_ORGANIZATION,
    VERSION,
    IssuanceConfig,
    KeyEncoding,
    KeyUsageProfile,
    parse_duration,
)
from generate_cert.lib.exceptions import GenerateCertError
from generate_cert.lib.logging_config import LOGGER, certificate_log_extra


def duration_arg(value: str) -> timedelta:
    """argparse type wrapper around parse_duration."""
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def split_hosts(value: str) -> list[str]:
    """Split a comma-separated host list, dropping blank entries."""
    return [host.strip() for host in value.split(",") if host.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate-cert",
        description="Generate a root CA, a server leaf certificate and a client certificate",
    )
    parser.add_argument(
        "--host",
        default="",
        help="Comma-separated hostnames and IPs to generate a certificate for",
    )
    parser.add_argument(
        "--organization",
        default=DEFAULT_ORGANIZATION,
        help=f"Company to issue the cert to (default: {DEFAULT_ORGANIZATION})",
    )
    parser.add_argument(
        "--duration",
        type=duration_arg,
        default=DEFAULT_LEAF_VALIDITY,
        help="Duration that certificate is valid for, e.g. 24h or 8760h (default: 8760h)",
    )
    parser.add_argument(
        "--root-duration",
        type=duration_arg,
        default=None,
        help="Duration that root CA is valid for (default: 8760h, not allowed with --root-ca-cert)",
    )
    parser.add_argument(
        "--root-ca-key",
        type=Path,
        default=None,
        help="Use root CA on disk instead of generating one (should be a .key file)",
    )
    parser.add_argument(
        "--root-ca-cert",
        type=Path,
        default=None,
        help="Use root CA certificate on disk instead of generating one (should be a .pem file)",
    )
    parser.add_argument(
        "--client-common-name",
        default=None,
        help="Common name for the client certificate",
    )
    parser.add_argument(
        "--key-format",
        choices=[e.value for e in KeyEncoding],
        default=KeyEncoding.SEC1.value,
        help="Private key encoding: sec1 (EC PRIVATE KEY) or pkcs8 (PRIVATE KEY)",
    )
    parser.add_argument(
        "--key-usage",
        choices=[p.value for p in KeyUsageProfile],
        default=KeyUsageProfile.SIGNATURE.value,
        help="signature, or legacy to also grant key encipherment",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory to write certificates to (default: current directory)",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the version string and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Generate certificates and write them to the output directory.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"generate-cert version {VERSION}", file=sys.stderr)
        return 0

    config = IssuanceConfig(
        hosts=split_hosts(args.host),
        organization=args.organization,
        leaf_validity=args.duration,
        ca_validity=args.root_duration,
        client_common_name=args.client_common_name,
        ca_certificate_path=args.root_ca_cert,
        ca_private_key_path=args.root_ca_key,
        key_encoding=KeyEncoding(args.key_format),
        key_usage_profile=KeyUsageProfile(args.key_usage),
    )

    try:
        bundle = issue_pki_bundle(config)
        written = write_bundle(bundle, args.output_dir)
    except GenerateCertError as e:
        LOGGER.error("Certificate generation failed: %s", e)
        return 1
    except OSError as e:
        LOGGER.error("Could not read or write certificate files: %s", e)
        return 1

    issued = {"leaf": bundle.leaf, "client": bundle.client}
    if bundle.ca is not None:
        issued["root"] = bundle.ca
    for role, (cert_path, key_path) in written.items():
        metadata = extract_certificate_metadata(issued[role].certificate, role=role)
        LOGGER.info(
            "Wrote %s certificate %s, expires %s",
            role,
            metadata["serialNumber"],
            metadata["expiry"],
            extra=certificate_log_extra(metadata, cert_path, key_path),
        )

    LOGGER.info("Use leaf.key and leaf.pem to terminate TLS traffic on a web server")
    LOGGER.info("Use client.key and client.pem to do client TLS")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Persist issued certificates and keys as <role>.pem / <role>.key files."""

import os
from pathlib import Path

from .models import CertificateBundle, IssuedCertificate

CERTIFICATE_MODE = 0o666
PRIVATE_KEY_MODE = 0o600


def _write_file(path: Path, data: bytes, mode: int, enforce_mode: bool = False) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as f:
        # O_CREAT only applies the mode to new files
        if enforce_mode:
            os.fchmod(f.fileno(), mode)
        f.write(data)


def write_certificate(issued: IssuedCertificate, role: str, output_dir: Path) -> tuple[Path, Path]:
    """Write certificate and private key for one role.

    The certificate is world-readable subject to umask; the private key is
    always restricted to the owner.

    Args:
        issued: Certificate and key to write
        role: File name stem (root, leaf, client)
        output_dir: Directory receiving the files

    Returns:
        Tuple of (certificate_path, private_key_path)
    """
    cert_path = output_dir / f"{role}.pem"
    key_path = output_dir / f"{role}.key"
    _write_file(cert_path, issued.certificate_pem, CERTIFICATE_MODE)
    _write_file(key_path, issued.private_key_pem, PRIVATE_KEY_MODE, enforce_mode=True)
    return cert_path, key_path


def write_bundle(bundle: CertificateBundle, output_dir: Path) -> dict[str, tuple[Path, Path]]:
    """Write every certificate in the bundle; the CA only when it was minted.

    Returns:
        Mapping of role to (certificate_path, private_key_path)
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, tuple[Path, Path]] = {}
    if bundle.ca is not None:
        written["root"] = write_certificate(bundle.ca, "root", output_dir)
    written["leaf"] = write_certificate(bundle.leaf, "leaf", output_dir)
    written["client"] = write_certificate(bundle.client, "client", output_dir)
    return written

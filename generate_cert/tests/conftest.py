"""Test fixtures for generate_cert tests."""

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey
from cryptography.x509.oid import NameOID

from generate_cert.lib.ca_manager import CAManager
from generate_cert.lib.cert_utils import (
    generate_private_key,
    serialize_certificate,
    serialize_private_key,
)
from generate_cert.lib.config import IssuanceConfig
from generate_cert.lib.models import CertificateBundle, IssuedCertificate


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Return temporary directory for test output artifacts."""
    return tmp_path


@pytest.fixture
def now() -> datetime:
    """Return a fixed issuance time."""
    return datetime(2026, 1, 15, 12, 30, 45, 123456, tzinfo=UTC)


@pytest.fixture
def issuance_config() -> IssuanceConfig:
    """Return config with one DNS name and one IP literal."""
    return IssuanceConfig(
        hosts=["example.test", "127.0.0.1"],
        organization="Acme Co",
        leaf_validity=timedelta(hours=24),
    )


@pytest.fixture
def fresh_bundle(issuance_config: IssuanceConfig) -> CertificateBundle:
    """Issue a bundle with a freshly minted CA."""
    return CAManager(issuance_config).issue_bundle()


@pytest.fixture
def ca(fresh_bundle: CertificateBundle) -> IssuedCertificate:
    """Return the freshly minted CA artifact."""
    assert fresh_bundle.ca is not None
    return fresh_bundle.ca


@pytest.fixture
def ca_key(ca: IssuedCertificate) -> EllipticCurvePrivateKey:
    """Return the CA private key."""
    return ca.private_key


@pytest.fixture
def ca_cert(ca: IssuedCertificate) -> x509.Certificate:
    """Return the CA certificate."""
    return ca.certificate


@pytest.fixture
def ca_files_on_disk(temp_output_dir: Path, ca: IssuedCertificate) -> Generator[Path]:
    """Write CA files to disk and return base directory.

    Creates:
        {temp_dir}/ca/root.pem
        {temp_dir}/ca/root.key
    """
    ca_dir = temp_output_dir / "ca"
    ca_dir.mkdir(parents=True, exist_ok=True)
    (ca_dir / "root.pem").write_bytes(ca.certificate_pem)
    (ca_dir / "root.key").write_bytes(ca.private_key_pem)
    yield ca_dir


@pytest.fixture
def reuse_config(ca_files_on_disk: Path) -> IssuanceConfig:
    """Return config that reuses the CA written to disk."""
    return IssuanceConfig(
        hosts=["from-disk.example.test", "::1"],
        organization="Acme Co",
        leaf_validity=timedelta(hours=24),
        ca_certificate_path=ca_files_on_disk / "root.pem",
        ca_private_key_path=ca_files_on_disk / "root.key",
    )


@pytest.fixture
def rsa_ca_files_on_disk(temp_output_dir: Path) -> Generator[Path]:
    """Write an RSA self-signed CA to disk and return its directory."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, "RSA Co")])
    not_before = datetime.now(UTC)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )

    rsa_dir = temp_output_dir / "rsa-ca"
    rsa_dir.mkdir(parents=True, exist_ok=True)
    (rsa_dir / "root.pem").write_bytes(serialize_certificate(cert))
    (rsa_dir / "root.key").write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    yield rsa_dir


@pytest.fixture
def other_ec_key() -> EllipticCurvePrivateKey:
    """Generate an unrelated EC key."""
    return generate_private_key()


@pytest.fixture
def other_ec_key_pem(other_ec_key: EllipticCurvePrivateKey) -> bytes:
    """Return the unrelated EC key as SEC1 PEM."""
    return serialize_private_key(other_ec_key)


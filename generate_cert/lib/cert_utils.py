"""Certificate utility functions for key generation, serialization, and metadata extraction."""

import ipaddress
import os
from collections.abc import Callable, Iterable

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)

from .config import KeyEncoding
from .exceptions import (
    MalformedCertificate,
    MalformedPrivateKey,
    RandomnessFailure,
    UnsupportedKeyType,
)
from .models import CertificateMetadata, IPAddress

SERIAL_NUMBER_BYTES = 16

RandomSource = Callable[[int], bytes]
KeyGenerator = Callable[[], EllipticCurvePrivateKey]


def generate_private_key(curve: ec.EllipticCurve | None = None) -> EllipticCurvePrivateKey:
    """Generate EC private key on the given curve (P-256 by default)."""
    return ec.generate_private_key(curve or ec.SECP256R1())


def _private_format(encoding: KeyEncoding) -> serialization.PrivateFormat:
    if encoding is KeyEncoding.SEC1:
        return serialization.PrivateFormat.TraditionalOpenSSL
    return serialization.PrivateFormat.PKCS8


def serialize_private_key(
    key: EllipticCurvePrivateKey,
    encoding: KeyEncoding = KeyEncoding.SEC1,
    pem: bool = True,
) -> bytes:
    """Serialize private key without encryption.

    SEC1 produces an ``EC PRIVATE KEY`` block, PKCS8 a ``PRIVATE KEY`` block.
    """
    return key.private_bytes(
        encoding=serialization.Encoding.PEM if pem else serialization.Encoding.DER,
        format=_private_format(encoding),
        encryption_algorithm=serialization.NoEncryption(),
    )


def _key_type_name(key: object) -> str:
    return type(key).__name__.removeprefix("_").removesuffix("PrivateKey").removesuffix("PublicKey")


def deserialize_private_key(pem_data: bytes) -> EllipticCurvePrivateKey:
    """Deserialize EC private key from PEM bytes (SEC1 or PKCS8).

    Raises:
        MalformedPrivateKey: If the PEM block cannot be decoded
        UnsupportedKeyType: If the key is not an elliptic curve key
    """
    try:
        key = serialization.load_pem_private_key(pem_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise MalformedPrivateKey(f"Could not decode CA private key: {e}") from e
    if not isinstance(key, EllipticCurvePrivateKey):
        raise UnsupportedKeyType(_key_type_name(key))
    return key


def serialize_certificate(cert: x509.Certificate, pem: bool = True) -> bytes:
    """Serialize certificate to PEM (or DER) format."""
    return cert.public_bytes(serialization.Encoding.PEM if pem else serialization.Encoding.DER)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes.

    Raises:
        MalformedCertificate: If the PEM block is not a well-formed certificate
    """
    try:
        return x509.load_pem_x509_certificate(pem_data)
    except ValueError as e:
        raise MalformedCertificate(f"Could not decode CA certificate: {e}") from e


def ensure_ec_certificate(cert: x509.Certificate) -> EllipticCurvePublicKey:
    """Return the certificate's EC public key.

    Raises:
        UnsupportedKeyType: If the certificate carries a non-EC public key
    """
    try:
        public_key = cert.public_key()
    except (ValueError, UnsupportedAlgorithm) as e:
        raise MalformedCertificate(f"Could not decode CA certificate public key: {e}") from e
    if not isinstance(public_key, EllipticCurvePublicKey):
        raise UnsupportedKeyType(_key_type_name(public_key))
    return public_key


def public_keys_match(a: EllipticCurvePublicKey, b: EllipticCurvePublicKey) -> bool:
    """Compare two public keys by their SubjectPublicKeyInfo encoding."""
    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    return a.public_bytes(serialization.Encoding.DER, spki) == b.public_bytes(
        serialization.Encoding.DER, spki
    )


def generate_serial_number(random_source: RandomSource = os.urandom) -> int:
    """Generate a 128-bit certificate serial number.

    Draws 16 bytes from the random source and reads them as a big-endian
    unsigned integer, giving a uniform value in [0, 2**128). Serials are not
    checked against any previously issued certificate.

    Raises:
        RandomnessFailure: If the source fails, returns a short read, or
            returns all zero bytes
    """
    try:
        data = random_source(SERIAL_NUMBER_BYTES)
    except OSError as e:
        raise RandomnessFailure(f"Random source unavailable: {e}") from e

    if len(data) != SERIAL_NUMBER_BYTES:
        raise RandomnessFailure(
            f"Random source returned {len(data)} bytes, expected {SERIAL_NUMBER_BYTES}"
        )

    serial = int.from_bytes(data, "big")
    # zero is not a valid certificate serial
    if serial == 0:
        raise RandomnessFailure("Random source returned an all-zero serial number")
    return serial


def partition_hosts(hosts: Iterable[str]) -> tuple[tuple[str, ...], tuple[IPAddress, ...]]:
    """Split host entries into DNS names and IP addresses, preserving order.

    Entries that parse as IPv4 or IPv6 literals become IP addresses,
    everything else is treated as a DNS name. Scoped IPv6 literals such as
    ``fe80::1%eth0`` cannot be expressed in a SAN and stay DNS names.
    """
    dns_names: list[str] = []
    ip_addresses: list[IPAddress] = []
    for host in hosts:
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            dns_names.append(host)
            continue
        if isinstance(address, ipaddress.IPv6Address) and address.scope_id is not None:
            dns_names.append(host)
        else:
            ip_addresses.append(address)
    return tuple(dns_names), tuple(ip_addresses)


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = f"{cert.serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def get_subject_alternative_names(cert: x509.Certificate) -> tuple[list[str], list[IPAddress]]:
    """Return the DNS names and IP addresses in the certificate's SAN extension."""
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return [], []
    return san.get_values_for_type(x509.DNSName), san.get_values_for_type(x509.IPAddress)


def is_certificate_authority(cert: x509.Certificate) -> bool:
    """True when the certificate carries basic constraints with CA=True."""
    try:
        bc = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound:
        return False
    return bc.value.ca


def extract_certificate_metadata(
    cert: x509.Certificate, role: str | None = None
) -> CertificateMetadata:
    """Extract certificate metadata for structured logging.

    Args:
        cert: X.509 certificate to extract metadata from
        role: Optional role name (root, leaf, client)

    Returns:
        CertificateMetadata with serial, names, validity window and SANs.
        role included only when provided (NotRequired field).
    """
    dns_names, ip_addresses = get_subject_alternative_names(cert)

    metadata = CertificateMetadata(
        serialNumber=get_certificate_serial_hex(cert),
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        notBefore=cert.not_valid_before_utc.isoformat(),
        expiry=cert.not_valid_after_utc.isoformat(),
        isCA=is_certificate_authority(cert),
        dnsNames=list(dns_names),
        ipAddresses=[str(ip) for ip in ip_addresses],
    )

    if role is not None:
        metadata["role"] = role

    return metadata


def validate_certificate_chain(cert: x509.Certificate, ca_cert: x509.Certificate) -> bool:
    """Verify that cert was issued and signed by ca_cert.

    Returns True if the signature and issuer name check out, False otherwise.
    """
    try:
        cert.verify_directly_issued_by(ca_cert)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False

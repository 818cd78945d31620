"""Descriptor and result models for certificate issuance."""

from dataclasses import dataclass
from datetime import datetime
from ipaddress import IPv4Address, IPv6Address
from typing import NotRequired, TypedDict

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey

from .config import DistinguishedName

IPAddress = IPv4Address | IPv6Address


@dataclass(frozen=True)
class CertificateDescriptor:
    """Unsigned description of one certificate to be issued."""

    is_authority: bool
    serial_number: int
    subject: DistinguishedName
    not_before: datetime
    not_after: datetime
    key_usage: x509.KeyUsage
    extended_key_usage: tuple[x509.ObjectIdentifier, ...]
    dns_names: tuple[str, ...] = ()
    ip_addresses: tuple[IPAddress, ...] = ()


@dataclass(frozen=True)
class SelfSignedIdentity:
    """Signer for a certificate whose subject key also signs it."""

    private_key: EllipticCurvePrivateKey


@dataclass(frozen=True)
class IssuerIdentity:
    """Signer backed by an already-issued CA certificate and its key."""

    private_key: EllipticCurvePrivateKey
    certificate: x509.Certificate


SigningIdentity = SelfSignedIdentity | IssuerIdentity


@dataclass(frozen=True)
class PemBlock:
    """Typed DER block, the structure wrapped by a PEM armor."""

    type: str
    der: bytes


@dataclass(frozen=True)
class IssuedCertificate:
    """Signed certificate and its private key in block and PEM form.

    parent_serial_number is the serial of the signing CA certificate; for a
    self-signed CA it equals the certificate's own serial.
    """

    certificate: x509.Certificate
    private_key: EllipticCurvePrivateKey
    certificate_block: PemBlock
    private_key_block: PemBlock
    certificate_pem: bytes
    private_key_pem: bytes
    parent_serial_number: int

    @property
    def serial_number(self) -> int:
        return self.certificate.serial_number


@dataclass(frozen=True)
class CertificateBundle:
    """Terminal output of one issuance run.

    ca is None when the CA was loaded from disk rather than minted.
    """

    ca: IssuedCertificate | None
    leaf: IssuedCertificate
    client: IssuedCertificate


@dataclass(frozen=True)
class ResolvedCA:
    """Outcome of CA resolution: who signs the leaves and what to persist."""

    identity: IssuerIdentity
    issued: IssuedCertificate | None

    @property
    def certificate(self) -> x509.Certificate:
        return self.identity.certificate


class CertificateMetadata(TypedDict):
    """Summary of an issued certificate for logs."""

    serialNumber: str
    subject: str
    issuer: str
    notBefore: str
    expiry: str
    isCA: bool
    dnsNames: list[str]
    ipAddresses: list[str]
    role: NotRequired[str]

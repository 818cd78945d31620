"""Issuance configuration dataclasses."""

import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

from .exceptions import ConfigurationError

VERSION = "0.4"

DEFAULT_ORGANIZATION = "Acme Co"
DEFAULT_LEAF_VALIDITY = timedelta(days=365)
DEFAULT_CA_VALIDITY = timedelta(days=365)
MAX_COMMON_NAME_LENGTH = 64
# largest duration representable as signed 64-bit nanoseconds, about 292 years
MAX_VALIDITY = timedelta(microseconds=(2**63 - 1) // 1000)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([+-]?)((?:{_DURATION_PART})+)")


class KeyEncoding(Enum):
    """Private key serialization convention for issued keys."""

    SEC1 = "sec1"
    PKCS8 = "pkcs8"

    @property
    def pem_type(self) -> str:
        """PEM block type tag written for this encoding."""
        if self is KeyEncoding.SEC1:
            return "EC PRIVATE KEY"
        return "PRIVATE KEY"


class KeyUsageProfile(Enum):
    """Key usage bits granted to issued certificates.

    SIGNATURE grants digital_signature only (plus key_cert_sign on the CA).
    LEGACY additionally grants key_encipherment, as older releases did.
    """

    SIGNATURE = "signature"
    LEGACY = "legacy"

    @property
    def key_encipherment(self) -> bool:
        return self is KeyUsageProfile.LEGACY


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``24h``, ``1h30m`` or ``8760h``.

    Accepts the units ns, us, ms, s, m and h with optional fractions and an
    optional leading sign. A bare ``0`` is accepted.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if text in ("0", "+0", "-0"):
        return timedelta(0)

    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid duration {value!r}")

    seconds = 0.0
    for number, unit in re.findall(_DURATION_PART, match.group(2)):
        seconds += float(number) * _DURATION_UNITS[unit]

    if seconds > MAX_VALIDITY.total_seconds():
        raise ValueError(f"invalid duration {value!r}: out of range")

    if match.group(1) == "-":
        seconds = -seconds
    return timedelta(seconds=seconds)


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    organization: str
    common_name: str | None = None
    serial_number: str | None = None

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        attributes = [x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, self.organization)]
        if self.common_name:
            attributes.append(x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name))
        if self.serial_number:
            attributes.append(x509.NameAttribute(oid.NameOID.SERIAL_NUMBER, self.serial_number))
        return x509.Name(attributes)


@dataclass
class IssuanceConfig:
    """Inputs for one issuance run.

    ca_validity of None means the default for a freshly minted CA and
    "unset" when reusing a CA from disk.
    """

    hosts: list[str] = field(default_factory=list)
    organization: str = DEFAULT_ORGANIZATION
    leaf_validity: timedelta = DEFAULT_LEAF_VALIDITY
    ca_validity: timedelta | None = None
    client_common_name: str | None = None
    ca_certificate_path: Path | None = None
    ca_private_key_path: Path | None = None
    key_encoding: KeyEncoding = KeyEncoding.SEC1
    key_usage_profile: KeyUsageProfile = KeyUsageProfile.SIGNATURE

    @property
    def reuses_ca(self) -> bool:
        """True when an existing CA certificate and key were supplied."""
        return self.ca_certificate_path is not None and self.ca_private_key_path is not None

    @property
    def effective_ca_validity(self) -> timedelta:
        """Validity period applied to a freshly minted CA."""
        if self.ca_validity is None:
            return DEFAULT_CA_VALIDITY
        return self.ca_validity

    def validate(self) -> None:
        """Check the configuration before any cryptographic work.

        Raises:
            ConfigurationError: On any invalid combination of inputs
        """
        if (self.ca_certificate_path is None) != (self.ca_private_key_path is None):
            raise ConfigurationError(
                "must set both CA certificate and CA private key or neither"
            )

        if self.reuses_ca:
            if self.ca_validity is not None and self.ca_validity != timedelta(0):
                raise ConfigurationError(
                    "CA validity cannot be set when reusing an existing CA"
                )
        elif self.effective_ca_validity <= timedelta(0):
            raise ConfigurationError(
                f"CA validity must be positive, got {self.effective_ca_validity}"
            )
        elif self.effective_ca_validity > MAX_VALIDITY:
            raise ConfigurationError(
                f"CA validity {self.effective_ca_validity} exceeds the maximum of {MAX_VALIDITY}"
            )

        if self.leaf_validity <= timedelta(0):
            raise ConfigurationError(
                f"leaf validity must be positive, got {self.leaf_validity}"
            )
        if self.leaf_validity > MAX_VALIDITY:
            raise ConfigurationError(
                f"leaf validity {self.leaf_validity} exceeds the maximum of {MAX_VALIDITY}"
            )

        if not self.organization:
            raise ConfigurationError("organization must not be empty")

        for host in self.hosts:
            if not host:
                raise ConfigurationError("host entries must not be empty")
            if not host.isascii():
                raise ConfigurationError(
                    f"host {host!r} must be ASCII (use the IDNA form for international names)"
                )

        if (
            self.client_common_name is not None
            and len(self.client_common_name) > MAX_COMMON_NAME_LENGTH
        ):
            raise ConfigurationError(
                f"client common name longer than {MAX_COMMON_NAME_LENGTH} characters"
            )

"""CA manager for resolving the signing CA and issuing the certificate bundle."""

import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from .cert_utils import (
    KeyGenerator,
    RandomSource,
    deserialize_certificate,
    deserialize_private_key,
    ensure_ec_certificate,
    generate_private_key,
    get_certificate_serial_hex,
    is_certificate_authority,
)
from .certificate_builder import CertificateBuilder
from .config import IssuanceConfig
from .exceptions import ConfigurationError
from .models import CertificateBundle, IssuerIdentity, ResolvedCA, SelfSignedIdentity
from .signer import CertificateSigner

logger = logging.getLogger(__name__)

Reader = Callable[[Path], bytes]
Clock = Callable[[], datetime]


def read_bytes(path: Path) -> bytes:
    """Read CA material from the filesystem."""
    return Path(path).read_bytes()


def utc_now() -> datetime:
    return datetime.now(UTC)


class CAManager:
    """Certificate Authority manager for one issuance run."""

    def __init__(
        self,
        config: IssuanceConfig,
        random_source: RandomSource = os.urandom,
        key_generator: KeyGenerator = generate_private_key,
        reader: Reader = read_bytes,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize CA manager with configuration and collaborators.

        Args:
            config: Issuance configuration
            random_source: Cryptographically secure source of serial number bytes
            key_generator: Callable producing a fresh EC private key
            reader: Callable loading CA material, used only when reusing a CA
            clock: Callable returning the current time, naive values are taken
                as local time
        """
        self.config = config
        self.reader = reader
        self.clock = clock
        self.builder = CertificateBuilder(random_source)
        self.signer = CertificateSigner(config.key_encoding, key_generator)

    def resolve_ca(self, now: datetime) -> ResolvedCA:
        """Mint a new self-signed CA or load the one supplied on disk.

        Args:
            now: Issuance time. A naive datetime is taken as local time.

        Returns:
            ResolvedCA with the identity that signs the leaves. issued is set
            only when a new CA was minted and needs persisting.

        Raises:
            ConfigurationError: On invalid configuration or an unusable CA
            MalformedCertificate: If the CA certificate cannot be decoded
            MalformedPrivateKey: If the CA private key cannot be decoded
            UnsupportedKeyType: If the CA key is not an elliptic curve key
        """
        self.config.validate()
        now = now.astimezone(UTC)

        if self.config.reuses_ca:
            return self._load_ca(now)

        ca_key = self.signer.key_generator()
        descriptor = self.builder.build_ca_descriptor(self.config, now)
        issued = self.signer.issue(descriptor, SelfSignedIdentity(ca_key))
        logger.info("Minted CA certificate, serial %s", get_certificate_serial_hex(issued.certificate))
        return ResolvedCA(
            identity=IssuerIdentity(private_key=ca_key, certificate=issued.certificate),
            issued=issued,
        )

    def _load_ca(self, now: datetime) -> ResolvedCA:
        cert_path = self.config.ca_certificate_path
        key_path = self.config.ca_private_key_path
        if cert_path is None or key_path is None:
            raise ConfigurationError("must set both CA certificate and CA private key or neither")

        ca_cert = deserialize_certificate(self.reader(cert_path))
        ensure_ec_certificate(ca_cert)
        ca_key = deserialize_private_key(self.reader(key_path))

        if not ca_cert.not_valid_before_utc <= now < ca_cert.not_valid_after_utc:
            raise ConfigurationError(
                f"CA certificate {cert_path} is not valid at {now.isoformat()} "
                f"(valid {ca_cert.not_valid_before_utc.isoformat()} "
                f"to {ca_cert.not_valid_after_utc.isoformat()})"
            )
        if not is_certificate_authority(ca_cert):
            logger.warning("CA certificate %s is not marked as a certificate authority", cert_path)
        if now + self.config.leaf_validity > ca_cert.not_valid_after_utc:
            logger.warning(
                "Leaf validity extends past CA expiry %s", ca_cert.not_valid_after_utc.isoformat()
            )

        logger.info(
            "Loaded CA certificate %s, serial %s", cert_path, get_certificate_serial_hex(ca_cert)
        )
        return ResolvedCA(
            identity=IssuerIdentity(private_key=ca_key, certificate=ca_cert),
            issued=None,
        )

    def issue_bundle(self) -> CertificateBundle:
        """Resolve the CA and issue the server leaf and client certificates.

        Any failure propagates; no partial bundle is returned.

        Returns:
            CertificateBundle; ca is None when the CA was loaded from disk
        """
        now = self.clock().astimezone(UTC)
        resolved = self.resolve_ca(now)

        server, client = self.builder.build_leaf_descriptors(self.config, now)
        leaf_cert = self.signer.issue(server, resolved.identity)
        client_cert = self.signer.issue(client, resolved.identity)

        logger.info(
            "Issued leaf %s and client %s",
            get_certificate_serial_hex(leaf_cert.certificate),
            get_certificate_serial_hex(client_cert.certificate),
        )
        return CertificateBundle(ca=resolved.issued, leaf=leaf_cert, client=client_cert)


def issue_pki_bundle(
    config: IssuanceConfig,
    random_source: RandomSource = os.urandom,
    key_generator: KeyGenerator = generate_private_key,
    reader: Reader = read_bytes,
    clock: Clock = utc_now,
) -> CertificateBundle:
    """Issue a CA (or reuse one) plus a server leaf and a client certificate."""
    return CAManager(
        config,
        random_source=random_source,
        key_generator=key_generator,
        reader=reader,
        clock=clock,
    ).issue_bundle()

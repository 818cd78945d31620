"""Signer/serializer turning descriptors into signed certificate artifacts."""

import logging

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey

from .cert_utils import (
    KeyGenerator,
    ensure_ec_certificate,
    generate_private_key,
    public_keys_match,
    serialize_certificate,
    serialize_private_key,
)
from .config import KeyEncoding
from .exceptions import SerializationError, SigningError
from .models import (
    CertificateDescriptor,
    IssuedCertificate,
    IssuerIdentity,
    PemBlock,
    SelfSignedIdentity,
    SigningIdentity,
)

logger = logging.getLogger(__name__)


def signature_hash(key: EllipticCurvePrivateKey) -> hashes.HashAlgorithm:
    """Pick the digest matching the signer's curve strength."""
    if key.curve.key_size <= 256:
        return hashes.SHA256()
    if key.curve.key_size <= 384:
        return hashes.SHA384()
    return hashes.SHA512()


class CertificateSigner:
    """Signs certificate descriptors and serializes the results."""

    def __init__(
        self,
        key_encoding: KeyEncoding = KeyEncoding.SEC1,
        key_generator: KeyGenerator = generate_private_key,
    ) -> None:
        """Initialize signer.

        Args:
            key_encoding: Private key serialization convention
            key_generator: Callable producing a fresh EC private key
        """
        self.key_encoding = key_encoding
        self.key_generator = key_generator

    def issue(
        self,
        descriptor: CertificateDescriptor,
        identity: SigningIdentity,
        subject_key: EllipticCurvePrivateKey | None = None,
    ) -> IssuedCertificate:
        """Sign descriptor and serialize the certificate and its key.

        A SelfSignedIdentity makes the descriptor its own parent; the subject
        key is then the identity's key. An IssuerIdentity makes the identity's
        certificate the parent, and a fresh subject key is generated unless
        one is supplied.

        Args:
            descriptor: Unsigned certificate description
            identity: Who signs the certificate
            subject_key: Subject private key, generated when omitted

        Returns:
            IssuedCertificate with PEM blocks and rendered bytes

        Raises:
            SigningError: On signer/subject mismatch or signature failure
            SerializationError: If certificate or key encoding fails
        """
        if isinstance(identity, SelfSignedIdentity):
            if subject_key is not None and not public_keys_match(
                subject_key.public_key(), identity.private_key.public_key()
            ):
                raise SigningError("signer must match subject for self-signed certificates")
            subject_key = identity.private_key
            issuer_name = descriptor.subject.to_x509_name()
            parent_serial = descriptor.serial_number
            authority_key_id = None
        else:
            self._check_issuer(descriptor, identity)
            if subject_key is None:
                subject_key = self.key_generator()
            issuer_name = identity.certificate.subject
            parent_serial = identity.certificate.serial_number
            authority_key_id = self._authority_key_identifier(identity)

        certificate = self._sign(descriptor, subject_key, identity, issuer_name, authority_key_id)
        logger.debug(
            "Signed certificate serial=%x parent=%x ca=%s",
            certificate.serial_number,
            parent_serial,
            descriptor.is_authority,
        )
        return self._serialize(certificate, subject_key, parent_serial)

    @staticmethod
    def _check_issuer(descriptor: CertificateDescriptor, identity: IssuerIdentity) -> None:
        if descriptor.is_authority:
            raise SigningError("only self-signed CA certificates are supported, not intermediates")
        issuer_public_key = ensure_ec_certificate(identity.certificate)
        if not public_keys_match(issuer_public_key, identity.private_key.public_key()):
            raise SigningError("CA private key does not match CA certificate")

    @staticmethod
    def _authority_key_identifier(identity: IssuerIdentity) -> x509.AuthorityKeyIdentifier:
        try:
            ski = identity.certificate.extensions.get_extension_for_class(
                x509.SubjectKeyIdentifier
            )
        except x509.ExtensionNotFound:
            return x509.AuthorityKeyIdentifier.from_issuer_public_key(
                identity.private_key.public_key()
            )
        return x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)

    @staticmethod
    def _sign(
        descriptor: CertificateDescriptor,
        subject_key: EllipticCurvePrivateKey,
        identity: SigningIdentity,
        issuer_name: x509.Name,
        authority_key_id: x509.AuthorityKeyIdentifier | None,
    ) -> x509.Certificate:
        try:
            builder = (
                x509.CertificateBuilder()
                .subject_name(descriptor.subject.to_x509_name())
                .issuer_name(issuer_name)
                .public_key(subject_key.public_key())
                .serial_number(descriptor.serial_number)
                .not_valid_before(descriptor.not_before)
                .not_valid_after(descriptor.not_after)
                .add_extension(
                    x509.BasicConstraints(ca=descriptor.is_authority, path_length=None),
                    critical=True,
                )
                .add_extension(descriptor.key_usage, critical=True)
                .add_extension(
                    x509.ExtendedKeyUsage(list(descriptor.extended_key_usage)),
                    critical=False,
                )
                .add_extension(
                    x509.SubjectKeyIdentifier.from_public_key(subject_key.public_key()),
                    critical=False,
                )
            )

            if descriptor.dns_names or descriptor.ip_addresses:
                names: list[x509.GeneralName] = [x509.DNSName(n) for n in descriptor.dns_names]
                names.extend(x509.IPAddress(ip) for ip in descriptor.ip_addresses)
                builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

            if authority_key_id is not None:
                builder = builder.add_extension(authority_key_id, critical=False)

            return builder.sign(identity.private_key, signature_hash(identity.private_key))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningError(f"Failed to create certificate: {e}") from e

    def _serialize(
        self,
        certificate: x509.Certificate,
        private_key: EllipticCurvePrivateKey,
        parent_serial: int,
    ) -> IssuedCertificate:
        try:
            certificate_block = PemBlock(
                type="CERTIFICATE", der=serialize_certificate(certificate, pem=False)
            )
            certificate_pem = serialize_certificate(certificate)
        except ValueError as e:
            raise SerializationError(f"Failed to encode certificate: {e}") from e

        try:
            private_key_block = PemBlock(
                type=self.key_encoding.pem_type,
                der=serialize_private_key(private_key, self.key_encoding, pem=False),
            )
            private_key_pem = serialize_private_key(private_key, self.key_encoding)
        except (ValueError, TypeError) as e:
            raise SerializationError(f"Unable to marshal EC private key: {e}") from e

        return IssuedCertificate(
            certificate=certificate,
            private_key=private_key,
            certificate_block=certificate_block,
            private_key_block=private_key_block,
            certificate_pem=certificate_pem,
            private_key_pem=private_key_pem,
            parent_serial_number=parent_serial,
        )

"""Certificate builder for CA, server leaf and client descriptors."""

import os
from datetime import datetime

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID

from .cert_utils import RandomSource, generate_serial_number, partition_hosts
from .config import DistinguishedName, IssuanceConfig, KeyUsageProfile
from .models import CertificateDescriptor


def build_key_usage(
    profile: KeyUsageProfile, is_authority: bool = False
) -> x509.KeyUsage:
    """Key usage for the given profile; authorities also get key_cert_sign."""
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=profile.key_encipherment,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=is_authority,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False,
    )


class CertificateBuilder:
    """Builds unsigned certificate descriptors for the CA and its leaves."""

    def __init__(self, random_source: RandomSource = os.urandom) -> None:
        """Initialize builder with the source used for serial numbers.

        Args:
            random_source: Callable returning n cryptographically random bytes
        """
        self.random_source = random_source

    def build_ca_descriptor(self, config: IssuanceConfig, now: datetime) -> CertificateDescriptor:
        """Build descriptor for a freshly minted, self-signed CA.

        The CA carries no subject alternative names and may authenticate both
        servers and clients.

        Args:
            config: Issuance configuration (organization, CA validity, profile)
            now: Issuance time, becomes notBefore

        Returns:
            CertificateDescriptor with is_authority=True
        """
        not_before = now.replace(microsecond=0)
        return CertificateDescriptor(
            is_authority=True,
            serial_number=generate_serial_number(self.random_source),
            subject=DistinguishedName(organization=config.organization),
            not_before=not_before,
            not_after=not_before + config.effective_ca_validity,
            key_usage=build_key_usage(config.key_usage_profile, is_authority=True),
            extended_key_usage=(
                ExtendedKeyUsageOID.SERVER_AUTH,
                ExtendedKeyUsageOID.CLIENT_AUTH,
            ),
        )

    def build_leaf_descriptors(
        self, config: IssuanceConfig, now: datetime
    ) -> tuple[CertificateDescriptor, CertificateDescriptor]:
        """Build the server leaf and client descriptors.

        Both share the validity window and the DNS/IP split of config.hosts,
        so the server and client certificates present identical SAN sets.
        Each gets an independent serial number, also embedded in the subject.

        Args:
            config: Issuance configuration
            now: Issuance time, becomes notBefore

        Returns:
            Tuple of (server_descriptor, client_descriptor)
        """
        not_before = now.replace(microsecond=0)
        not_after = not_before + config.leaf_validity
        dns_names, ip_addresses = partition_hosts(config.hosts)
        key_usage = build_key_usage(config.key_usage_profile)

        server_serial = generate_serial_number(self.random_source)
        server = CertificateDescriptor(
            is_authority=False,
            serial_number=server_serial,
            subject=DistinguishedName(
                organization=config.organization,
                serial_number=str(server_serial),
            ),
            not_before=not_before,
            not_after=not_after,
            key_usage=key_usage,
            extended_key_usage=(ExtendedKeyUsageOID.SERVER_AUTH,),
            dns_names=dns_names,
            ip_addresses=ip_addresses,
        )

        client_serial = generate_serial_number(self.random_source)
        client = CertificateDescriptor(
            is_authority=False,
            serial_number=client_serial,
            subject=DistinguishedName(
                organization=config.organization,
                common_name=config.client_common_name or None,
                serial_number=str(client_serial),
            ),
            not_before=not_before,
            not_after=not_after,
            key_usage=key_usage,
            extended_key_usage=(ExtendedKeyUsageOID.CLIENT_AUTH,),
            dns_names=dns_names,
            ip_addresses=ip_addresses,
        )

        return server, client

"""Tests for writing issued certificates to disk."""

import os
import ssl
import stat
from pathlib import Path

import pytest

from generate_cert.lib.ca_manager import issue_pki_bundle
from generate_cert.lib.cert_writer import write_bundle, write_certificate
from generate_cert.lib.config import IssuanceConfig
from generate_cert.lib.models import CertificateBundle


def file_mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestWriteCertificate:
    """Tests for write_certificate()."""

    def test_writes_pem_and_key(self, fresh_bundle: CertificateBundle, temp_output_dir: Path) -> None:
        cert_path, key_path = write_certificate(fresh_bundle.leaf, "leaf", temp_output_dir)

        assert cert_path == temp_output_dir / "leaf.pem"
        assert key_path == temp_output_dir / "leaf.key"
        assert cert_path.read_bytes() == fresh_bundle.leaf.certificate_pem
        assert key_path.read_bytes() == fresh_bundle.leaf.private_key_pem

    def test_private_key_owner_only(self, fresh_bundle: CertificateBundle, temp_output_dir: Path) -> None:
        """Private keys are never group or world readable."""
        _, key_path = write_certificate(fresh_bundle.leaf, "leaf", temp_output_dir)
        assert file_mode(key_path) == 0o600

    def test_existing_key_file_permissions_tightened(
        self, fresh_bundle: CertificateBundle, temp_output_dir: Path
    ) -> None:
        key_path = temp_output_dir / "leaf.key"
        key_path.write_bytes(b"old")
        os.chmod(key_path, 0o644)

        write_certificate(fresh_bundle.leaf, "leaf", temp_output_dir)

        assert file_mode(key_path) == 0o600
        assert key_path.read_bytes() == fresh_bundle.leaf.private_key_pem

    def test_certificate_mode_respects_umask(
        self, fresh_bundle: CertificateBundle, temp_output_dir: Path
    ) -> None:
        old_umask = os.umask(0o022)
        try:
            cert_path, _ = write_certificate(fresh_bundle.leaf, "leaf", temp_output_dir)
        finally:
            os.umask(old_umask)
        assert file_mode(cert_path) == 0o644


class TestWriteBundle:
    """Tests for write_bundle()."""

    def test_fresh_bundle_writes_root(self, fresh_bundle: CertificateBundle, temp_output_dir: Path) -> None:
        out_dir = temp_output_dir / "out"
        written = write_bundle(fresh_bundle, out_dir)

        assert set(written) == {"root", "leaf", "client"}
        for name in ("root", "leaf", "client"):
            assert (out_dir / f"{name}.pem").exists()
            assert (out_dir / f"{name}.key").exists()

    def test_reused_ca_skips_root(self, reuse_config: IssuanceConfig, temp_output_dir: Path) -> None:
        bundle = issue_pki_bundle(reuse_config)
        out_dir = temp_output_dir / "out"
        written = write_bundle(bundle, out_dir)

        assert set(written) == {"leaf", "client"}
        assert not (out_dir / "root.pem").exists()
        assert not (out_dir / "root.key").exists()

    @pytest.mark.parametrize("role", ["leaf", "client"])
    def test_leaf_files_load_as_key_pair(
        self, fresh_bundle: CertificateBundle, temp_output_dir: Path, role: str
    ) -> None:
        """Written certificate and key can be loaded together by ssl."""
        write_bundle(fresh_bundle, temp_output_dir)
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(temp_output_dir / f"{role}.pem", temp_output_dir / f"{role}.key")

"""JSON logging for generate-cert.

Every record carries the base fields below. Records about an issued
certificate pass its metadata (see ``extract_certificate_metadata``) and the
written file paths as ``extra``, and those keys are kept as top-level JSON
fields. Anything else a LogRecord carries is dropped.
"""

import logging
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from .models import CertificateMetadata

BASE_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})
CERTIFICATE_FIELDS = (
    CertificateMetadata.__required_keys__
    | CertificateMetadata.__optional_keys__
    | {"certPath", "keyPath"}
)


class CertificateJsonFormatter(JsonFormatter):
    """JSON formatter limited to the base fields and certificate metadata."""

    allowed_fields = BASE_FIELDS | CERTIFICATE_FIELDS

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in self.allowed_fields]:
            del log_record[key]


def certificate_log_extra(metadata: CertificateMetadata, cert_path: Path, key_path: Path) -> dict:
    """Build the ``extra`` mapping for a record about a written certificate."""
    return {**metadata, "certPath": str(cert_path), "keyPath": str(key_path)}


def _setup_logger() -> logging.Logger:
    """Configure the generate_cert logger once.

    Library modules log under generate_cert.lib.*, so their records reach
    this logger's handler.
    """
    logger = logging.getLogger("generate_cert")

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        CertificateJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


LOGGER = _setup_logger()

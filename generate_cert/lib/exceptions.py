"""Exceptions raised by the certificate issuance engine."""


class GenerateCertError(Exception):
    """Base class for all issuance failures."""

    def __init__(self, message: str = "Certificate issuance failed"):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(GenerateCertError):
    """Raised when the caller supplies an invalid combination of inputs."""


class RandomnessFailure(GenerateCertError):
    """Raised when the random source is unavailable or returns unusable bytes."""

    def __init__(self, message: str = "Random source failed to produce serial number bytes"):
        super().__init__(message)


class MalformedCertificate(GenerateCertError):
    """Raised when existing CA certificate material cannot be decoded."""

    def __init__(self, message: str = "Could not decode CA certificate"):
        super().__init__(message)


class MalformedPrivateKey(GenerateCertError):
    """Raised when existing CA private key material cannot be decoded."""

    def __init__(self, message: str = "Could not decode CA private key"):
        super().__init__(message)


class UnsupportedKeyType(GenerateCertError):
    """Raised when CA material uses a key algorithm other than elliptic curve."""

    def __init__(self, key_type: str, message: str | None = None):
        self.key_type = key_type
        super().__init__(message or f"Unsupported CA key type {key_type}, expected elliptic curve key")


class SigningError(GenerateCertError):
    """Raised when the certificate creation step fails."""


class SerializationError(GenerateCertError):
    """Raised when a signed certificate or its private key cannot be encoded."""

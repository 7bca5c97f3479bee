# --------------------------
# Exceptions
# --------------------------
class SpatialCipherError(Exception):
    """Base exception for spatial cipher operations."""
    pass


class MalformedPayload(SpatialCipherError, ValueError):
    """Raised when a sealed payload is too short to contain a nonce."""
    pass


class AuthenticationFailed(SpatialCipherError, ValueError):
    """Raised when the authentication tag does not verify."""
    pass


class ParameterFormatError(SpatialCipherError, ValueError):
    """Raised when a serialized parameter record is invalid."""
    pass


class CipherModeError(SpatialCipherError):
    """Raised for unknown modes or operations the engine's mode does not support."""
    pass

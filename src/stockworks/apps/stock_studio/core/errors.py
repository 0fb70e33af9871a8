"""Exception types raised by the Stock Studio core."""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Raised when a generation request cannot produce a usable result."""


class TransportError(GenerationError):
    """The remote call itself failed (network, auth, rate limit)."""


class SchemaError(GenerationError):
    """A response arrived but its structured payload is unusable."""


class CredentialUnavailable(RuntimeError):
    """No usable credential for the remote generation service."""


class QueueStateError(RuntimeError):
    """Raised when a queue operation is not allowed in the current phase."""


NO_IMAGE_DATA_MESSAGE = "No image data returned"

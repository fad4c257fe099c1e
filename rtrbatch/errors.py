"""
Exceptions raised by the rtrbatch client and executor.
"""
from typing import Optional


class RTRError(RuntimeError):
    """Base class for all rtrbatch errors."""


class HTTPStatusError(RTRError):
    """The remote API answered with an unexpected status code."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(f"{message}: {body}" if body else message)
        self.status_code = status_code
        self.body = body


class AuthenticationFailed(HTTPStatusError):
    """Exchanging client credentials for a bearer token failed."""


class DiscoveryFailed(HTTPStatusError):
    """The device query did not return a target list."""


DiscoveryError = DiscoveryFailed


class SessionInitError(HTTPStatusError):
    """A batch session could not be initialized."""


class TransportError(RTRError):
    """The HTTP exchange itself could not complete."""


class EnvelopeDecodeError(RTRError):
    """A command result body could not be decoded into a JSON object."""

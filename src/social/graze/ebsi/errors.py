"""Resolver error taxonomy.

Resolution fails fast on the first InvalidDidError, UnknownNetworkError or FetchError. DecodeError
is raised for malformed registry payloads and is handled where the payload is read, so a single bad
log entry never fails an otherwise resolvable document.
"""

from typing import Optional


class ResolverError(Exception):
    """Base class for all did:ebsi resolution errors."""


class InvalidDidError(ResolverError):
    """The identifier is not a well formed did:ebsi DID."""

    def __init__(self, did: str) -> None:
        super().__init__(f"Not a valid ebsi DID: {did}")
        self.did = did


class UnknownNetworkError(ResolverError):
    """The DID names a network that has no configuration."""

    def __init__(self, network: str) -> None:
        super().__init__(f"No conf for networkId: {network}")
        self.network = network


class FetchError(ResolverError):
    """A registry round-trip failed.

    Covers transport failures, timeouts, non-200 responses and JSON-RPC error objects.
    """

    def __init__(self, message: str, method: Optional[str] = None) -> None:
        super().__init__(message)
        self.method = method


class DecodeError(ResolverError):
    """A registry payload could not be decoded."""

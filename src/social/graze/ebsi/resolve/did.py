"""did:ebsi parsing and resolution.

A did:ebsi DID is did:ebsi:[<network>:]<address>. Without a network segment the DID belongs to the
default network of the configured NetworkTable.
"""

import logging
import re
from typing import Dict, Final, Mapping, Optional, Sequence
from aiohttp import ClientSession, ClientTimeout
from pydantic import BaseModel

from social.graze.ebsi.app.metrics import MetricsClient, NoOpMetricsClient
from social.graze.ebsi.errors import InvalidDidError, UnknownNetworkError
from social.graze.ebsi.registry.contract import RegistryBinding, RegistryContract
from social.graze.ebsi.registry.networks import DEFAULT_NETWORK, NetworkTable
from social.graze.ebsi.registry.rpc import (
    DebugMiddleware,
    JsonRpcClient,
    MetricsMiddleware,
    RpcMiddlewareBase,
)
from social.graze.ebsi.resolve.document import DidDocument, wrap_did_document
from social.graze.ebsi.resolve.walker import change_log

logger = logging.getLogger(__name__)

DID_METHOD: Final = "ebsi"

DID_PATTERN: Final = re.compile(
    r"did:ebsi:(?:(?P<network>.+):)?(?P<address>0x[0-9a-fA-F]{40})"
)


class ParsedDid(BaseModel):
    """Parsed did:ebsi DID. network is None for the default network."""

    did: str
    network: Optional[str] = None
    address: str


def parse_did(did: str) -> ParsedDid:
    """
    Split a did:ebsi DID into its network and address.

    Args:
        did: DID string

    Returns:
        ParsedDid

    Raises:
        InvalidDidError: If the DID is not did:ebsi or the address is missing or malformed
    """
    match = DID_PATTERN.fullmatch(did)
    if match is None:
        raise InvalidDidError(did)
    return ParsedDid(did=did, network=match.group("network"), address=match.group("address"))


class EbsiResolver:
    """
    Resolves did:ebsi DIDs against per-network registry bindings.

    The bindings are fixed at construction and shared by every resolution; each resolution keeps its
    own state, so one resolver can serve concurrent callers.
    """

    def __init__(
        self,
        bindings: Mapping[str, RegistryBinding],
        default_network: str = DEFAULT_NETWORK,
        metrics_client: Optional[MetricsClient] = None,
    ) -> None:
        self._bindings: Dict[str, RegistryBinding] = dict(bindings)
        self._default_network = default_network
        self._metrics_client = metrics_client or NoOpMetricsClient()

    def binding_for(self, network: Optional[str]) -> RegistryBinding:
        name = self._default_network if network is None else network
        binding = self._bindings.get(name)
        if binding is None:
            raise UnknownNetworkError(name)
        return binding

    async def resolve(self, did: str, now: Optional[int] = None) -> DidDocument:
        """
        Resolve a DID to its current document.

        Args:
            did: did:ebsi DID
            now: Resolution time in epoch seconds, defaults to the current time

        Returns:
            DidDocument

        Raises:
            InvalidDidError: If the DID is malformed
            UnknownNetworkError: If the DID names an unconfigured network
            FetchError: If any registry read fails
        """
        outcome = "error"
        try:
            parsed = parse_did(did)
            binding = self.binding_for(parsed.network)

            owner = parsed.address
            last_changed = await binding.changed(parsed.address)
            if last_changed:
                owner = await binding.identity_owner(parsed.address)

            history = await change_log(binding.events_at, parsed.address, last_changed)
            logger.debug("Resolved %d events for %s", len(history), did)

            document = wrap_did_document(did, owner, history, now)
            outcome = "ok"
            return document
        finally:
            self._metrics_client.increment(
                "ebsi.resolve.count", 1, tag_dict={"outcome": outcome}
            )


def build_resolver(
    session: ClientSession,
    networks: NetworkTable,
    metrics_client: Optional[MetricsClient] = None,
    timeout: Optional[ClientTimeout] = None,
    debug: bool = False,
) -> EbsiResolver:
    """
    Create an EbsiResolver with one RegistryContract per configured network.

    Args:
        session: Shared aiohttp session, owned by the caller
        networks: Network table
        metrics_client: Records RPC and resolution metrics
        timeout: Per-call timeout applied to every JSON-RPC request
        debug: Log every JSON-RPC request and response

    Returns:
        EbsiResolver
    """
    metrics_client = metrics_client or NoOpMetricsClient()

    bindings: Dict[str, RegistryBinding] = {}
    for network in networks.networks:
        middleware: Sequence[RpcMiddlewareBase] = [
            MetricsMiddleware(metrics_client, network.name)
        ]
        if debug:
            middleware = [*middleware, DebugMiddleware()]
        rpc = JsonRpcClient(session, network.rpc_url, middleware=middleware, timeout=timeout)
        bindings[network.name] = RegistryContract(rpc, network.registry)

    return EbsiResolver(bindings, networks.default_network, metrics_client)

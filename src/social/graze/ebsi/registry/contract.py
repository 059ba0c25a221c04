"""EBSI DID registry contract binding.

RegistryContract provides the three reads resolution needs. Anything satisfying RegistryBinding can
stand in for it, which is how the resolver is exercised without a node.
"""

import logging
from typing import List, Optional, Protocol
import sentry_sdk

from social.graze.ebsi.errors import DecodeError, FetchError
from social.graze.ebsi.registry.abi import (
    CHANGED_SELECTOR,
    IDENTITY_OWNER_SELECTOR,
    address_topic,
    decode_address_result,
    decode_log,
    decode_uint_result,
    encode_address_call,
    to_quantity,
)
from social.graze.ebsi.registry.events import AnyRegistryEvent
from social.graze.ebsi.registry.rpc import JsonRpcClient

logger = logging.getLogger(__name__)


class RegistryBinding(Protocol):
    async def changed(self, identity: str) -> Optional[int]: ...

    async def identity_owner(self, identity: str) -> str: ...

    async def events_at(self, identity: str, block: int) -> List[AnyRegistryEvent]: ...


class RegistryContract:
    """Reads from one deployed registry contract through a JSON-RPC client."""

    def __init__(self, rpc: JsonRpcClient, registry_address: str) -> None:
        self.rpc = rpc
        self.registry_address = registry_address

    async def _call(self, selector: str, identity: str) -> str:
        result = await self.rpc.call(
            "eth_call",
            {"to": self.registry_address, "data": encode_address_call(selector, identity)},
            "latest",
        )
        if not isinstance(result, str):
            raise FetchError(f"eth_call returned {result!r}", "eth_call")
        return result

    async def changed(self, identity: str) -> Optional[int]:
        """Block number of the identity's most recent change, None if it never changed."""
        result = await self._call(CHANGED_SELECTOR, identity)
        try:
            block = decode_uint_result(result)
        except DecodeError as e:
            raise FetchError(f"changed({identity}) returned {result!r}", "eth_call") from e
        return block or None

    async def identity_owner(self, identity: str) -> str:
        result = await self._call(IDENTITY_OWNER_SELECTOR, identity)
        try:
            return decode_address_result(result)
        except DecodeError as e:
            raise FetchError(
                f"identityOwner({identity}) returned {result!r}", "eth_call"
            ) from e

    async def events_at(self, identity: str, block: int) -> List[AnyRegistryEvent]:
        """
        Fetch and decode every registry event for identity recorded in exactly one block.

        Logs that cannot be decoded are skipped and reported; the remaining events keep the order the
        node returned them in.

        Args:
            identity: Identity address
            block: Block number

        Returns:
            Decoded events, in log order
        """
        logs = await self.rpc.call(
            "eth_getLogs",
            {
                "address": self.registry_address,
                "topics": [None, address_topic(identity)],
                "fromBlock": to_quantity(block),
                "toBlock": to_quantity(block),
            },
        )
        if not isinstance(logs, list):
            raise FetchError(f"eth_getLogs returned {logs!r}", "eth_getLogs")

        events: List[AnyRegistryEvent] = []
        for log in logs:
            try:
                events.append(decode_log(log))
            except DecodeError as e:
                logger.warning("Skipping undecodable log in block %s: %s", block, e)
                sentry_sdk.capture_exception(e)
        return events

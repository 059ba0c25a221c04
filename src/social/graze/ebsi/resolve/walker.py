"""Registry change log traversal."""

import logging
from typing import Awaitable, Callable, List, Optional

from social.graze.ebsi.registry.events import AnyRegistryEvent

logger = logging.getLogger(__name__)

FetchEventsFunc = Callable[[str, int], Awaitable[List[AnyRegistryEvent]]]


async def change_log(
    fetch_events: FetchEventsFunc, identity: str, last_changed: Optional[int]
) -> List[AnyRegistryEvent]:
    """Recover an identity's event history by following previous_change pointers backwards.

    Each block is fetched once. Its events are placed, together and in the order fetched, in front of
    the events already collected, so the result runs oldest to newest. The next block is the smallest
    previous_change in the batch that is strictly below the current block, which guarantees the walk
    ends.

    Args:
        fetch_events: Returns the identity's events recorded in exactly one block
        identity: Identity address
        last_changed: Block of the most recent change, None or 0 if the identity never changed

    Returns:
        Event history, oldest first

    Raises:
        FetchError: If any fetch fails. No partial history is returned.
    """
    history: List[AnyRegistryEvent] = []
    pointer = last_changed
    while pointer:
        batch = await fetch_events(identity, pointer)
        logger.debug("identity %s block %s: %d events", identity, pointer, len(batch))
        for event in batch:
            if event.block_number != pointer:
                logger.debug(
                    "%s for %s reported block %s while reading block %s",
                    event.event_name,
                    identity,
                    event.block_number,
                    pointer,
                )
        history[0:0] = batch

        earlier = [
            event.previous_change for event in batch if event.previous_change < pointer
        ]
        pointer = min(earlier) if earlier else None
    return history

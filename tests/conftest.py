"""
Shared test configuration and fixtures for resolver tests.

Provides registry doubles and a resolver wired to them.
"""

import pytest

from social.graze.ebsi.app.metrics import NoOpMetricsClient
from social.graze.ebsi.resolve.did import EbsiResolver
from tests.test_helpers import (
    OWNER,
    InMemoryRegistry,
    attribute_event,
    delegate_event,
)


@pytest.fixture
def metrics_client():
    """Metrics client that discards everything."""
    return NoOpMetricsClient()


@pytest.fixture
def registry():
    """Registry with a three block history: owner key, a delegate and a service."""
    return InMemoryRegistry(
        blocks={
            10: [delegate_event("sigAuth", previous_change=0, block_number=10)],
            20: [
                attribute_event(
                    "did/svc/HubService",
                    b"https://hubs.example.com",
                    previous_change=10,
                    block_number=20,
                )
            ],
        },
        owner=OWNER,
        last_changed=20,
    )


@pytest.fixture
def resolver(registry, metrics_client):
    """Resolver with the registry fixture bound to the default network."""
    return EbsiResolver({"ebsi": registry}, metrics_client=metrics_client)

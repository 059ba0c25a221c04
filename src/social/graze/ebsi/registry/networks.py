"""Network table.

The table is built once at start-up and never mutated afterwards. build_resolver creates one registry
binding per entry.
"""

from typing import Final, Iterable, Tuple
from pydantic import BaseModel, ConfigDict

DEFAULT_NETWORK: Final = "ebsi"
DEFAULT_RPC_URL: Final = "https://api.ebsi.tech.ec.europa.eu/blockchain/besu"
DEFAULT_REGISTRY: Final = "0x2E1f232a9439C3D459FcEca0BeEf13acc8259Dd8"


class NetworkConfig(BaseModel):
    """A named network: where to send JSON-RPC calls and which registry contract to read."""

    model_config = ConfigDict(frozen=True)

    name: str
    rpc_url: str = DEFAULT_RPC_URL
    registry: str = DEFAULT_REGISTRY


class NetworkTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    networks: Tuple[NetworkConfig, ...]
    default_network: str = DEFAULT_NETWORK

    @classmethod
    def build(
        cls,
        default: NetworkConfig,
        extra: Iterable[NetworkConfig] = (),
    ) -> "NetworkTable":
        """Build a table from the default network and any extra networks.

        A later network with the same name replaces an earlier one.
        """
        by_name = {default.name: default}
        for network in extra:
            by_name[network.name] = network
        return cls(networks=tuple(by_name.values()), default_network=default.name)

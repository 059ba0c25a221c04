"""
Unit tests for social.graze.ebsi.app.config

Settings are built from keyword arguments and from the environment through monkeypatch.
"""

import json

import pytest
from pydantic import ValidationError

from social.graze.ebsi.app.config import Settings
from social.graze.ebsi.registry.networks import (
    DEFAULT_REGISTRY,
    DEFAULT_RPC_URL,
    NetworkConfig,
)

TESTNET = {
    "name": "testnet",
    "rpc_url": "https://testnet.example.com/besu",
    "registry": "0x00000000000000000000000000000000000000aa",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["NETWORKS", "RPC_URL", "REGISTRY", "PORT", "DEBUG"]:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self):
        """Test settings defaults point at the EBSI pilot registry."""
        settings = Settings()

        assert settings.http_port == 5200
        assert settings.rpc_url == DEFAULT_RPC_URL
        assert settings.registry == DEFAULT_REGISTRY
        assert settings.networks == []
        assert settings.metrics_backend == "none"

    def test_networks_from_list(self):
        """Test networks given as a list of mappings."""
        settings = Settings(networks=[TESTNET])
        assert settings.networks == [NetworkConfig(**TESTNET)]

    def test_networks_from_json_string(self):
        """Test networks given as a JSON string."""
        settings = Settings(networks=json.dumps([TESTNET]))
        assert settings.networks[0].name == "testnet"

    def test_networks_from_file(self, tmp_path):
        """Test networks loaded from a JSON file path."""
        path = tmp_path / "networks.json"
        path.write_text(json.dumps([TESTNET]))

        settings = Settings(networks=str(path))

        assert settings.networks[0].registry == TESTNET["registry"]

    def test_networks_from_environment(self, monkeypatch):
        """Test networks and port read from the environment."""
        monkeypatch.setenv("NETWORKS", json.dumps([TESTNET]))
        monkeypatch.setenv("PORT", "8080")

        settings = Settings()

        assert settings.http_port == 8080
        assert settings.networks[0].rpc_url == TESTNET["rpc_url"]

    def test_empty_networks_string(self):
        """Test an empty networks string gives no extra networks."""
        assert Settings(networks="").networks == []

    def test_invalid_networks(self):
        """Test a non-list networks value is rejected."""
        with pytest.raises(ValidationError):
            Settings(networks=42)


class TestNetworkTable:
    """Test suite for Settings.network_table."""

    def test_default_only(self):
        """Test the table holds only the default network when none are configured."""
        table = Settings(rpc_url="https://node.example.com").network_table()

        assert table.default_network == "ebsi"
        assert [network.name for network in table.networks] == ["ebsi"]
        assert table.networks[0].rpc_url == "https://node.example.com"

    def test_extra_networks(self):
        """Test configured networks follow the default network."""
        table = Settings(networks=[TESTNET]).network_table()
        assert [network.name for network in table.networks] == ["ebsi", "testnet"]

    def test_extra_network_replaces_default(self):
        """Test a configured network named ebsi replaces the default."""
        override = {"name": "ebsi", "rpc_url": "https://other.example.com", "registry": "0x01"}

        table = Settings(networks=[override]).network_table()

        assert len(table.networks) == 1
        assert table.networks[0].rpc_url == "https://other.example.com"
        assert table.networks[0].registry == "0x01"

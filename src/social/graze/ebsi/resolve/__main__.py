from typing import List
import argparse
import aiohttp
import asyncio
import json
import logging

from social.graze.ebsi.app.cli import configure_logging
from social.graze.ebsi.errors import ResolverError
from social.graze.ebsi.registry.networks import (
    DEFAULT_NETWORK,
    DEFAULT_REGISTRY,
    DEFAULT_RPC_URL,
    NetworkConfig,
    NetworkTable,
)
from social.graze.ebsi.resolve.did import build_resolver

logger = logging.getLogger(__name__)


def load_networks(path: str) -> List[NetworkConfig]:
    with open(path) as fd:
        return [NetworkConfig.model_validate(network) for network in json.load(fd)]


async def realMain() -> int:
    parser = argparse.ArgumentParser(prog="resolve", description="Resolve did:ebsi DIDs")
    parser.add_argument("did", nargs="+", help="The DID(s) to resolve.")
    parser.add_argument(
        "--rpc-url",
        default=DEFAULT_RPC_URL,
        help="JSON-RPC endpoint of the default network.",
    )
    parser.add_argument(
        "--registry",
        default=DEFAULT_REGISTRY,
        help="DID registry contract address on the default network.",
    )
    parser.add_argument(
        "--networks",
        default=None,
        help="Path to a JSON file listing extra networks ({name, rpc_url, registry}).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log JSON-RPC traffic.")

    args = vars(parser.parse_args())

    configure_logging(args.get("verbose", False))

    extra = load_networks(args["networks"]) if args.get("networks") else []
    networks = NetworkTable.build(
        NetworkConfig(
            name=DEFAULT_NETWORK, rpc_url=args["rpc_url"], registry=args["registry"]
        ),
        extra,
    )

    dids: List[str] = args.get("did", [])

    failures = 0
    async with aiohttp.ClientSession() as session:
        resolver = build_resolver(session, networks, debug=args.get("verbose", False))
        for did in dids:
            try:
                document = await resolver.resolve(did)
                print(json.dumps(document.to_json(), indent=2))
            except ResolverError:
                failures += 1
                logger.exception("Exception resolving did %s", did)
    return 1 if failures else 0


def main() -> None:
    raise SystemExit(asyncio.run(realMain()))


if __name__ == "__main__":
    main()

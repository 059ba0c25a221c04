"""Registry contract ABI helpers.

Only the parts of the registry ABI the resolver reads are covered: the changed(address) and
identityOwner(address) views, and the three DID change events. Encoding and decoding go through
eth_abi; hashing goes through web3.
"""

from typing import Any, Dict, Final, List, Sequence, Tuple
from eth_abi import decode as abi_decode, encode as abi_encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from social.graze.ebsi.errors import DecodeError
from social.graze.ebsi.registry.events import (
    AnyRegistryEvent,
    DIDAttributeChanged,
    DIDDelegateChanged,
    DIDOwnerChanged,
)


def keccak256(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def event_topic(signature: str) -> str:
    return "0x" + keccak256(signature.encode("ascii")).hex()


def function_selector(signature: str) -> str:
    return "0x" + keccak256(signature.encode("ascii"))[:4].hex()


DID_OWNER_CHANGED_TOPIC: Final = event_topic("DIDOwnerChanged(address,address,uint256)")
DID_DELEGATE_CHANGED_TOPIC: Final = event_topic(
    "DIDDelegateChanged(address,bytes32,address,uint256,uint256)"
)
DID_ATTRIBUTE_CHANGED_TOPIC: Final = event_topic(
    "DIDAttributeChanged(address,bytes32,bytes,uint256,uint256)"
)

CHANGED_SELECTOR: Final = function_selector("changed(address)")
IDENTITY_OWNER_SELECTOR: Final = function_selector("identityOwner(address)")

# Non-indexed event parameters, in data order. The identity is the only indexed parameter.
OWNER_CHANGED_DATA: Final = ("address", "uint256")
DELEGATE_CHANGED_DATA: Final = ("bytes32", "address", "uint256", "uint256")
ATTRIBUTE_CHANGED_DATA: Final = ("bytes32", "bytes", "uint256", "uint256")


def to_quantity(value: int) -> str:
    """Encode an integer as a JSON-RPC hex quantity."""
    return hex(value)


def from_quantity(value: str) -> int:
    try:
        return int(value, 16)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid quantity: {value!r}") from e


def from_hex(value: str) -> bytes:
    try:
        return Web3.to_bytes(hexstr=value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid hex data: {value!r}") from e


def address_topic(address: str) -> str:
    """Left pad an address to a 32 byte topic."""
    return "0x" + abi_encode(["address"], [address.lower()]).hex()


def encode_address_call(selector: str, address: str) -> str:
    return selector + address_topic(address).removeprefix("0x")


def _decode(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    try:
        return abi_decode(list(types), data)
    except DecodingError as e:
        raise DecodeError(f"Malformed ABI data for ({','.join(types)}): {e}") from e


def _address(value: str) -> str:
    # eth_abi returns checksummed addresses; documents carry them lower case.
    return value.lower()


def decode_uint_result(result: str) -> int:
    return _decode(["uint256"], from_hex(result))[0]


def decode_address_result(result: str) -> str:
    return _address(_decode(["address"], from_hex(result))[0])


def decode_log(log: Dict[str, Any]) -> AnyRegistryEvent:
    """Decode one eth_getLogs entry into a registry event.

    Args:
        log: Log object as returned by eth_getLogs

    Returns:
        The decoded DIDOwnerChanged, DIDDelegateChanged or DIDAttributeChanged event

    Raises:
        DecodeError: If the log is not a registry event or its data is malformed
    """
    if not isinstance(log, dict):
        raise DecodeError(f"Expected a log object, got {type(log).__name__}")

    topics: List[str] = log.get("topics") or []
    if len(topics) < 2:
        raise DecodeError(f"Expected at least 2 topics, got {len(topics)}")

    topic = str(topics[0]).lower()
    identity = decode_address_result(topics[1])
    data = from_hex(log.get("data", "0x"))
    block_number = from_quantity(log.get("blockNumber", "0x0"))

    if topic == DID_OWNER_CHANGED_TOPIC:
        owner, previous_change = _decode(OWNER_CHANGED_DATA, data)
        return DIDOwnerChanged(
            identity=identity,
            owner=_address(owner),
            previous_change=previous_change,
            block_number=block_number,
        )
    elif topic == DID_DELEGATE_CHANGED_TOPIC:
        delegate_type, delegate, valid_to, previous_change = _decode(
            DELEGATE_CHANGED_DATA, data
        )
        return DIDDelegateChanged(
            identity=identity,
            delegate_type=delegate_type,
            delegate=_address(delegate),
            valid_to=valid_to,
            previous_change=previous_change,
            block_number=block_number,
        )
    elif topic == DID_ATTRIBUTE_CHANGED_TOPIC:
        name, value, valid_to, previous_change = _decode(ATTRIBUTE_CHANGED_DATA, data)
        return DIDAttributeChanged(
            identity=identity,
            name=name,
            value=value,
            valid_to=valid_to,
            previous_change=previous_change,
            block_number=block_number,
        )

    raise DecodeError(f"Unknown event topic {topic}")

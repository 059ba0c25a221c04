"""Registry change events.

Every change the registry records for an identity carries a previous_change pointer: the block number
of the identity's prior change. Following these pointers backwards yields the identity's full history.
"""

from typing import Literal, Tuple, Union
from pydantic import BaseModel, ConfigDict

SlotKey = Tuple[str, bytes, Union[str, bytes]]
"""(event name, delegate type or attribute name, delegate or attribute value)"""


class RegistryEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    identity: str
    previous_change: int
    block_number: int = 0


class DIDOwnerChanged(RegistryEvent):
    """Ownership of the identity moved to another address."""

    event_name: Literal["DIDOwnerChanged"] = "DIDOwnerChanged"
    owner: str


class DIDDelegateChanged(RegistryEvent):
    """A delegate was added, or revoked by setting valid_to in the past."""

    event_name: Literal["DIDDelegateChanged"] = "DIDDelegateChanged"
    delegate_type: bytes
    delegate: str
    valid_to: int

    def slot_key(self) -> SlotKey:
        return (self.event_name, self.delegate_type, self.delegate)


class DIDAttributeChanged(RegistryEvent):
    """An attribute was set, or revoked by setting valid_to in the past."""

    event_name: Literal["DIDAttributeChanged"] = "DIDAttributeChanged"
    name: bytes
    value: bytes
    valid_to: int

    def slot_key(self) -> SlotKey:
        return (self.event_name, self.name, self.value)


AnyRegistryEvent = Union[DIDOwnerChanged, DIDDelegateChanged, DIDAttributeChanged]

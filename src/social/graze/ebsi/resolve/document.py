"""DID document models and change log replay.

The document is rebuilt from scratch on every resolution by replaying the identity's events oldest to
newest. Active events add entries and take the next #delegate-N or #key-N number; expired events
remove their entry and hand back a number. The numbering is part of the did:ebsi document format and
must not be changed.
"""

import base64
import logging
from dataclasses import dataclass, field
from time import time
from typing import Any, Dict, Final, List, Optional, Sequence
import base58
from pydantic import BaseModel, ConfigDict, Field

from social.graze.ebsi.registry.attribute import (
    AttributeName,
    AttributeSection,
    DelegateType,
    classify_attribute_name,
    decode_attribute_name,
    delegate_type_of,
    is_public_key_name,
)
from social.graze.ebsi.registry.events import (
    AnyRegistryEvent,
    DIDAttributeChanged,
    DIDDelegateChanged,
    SlotKey,
)

logger = logging.getLogger(__name__)

DID_CONTEXT: Final = "https://w3id.org/did/v1"
VERIFICATION_KEY_TYPE: Final = "Secp256k1VerificationKey2018"


class PublicKey(BaseModel):
    """
    Public key entry of a DID document.

    Exactly one key material field is set. Serialize with by_alias=True and exclude_none=True.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: str
    controller: str
    ethereum_address: Optional[str] = Field(None, alias="ethereumAddress")
    public_key_hex: Optional[str] = Field(None, alias="publicKeyHex")
    public_key_base64: Optional[str] = Field(None, alias="publicKeyBase64")
    public_key_base58: Optional[str] = Field(None, alias="publicKeyBase58")
    public_key_pem: Optional[str] = Field(None, alias="publicKeyPem")
    value: Optional[str] = None


class ServiceEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str
    service_endpoint: str = Field(alias="serviceEndpoint")


class DidDocument(BaseModel):
    """Resolved did:ebsi document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    context: str = Field(DID_CONTEXT, alias="@context")
    id: str
    public_key: List[PublicKey] = Field(alias="publicKey")
    authentication: List[str]
    service: Optional[List[ServiceEndpoint]] = None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ReplayState:
    """
    State threaded through the replay.

    key_count starts at 1 because #key-1 is always the owner key. The mappings are keyed by slot so
    that an expiry event removes exactly the entry its creation event added.
    """

    delegate_count: int = 0
    key_count: int = 1
    authentication: Dict[SlotKey, str] = field(default_factory=dict)
    public_keys: Dict[SlotKey, PublicKey] = field(default_factory=dict)
    services: Dict[SlotKey, ServiceEndpoint] = field(default_factory=dict)

    def drop(self, slot: SlotKey) -> None:
        self.authentication.pop(slot, None)
        self.public_keys.pop(slot, None)
        self.services.pop(slot, None)


def public_key_material(encoding: Optional[str], value: bytes) -> Dict[str, str]:
    """Key material field for an attribute value, chosen by the encoding in the attribute name."""
    if encoding is None or encoding == "hex":
        return {"public_key_hex": value.hex()}
    elif encoding == "base64":
        return {"public_key_base64": base64.b64encode(value).decode("ascii")}
    elif encoding == "base58":
        return {"public_key_base58": base58.b58encode(value).decode("ascii")}
    elif encoding == "pem":
        return {"public_key_pem": value.decode("utf-8", errors="replace")}
    return {"value": "0x" + value.hex()}


def _apply_delegate(did: str, state: ReplayState, event: DIDDelegateChanged) -> None:
    # Unknown delegate types still take a number.
    state.delegate_count += 1
    delegate_id = f"{did}#delegate-{state.delegate_count}"
    delegate_type = delegate_type_of(event.delegate_type)
    slot = event.slot_key()

    if delegate_type == DelegateType.sig_auth:
        state.authentication[slot] = delegate_id
    if delegate_type is not None:
        state.public_keys[slot] = PublicKey(
            id=delegate_id,
            type=VERIFICATION_KEY_TYPE,
            controller=did,
            ethereum_address=event.delegate,
        )


def _apply_attribute(
    did: str, state: ReplayState, event: DIDAttributeChanged, attribute: AttributeName
) -> None:
    slot = event.slot_key()

    if attribute.section == AttributeSection.pub:
        state.key_count += 1
        state.public_keys[slot] = PublicKey(
            id=f"{did}#key-{state.key_count}",
            type=attribute.key_type,
            controller=did,
            **public_key_material(attribute.encoding, event.value),
        )
    elif attribute.section == AttributeSection.svc:
        state.services[slot] = ServiceEndpoint(
            type=attribute.algorithm,
            service_endpoint=event.value.decode("utf-8", errors="replace"),
        )
    elif attribute.section == AttributeSection.auth:
        # did/auth attributes carry no document entry of their own.
        pass
    elif attribute.section == AttributeSection.unrecognized:
        logger.debug("Ignoring unrecognized attribute %r for %s", attribute.name, did)


def _expire(state: ReplayState, event: AnyRegistryEvent) -> None:
    if isinstance(event, DIDDelegateChanged):
        if state.delegate_count > 0:
            state.delegate_count -= 1
    elif isinstance(event, DIDAttributeChanged):
        if state.key_count > 1 and is_public_key_name(decode_attribute_name(event.name)):
            state.key_count -= 1
    else:
        return
    state.drop(event.slot_key())


def apply_event(did: str, state: ReplayState, event: AnyRegistryEvent, now: int) -> None:
    """Fold one event into the replay state."""
    if not isinstance(event, (DIDDelegateChanged, DIDAttributeChanged)):
        # Owner changes only link the chain; the owner key comes from the live owner lookup.
        return

    if event.valid_to < now:
        _expire(state, event)
    elif isinstance(event, DIDDelegateChanged):
        _apply_delegate(did, state, event)
    else:
        attribute = classify_attribute_name(decode_attribute_name(event.name))
        _apply_attribute(did, state, event, attribute)


def wrap_did_document(
    did: str,
    owner: str,
    history: Sequence[AnyRegistryEvent],
    now: Optional[int] = None,
) -> DidDocument:
    """
    Build the DID document for an identity from its event history.

    Args:
        did: The DID being resolved, used as document id and key controller
        owner: Current owner address, published as #key-1
        history: Events, oldest first
        now: Resolution time in epoch seconds, defaults to the current time

    Returns:
        DidDocument
    """
    if now is None:
        now = int(time())

    state = ReplayState()
    for event in history:
        apply_event(did, state, event, now)

    owner_key = PublicKey(
        id=f"{did}#key-1",
        type=VERIFICATION_KEY_TYPE,
        controller=did,
        ethereum_address=owner,
    )

    return DidDocument(
        id=did,
        public_key=[owner_key, *state.public_keys.values()],
        authentication=[owner_key.id, *state.authentication.values()],
        service=list(state.services.values()) or None,
    )

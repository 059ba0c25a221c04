"""Attribute name codec and grammar.

The registry stores attribute names and delegate types as bytes32 values. Attribute names follow the
grammar did/(pub|auth|svc)/<algorithm>[/<suffix>][/<encoding>], for example did/pub/Secp256k1/veriKey/hex
or did/svc/HubService.
"""

import re
from enum import Enum
from typing import Dict, Final, Optional
from pydantic import BaseModel, ConfigDict

ATTRIBUTE_NAME_SIZE: Final = 32

ATTRIBUTE_NAME_PATTERN: Final = re.compile(
    r"did/(pub|auth|svc)/(\w+)(?:/(\w+))?(?:/(\w+))?", re.ASCII
)

PUBLIC_KEY_PREFIX: Final = "did/pub/"

SUFFIX_TYPES: Final[Dict[str, str]] = {
    "sigAuth": "SignatureAuthentication2018",
    "veriKey": "VerificationKey2018",
}
"""Short suffix codes and the key type suffix they stand for."""


class AttributeSection(str, Enum):
    """Section of an attribute name, or unrecognized when the name does not match the grammar."""

    pub = "pub"
    auth = "auth"
    svc = "svc"
    unrecognized = "unrecognized"


class DelegateType(str, Enum):
    """Delegate types understood by the resolver."""

    sig_auth = "sigAuth"
    veri_key = "veriKey"


class AttributeName(BaseModel):
    """Classified attribute name.

    The suffix is already resolved through SUFFIX_TYPES.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    section: AttributeSection
    algorithm: str = ""
    suffix: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def key_type(self) -> str:
        return self.algorithm + (self.suffix or "")


def encode_attribute_name(name: str) -> bytes:
    """Encode a name into a zero padded 32 byte field, truncating longer names."""
    return name.encode("utf-8")[:ATTRIBUTE_NAME_SIZE].ljust(ATTRIBUTE_NAME_SIZE, b"\0")


def decode_attribute_name(field: bytes) -> str:
    """Decode a 32 byte field, dropping the zero padding.

    Invalid UTF-8 is replaced rather than raised so that a garbage name simply fails classification.
    """
    return field.rstrip(b"\0").decode("utf-8", errors="replace")


def classify_attribute_name(name: str) -> AttributeName:
    """Parse an attribute name against the attribute grammar.

    Args:
        name: Decoded attribute name

    Returns:
        AttributeName, with section unrecognized if the name does not match
    """
    match = ATTRIBUTE_NAME_PATTERN.fullmatch(name)
    if match is None:
        return AttributeName(name=name, section=AttributeSection.unrecognized)

    section, algorithm, suffix, encoding = match.groups()
    if suffix is not None:
        suffix = SUFFIX_TYPES.get(suffix, suffix)

    return AttributeName(
        name=name,
        section=AttributeSection(section),
        algorithm=algorithm,
        suffix=suffix,
        encoding=encoding,
    )


def is_public_key_name(name: str) -> bool:
    return name.startswith(PUBLIC_KEY_PREFIX)


def delegate_type_of(field: bytes) -> Optional[DelegateType]:
    """Map a bytes32 delegate type field to a known DelegateType, None if it is not one."""
    value = decode_attribute_name(field)
    try:
        return DelegateType(value)
    except ValueError:
        return None

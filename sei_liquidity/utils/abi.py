"""
Topic and ABI helpers for decoding raw event logs.

Indexed event arguments arrive as 32-byte topics; non-indexed arguments are
ABI-encoded in the log's data field. Every type used by the factory and
position-manager events is static, so each value occupies exactly one
32-byte word.
"""

from typing import Sequence, Tuple, Union

import eth_abi.abi as eth_abi
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, keccak, to_checksum_address
from hexbytes import HexBytes

from ..core.errors import InvalidInputError, MalformedRecordError

WORD_SIZE = 32

# Static ABI types that appear in the scanned events
SUPPORTED_TYPES = frozenset({"address", "uint24", "int24", "uint128", "uint256"})

TopicLike = Union[str, bytes]


def _topic_hex(topic: TopicLike) -> str:
    """Render a topic as 64 lower-case hex characters without prefix."""
    if isinstance(topic, (bytes, bytearray)):
        raw = bytes(topic).hex()
    else:
        raw = topic[2:] if topic.startswith(("0x", "0X")) else topic
        raw = raw.lower()
    if len(raw) != WORD_SIZE * 2:
        raise MalformedRecordError(f"Topic must be 32 bytes, got {len(raw) // 2}: {topic!r}")
    try:
        int(raw, 16)
    except ValueError:
        raise MalformedRecordError(f"Topic is not hex: {topic!r}")
    return raw


def to_hex_topic(topic: TopicLike) -> str:
    """Normalize a topic to a 0x-prefixed lower-case hex string."""
    return "0x" + _topic_hex(topic)


def event_topic(signature: str) -> str:
    """keccak-256 topic0 for an event signature such as ``Transfer(address,address,uint256)``."""
    return "0x" + keccak(text=signature).hex()


def topic_address(topic: TopicLike) -> str:
    """Decode an indexed address topic (low-order 20 bytes) into a checksum address."""
    return to_checksum_address("0x" + _topic_hex(topic)[-40:])


def normalize_topic_address(address: str) -> str:
    """Left-pad a 20-byte address to a 32-byte topic for use as a log filter value."""
    if not is_address(address):
        raise InvalidInputError(f"Invalid address: {address}")
    return "0x" + to_checksum_address(address)[2:].lower().rjust(WORD_SIZE * 2, "0")


def topic_uint(topic: TopicLike) -> str:
    """Decode a 32-byte topic as an unsigned integer rendered in base 10."""
    return str(int(_topic_hex(topic), 16))


def decode_log_data(types: Sequence[str], data: Union[bytes, str]) -> Tuple:
    """
    Decode the non-indexed payload of a log positionally.

    Args:
        types: ABI type of each word, e.g. ``["uint24", "int24", "address"]``
        data: Raw log data as bytes or a 0x-prefixed hex string

    Returns:
        Tuple of decoded values; addresses checksummed, integers as ``int``

    Raises:
        MalformedRecordError: If the payload length does not match the signature
            or a word does not decode as its declared type
    """
    unsupported = [t for t in types if t not in SUPPORTED_TYPES]
    if unsupported:
        raise ValueError(f"Unsupported ABI types: {unsupported}")

    try:
        payload = bytes(HexBytes(data))
    except (ValueError, TypeError) as e:
        raise MalformedRecordError(f"Log data is not valid hex: {e}")

    expected = WORD_SIZE * len(types)
    if len(payload) != expected:
        raise MalformedRecordError(
            f"Log data length {len(payload)} does not match {expected} bytes for ({','.join(types)})"
        )

    try:
        decoded = eth_abi.decode(list(types), payload)
    except DecodingError as e:
        raise MalformedRecordError(f"Failed to decode ({','.join(types)}): {e}")

    return tuple(
        to_checksum_address(value) if abi_type == "address" else value
        for abi_type, value in zip(types, decoded)
    )

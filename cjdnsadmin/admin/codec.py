"""
cjdns-admin Wire Codec

Bencode encoding of admin messages, backed by bencode.py.

Messages are dictionaries with string keys. Values are strings,
integers, byte strings, lists and nested dictionaries. Dictionary keys
are emitted in sorted order, which is what the daemon re-encodes when
it checks a request digest.
"""

import logging
from typing import Any, Dict

import bencodepy


logger = logging.getLogger("cjdnsadmin.admin")

# Byte strings that are valid UTF-8 come back as str; anything else
# stays bytes.
_decoder = bencodepy.Bencode(encoding="utf-8", encoding_fallback="all")


class EncodeError(ValueError):
    """A message holds a value bencode cannot represent."""


def encode(message: Dict[str, Any]) -> bytes:
    """
    Serialize a message dictionary.

    Args:
        message: Message to encode

    Returns:
        bytes: Bencoded message

    Raises:
        EncodeError: A value has no bencode form (float, None, ...)
    """
    try:
        return bencodepy.encode(message)
    except (KeyError, TypeError) as e:
        raise EncodeError(f"Cannot bencode message: unsupported value {e}") from e


def decode(data: bytes) -> Dict[str, Any]:
    """
    Parse one bencoded response dictionary.

    Malformed data and payloads that are not a dictionary both yield
    an empty dictionary. Callers check for the keys they need.

    Args:
        data: Raw response bytes

    Returns:
        Decoded dictionary, or {} if unusable
    """
    if not data:
        return {}

    try:
        message = _decoder.decode(data)
    except (bencodepy.BencodeDecodeError, ValueError) as e:
        logger.debug(f"Failed to decode response ({len(data)} bytes): {e}")
        return {}

    if not isinstance(message, dict):
        logger.debug(f"Response is not a dictionary: {type(message).__name__}")
        return {}

    return message

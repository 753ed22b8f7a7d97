"""
cjdns-admin Key Handling

Handles:
- Decoding of cjdns public keys (base32, ".k" suffix)
- Derivation of a node's IPv6 address from its public key

Key format:
- 52 base32 characters followed by ".k"
- The base32 alphabet omits a, e, i and o
- Bits are packed least significant first

Address:
- First 16 bytes of SHA-512(SHA-512(public key bytes))
- Valid cjdns addresses start with 0xfc
"""

from .primitives import sha512


# Public key length after decoding
PUBLIC_KEY_LENGTH = 32

# Suffix on every textual public key
PUBLIC_KEY_SUFFIX = ".k"

BASE32_ALPHABET = "0123456789bcdfghjklmnpqrstuvwxyz"

_BASE32_VALUES = {c: i for i, c in enumerate(BASE32_ALPHABET)}


class InvalidKeyError(KeyError):
    """Exception raised when a key string cannot be decoded."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "invalid key"


def base32_decode(text: str) -> bytes:
    """
    Decode cjdns base32 text.

    Args:
        text: Encoded string (without the ".k" suffix)

    Returns:
        bytes: Decoded bytes

    Raises:
        InvalidKeyError: On characters outside the alphabet or
            non-zero leftover bits
    """
    output = bytearray()
    next_byte = 0
    bits = 0

    for char in text.lower():
        value = _BASE32_VALUES.get(char)
        if value is None:
            raise InvalidKeyError(f"Invalid base32 character: {char!r}")

        next_byte |= value << bits
        bits += 5

        if bits >= 8:
            output.append(next_byte & 0xFF)
            bits -= 8
            next_byte >>= 8

    if bits >= 5 or next_byte:
        raise InvalidKeyError("Trailing bits in base32 input")

    return bytes(output)


def decode_public_key(public_key: str) -> bytes:
    """
    Decode a textual cjdns public key to its 32 raw bytes.

    Raises:
        InvalidKeyError: If the key is malformed
    """
    if not public_key.endswith(PUBLIC_KEY_SUFFIX):
        raise InvalidKeyError(f"Public key must end with {PUBLIC_KEY_SUFFIX!r}")

    raw = base32_decode(public_key[:-len(PUBLIC_KEY_SUFFIX)])
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise InvalidKeyError(
            f"Public key decodes to {len(raw)} bytes, expected {PUBLIC_KEY_LENGTH}"
        )
    return raw


def format_ipv6(address: bytes) -> str:
    """Render 16 address bytes as eight colon-separated hex groups."""
    hexed = address.hex()
    return ":".join(hexed[i:i + 4] for i in range(0, 32, 4))


def derive_ipv6(public_key: str) -> str:
    """
    Derive a node's IPv6 address from its public key.

    Args:
        public_key: Textual public key ("....k")

    Returns:
        str: Full-length IPv6 address, e.g. "fc12:3456:..."

    Raises:
        InvalidKeyError: If the key is malformed
    """
    raw = decode_public_key(public_key)
    return format_ipv6(sha512(sha512(raw))[:16])

"""
cjdns-admin Cryptographic Module

Provides:
- Hashing (SHA-256 for admin digests, SHA-512 for addresses)
- Public key decoding
- IPv6 address derivation

All implementations use python3-cryptography (OpenSSL backend).
"""

from .primitives import (
    sha256,
    sha256_hex,
    sha512,
)

from .keys import (
    InvalidKeyError,
    base32_decode,
    decode_public_key,
    derive_ipv6,
    format_ipv6,
)

__all__ = [
    # Primitives
    'sha256',
    'sha256_hex',
    'sha512',
    # Keys
    'InvalidKeyError',
    'base32_decode',
    'decode_public_key',
    'derive_ipv6',
    'format_ipv6',
]

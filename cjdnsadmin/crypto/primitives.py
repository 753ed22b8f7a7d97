"""
cjdns-admin Cryptographic Primitives

Hash functions wrapping the cryptography library.

The admin protocol only needs SHA-256 (request digests). Address
derivation from a node's public key needs SHA-512.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.backends import default_backend


def _digest(algorithm: hashes.HashAlgorithm, data: bytes) -> bytes:
    hasher = hashes.Hash(algorithm, backend=default_backend())
    hasher.update(data)
    return hasher.finalize()


def sha256(data: bytes) -> bytes:
    """Compute the SHA-256 digest of data."""
    return _digest(hashes.SHA256(), data)


def sha256_hex(data: bytes) -> str:
    """
    Compute the SHA-256 digest of data as lowercase hex.

    This is the form the admin interface expects in the "hash" field.

    Args:
        data: Data to hash

    Returns:
        str: 64-character hex digest
    """
    return sha256(data).hex()


def sha512(data: bytes) -> bytes:
    """Compute the SHA-512 digest of data."""
    return _digest(hashes.SHA512(), data)

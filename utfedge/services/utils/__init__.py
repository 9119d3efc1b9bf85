"""Utility subpackage (hash forwarding)."""

from .hashing import scrypt, scrypt_digest  # noqa: F401

__all__ = [
    'scrypt',
    'scrypt_digest'
]

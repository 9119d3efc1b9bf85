"""UTF-8 / UTF-16 codec subpackage."""

from .service import (  # noqa: F401
    UTF8_MAX_CHARACTER_SIZE,
    UTF8_MAX_TRUNCATION,
    to_utf16_buffer,
    to_utf8_buffer,
    to_utf16,
    to_utf8,
    wide_from_text,
    wide_to_text,
)

__all__ = [
    'UTF8_MAX_CHARACTER_SIZE',
    'UTF8_MAX_TRUNCATION',
    'to_utf16_buffer',
    'to_utf8_buffer',
    'to_utf16',
    'to_utf8',
    'wide_from_text',
    'wide_to_text',
]

"""Service layer public exports."""

from .codec import to_utf16, to_utf16_buffer, to_utf8, to_utf8_buffer  # noqa: F401
from .environment import EnvironmentBlock, allocate_arguments, allocate_environment, free_environment  # noqa: F401
from .normalize import to_lower, to_normal_nfc_form, to_normal_nfkd_form  # noqa: F401
from .stdio import set_utf8_stdio, Utf8Stdio  # noqa: F401

__all__ = [
    'to_utf16',
    'to_utf16_buffer',
    'to_utf8',
    'to_utf8_buffer',
    'EnvironmentBlock',
    'allocate_arguments',
    'allocate_environment',
    'free_environment',
    'to_lower',
    'to_normal_nfc_form',
    'to_normal_nfkd_form',
    'set_utf8_stdio',
    'Utf8Stdio',
]

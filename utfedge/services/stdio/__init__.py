"""UTF-8 stdio bridging subpackage."""

from .service import (  # noqa: F401
    StdioBridge,
    TextWideSink,
    TextWideSource,
    Utf8Reader,
    Utf8Stdio,
    Utf8Writer,
)
from .manager import (  # noqa: F401
    set_binary_stdin,
    set_binary_stdout,
    set_utf8_stderr,
    set_utf8_stdin,
    set_utf8_stdio,
    set_utf8_stdout,
)

__all__ = [
    'StdioBridge',
    'TextWideSink',
    'TextWideSource',
    'Utf8Reader',
    'Utf8Stdio',
    'Utf8Writer',
    'set_binary_stdin',
    'set_binary_stdout',
    'set_utf8_stderr',
    'set_utf8_stdin',
    'set_utf8_stdio',
    'set_utf8_stdout',
]

"""Process-wide UTF-8 stdio binding.

Each ``set_*`` call binds its stream at most once per process and returns the
same object on every later call. There is no way back: once bound, the
returned streams must be used in place of ``sys.stdin`` / ``sys.stdout`` /
``sys.stderr`` for the rest of the process.
"""

import logging
import os
import sys
import threading
from typing import Any, Callable, Dict, Optional

from utfedge.config.system_settings import Settings
from .service import StdioBridge, Utf8Stdio, is_bridged

logger = logging.getLogger(__name__)

_lock = threading.RLock()
_bound: Dict[str, Any] = {}


def _bridge(settings: Optional[Settings]) -> StdioBridge:
    settings = settings or Settings()
    settings.validate()
    return StdioBridge(sys.stdin, sys.stdout, sys.stderr,
                       mode=settings.STDIO_BRIDGE, buffer_chars=settings.STREAM_BUFFER_CHARS)


def _bind_once(name: str, factory: Callable[[], Any]):
    with _lock:
        if name not in _bound:
            _bound[name] = factory()
            logger.info("[stdio] %s bound: %s", name, type(_bound[name]).__name__)
        return _bound[name]


def set_utf8_stdin(settings: Optional[Settings] = None):
    """Bind a UTF-8 stdin; use the returned stream in place of ``sys.stdin``."""
    return _bind_once('stdin', lambda: _bridge(settings).input())


def set_utf8_stdout(settings: Optional[Settings] = None):
    """Bind a UTF-8 stdout; use the returned stream in place of ``sys.stdout``."""
    return _bind_once('stdout', lambda: _bridge(settings).output(sys.stdout))


def set_utf8_stderr(settings: Optional[Settings] = None):
    """Bind a UTF-8 stderr; use the returned stream in place of ``sys.stderr``."""
    return _bind_once('stderr', lambda: _bridge(settings).output(sys.stderr))


def set_utf8_stdio(settings: Optional[Settings] = None) -> Utf8Stdio:
    """Bind all three standard streams and return them as one handle."""
    with _lock:
        stdio = Utf8Stdio(
            stdin=set_utf8_stdin(settings),
            stdout=set_utf8_stdout(settings),
            stderr=set_utf8_stderr(settings),
        )
    stdio.bridged = is_bridged(stdio.stdin, stdio.stdout, stdio.stderr)
    return stdio


def _set_binary(name: str, stream):
    def factory():
        if os.name == 'nt':
            import msvcrt
            stream.flush()
            msvcrt.setmode(stream.fileno(), os.O_BINARY)
        return getattr(stream, 'buffer', stream)
    return _bind_once(name, factory)


def set_binary_stdin():
    """Switch stdin to binary (no newline translation) and return its byte stream."""
    return _set_binary('binary_stdin', sys.stdin)


def set_binary_stdout():
    """Switch stdout to binary (no newline translation) and return its byte stream."""
    return _set_binary('binary_stdout', sys.stdout)

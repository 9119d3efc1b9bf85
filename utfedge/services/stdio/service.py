"""UTF-8 standard streams bridged over UTF-16 endpoints.

``Utf8Writer`` accepts UTF-8 bytes and hands complete UTF-16 runs to a wide
sink, carrying a sequence split across ``write`` calls to the next call.
``Utf8Reader`` pulls UTF-16 from a wide source and serves UTF-8 bytes, holding
back a high surrogate until its low half arrives.
"""

import logging
from array import array
from dataclasses import dataclass
from typing import Any, Optional

from utfedge.exceptions import MalformedSequence
from utfedge.services.codec import (
    UTF8_MAX_CHARACTER_SIZE,
    to_utf16_buffer,
    to_utf8,
    wide_from_text,
    wide_to_text,
)
from .console import ConsoleWideSink, ConsoleWideSource, console_handle

logger = logging.getLogger(__name__)

BRIDGE_MODES = ('auto', 'always', 'never')


def _is_high_surrogate(unit: int) -> bool:
    return 0xD800 <= unit <= 0xDBFF


class TextWideSink:
    """Wide sink over a Python text stream."""

    def __init__(self, stream):
        self._stream = stream

    def write(self, units: array):
        self._stream.write(wide_to_text(units))

    def flush(self):
        self._stream.flush()


class TextWideSource:
    """Wide source over a Python text stream (line at a time, so terminals do not block)."""

    def __init__(self, stream):
        self._stream = stream

    def read(self, max_units: int) -> array:
        return wide_from_text(self._stream.readline(max_units))


class Utf8Writer:
    def __init__(self, sink, buffer_chars: int = 1024):
        if buffer_chars < UTF8_MAX_CHARACTER_SIZE:
            raise ValueError(f"buffer_chars 不能小于 {UTF8_MAX_CHARACTER_SIZE}: {buffer_chars}")
        self._sink = sink
        self._buffer = array('H', [0]) * buffer_chars
        self._pending = b''
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """写入中尚未凑齐的 UTF-8 字节数"""
        return len(self._pending)

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self._closed:
            raise ValueError("write to closed stream")
        data = bytes(data)
        view = self._pending + data
        self._pending = b''
        capacity = len(self._buffer)
        runs = []
        start = 0
        # 整段转换成功后才写出：非法序列不会留下半截输出
        while start < len(view):
            chunk = view[start:start + capacity]
            written, truncated = to_utf16_buffer(self._buffer, chunk)
            if written:
                runs.append(self._buffer[:written])
            consumed = len(chunk) - truncated
            if not consumed:
                break
            start += consumed
        for run in runs:
            self._sink.write(run)
        self._pending = view[start:]
        return len(data)

    def flush(self):
        if not self._closed:
            self._sink.flush()

    def close(self):
        if self._closed:
            return
        self.flush()
        self._closed = True
        if self._pending:
            dangling, self._pending = len(self._pending), b''
            raise MalformedSequence(f"流关闭时仍有 {dangling} 字节的残缺 UTF-8 序列",
                                    details={'pending': dangling})

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class Utf8Reader:
    def __init__(self, source, buffer_chars: int = 1024):
        self._source = source
        self._chars = buffer_chars
        self._decoded = bytearray()
        self._carry = array('H')
        self._eof = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> bool:
        """Pull one batch from the source; False once the source is exhausted."""
        if self._eof:
            return False
        units = self._source.read(self._chars)
        if not units:
            self._eof = True
            if self._carry:
                carry, self._carry = self._carry, array('H')
                to_utf8(carry)  # 孤立的高位代理：抛出 MalformedSequence
            return False
        units = self._carry + units
        if _is_high_surrogate(units[-1]):
            self._carry = units[-1:]
            del units[-1:]
        else:
            self._carry = array('H')
        self._decoded += to_utf8(units)
        return True

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything until EOF when ``size`` is negative."""
        if size is None or size < 0:
            while self._fill():
                pass
            size = len(self._decoded)
        elif size == 0:
            return b''
        else:
            while not self._decoded and self._fill():
                pass
        data = bytes(self._decoded[:size])
        del self._decoded[:size]
        return data

    def readline(self) -> bytes:
        while b'\n' not in self._decoded and self._fill():
            pass
        end = self._decoded.find(b'\n') + 1 or len(self._decoded)
        line = bytes(self._decoded[:end])
        del self._decoded[:end]
        return line

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration
        return line


@dataclass
class Utf8Stdio:
    """Narrow standard streams; after binding, use these instead of sys.std*."""
    stdin: Any
    stdout: Any
    stderr: Any
    bridged: bool = False

    def flush(self):
        for stream in (self.stdout, self.stderr):
            stream.flush()


class StdioBridge:
    """Decides, per stream, between a bridged UTF-8 stream and the native binary buffer.

    mode:
      auto   - 仅 Windows 控制台走 UTF-16 桥接
      always - 控制台走 WriteConsoleW，其余经由文本流桥接
      never  - 始终使用原生二进制缓冲
    """

    def __init__(self, stdin=None, stdout=None, stderr=None, mode: str = 'auto', buffer_chars: int = 1024):
        if mode not in BRIDGE_MODES:
            raise ValueError(f"未知的桥接模式: {mode}")
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.mode = mode
        self.buffer_chars = buffer_chars

    def _handle(self, stream) -> Optional[int]:
        if self.mode == 'never':
            return None
        return console_handle(stream)

    @staticmethod
    def _native(stream):
        return getattr(stream, 'buffer', stream)

    def input(self, stream=None):
        stream = stream if stream is not None else self.stdin
        handle = self._handle(stream)
        if handle is not None:
            return Utf8Reader(ConsoleWideSource(handle), self.buffer_chars)
        if self.mode == 'always':
            return Utf8Reader(TextWideSource(stream), self.buffer_chars)
        return self._native(stream)

    def output(self, stream):
        handle = self._handle(stream)
        if handle is not None:
            stream.flush()
            return Utf8Writer(ConsoleWideSink(handle), self.buffer_chars)
        if self.mode == 'always':
            return Utf8Writer(TextWideSink(stream), self.buffer_chars)
        # 切换到底层缓冲前先把文本层的内容刷出去
        stream.flush()
        return self._native(stream)

    def bind(self) -> Utf8Stdio:
        stdio = Utf8Stdio(
            stdin=self.input(),
            stdout=self.output(self.stdout),
            stderr=self.output(self.stderr),
        )
        stdio.bridged = is_bridged(stdio.stdin, stdio.stdout, stdio.stderr)
        logger.debug("[stdio] bound standard streams (mode=%s, bridged=%s)", self.mode, stdio.bridged)
        return stdio


def is_bridged(*streams) -> bool:
    return any(isinstance(s, (Utf8Reader, Utf8Writer)) for s in streams)

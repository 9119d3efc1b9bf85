"""Windows console endpoints (WriteConsoleW / ReadConsoleW via ctypes).

Only usable when ``console_handle`` returns a handle, i.e. on Windows with a
stream attached to a real console; redirected streams fall back to the
text or binary paths in ``service``.
"""

import ctypes
import logging
import os
from array import array
from typing import Optional

logger = logging.getLogger(__name__)

# Ctrl+Z 开头的一行表示控制台 EOF
_CONSOLE_EOF = 0x1A


def _kernel32():
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL('kernel32', use_last_error=True)
    kernel32.GetConsoleMode.argtypes = [wintypes.HANDLE, ctypes.POINTER(wintypes.DWORD)]
    kernel32.GetConsoleMode.restype = wintypes.BOOL
    kernel32.WriteConsoleW.argtypes = [wintypes.HANDLE, ctypes.c_void_p, wintypes.DWORD,
                                       ctypes.POINTER(wintypes.DWORD), ctypes.c_void_p]
    kernel32.WriteConsoleW.restype = wintypes.BOOL
    kernel32.ReadConsoleW.argtypes = [wintypes.HANDLE, ctypes.c_void_p, wintypes.DWORD,
                                      ctypes.POINTER(wintypes.DWORD), ctypes.c_void_p]
    kernel32.ReadConsoleW.restype = wintypes.BOOL
    return kernel32


def console_handle(stream) -> Optional[int]:
    """Return the console handle behind ``stream``, or None when it is not a console."""
    if os.name != 'nt':
        return None
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    import msvcrt
    from ctypes import wintypes

    try:
        handle = msvcrt.get_osfhandle(fd)
    except OSError:
        return None
    mode = wintypes.DWORD()
    if not _kernel32().GetConsoleMode(handle, ctypes.byref(mode)):
        return None
    return handle


class ConsoleWideSink:
    def __init__(self, handle: int):
        self._handle = handle
        self._kernel32 = _kernel32()

    def write(self, units: array):
        from ctypes import wintypes

        address, remaining = units.buffer_info()
        itemsize = units.itemsize
        while remaining:
            written = wintypes.DWORD()
            if not self._kernel32.WriteConsoleW(self._handle, address, remaining, ctypes.byref(written), None):
                raise ctypes.WinError(ctypes.get_last_error())
            address += written.value * itemsize
            remaining -= written.value

    def flush(self):
        pass


class ConsoleWideSource:
    def __init__(self, handle: int):
        self._handle = handle
        self._kernel32 = _kernel32()

    def read(self, max_units: int) -> array:
        from ctypes import wintypes

        buffer = array('H', [0]) * max_units
        read = wintypes.DWORD()
        if not self._kernel32.ReadConsoleW(self._handle, buffer.buffer_info()[0], max_units,
                                           ctypes.byref(read), None):
            raise ctypes.WinError(ctypes.get_last_error())
        del buffer[read.value:]
        if buffer and buffer[0] == _CONSOLE_EOF:
            logger.debug("[stdio] console EOF")
            return array('H')
        return buffer

"""Process entry wiring: UTF-8 argv, environment and stdio for a main function."""

from __future__ import annotations

import locale
import logging
import os
import sys
from functools import wraps
from typing import Callable, Mapping, Optional, Sequence

from utfedge import configure_logging
from utfedge.config.system_settings import Settings
from utfedge.exceptions import MalformedSequence, UtfEdgeError
from utfedge.models import EnvironmentKind
from utfedge.services.environment import (
    EnvironmentBlock,
    allocate_arguments,
    allocate_environment,
    free_environment,
    host_arguments,
    host_environment,
)
from utfedge.services.stdio import Utf8Stdio, Utf8Writer, set_utf8_stdio

logger = logging.getLogger(__name__)

# sysexits.h: EX_DATAERR / EX_SOFTWARE / EX_OSERR
EXIT_CODES = {
    'MALFORMED_SEQUENCE': 65,
    'CAPACITY_EXCEEDED': 70,
    'INVALID_STATE': 70,
    'ALLOCATION_FAILURE': 71,
}
EXIT_INTERNAL = 70

MainFunction = Callable[[EnvironmentBlock, EnvironmentBlock, Utf8Stdio, Settings], int]


def _apply_locale(name: str):
    if not name:
        return
    try:
        locale.setlocale(locale.LC_ALL, name)
    except locale.Error as e:
        logger.warning(f"[entry] 无法设置 locale {name}: {e}")


def _native_arguments(argv: Sequence[str]) -> EnvironmentBlock:
    return EnvironmentBlock(EnvironmentKind.ARGUMENTS, [os.fsencode(arg) for arg in argv])


def _native_environment(environ: Optional[Mapping[str, str]]) -> EnvironmentBlock:
    if environ is None and hasattr(os, 'environb'):
        entries = [name + b'=' + value for name, value in os.environb.items()]
    else:
        environ = os.environ if environ is None else environ
        entries = [os.fsencode(f"{name}={value}") for name, value in environ.items()]
    return EnvironmentBlock(EnvironmentKind.ENVIRONMENT, entries)


def _close_bridged(stdio: Utf8Stdio) -> int:
    """Close bridged writers; a sequence still pending at exit is a data error."""
    status = 0
    for stream in (stdio.stdout, stdio.stderr):
        if not isinstance(stream, Utf8Writer):
            continue
        try:
            stream.close()
        except MalformedSequence as e:
            logger.error(f"[entry] 退出时输出流残留残缺序列 [{e.code}]: {e}")
            status = EXIT_CODES[e.code]
    return status


def utf8_main(func: MainFunction):
    """Wrap ``func(arguments, environment, stdio, settings) -> int`` as a process entry point.

    The wrapper loads settings, configures logging and locale, binds UTF-8 stdio,
    converts argv and the environment into owned UTF-8 blocks (through the
    UTF-16 adapter when ``WIDE_ENTRY`` is on), and releases both blocks exactly
    once after ``func`` returns. Bridged output streams are closed on the way
    out. utfedge errors become exit statuses.
    """

    @wraps(func)
    def wrapper(argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None,
                settings: Optional[Settings] = None, stdio: Optional[Utf8Stdio] = None) -> int:
        settings = settings or Settings()
        settings.validate()
        configure_logging(settings)
        _apply_locale(settings.LOCALE)
        if stdio is None:
            stdio = set_utf8_stdio(settings)

        arguments = environment = None
        try:
            if settings.WIDE_ENTRY:
                arguments = allocate_arguments(*host_arguments(argv))
                environment = allocate_environment(host_environment(environ))
            else:
                arguments = _native_arguments(sys.argv if argv is None else argv)
                environment = _native_environment(environ)
            status = func(arguments, environment, stdio, settings)
        except UtfEdgeError as e:
            logger.error(f"{func.__name__} failed [{e.code}]: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
            status = EXIT_CODES.get(e.code, EXIT_INTERNAL)
        finally:
            for block in (arguments, environment):
                if block is not None and not block.released:
                    free_environment(block)
            stdio.flush()

        close_status = _close_bridged(stdio)
        return status or close_status

    return wrapper


__all__ = ['utf8_main', 'EXIT_CODES']

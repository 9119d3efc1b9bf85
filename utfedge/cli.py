"""utfedge command line: stream transcoding, normalization, argv/environment dumps."""

import argparse
import logging
import sys
from array import array

from utfedge.config.system_settings import Settings
from utfedge.entry import utf8_main
from utfedge.exceptions import MalformedSequence
from utfedge.services.codec import UTF8_MAX_TRUNCATION, to_utf16_buffer, to_utf8
from utfedge.services.normalize import to_lower, to_normal_nfc_form, to_normal_nfkd_form
from utfedge.services.stdio import Utf8Writer

logger = logging.getLogger(__name__)

EXIT_USAGE = 64
EXIT_DATAERR = 65

_NORMALIZERS = {
    'nfc': to_normal_nfc_form,
    'nfkd': to_normal_nfkd_form,
    'lower': to_lower,
}


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='utfedge', description='UTF-8 / UTF-16 boundary tools')
    parser.add_argument('--chunk-size', type=_positive_int, default=None, help='stdin read size in bytes')
    sub = parser.add_subparsers(dest='command', required=True)

    p16 = sub.add_parser('utf16', help='transcode UTF-8 stdin to UTF-16 stdout')
    p16.add_argument('--order', choices=('little', 'big'), default='little')

    p8 = sub.add_parser('utf8', help='transcode UTF-16 stdin to UTF-8 stdout')
    p8.add_argument('--order', choices=('little', 'big'), default='little')

    pn = sub.add_parser('normalize', help='normalize UTF-8 stdin')
    pn.add_argument('--form', choices=sorted(_NORMALIZERS), default='nfc')

    sub.add_parser('args', help='print the converted argument vector')
    sub.add_parser('env', help='print the converted environment block')
    return parser


def transcode_to_utf16(stdin, stdout, chunk_size: int, order: str = 'little'):
    """Stream UTF-8 to UTF-16, re-presenting each truncated tail with the next read."""
    buffer = array('H', [0]) * (chunk_size + UTF8_MAX_TRUNCATION)
    pending = b''
    while True:
        data = stdin.read(chunk_size)
        if not data:
            break
        chunk = pending + data
        written, truncated = to_utf16_buffer(buffer, chunk)
        units = buffer[:written]
        if order != sys.byteorder:
            units.byteswap()
        stdout.write(units.tobytes())
        pending = chunk[len(chunk) - truncated:]
    if pending:
        raise MalformedSequence(f"输入末尾有 {len(pending)} 字节的残缺 UTF-8 序列")


def transcode_to_utf8(stdin, stdout, chunk_size: int, order: str = 'little'):
    """Stream UTF-16 to UTF-8, holding back odd bytes and a trailing high surrogate."""
    pending = b''
    while True:
        data = stdin.read(chunk_size)
        if not data:
            break
        data = pending + data
        even = len(data) - len(data) % 2
        units = array('H')
        units.frombytes(data[:even])
        if order != sys.byteorder:
            units.byteswap()
        pending = data[even:]
        if units and 0xD800 <= units[-1] <= 0xDBFF:
            pending = data[even - 2:even] + pending
            del units[-1]
        stdout.write(to_utf8(units))
    if pending:
        raise MalformedSequence(f"输入末尾有 {len(pending)} 字节的残缺 UTF-16 数据")


@utf8_main
def main(arguments, environment, stdio, settings: Settings) -> int:
    argv = [arg.decode('utf-8', 'surrogateescape') for arg in arguments]
    args = build_parser().parse_args(argv[1:])
    chunk_size = args.chunk_size or settings.CHUNK_SIZE

    if args.command in ('utf16', 'utf8'):
        # UTF-16 输出不能写进桥接后的控制台
        if isinstance(stdio.stdout, Utf8Writer):
            stdio.stderr.write(b'utfedge: binary output requires a redirected stdout\n')
            return EXIT_USAGE
        if args.command == 'utf16':
            transcode_to_utf16(stdio.stdin, stdio.stdout, chunk_size, args.order)
        else:
            transcode_to_utf8(stdio.stdin, stdio.stdout, chunk_size, args.order)
        return 0

    if args.command == 'normalize':
        data = stdio.stdin.read()
        result = _NORMALIZERS[args.form](data)
        if data and not result:
            logger.error("[cli] %s 规范化失败", args.form)
            return EXIT_DATAERR
        stdio.stdout.write(result)
        return 0

    block = arguments if args.command == 'args' else environment
    for entry in block:
        stdio.stdout.write(entry + b'\n')
    return 0

"""UTF-8 <-> UTF-16 转换（边界层编解码）

UTF-8 是进程内的规范字符串表示，UTF-16 只出现在边界上（命令行参数、
环境变量、控制台 I/O）。本模块是两者之间唯一的转换点：

- ``to_utf16_buffer`` / ``to_utf8_buffer``：写入调用方提供的定长缓冲区。
  UTF-8 -> UTF-16 方向支持分块输入：末尾被截断的多字节序列不会被消费，
  其长度通过 ``ChunkResult.truncated`` 返回，调用方负责把这些字节拼到下一块
  输入的开头。模块本身不保存任何状态。
- ``to_utf16`` / ``to_utf8``：整串转换，由上面两个函数组合而成，不存在截断，
  残缺的尾部序列视为非法序列。

所有函数都是纯函数，可在多线程中并发调用。
"""

import codecs
import sys
from array import array
from typing import MutableSequence, Sequence, Union

from utfedge.exceptions import CapacityExceeded, MalformedSequence
from utfedge.models import ChunkResult

# 单个码点的最大 UTF-8 字节数
UTF8_MAX_CHARACTER_SIZE = 4
# 分块边界处最多悬空的字节数
UTF8_MAX_TRUNCATION = UTF8_MAX_CHARACTER_SIZE - 1

# array('H') 按本机字节序存储码元
_UTF16 = 'utf-16-le' if sys.byteorder == 'little' else 'utf-16-be'

BytesLike = Union[bytes, bytearray, memoryview]
WideLike = Sequence[int]


def _to_units(wide: WideLike) -> array:
    if isinstance(wide, array) and wide.typecode == 'H':
        return wide
    try:
        return array('H', wide)
    except (OverflowError, TypeError) as e:
        raise MalformedSequence(f"非法 UTF-16 码元: {e}") from e


def wide_from_text(text: str) -> array:
    """Present a host string as UTF-16 code units (lone surrogates kept as-is)."""
    units = array('H')
    units.frombytes(text.encode(_UTF16, 'surrogatepass'))
    return units


def wide_to_text(wide: WideLike, errors: str = 'surrogatepass') -> str:
    """Inverse of :func:`wide_from_text`; pass ``errors='strict'`` to reject unpaired surrogates."""
    try:
        return _to_units(wide).tobytes().decode(_UTF16, errors)
    except UnicodeDecodeError as e:
        raise MalformedSequence(
            f"未配对的 UTF-16 代理项 (位置 {e.start // 2}): {e.reason}",
            details={'position': e.start // 2},
        ) from e


def to_utf16_buffer(out: MutableSequence[int], narrow: BytesLike) -> ChunkResult:
    """Convert a UTF-8 chunk into ``out``, reporting a truncated trailing sequence.

    Args:
        out: 输出缓冲区，容量为 ``len(out)`` 个 UTF-16 码元
        narrow: 输入的 UTF-8 字节块，可能在多字节序列中间被截断

    Returns:
        ``ChunkResult(written, truncated)``；``out[:written]`` 为转换结果，
        ``narrow`` 末尾 ``truncated`` (0..3) 个字节未被消费

    Raises:
        MalformedSequence: 输入中存在非法序列
        CapacityExceeded: 结果超过 ``len(out)``，此时 ``out`` 不被修改
    """
    if not narrow:
        return ChunkResult(0, 0)

    # 每次调用都用新的解码器，残缺尾部留在解码器缓冲里，正好就是截断长度
    decoder = codecs.getincrementaldecoder('utf-8')('strict')
    try:
        text = decoder.decode(bytes(narrow), final=False)
    except UnicodeDecodeError as e:
        raise MalformedSequence(
            f"非法 UTF-8 序列 (位置 {e.start}): {e.reason}",
            details={'position': e.start},
        ) from e
    pending, _ = decoder.getstate()
    # ED A0..BF 开头的尾部只能是代理项编码，不可能是合法序列的前缀
    if len(pending) >= 2 and pending[0] == 0xED and pending[1] >= 0xA0:
        position = len(narrow) - len(pending)
        raise MalformedSequence(
            f"非法 UTF-8 序列 (位置 {position}): encoded surrogate",
            details={'position': position},
        )

    units = wide_from_text(text)
    written = len(units)
    if written > len(out):
        raise CapacityExceeded(
            f"UTF-16 输出需要 {written} 个码元，缓冲区容量 {len(out)}",
            details={'required': written, 'capacity': len(out)},
        )
    out[:written] = units
    return ChunkResult(written, len(pending))


def to_utf8_buffer(out: Union[bytearray, memoryview], wide: WideLike) -> int:
    """Convert complete UTF-16 input into ``out`` and return the number of bytes written.

    UTF-16 方向没有截断的概念：代理对必须完整出现在同一次输入中，
    任何未配对的代理项（包括末尾孤立的高位代理）都是非法序列。
    """
    if not wide:
        return 0
    data = wide_to_text(wide, errors='strict').encode('utf-8')
    written = len(data)
    if written > len(out):
        raise CapacityExceeded(
            f"UTF-8 输出需要 {written} 字节，缓冲区容量 {len(out)}",
            details={'required': written, 'capacity': len(out)},
        )
    out[:written] = data
    return written


def to_utf16(narrow: BytesLike) -> array:
    """Convert a complete UTF-8 string to an owned UTF-16 string."""
    # 每个字节最多产生一个 UTF-16 码元
    out = array('H', [0]) * len(narrow)
    written, truncated = to_utf16_buffer(out, narrow)
    if truncated:
        raise MalformedSequence(
            f"UTF-8 字符串末尾有 {truncated} 字节的残缺序列",
            details={'position': len(narrow) - truncated},
        )
    del out[written:]
    return out


def to_utf8(wide: WideLike) -> bytes:
    """Convert a complete UTF-16 string to an owned UTF-8 string."""
    out = bytearray(UTF8_MAX_CHARACTER_SIZE * len(wide))
    written = to_utf8_buffer(out, wide)
    del out[written:]
    return bytes(out)

"""Argument vector / environment block adaptation.

Converts host (UTF-16) argument vectors and environment blocks into owned
arrays of UTF-8 strings. Every entry goes through the codec's whole-string
conversion; this module never decodes bytes itself.
"""

import logging
import os
import sys
import threading
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from utfedge.exceptions import AllocationFailure, MalformedSequence, StateError
from utfedge.models import EnvironmentKind
from utfedge.services.codec import to_utf8, wide_from_text

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_live = 0


def _track(delta: int):
    global _live
    with _lock:
        _live += delta


def live_blocks() -> int:
    """已分配但尚未释放的环境块数量"""
    with _lock:
        return _live


class EnvironmentBlock:
    """An owned array of UTF-8 strings with a single consuming release.

    Instances come from :func:`allocate_arguments` / :func:`allocate_environment`.
    After :meth:`release` every access raises :class:`StateError`, so a block
    can be neither freed twice nor used after free.
    """

    def __init__(self, kind: EnvironmentKind, entries: List[bytes]):
        self._kind = kind
        self._entries: Optional[List[bytes]] = entries
        _track(1)

    def _owned(self) -> List[bytes]:
        if self._entries is None:
            raise StateError(f"{self._kind.value} block already released")
        return self._entries

    @property
    def kind(self) -> EnvironmentKind:
        return self._kind

    @property
    def released(self) -> bool:
        return self._entries is None

    @property
    def count(self) -> int:
        return len(self._owned())

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[bytes]:
        return iter(list(self._owned()))

    def __getitem__(self, index: int) -> bytes:
        return self._owned()[index]

    def as_array(self) -> List[Optional[bytes]]:
        """参数向量原样返回；环境块在末尾追加 None 终止项"""
        entries = list(self._owned())
        if self._kind is EnvironmentKind.ENVIRONMENT:
            entries.append(None)
        return entries

    def as_mapping(self) -> Dict[bytes, bytes]:
        """Split ``NAME=VALUE`` entries, keeping block order.

        Windows keeps per-drive entries such as ``=C:=C:\\`` whose name starts
        with ``=``; the separator is searched from position 1.
        """
        if self._kind is not EnvironmentKind.ENVIRONMENT:
            raise StateError("only environment blocks can be viewed as a mapping")
        mapping: Dict[bytes, bytes] = {}
        for entry in self._owned():
            sep = entry.find(b'=', 1)
            if sep < 0:
                mapping[entry] = b''
            else:
                mapping[entry[:sep]] = entry[sep + 1:]
        return mapping

    def release(self):
        entries = self._owned()
        count = len(entries)
        entries.clear()
        self._entries = None
        _track(-1)
        logger.debug("[environment] released %s block (%d entries)", self._kind.value, count)

    def __enter__(self) -> 'EnvironmentBlock':
        self._owned()
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.released:
            self.release()

    def __repr__(self) -> str:
        state = 'released' if self.released else f'{len(self._entries)} entries'
        return f"EnvironmentBlock({self._kind.value}, {state})"


def _allocate(kind: EnvironmentKind, wide_entries: Sequence) -> EnvironmentBlock:
    entries: List[bytes] = []
    try:
        for index, wide in enumerate(wide_entries):
            try:
                entries.append(to_utf8(wide))
            except MalformedSequence as e:
                e.details.setdefault('index', index)
                raise
            except MemoryError as e:
                raise AllocationFailure(
                    f"{kind.value}[{index}] 分配内存失败", details={'index': index}
                ) from e
    except (MalformedSequence, AllocationFailure) as e:
        # 全有或全无：先释放已转换的条目再抛出
        entries.clear()
        logger.error("[environment] %s 转换失败 (index=%s): %s", kind.value, e.details.get('index'), e)
        raise
    logger.debug("[environment] allocated %s block (%d entries)", kind.value, len(entries))
    return EnvironmentBlock(kind, entries)


def allocate_arguments(argc: int, argv: Sequence) -> EnvironmentBlock:
    """Convert a wide argument vector of ``argc`` entries (caller must release).

    Args:
        argc: argv 中的条目数
        argv: UTF-16 参数字符串序列（array('H') 或整数序列）
    """
    if argc < 0 or argc > len(argv):
        raise ValueError(f"argc 超出范围: {argc} (argv 长度 {len(argv)})")
    return _allocate(EnvironmentKind.ARGUMENTS, argv[:argc])


def allocate_environment(environment: Sequence) -> EnvironmentBlock:
    """Convert a wide environment block terminated by ``None`` (caller must release)."""
    entries = []
    for wide in environment:
        if wide is None:
            break
        entries.append(wide)
    return _allocate(EnvironmentKind.ENVIRONMENT, entries)


def free_environment(block: EnvironmentBlock):
    block.release()


def host_arguments(argv: Optional[Sequence[str]] = None) -> Tuple[int, list]:
    """Present ``sys.argv`` (or ``argv``) in host wide form as ``(argc, argv)``."""
    if argv is None:
        argv = sys.argv
    wide = [wide_from_text(arg) for arg in argv]
    return len(wide), wide


def host_environment(environ: Optional[Mapping[str, str]] = None) -> list:
    """Present ``os.environ`` (or ``environ``) as a ``None``-terminated wide block."""
    if environ is None:
        environ = os.environ
    block: list = [wide_from_text(f"{name}={value}") for name, value in environ.items()]
    block.append(None)
    return block


__all__ = [
    'EnvironmentBlock',
    'allocate_arguments',
    'allocate_environment',
    'free_environment',
    'host_arguments',
    'host_environment',
    'live_blocks',
]

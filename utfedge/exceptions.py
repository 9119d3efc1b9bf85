"""utfedge 异常层次

    UtfEdgeError (base)
    ├── CapacityExceeded   - 输出缓冲区容量不足
    ├── MalformedSequence  - 非法 UTF-8 / UTF-16 序列
    ├── AllocationFailure  - 环境块构建时内存不足
    └── StateError         - 已释放的环境块被再次使用

每个异常都带有稳定的字符串 ``code`` 与结构化的 ``details``，
入口包装器据此映射到进程退出码。
"""

from typing import Any, Dict, Optional

__all__ = [
    'UtfEdgeError',
    'CapacityExceeded',
    'MalformedSequence',
    'AllocationFailure',
    'StateError',
]


class UtfEdgeError(Exception):
    """Base exception for all utfedge errors."""

    default_code = 'INTERNAL_ERROR'

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code or self.default_code
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


class CapacityExceeded(UtfEdgeError, ValueError):
    """转换结果放不进调用方声明的输出容量（不会写入任何内容）。"""

    default_code = 'CAPACITY_EXCEEDED'


class MalformedSequence(UtfEdgeError, ValueError):
    """输入无法解码为合法码点：非法 UTF-8 字节、未配对代理项，或整串转换末尾的残缺序列。"""

    default_code = 'MALFORMED_SEQUENCE'


class AllocationFailure(UtfEdgeError, MemoryError):
    default_code = 'ALLOCATION_FAILURE'


class StateError(UtfEdgeError, RuntimeError):
    """Operation attempted on a released environment block."""

    default_code = 'INVALID_STATE'

"""Data models shared by the codec, environment and stdio services."""

from enum import Enum
from typing import NamedTuple


class ChunkResult(NamedTuple):
    """分块 UTF-8 -> UTF-16 转换的结果。

    written:   写入输出缓冲区的 UTF-16 码元数
    truncated: 输入末尾属于残缺多字节序列、未被消费的字节数 [0..3]，
               调用方需在下一次调用时把这些字节放回新输入的开头
    """
    written: int
    truncated: int


class EnvironmentKind(str, Enum):
    # 命令行参数：按 count 计数
    ARGUMENTS = 'arguments'
    # 环境变量块：以 None 结尾
    ENVIRONMENT = 'environment'


__all__ = ['ChunkResult', 'EnvironmentKind']

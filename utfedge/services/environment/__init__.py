"""Environment adapter subpackage (argv / environment blocks)."""

from .manager import (  # noqa: F401
    EnvironmentBlock,
    allocate_arguments,
    allocate_environment,
    free_environment,
    host_arguments,
    host_environment,
    live_blocks,
)

__all__ = [
    'EnvironmentBlock',
    'allocate_arguments',
    'allocate_environment',
    'free_environment',
    'host_arguments',
    'host_environment',
    'live_blocks',
]

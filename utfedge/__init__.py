"""utfedge - UTF-8 everywhere, UTF-16 only at the process edge."""

import os
import logging
from logging.handlers import TimedRotatingFileHandler, WatchedFileHandler

from .config.system_settings import Settings
from .exceptions import AllocationFailure, CapacityExceeded, MalformedSequence, StateError, UtfEdgeError
from .models import ChunkResult, EnvironmentKind
from .services.codec import to_utf16, to_utf16_buffer, to_utf8, to_utf8_buffer
from .services.environment import (
    EnvironmentBlock,
    allocate_arguments,
    allocate_environment,
    free_environment,
)
from .services.normalize import to_lower, to_normal_nfc_form, to_normal_nfkd_form
from .services.stdio import (
    Utf8Stdio,
    set_binary_stdin,
    set_binary_stdout,
    set_utf8_stderr,
    set_utf8_stdin,
    set_utf8_stdio,
    set_utf8_stdout,
)


def configure_logging(settings: Settings):
    root_logger = logging.getLogger()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level)
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s', '%Y-%m-%d %H:%M:%S')
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    # 未配置日志目录时只输出到控制台
    if not settings.LOG_DIR:
        return
    try:
        log_file = os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME)
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        # WatchedFileHandler cooperates with external rotation (logrotate) when several processes share the file.
        if settings.USE_WATCHED_LOG:
            file_handler = WatchedFileHandler(log_file, encoding='utf-8')
        else:
            file_handler = TimedRotatingFileHandler(log_file, when='midnight', backupCount=settings.LOG_BACKUP_COUNT, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        logging.getLogger(__name__).warning(f'文件日志配置失败: {e}')


__all__ = [
    'configure_logging',
    'Settings',
    'UtfEdgeError',
    'CapacityExceeded',
    'MalformedSequence',
    'AllocationFailure',
    'StateError',
    'ChunkResult',
    'EnvironmentKind',
    'to_utf16',
    'to_utf16_buffer',
    'to_utf8',
    'to_utf8_buffer',
    'EnvironmentBlock',
    'allocate_arguments',
    'allocate_environment',
    'free_environment',
    'to_lower',
    'to_normal_nfc_form',
    'to_normal_nfkd_form',
    'Utf8Stdio',
    'set_binary_stdin',
    'set_binary_stdout',
    'set_utf8_stderr',
    'set_utf8_stdin',
    'set_utf8_stdio',
    'set_utf8_stdout',
]

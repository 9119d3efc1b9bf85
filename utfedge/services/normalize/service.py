"""Unicode 规范化与小写转换

输入输出均为 UTF-8 字节串。失败时对非空输入返回 b''（与外部规范化库的
约定一致），因此调用方无法区分“规范化被禁用”与“该输入被拒绝”。
"""

import logging
import threading
import unicodedata
from typing import Callable, Optional

from utfedge.config.system_settings import Settings

logger = logging.getLogger(__name__)

# 首次调用时解析一次，之后不再读取配置文件
_settings: Optional[Settings] = None
_settings_lock = threading.Lock()


def _default_settings() -> Settings:
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = Settings()
        return _settings


def _transform(value: bytes, form: str, func: Callable[[str], str], settings: Optional[Settings]) -> bytes:
    if not value:
        return b''
    settings = settings or _default_settings()
    if not settings.NORMALIZATION:
        logger.debug("[normalize] %s 不可用（已在配置中禁用）", form)
        return b''
    try:
        text = bytes(value).decode('utf-8')
    except UnicodeDecodeError as e:
        logger.debug("[normalize] %s 输入不是合法 UTF-8: %s", form, e)
        return b''
    return func(text).encode('utf-8')


def to_normal_nfc_form(value: bytes, settings: Optional[Settings] = None) -> bytes:
    """Normalize a UTF-8 value using NFC; ``b''`` for a non-empty value signals failure."""
    return _transform(value, 'NFC', lambda text: unicodedata.normalize('NFC', text), settings)


def to_normal_nfkd_form(value: bytes, settings: Optional[Settings] = None) -> bytes:
    """Normalize a UTF-8 value using NFKD; ``b''`` for a non-empty value signals failure."""
    return _transform(value, 'NFKD', lambda text: unicodedata.normalize('NFKD', text), settings)


def to_lower(value: bytes, settings: Optional[Settings] = None) -> bytes:
    """Lowercase a UTF-8 value; ``b''`` for a non-empty value signals failure.

    Uses the Unicode default case mapping (``str.lower``), which does not depend
    on the process locale: Turkish dotted/dotless I, for instance, is not tailored.
    """
    return _transform(value, 'lower', str.lower, settings)

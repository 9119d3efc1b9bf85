import logging
import os

import pytest

from utfedge.services.normalize import service as normalize_service


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep a developer's settings.ini / UTFEDGE_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith('UTFEDGE_'):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('UTFEDGE_SETTINGS_FILE', str(tmp_path / 'missing.ini'))
    # 规范化模块在首次使用时缓存默认配置
    monkeypatch.setattr(normalize_service, '_settings', None)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

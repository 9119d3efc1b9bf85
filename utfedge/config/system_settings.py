"""运行配置 - 统一的配置参数管理"""
import os
import sys
import configparser
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_BRIDGE_MODES = ('auto', 'always', 'never')


def _get_config_file() -> str:
    """获取配置文件路径（环境变量 > 可执行文件目录 > 当前目录）"""
    if env_config := os.getenv("UTFEDGE_SETTINGS_FILE"):
        logger.debug(f"[config] Using config from env: {env_config}")
        return env_config

    # PyInstaller 打包后配置文件在可执行文件同目录
    if getattr(sys, 'frozen', False):
        exe_dir = os.path.dirname(os.path.abspath(sys.executable))
        exe_config = os.path.join(exe_dir, "settings.ini")
        if os.path.exists(exe_config):
            logger.debug(f"[config] Using config from exe dir: {exe_config}")
            return exe_config

    cwd_config = Path.cwd() / "settings.ini"
    logger.debug(f"[config] Looking for config in cwd: {cwd_config}")
    return str(cwd_config)


def _load_config() -> configparser.ConfigParser:
    """加载外部配置文件"""
    config = configparser.ConfigParser()
    config_file = _get_config_file()

    if not os.path.exists(config_file):
        return config

    # 尝试多种编码
    for encoding in ('utf-8', 'utf-8-sig', 'gbk', 'cp1252', 'latin-1'):
        try:
            config.read(config_file, encoding=encoding)
        except (UnicodeDecodeError, configparser.Error) as e:
            logger.debug(f"[config] Failed to read with encoding {encoding}: {e}")
            continue
        if config.sections():
            logger.debug(f"[config] Loaded {config_file} with encoding: {encoding}")
            break
    else:
        logger.error(f"[config] Failed to read config file with any encoding: {config_file}")
    return config


def _get_bool(env_name: str, default: bool, config_section: str = None, config_key: str = None) -> bool:
    """解析布尔值：环境变量 > 配置文件 > 默认值"""
    if raw := os.getenv(env_name):
        return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}

    if config_section and config_key:
        _config = _load_config()
        if _config.has_option(config_section, config_key):
            try:
                return _config.getboolean(config_section, config_key)
            except ValueError:
                logger.warning(f"[config] {config_section}.{config_key} 不是布尔值，使用默认值 {default}")

    return default


def _get_int(env_name: str, default: int, config_section: str = None, config_key: str = None) -> int:
    """解析整数：环境变量 > 配置文件 > 默认值"""
    if raw := os.getenv(env_name):
        try:
            return int(raw) if raw.strip() else default
        except ValueError:
            logger.warning(f"[config] {env_name}={raw!r} 不是整数，忽略")

    if config_section and config_key:
        _config = _load_config()
        if _config.has_option(config_section, config_key):
            try:
                return _config.getint(config_section, config_key)
            except ValueError:
                logger.warning(f"[config] {config_section}.{config_key} 不是整数，使用默认值 {default}")

    return default


def _get_str(env_name: str, default: str, config_section: str = None, config_key: str = None) -> str:
    """解析字符串：环境变量 > 配置文件 > 默认值"""
    if raw := os.getenv(env_name):
        return raw

    if config_section and config_key:
        _config = _load_config()
        if _config.has_option(config_section, config_key):
            return _config.get(config_section, config_key)

    return default


def _setting(resolver, *args):
    return field(default_factory=lambda: resolver(*args))


@dataclass
class Settings:
    """运行配置类 - 优先级：环境变量 > settings.ini > 默认值"""

    # ===== 日志配置 =====
    LOG_LEVEL: str = _setting(_get_str, "UTFEDGE_LOG_LEVEL", "WARNING", "log", "log_level")
    LOG_DIR: str = _setting(_get_str, "UTFEDGE_LOG_DIR", "", "log", "log_dir")
    LOG_FILE_NAME: str = _setting(_get_str, "UTFEDGE_LOG_FILE", "utfedge.log", "log", "log_file")
    LOG_BACKUP_COUNT: int = _setting(_get_int, "UTFEDGE_LOG_BACKUP", 7, "log", "log_backup_count")
    USE_WATCHED_LOG: bool = _setting(_get_bool, "UTFEDGE_USE_WATCHED_LOG", False, "log", "use_watched_log")

    # ===== 标准流桥接 =====
    STDIO_BRIDGE: str = _setting(_get_str, "UTFEDGE_STDIO_BRIDGE", "auto", "stdio", "bridge")
    STREAM_BUFFER_CHARS: int = _setting(_get_int, "UTFEDGE_STREAM_BUFFER_CHARS", 1024, "stdio", "buffer_chars")
    CHUNK_SIZE: int = _setting(_get_int, "UTFEDGE_CHUNK_SIZE", 4096, "stdio", "chunk_size")

    # ===== 进程入口 =====
    WIDE_ENTRY: bool = _setting(_get_bool, "UTFEDGE_WIDE_ENTRY", os.name == 'nt', "entry", "wide_entry")
    LOCALE: str = _setting(_get_str, "UTFEDGE_LOCALE", "en_US.UTF-8", "entry", "locale")

    # ===== 规范化 =====
    NORMALIZATION: bool = _setting(_get_bool, "UTFEDGE_NORMALIZATION", True, "unicode", "normalization")

    def validate(self):
        errors = []
        if self.STDIO_BRIDGE not in _BRIDGE_MODES:
            errors.append(f"STDIO_BRIDGE 必须是 {'/'.join(_BRIDGE_MODES)} 之一，当前值: {self.STDIO_BRIDGE}")
        # 至少容纳一个完整的 4 字节序列
        if self.STREAM_BUFFER_CHARS < 4:
            errors.append(f"STREAM_BUFFER_CHARS 不能小于 4，当前值: {self.STREAM_BUFFER_CHARS}")
        if self.CHUNK_SIZE < 1:
            errors.append(f"CHUNK_SIZE 必须为正数，当前值: {self.CHUNK_SIZE}")
        if self.LOG_BACKUP_COUNT < 0:
            errors.append(f"LOG_BACKUP_COUNT 不能为负数，当前值: {self.LOG_BACKUP_COUNT}")
        if errors:
            raise ValueError("配置验证失败: " + "; ".join(errors))

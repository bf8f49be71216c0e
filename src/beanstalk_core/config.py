"""
Beanstalk 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .protocols.constants import (
    DEFAULT_DELAY,
    DEFAULT_PORT,
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeanstalkConfig:
    """BeanstalkClient 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: beanstalkd 服务器地址。
        port: beanstalkd 服务器端口 (通常为 11300)。
        connect_timeout: 建立连接的超时秒数，None 表示不超时。
        timeout: 读写超时秒数，None 表示永久阻塞 (reserve 默认行为)。
        default_priority: put/release/bury 的默认优先级。
        default_delay: put/release 的默认延迟秒数。
        default_ttr: put 的默认 TTR (Time To Run) 秒数。
    """

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    connect_timeout: float | None = 1.0
    timeout: float | None = None
    default_priority: int = DEFAULT_PRIORITY
    default_delay: int = DEFAULT_DELAY
    default_ttr: int = DEFAULT_TTR

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


def create_config_from_dict(raw_data: dict[str, Any]) -> BeanstalkConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。所有字段均为可选。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        BeanstalkConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 字段格式错误时抛出。
    """

    def _int(key: str, default: int, minimum: int = 0) -> int:
        val = raw_data.get(key, default)
        try:
            num = int(val)
        except (TypeError, ValueError):
            raise ConfigError(f"整数格式无效 '{key}': {val}") from None
        if num < minimum:
            raise ConfigError(f"取值超出范围 '{key}': {num} < {minimum}")
        return num

    def _timeout(key: str, default: float | None) -> float | None:
        """超时字段: 空值或 <= 0 表示不超时 (-1 为常见写法)。"""
        val = raw_data.get(key, default)
        if val is None or val == "":
            return None
        try:
            seconds = float(val)
        except (TypeError, ValueError):
            raise ConfigError(f"超时格式无效 '{key}': {val}") from None
        return seconds if seconds > 0 else None

    host = str(raw_data.get("host", "127.0.0.1")).strip()
    if not host:
        raise ConfigError("配置错误: 'host' 不能为空")

    port = _int("port", DEFAULT_PORT, minimum=1)
    if port > 0xFFFF:
        raise ConfigError(f"取值超出范围 'port': {port}")

    return BeanstalkConfig(
        host=host,
        port=port,
        connect_timeout=_timeout("connect_timeout", 1.0),
        timeout=_timeout("timeout", None),
        default_priority=_int("default_priority", DEFAULT_PRIORITY),
        default_delay=_int("default_delay", DEFAULT_DELAY),
        default_ttr=_int("default_ttr", DEFAULT_TTR, minimum=1),
    )


def load_config_from_toml(file_path: Path, profile: str = "default") -> BeanstalkConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [beanstalk]: 单一配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        BeanstalkConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config: dict[str, Any] = {}

    if "profile" in data:
        if profile not in data["profile"]:
            if profile != "default":
                raise ConfigError(f"未找到预设: [profile.{profile}]")
        else:
            raw_config = data["profile"][profile]

    elif "beanstalk" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [beanstalk] 节，忽略 profile='{profile}'。")
        raw_config = data["beanstalk"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env() -> BeanstalkConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    读取所有以 `BEANSTALK_` 开头的已知环境变量，并映射到配置字段。
    例如: `BEANSTALK_HOST` -> `host`。

    Returns:
        BeanstalkConfig: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    env_map = {
        "host": "HOST",
        "port": "PORT",
        "connect_timeout": "CONNECT_TIMEOUT",
        "timeout": "TIMEOUT",
        "default_priority": "DEFAULT_PRIORITY",
        "default_delay": "DEFAULT_DELAY",
        "default_ttr": "DEFAULT_TTR",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"BEANSTALK_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 BEANSTALK_ 前缀的环境变量")

    return create_config_from_dict(raw_data)

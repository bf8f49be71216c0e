"""
Beanstalk-Core v1.0.0
基于 asyncio 的 beanstalkd 工作队列协议客户端核心库。
"""

# 暴露核心配置
from .config import (
    BeanstalkConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露客户端与状态
from .core import BeanstalkClient

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    BeanstalkError,
    ConfigError,
    FramingError,
    NetworkError,
    ProtocolError,
    StateError,
)
from .protocols import Job, Reply, Status
from .state import ConnectionStatus, LastError, TubeState

__version__ = "1.0.0"

__all__ = [
    "BeanstalkClient",
    "BeanstalkConfig",
    "ConnectionStatus",
    "TubeState",
    "LastError",
    "Job",
    "Reply",
    "Status",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "BeanstalkError",
    "ConfigError",
    "NetworkError",
    "ProtocolError",
    "FramingError",
    "StateError",
]

# src/beanstalk_core/protocols/__init__.py
"""
Beanstalk 协议层 (Protocol Layer)

本包负责命令的纯粹构建 (Build) 与响应解析 (Parse)。

- 不包含任何 socket 操作或网络 I/O。
- 不包含任何状态管理 (State)。
- 不依赖于 core 或 network 层。
"""

from . import constants
from .codec import Job, Reply, build_command, parse_body_length, parse_reply
from .constants import Status, Verb
from .stats import coerce_value, parse_stats

# 公共 API
__all__ = [
    "constants",
    "Job",
    "Reply",
    "Status",
    "Verb",
    "build_command",
    "parse_body_length",
    "parse_reply",
    "coerce_value",
    "parse_stats",
]

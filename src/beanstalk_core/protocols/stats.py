# src/beanstalk_core/protocols/stats.py
"""
Beanstalk 协议层 - 统计信息解码器

stats / stats-job / stats-tube / list-tubes 等命令的 OK 响应体是一段
简化的 YAML 文本:

    ---
    current-jobs-ready: 5
    name: default

或者:

    ---
    - default
    - emails
"""

import logging
import math
import re

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

StatsValue = int | float | str


def coerce_value(value: str) -> StatsValue:
    """推断字段值的类型。

    整数值 (截断后与原值相等) 返回 int，其他有限数值返回 float，
    否则保持字符串。
    """
    if not _NUMBER_RE.match(value):
        return value
    if value.lstrip("+-").isdigit():
        return int(value)
    number = float(value)
    if not math.isfinite(number):
        return value
    if number == int(number):
        return int(number)
    return number


def parse_stats(body: bytes | str) -> dict[str | int, StatsValue] | list[str]:
    """解析统计信息响应体。

    第一行为头部，直接丢弃；"---" 文档标记与空行被跳过。
    以 "-" 开头的行视为列表项，其余行按第一个冒号拆分为键值对。

    同时出现两种行时返回字典，列表项按出现顺序以整数 0, 1, ... 为键。

    Args:
        body: OK 响应的数据体。

    Returns:
        dict | list: 出现过键值对时返回有序字典，否则返回字符串列表。
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", "replace")

    lines = body.strip().splitlines()[1:]

    mapping: dict[str | int, StatsValue] = {}
    items: list[str] = []
    has_pairs = False

    for raw_line in lines:
        line = raw_line.rstrip("\r")
        if not line or line == "---":
            continue

        if line.startswith("-"):
            item = line[1:]
            if item.startswith(" "):
                item = item[1:]
            mapping[len(items)] = item
            items.append(item)
            continue

        key, sep, value = line.partition(":")
        if not sep:
            logger.debug("stats: 跳过无法识别的行 %r", line)
            continue
        if value.startswith(" "):
            value = value[1:]
        mapping[key] = coerce_value(value)
        has_pairs = True

    if has_pairs:
        return mapping
    return items

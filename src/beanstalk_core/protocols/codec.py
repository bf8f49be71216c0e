# File: src/beanstalk_core/protocols/codec.py
"""
Beanstalk 协议帧编解码器 (Frame Codec)

负责命令的编码 (Python 参数 -> 字节流) 与响应的解码 (字节流 -> Reply)。
本模块是无状态的 (Stateless)，不包含任何 socket 操作。
"""

import logging
from dataclasses import dataclass

from ..exceptions import FramingError, ProtocolError
from .constants import BODY_STATUSES, CRLF, Status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reply:
    """一次响应的结构化表示。

    Attributes:
        status: 状态码枚举 (未收录的状态为 Status.UNKNOWN)。
        token: 状态行中的原始状态字。
        meta: 状态字之后的附加字段，保持字符串形式，由调用方按命令解释。
        body: 按声明长度截取的数据体；不携带 Body 的响应为 None。
    """

    status: Status
    token: str
    meta: tuple[str, ...] = ()
    body: bytes | None = None

    def meta_int(self, index: int) -> int:
        """按位置读取一个整数附加字段。

        Raises:
            ProtocolError: 字段缺失或不是整数。
        """
        try:
            return int(self.meta[index])
        except (IndexError, ValueError):
            raise ProtocolError(
                f"{self.token} 响应缺少整数字段 #{index}: {self.meta!r}"
            ) from None


@dataclass(frozen=True)
class Job:
    """reserve/peek 返回的任务。客户端不保留它，后续生命周期由调用方按 id 管理。"""

    id: int
    body: bytes


# =========================================================================
# Encode
# =========================================================================


def build_command(verb: str, *args: int | str, payload: bytes | None = None) -> bytes:
    """构建一条命令。

    结构: verb + 空格分隔的参数 + CRLF。
    如果带有 payload，会把 payload 字节数作为最后一个参数追加，
    随后紧跟 payload 本身及其 CRLF 结尾。

    Args:
        verb: 命令字 (如 "put")。
        *args: 命令参数，整数或字符串。
        payload: 可选的数据体。

    Returns:
        bytes: 可直接发送的字节流。

    Raises:
        ValueError: 参数为空、包含空白字符或包含非 ASCII 字符。
    """
    tokens = [verb]
    for arg in args:
        text = str(arg)
        if not text or not text.isascii() or any(ch.isspace() for ch in text):
            raise ValueError(f"非法的命令参数: {text!r}")
        tokens.append(text)

    if payload is None:
        return " ".join(tokens).encode("ascii") + CRLF

    tokens.append(str(len(payload)))
    return " ".join(tokens).encode("ascii") + CRLF + payload + CRLF


# =========================================================================
# Decode
# =========================================================================


def _split_status_line(line: bytes) -> tuple[str, list[str]]:
    tokens = line.decode("ascii", "replace").split(" ")
    return tokens[0], tokens[1:]


def parse_body_length(status_line: bytes) -> int | None:
    """根据状态行判断后续 Body 的字节数。

    Args:
        status_line: 不含 CRLF 的状态行。

    Returns:
        int | None: 携带 Body 的状态返回声明的字节数，否则返回 None。

    Raises:
        FramingError: 携带 Body 的状态缺少合法的长度字段。
    """
    token, meta = _split_status_line(status_line)
    if Status.parse(token) not in BODY_STATUSES:
        return None
    if not meta or not meta[-1].isdigit():
        raise FramingError(f"{token} 响应缺少 Body 长度字段: {status_line!r}")
    return int(meta[-1])


def parse_reply(raw: bytes, with_body: bool | None = None) -> Reply:
    """将一个完整的响应单元解码为 Reply。

    Args:
        raw: 收到的原始字节 (状态行 + CRLF + 可选 Body)。
        with_body: 是否按最后一个附加字段截取 Body。
            为 None 时由状态码决定 (RESERVED/FOUND/OK 携带 Body)。

    Returns:
        Reply: 解码后的响应。

    Raises:
        FramingError: 找不到 CRLF，或可用字节少于声明的 Body 长度。
    """
    end = raw.find(CRLF)
    if end < 0:
        raise FramingError(f"响应缺少 CRLF 结尾: {raw[:64]!r}")

    line = raw[:end]
    token, meta = _split_status_line(line)
    status = Status.parse(token)

    if with_body is None:
        with_body = status in BODY_STATUSES

    if not with_body:
        return Reply(status=status, token=token, meta=tuple(meta))

    if not meta or not meta[-1].isdigit():
        raise FramingError(f"{token} 响应缺少 Body 长度字段: {line!r}")

    length = int(meta[-1])
    start = end + len(CRLF)
    available = len(raw) - start
    if available < length:
        raise FramingError(f"Body 长度不足: 声明 {length} 字节，实际仅 {available} 字节")

    body = raw[start : start + length]
    logger.debug("parse_reply: status=%s meta=%s body=%d bytes", token, meta, length)
    return Reply(status=status, token=token, meta=tuple(meta), body=body)

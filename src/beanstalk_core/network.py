# src/beanstalk_core/network.py
"""
Beanstalk 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 TCP 连接的建立、发送和接收逻辑。
该模块屏蔽了底层 StreamReader/StreamWriter 的细节，向上层提供按响应单元收发的接口。
"""

import asyncio
import logging
from typing import Optional

from .config import BeanstalkConfig
from .exceptions import FramingError, NetworkError
from .protocols import codec
from .protocols.constants import CRLF

logger = logging.getLogger(__name__)


class NetworkClient:
    """
    封装 asyncio TCP 操作的客户端。
    """

    def __init__(self, config: BeanstalkConfig):
        self.config = config
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @property
    def is_connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self) -> None:
        """
        建立 TCP 连接。
        """
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=self.config.connect_timeout,
            )
            logger.debug(f"TCP 连接已建立: {self.config.address}")
        except asyncio.TimeoutError:
            await self.close()
            raise NetworkError(
                f"连接超时 {self.config.address} ({self.config.connect_timeout}s)"
            ) from None
        except OSError as e:
            await self.close()
            raise NetworkError(f"连接失败 {self.config.address}: {e}") from e

    async def send(self, data: bytes) -> None:
        """
        发送一条完整命令。
        """
        if not self.writer or self.writer.is_closing():
            raise NetworkError("Transport 已关闭")

        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            raise NetworkError(f"发送超时 ({self.config.timeout}s)") from None
        except OSError as e:
            raise NetworkError(f"发送失败: {e}") from e

    async def receive_line(self) -> bytes:
        """
        接收一行 (含 CRLF)。
        """
        reader = self._require_reader()
        try:
            return await asyncio.wait_for(
                reader.readuntil(CRLF), timeout=self.config.timeout
            )
        except asyncio.TimeoutError:
            raise NetworkError(f"接收超时 ({self.config.timeout}s)") from None
        except asyncio.IncompleteReadError as e:
            raise NetworkError(f"连接已被服务器关闭 (残留 {len(e.partial)} 字节)") from e
        except asyncio.LimitOverrunError as e:
            raise FramingError(f"状态行过长: {e}") from e
        except OSError as e:
            raise NetworkError(f"接收错误: {e}") from e

    async def receive_exactly(self, size: int) -> bytes:
        """
        接收恰好 size 个字节。

        Raises:
            FramingError: 在读满之前连接已关闭。
        """
        reader = self._require_reader()
        try:
            return await asyncio.wait_for(
                reader.readexactly(size), timeout=self.config.timeout
            )
        except asyncio.TimeoutError:
            raise NetworkError(f"接收超时 ({self.config.timeout}s)") from None
        except asyncio.IncompleteReadError as e:
            raise FramingError(
                f"Body 长度不足: 声明 {size} 字节，实际仅 {len(e.partial)} 字节"
            ) from e
        except OSError as e:
            raise NetworkError(f"接收错误: {e}") from e

    async def receive_reply(self) -> bytes:
        """
        接收一个完整的响应单元: 状态行 + 可选的 Body 及其 CRLF 结尾。
        """
        line = await self.receive_line()
        length = codec.parse_body_length(line[: -len(CRLF)])
        if length is None:
            return line
        return line + await self.receive_exactly(length + len(CRLF))

    async def close(self) -> None:
        """关闭 Transport"""
        if self.writer:
            writer = self.writer
            self.writer = None
            self.reader = None
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"关闭连接时出现异常 (已忽略): {e}")
            logger.debug("TCP Transport 已关闭")

    def _require_reader(self) -> asyncio.StreamReader:
        if not self.reader:
            raise NetworkError("Transport 未初始化")
        return self.reader

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

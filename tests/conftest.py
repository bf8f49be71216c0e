# tests/conftest.py
import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from beanstalk_core.config import BeanstalkConfig
from beanstalk_core.core import BeanstalkClient


class FakeServer:
    """用真实的 StreamReader 模拟服务器响应，记录客户端写出的字节。"""

    def __init__(self) -> None:
        self.reader = asyncio.StreamReader()
        self.writer = MagicMock()
        self.writer.is_closing.return_value = False
        self.writer.drain = AsyncMock()
        self.writer.wait_closed = AsyncMock()

    def reply(self, *chunks: bytes) -> None:
        """预置响应 (单请求在途，可一次性按顺序预置多个)。"""
        for chunk in chunks:
            self.reader.feed_data(chunk)

    def hang_up(self) -> None:
        self.reader.feed_eof()

    @property
    def sent(self) -> list[bytes]:
        return [c.args[0] for c in self.writer.write.call_args_list]

    @property
    def round_trips(self) -> int:
        return len(self.sent)


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个短超时的 BeanstalkConfig，避免测试在缺少响应时永久阻塞。
    """
    return BeanstalkConfig(
        host="127.0.0.1",
        port=11300,
        connect_timeout=1.0,
        timeout=1.0,
        default_priority=60,
        default_delay=0,
        default_ttr=30,
    )


@pytest_asyncio.fixture
async def server():
    return FakeServer()


@pytest_asyncio.fixture
async def client(valid_config, server):
    """已连接到 FakeServer 的客户端。"""
    open_connection = AsyncMock(return_value=(server.reader, server.writer))
    with patch("beanstalk_core.network.asyncio.open_connection", open_connection):
        c = BeanstalkClient(valid_config)
        await c.connect()
        yield c


@pytest.fixture
def server_factory():
    """[Fixture] 用于需要多个连接的测试 (如重连)。"""
    return FakeServer

# File: src/beanstalk_core/core.py
"""
Beanstalk 客户端核心 (Command Facade)

职责：
1. 资源组装：State + Network + Config + TubeTracker。
2. 命令分发：每个协议命令对应一个协程，比对唯一的成功状态码。
3. 生命周期：connect -> 命令交互 -> disconnect。

协议级失败 (服务器返回非预期状态) 不抛出异常：记录为 LastError，
并以 False / None 返回，通过 take_error() 读取一次。
网络与分帧异常会断开连接后向上抛出，调用方需重新 connect()。
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any

from .config import BeanstalkConfig
from .exceptions import NetworkError, ProtocolError, StateError
from .network import NetworkClient
from .protocols import codec, parse_stats
from .protocols.codec import Job, Reply
from .protocols.constants import EXPECTED_STATUS, Status, Verb
from .state import ClientState, ConnectionStatus, LastError
from .tubes import ScopedBody, TubeTracker

logger = logging.getLogger(__name__)


class BeanstalkClient:
    """beanstalkd 客户端 (Async)。

    单连接、单请求在途：每个命令都是 "发送 -> 等待一个响应"。
    多个协程共享同一实例时需要调用方自行串行化。
    """

    def __init__(self, config: BeanstalkConfig | None = None) -> None:
        """初始化客户端。

        Args:
            config: 客户端配置，缺省时使用 127.0.0.1:11300。
        """
        self.config = config or BeanstalkConfig()
        self._state = ClientState()
        self.net_client = NetworkClient(self.config)
        self.tubes = TubeTracker(self)

    @property
    def state(self) -> ClientState:
        """获取当前会话状态的只读副本。

        修改返回的副本不会影响客户端内部状态。
        """
        tubes = replace(self._state.tubes, watching=list(self._state.tubes.watching))
        return replace(self._state, tubes=tubes)

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    # =========================================================================
    # 生命周期
    # =========================================================================

    async def connect(self) -> None:
        """建立连接。

        已连接时先强制关闭旧连接再重连。新连接在服务器端总是 default/[default]，
        本地管道状态随之重置。

        Raises:
            NetworkError: 连接失败。
        """
        if self._state.is_connected or self.net_client.is_connected:
            logger.info("检测到已有连接，关闭后重连")
            await self.net_client.close()
            self._state.status = ConnectionStatus.DISCONNECTED

        await self.net_client.connect()
        self._state.tubes.reset()
        self._state.status = ConnectionStatus.CONNECTED
        logger.info(f"已连接 beanstalkd: {self.config.address}")

    async def disconnect(self) -> None:
        """断开连接。

        已连接时尽力发送 quit (失败忽略)，随后关闭。无论如何最终都处于未连接状态。
        """
        if self._state.is_connected:
            try:
                await self.net_client.send(codec.build_command(Verb.QUIT))
            except NetworkError as e:
                logger.debug(f"发送 quit 失败 (已忽略): {e}")

        await self.net_client.close()
        if self._state.is_connected:
            logger.info(f"已断开 beanstalkd: {self.config.address}")
        self._state.status = ConnectionStatus.DISCONNECTED

    async def quit(self) -> None:
        """quit 命令：服务器不回复，直接关闭连接。"""
        await self.disconnect()

    async def __aenter__(self) -> "BeanstalkClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    def take_error(self) -> LastError | None:
        """读取并清除最近一次协议级失败。"""
        error, self._state.last_error = self._state.last_error, None
        return error

    # =========================================================================
    # 生产者命令
    # =========================================================================

    async def put(
        self,
        body: bytes | str,
        priority: int | None = None,
        delay: int | None = None,
        ttr: int | None = None,
    ) -> int | None:
        """向当前生产管道投递任务。

        Args:
            body: 任务数据，字符串按 UTF-8 编码。
            priority: 优先级 (越小越优先)，缺省取配置。
            delay: 延迟秒数，缺省取配置。
            ttr: 任务运行时限秒数，缺省取配置。

        Returns:
            int | None: 成功返回 Job ID，失败返回 None。
        """
        if isinstance(body, str):
            body = body.encode("utf-8")

        reply = await self._execute(
            Verb.PUT,
            self._priority(priority),
            self.config.default_delay if delay is None else delay,
            self.config.default_ttr if ttr is None else ttr,
            payload=body,
        )
        if not self._expect(Verb.PUT, reply):
            return None
        return reply.meta_int(0)

    async def use(self, tube: str) -> bool:
        return await self.tubes.use(tube)

    # =========================================================================
    # 消费者命令
    # =========================================================================

    async def reserve(self, timeout: int | None = None) -> Job | None:
        """保留一个就绪任务。

        Args:
            timeout: 等待秒数；None 时使用 reserve 无限等待。

        Returns:
            Job | None: 成功返回任务，TIMED_OUT / DEADLINE_SOON 等返回 None。
        """
        if timeout is None:
            reply = await self._execute(Verb.RESERVE)
            return self._read_job(Verb.RESERVE, reply)

        reply = await self._execute(Verb.RESERVE_WITH_TIMEOUT, timeout)
        return self._read_job(Verb.RESERVE_WITH_TIMEOUT, reply)

    async def delete(self, job_id: int) -> bool:
        return await self._send_simple(Verb.DELETE, job_id)

    async def release(
        self, job_id: int, priority: int | None = None, delay: int | None = None
    ) -> bool:
        if delay is None:
            delay = self.config.default_delay
        return await self._send_simple(
            Verb.RELEASE, job_id, self._priority(priority), delay
        )

    async def bury(self, job_id: int, priority: int | None = None) -> bool:
        return await self._send_simple(Verb.BURY, job_id, self._priority(priority))

    async def touch(self, job_id: int) -> bool:
        return await self._send_simple(Verb.TOUCH, job_id)

    async def watch(self, tube: str) -> int | None:
        return await self.tubes.watch(tube)

    async def ignore(self, tube: str) -> bool:
        return await self.tubes.ignore(tube)

    async def watch_only(self, tube: str) -> bool:
        return await self.tubes.watch_only(tube)

    # =========================================================================
    # 其他命令
    # =========================================================================

    async def peek(self, job_id: int) -> Job | None:
        return self._read_job(Verb.PEEK, await self._execute(Verb.PEEK, job_id))

    async def peek_ready(self) -> Job | None:
        return self._read_job(Verb.PEEK_READY, await self._execute(Verb.PEEK_READY))

    async def peek_delayed(self) -> Job | None:
        return self._read_job(
            Verb.PEEK_DELAYED, await self._execute(Verb.PEEK_DELAYED)
        )

    async def peek_buried(self) -> Job | None:
        return self._read_job(Verb.PEEK_BURIED, await self._execute(Verb.PEEK_BURIED))

    async def kick(self, bound: int) -> int | None:
        """将当前生产管道中至多 bound 个埋葬/延迟任务移回就绪队列。

        Returns:
            int | None: 实际移动的任务数，失败返回 None。
        """
        reply = await self._execute(Verb.KICK, bound)
        if not self._expect(Verb.KICK, reply):
            return None
        return reply.meta_int(0)

    async def kick_job(self, job_id: int) -> bool:
        return await self._send_simple(Verb.KICK_JOB, job_id)

    async def stats(self) -> dict[str | int, Any] | None:
        return await self._read_stats(Verb.STATS)

    async def stats_job(self, job_id: int) -> dict[str | int, Any] | None:
        return await self._read_stats(Verb.STATS_JOB, job_id)

    async def stats_tube(self, tube: str) -> dict[str | int, Any] | None:
        return await self._read_stats(Verb.STATS_TUBE, tube)

    async def list_tubes(self) -> list[str] | None:
        return await self._read_stats(Verb.LIST_TUBES)

    async def list_tube_used(self, ask_server: bool = False) -> str | None:
        return await self.tubes.list_tube_used(ask_server)

    async def list_tubes_watched(self, ask_server: bool = False) -> list[str] | None:
        return await self.tubes.list_tubes_watched(ask_server)

    async def pause_tube(self, tube: str, delay: int) -> bool:
        return await self._send_simple(Verb.PAUSE_TUBE, tube, delay)

    async def with_used_tube(self, tube: str, body: ScopedBody) -> Any:
        return await self.tubes.with_used_tube(tube, body)

    async def with_watched_tube(self, tube: str, body: ScopedBody) -> Any:
        return await self.tubes.with_watched_tube(tube, body)

    # =========================================================================
    # 内部实现
    # =========================================================================

    async def _execute(
        self, verb: str, *args: int | str, payload: bytes | None = None
    ) -> Reply:
        """发送一条命令并读取一个完整响应。

        Raises:
            StateError: 未连接。
            NetworkError: 网络通信失败 (连接随之关闭)。
            FramingError: 响应分帧失败 (连接随之关闭)。
            asyncio.CancelledError: 等待期间被取消 (连接随之关闭)。
        """
        if not self._state.is_connected:
            raise StateError(f"未连接，无法发送命令: {verb}")

        command = codec.build_command(verb, *args, payload=payload)
        logger.debug("----->> %s", command.split(b"\r\n", 1)[0])

        try:
            await self.net_client.send(command)
            raw = await self.net_client.receive_reply()
            reply = codec.parse_reply(raw)
        except (NetworkError, ProtocolError) as e:
            logger.error(f"命令 {verb} 通信异常，连接已断开: {e}")
            await self.net_client.close()
            self._state.status = ConnectionStatus.DISCONNECTED
            raise
        except asyncio.CancelledError:
            logger.warning(f"命令 {verb} 在等待响应时被取消，连接已断开")
            await self.net_client.close()
            self._state.status = ConnectionStatus.DISCONNECTED
            raise

        logger.debug("<<----- %s %s", reply.token, " ".join(reply.meta))
        return reply

    async def _send_simple(self, verb: str, *args: int | str) -> bool:
        """唯一成功状态、返回布尔值的通用命令。"""
        return self._expect(verb, await self._execute(verb, *args))

    def _expect(self, verb: str, reply: Reply) -> bool:
        if reply.status == EXPECTED_STATUS[verb]:
            return True
        self._record_error(reply)
        return False

    def _record_error(self, reply: Reply, message: str = "") -> None:
        if not message:
            message = (
                f"未知响应: {reply.token}"
                if reply.status == Status.UNKNOWN
                else reply.status.description
            )
        self._state.last_error = LastError(status=reply.token, message=message)
        logger.warning(f"命令失败: {reply.token} {message}".rstrip())

    def _read_job(self, verb: str, reply: Reply) -> Job | None:
        if not self._expect(verb, reply):
            return None
        return Job(id=reply.meta_int(0), body=reply.body or b"")

    async def _read_stats(self, verb: str, *args: int | str) -> Any:
        reply = await self._execute(verb, *args)
        if not self._expect(verb, reply):
            return None
        return parse_stats(reply.body or b"")

    def _priority(self, priority: int | None) -> int:
        return self.config.default_priority if priority is None else priority

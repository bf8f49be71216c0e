"""
Beanstalk 管道状态跟踪器 (Tube Tracker)

职责：
1. 维护生产管道 (use) 与监听集合 (watch/ignore)，与服务器确认的事实保持一致。
2. 所有变更遵循 "发送 -> 确认 -> 应用"：只有收到匹配的确认响应才修改本地状态。
3. 提供临时切换管道的作用域工具，任何退出路径都会恢复原状态。
"""

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from .exceptions import ProtocolError
from .protocols import parse_stats
from .protocols.constants import Status, Verb

if TYPE_CHECKING:
    from .core import BeanstalkClient
    from .state import TubeState

logger = logging.getLogger(__name__)

# 作用域回调：接收客户端，支持同步或异步函数
ScopedBody = Callable[["BeanstalkClient"], Any | Awaitable[Any]]


class TubeTracker:
    """生产管道与监听集合的唯一变更入口。"""

    def __init__(self, client: "BeanstalkClient") -> None:
        self.client = client

    @property
    def state(self) -> "TubeState":
        return self.client._state.tubes

    async def use(self, tube: str) -> bool:
        """切换生产管道。

        已在使用该管道时直接返回 True，不产生网络往返。

        Returns:
            bool: 服务器回显 `USING <tube>` 时返回 True。
        """
        if tube == self.state.using:
            return True

        reply = await self.client._execute(Verb.USE, tube)
        if reply.status == Status.USING and reply.meta[:1] == (tube,):
            self.state.apply_use(tube)
            logger.debug(f"生产管道已切换: {tube}")
            return True

        self.client._record_error(reply, f"切换生产管道失败: {tube}")
        return False

    async def watch(self, tube: str) -> int | None:
        """监听管道。

        已在监听时直接返回当前监听数量，不产生网络往返。

        Returns:
            int | None: 成功时返回监听的管道数量，失败返回 None。
        """
        if self.state.is_watching(tube):
            return len(self.state.watching)

        reply = await self.client._execute(Verb.WATCH, tube)
        if reply.status != Status.WATCHING:
            self.client._record_error(reply, f"监听管道失败: {tube}")
            return None

        count = reply.meta_int(0)
        self.state.apply_watch(tube)
        logger.debug(f"已监听管道: {tube} (共 {count} 个)")
        return count

    async def ignore(self, tube: str) -> bool:
        """取消监听管道。

        未监听的管道直接返回 False，不产生网络往返。
        忽略最后一个管道会被服务器以 NOT_IGNORED 拒绝，此时本地集合保持不变。
        """
        if not self.state.is_watching(tube):
            logger.debug(f"管道未被监听，跳过 ignore: {tube}")
            return False

        reply = await self.client._execute(Verb.IGNORE, tube)
        if reply.status != Status.WATCHING:
            self.client._record_error(reply, f"取消监听失败: {tube}")
            return False

        self.state.apply_ignore(tube)
        logger.debug(f"已取消监听: {tube}")
        return True

    async def watch_only(self, tube: str) -> bool:
        """只监听指定管道。

        先监听 tube，再逐个忽略其余管道。某个 ignore 失败不会中断后续操作，
        最终集合反映实际成功的部分。

        Returns:
            bool: 监听集合恰好为 [tube] 时返回 True。
        """
        await self.watch(tube)

        for other in [t for t in self.state.watching if t != tube]:
            await self.ignore(other)

        return self.state.watching == [tube]

    async def list_tube_used(self, ask_server: bool = False) -> str | None:
        """获取当前生产管道。

        Args:
            ask_server: 为 True 时向服务器查询，并以其回答更新本地状态。
        """
        if ask_server:
            reply = await self.client._execute(Verb.LIST_TUBE_USED)
            if reply.status != Status.USING or not reply.meta:
                self.client._record_error(reply)
                return None
            self.state.apply_use(reply.meta[0])

        return self.state.using

    async def list_tubes_watched(self, ask_server: bool = False) -> list[str] | None:
        """获取当前监听的管道列表。

        Args:
            ask_server: 为 True 时向服务器查询，并以其回答替换本地集合。
        """
        if ask_server:
            reply = await self.client._execute(Verb.LIST_TUBES_WATCHED)
            if reply.status != Status.OK:
                self.client._record_error(reply)
                return None

            tubes = parse_stats(reply.body or b"")
            if not isinstance(tubes, list) or not tubes:
                raise ProtocolError(f"list-tubes-watched 响应格式无效: {reply.body!r}")
            self.state.apply_watching(tubes)

        return list(self.state.watching)

    # =========================================================================
    # 作用域工具
    # =========================================================================

    @asynccontextmanager
    async def used_tube(self, tube: str) -> AsyncIterator["BeanstalkClient"]:
        """临时切换生产管道，退出时恢复原管道。"""
        previous = self.state.using
        if not await self.use(tube):
            logger.warning(f"临时切换生产管道失败，仍在使用: {self.state.using}")

        try:
            yield self.client
        except BaseException as exc:
            await self._restore(lambda: self.use(previous), pending=exc)
            raise
        await self._restore(lambda: self.use(previous))

    @asynccontextmanager
    async def watched_tube(self, tube: str) -> AsyncIterator["BeanstalkClient"]:
        """临时只监听一个管道，退出时恢复原监听集合。"""
        previous = list(self.state.watching)
        if not await self.watch_only(tube):
            logger.warning(f"临时监听未能独占管道 {tube}: {self.state.watching}")

        try:
            yield self.client
        except BaseException as exc:
            await self._restore(lambda: self._restore_watching(previous), pending=exc)
            raise
        await self._restore(lambda: self._restore_watching(previous))

    async def with_used_tube(self, tube: str, body: ScopedBody) -> Any:
        """在临时生产管道上执行 body(client)，返回其结果。"""
        async with self.used_tube(tube) as client:
            return await _call(body, client)

    async def with_watched_tube(self, tube: str, body: ScopedBody) -> Any:
        """在临时监听集合 [tube] 上执行 body(client)，返回其结果。"""
        async with self.watched_tube(tube) as client:
            return await _call(body, client)

    async def _restore_watching(self, previous: list[str]) -> bool:
        # 先恢复原集合，再忽略多出的管道，避免触发最后一个管道保护
        ok = True
        for t in previous:
            if await self.watch(t) is None:
                ok = False
        for t in [t for t in self.state.watching if t not in previous]:
            if not await self.ignore(t):
                ok = False
        return ok

    async def _restore(
        self,
        restore: Callable[[], Awaitable[bool]],
        pending: BaseException | None = None,
    ) -> None:
        """执行恢复操作。

        恢复被服务器拒绝时记录为 LastError；
        恢复本身抛出异常且 body 已有异常在传播时，只附加说明，不覆盖原异常。
        """
        try:
            ok = await restore()
        except Exception as e:
            if pending is None:
                raise
            logger.error(f"恢复管道状态失败: {e}")
            pending.add_note(f"恢复管道状态失败: {e!r}")
            return

        if not ok:
            logger.warning(f"恢复管道状态失败: {self.client._state.last_error}")


async def _call(body: ScopedBody, client: "BeanstalkClient") -> Any:
    result = body(client)
    if inspect.isawaitable(result):
        result = await result
    return result

# File: src/beanstalk_core/state.py
"""
Beanstalk 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含网络逻辑，仅作为数据容器供 Client 与 TubeTracker 共享读写。
"""

from dataclasses import dataclass, field
from enum import Enum, auto

from .protocols.constants import DEFAULT_TUBE


class ConnectionStatus(Enum):
    """连接生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTED -> DISCONNECTED
    """

    DISCONNECTED = auto()
    """未连接 (初始状态，或已主动/被动断开)。"""

    CONNECTED = auto()
    """TCP 连接已建立，可以发送命令。"""


@dataclass(frozen=True)
class LastError:
    """最近一次协议级失败。

    Attributes:
        status: 服务器返回的状态字 (如 "NOT_FOUND")。
        message: 附加说明，可能为空。
    """

    status: str
    message: str = ""


@dataclass
class TubeState:
    """客户端侧的管道状态，镜像服务器已确认的事实。

    只有在服务器确认后才通过 apply_* 方法修改 (唯一的变更路径)。

    Attributes:
        using: 当前生产管道 (put 的目标)，有且仅有一个。
        watching: 当前监听的管道集合 (有序，不重复)，连接期间不会为空。
    """

    using: str = DEFAULT_TUBE
    watching: list[str] = field(default_factory=lambda: [DEFAULT_TUBE])

    def is_watching(self, tube: str) -> bool:
        return tube in self.watching

    def apply_use(self, tube: str) -> None:
        self.using = tube

    def apply_watch(self, tube: str) -> None:
        if tube not in self.watching:
            self.watching.append(tube)

    def apply_ignore(self, tube: str) -> None:
        if tube in self.watching:
            self.watching.remove(tube)

    def apply_watching(self, tubes: list[str]) -> None:
        """用服务器返回的完整监听列表替换本地集合。"""
        self.watching = list(dict.fromkeys(tubes))

    def reset(self) -> None:
        """恢复为新连接的默认状态 (default / [default])。"""
        self.using = DEFAULT_TUBE
        self.watching = [DEFAULT_TUBE]


@dataclass
class ClientState:
    """存储 Beanstalk 客户端会话的易变状态数据。

    Attributes:
        status: 当前连接状态。
        tubes: 管道状态。
        last_error: 最近一次协议级失败，由 take_error() 读取并清除。
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    tubes: TubeState = field(default_factory=TubeState)
    last_error: LastError | None = None

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

# src/beanstalk_core/protocols/constants.py
"""
Beanstalk 协议层 - 常量定义

本模块定义了所有协议相关的命令字、状态码和默认值。
采用命名空间 (Class Namespace) 组织，不使用扁平全局变量。
"""

from enum import Enum

# =========================================================================
# 1. 基础常量
# =========================================================================

CRLF = b"\r\n"

DEFAULT_TUBE = "default"
DEFAULT_PORT = 11300

DEFAULT_PRIORITY = 60
DEFAULT_DELAY = 0
DEFAULT_TTR = 30


# =========================================================================
# 2. 命令字 (Verbs)
# =========================================================================


class Verb:
    """协议命令字"""

    # 生产者
    PUT = "put"
    USE = "use"

    # 消费者
    RESERVE = "reserve"
    RESERVE_WITH_TIMEOUT = "reserve-with-timeout"
    DELETE = "delete"
    RELEASE = "release"
    BURY = "bury"
    TOUCH = "touch"
    WATCH = "watch"
    IGNORE = "ignore"

    # 其他
    PEEK = "peek"
    PEEK_READY = "peek-ready"
    PEEK_DELAYED = "peek-delayed"
    PEEK_BURIED = "peek-buried"
    KICK = "kick"
    KICK_JOB = "kick-job"
    STATS = "stats"
    STATS_JOB = "stats-job"
    STATS_TUBE = "stats-tube"
    LIST_TUBES = "list-tubes"
    LIST_TUBE_USED = "list-tube-used"
    LIST_TUBES_WATCHED = "list-tubes-watched"
    PAUSE_TUBE = "pause-tube"
    QUIT = "quit"


# =========================================================================
# 3. 状态码 (Status Tokens)
# =========================================================================


class Status(str, Enum):
    """服务器响应状态码枚举。

    UNKNOWN 是兜底成员: 任何未收录的状态字都会映射到它，
    原始字符串保存在 Reply.token 中。
    """

    # 成功类
    INSERTED = "INSERTED"
    USING = "USING"
    RESERVED = "RESERVED"
    DELETED = "DELETED"
    RELEASED = "RELEASED"
    BURIED = "BURIED"
    TOUCHED = "TOUCHED"
    WATCHING = "WATCHING"
    FOUND = "FOUND"
    KICKED = "KICKED"
    OK = "OK"
    PAUSED = "PAUSED"

    # 失败类
    NOT_FOUND = "NOT_FOUND"
    NOT_IGNORED = "NOT_IGNORED"
    TIMED_OUT = "TIMED_OUT"
    DEADLINE_SOON = "DEADLINE_SOON"
    EXPECTED_CRLF = "EXPECTED_CRLF"
    JOB_TOO_BIG = "JOB_TOO_BIG"
    DRAINING = "DRAINING"
    OUT_OF_MEMORY = "OUT_OF_MEMORY"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_FORMAT = "BAD_FORMAT"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"

    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, token: str) -> "Status":
        """将原始状态字转换为枚举成员，未收录的返回 UNKNOWN。"""
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        """获取状态码对应的人类可读中文描述。"""
        _DESC_MAP = {
            "NOT_FOUND": "任务或管道不存在",
            "NOT_IGNORED": "不能忽略最后一个被监听的管道",
            "TIMED_OUT": "等待任务超时",
            "DEADLINE_SOON": "已保留任务即将超时",
            "EXPECTED_CRLF": "任务数据缺少 CRLF 结尾",
            "JOB_TOO_BIG": "任务数据超出服务器上限",
            "DRAINING": "服务器处于排空模式，拒绝新任务",
            "OUT_OF_MEMORY": "服务器内存不足",
            "INTERNAL_ERROR": "服务器内部错误",
            "BAD_FORMAT": "命令格式错误",
            "UNKNOWN_COMMAND": "服务器不支持该命令",
            "BURIED": "任务已被埋葬",
        }
        return _DESC_MAP.get(self.value, f"状态: {self.value}")


# 携带 Body 的状态: 状态行最后一个字段为 Body 字节数
BODY_STATUSES = frozenset({Status.RESERVED, Status.FOUND, Status.OK})


# 每个命令唯一的成功状态
EXPECTED_STATUS: dict[str, Status] = {
    Verb.PUT: Status.INSERTED,
    Verb.USE: Status.USING,
    Verb.RESERVE: Status.RESERVED,
    Verb.RESERVE_WITH_TIMEOUT: Status.RESERVED,
    Verb.DELETE: Status.DELETED,
    Verb.RELEASE: Status.RELEASED,
    Verb.BURY: Status.BURIED,
    Verb.TOUCH: Status.TOUCHED,
    Verb.WATCH: Status.WATCHING,
    Verb.IGNORE: Status.WATCHING,
    Verb.PEEK: Status.FOUND,
    Verb.PEEK_READY: Status.FOUND,
    Verb.PEEK_DELAYED: Status.FOUND,
    Verb.PEEK_BURIED: Status.FOUND,
    Verb.KICK: Status.KICKED,
    Verb.KICK_JOB: Status.KICKED,
    Verb.STATS: Status.OK,
    Verb.STATS_JOB: Status.OK,
    Verb.STATS_TUBE: Status.OK,
    Verb.LIST_TUBES: Status.OK,
    Verb.LIST_TUBE_USED: Status.USING,
    Verb.LIST_TUBES_WATCHED: Status.OK,
    Verb.PAUSE_TUBE: Status.PAUSED,
}

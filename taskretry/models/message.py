"""
状态转移消息

TransitionMessage 是重试策略的决策输出，告诉执行器下一步转移到哪个状态。

状态机 (由外部执行器驱动):
    ┌─────────┐  失败   ┌──────────┐
    │   Run   │ ──────→ │  策略决策 │ ──→ Sleep ──(until 到期)──→ Run
    └─────────┘         └──────────┘
                              │
                              └──→ Fail (终态)

code 与 until 的一致性:
    - SLEEP: 必须带 until，执行器在此之前不得再次调用处理器
    - RUN / FAIL / ERROR: 不允许带 until
    ERROR 是内部合成信号，只用于请求 FAIL 转移。
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import MessageError


class MessageCode(str, Enum):
    """
    转移消息代码

    继承自 str，枚举值即传输格式中的字符串。
    """

    RUN = "Run"
    SLEEP = "Sleep"
    FAIL = "Fail"
    ERROR = "Error"  # 内部信号，等价于请求 FAIL

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        """是否为终态 (FAIL 以及请求 FAIL 的 ERROR)"""
        return self in (MessageCode.FAIL, MessageCode.ERROR)


@dataclass(frozen=True)
class TransitionMessage:
    """
    状态转移消息

    每次决策时新建，由执行器立即消费，本库不持久化。

    Attributes:
        code: 转移代码
        until: 截止时间，仅 SLEEP 时存在
        cause: 导致转移的错误 (哨兵错误或处理器的终止错误)
    """

    code: MessageCode
    until: datetime | None = None
    cause: BaseException | str | None = None

    def __post_init__(self):
        if self.code == MessageCode.SLEEP and self.until is None:
            raise MessageError("Sleep 消息必须带截止时间")
        if self.code != MessageCode.SLEEP and self.until is not None:
            raise MessageError(
                f"{self.code} 消息不能带截止时间",
                details={"until": self.until.isoformat()},
            )

    @classmethod
    def run(cls) -> "TransitionMessage":
        return cls(MessageCode.RUN)

    @classmethod
    def sleep(cls, until: datetime) -> "TransitionMessage":
        return cls(MessageCode.SLEEP, until=until)

    @classmethod
    def fail(cls, cause: BaseException | str | None = None) -> "TransitionMessage":
        return cls(MessageCode.FAIL, cause=cause)

    @classmethod
    def error(cls, cause: BaseException | str) -> "TransitionMessage":
        return cls(MessageCode.ERROR, cause=cause)

    @property
    def transition(self) -> MessageCode:
        """执行器应进入的状态，ERROR 解析为 FAIL"""
        if self.code == MessageCode.ERROR:
            return MessageCode.FAIL
        return self.code

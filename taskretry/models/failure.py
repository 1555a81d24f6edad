"""
失败记录与失败历史

FailureRecord 记录处理器的一次失败，失败历史是按发生时间非递减排列的
FailureRecord 元组。本模块中的函数都不修改传入的历史，总是返回新元组。

历史的不变量:
    - 插入顺序即时间顺序，任何操作都不重排
    - 裁剪只保留最近的连续后缀
    - 长度上限由策略决定，记录类型本身不做限制
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence


@dataclass(frozen=True)
class FailureRecord:
    """
    失败记录

    由执行器在处理器调用失败时创建，以只读方式传入策略。

    Attributes:
        occurred_at: 失败发生时间 (无时区的时间按 UTC 解释)
        description: 人类可读的失败原因，策略不解读其内容
    """

    occurred_at: datetime
    description: str

    def __post_init__(self):
        if self.occurred_at.tzinfo is None:
            object.__setattr__(
                self, "occurred_at", self.occurred_at.replace(tzinfo=timezone.utc)
            )


def record_failure(
    history: Sequence[FailureRecord],
    description: str,
    at: datetime | None = None,
) -> tuple[FailureRecord, ...]:
    """
    追加一条失败记录，返回新的历史

    Args:
        history: 现有历史
        description: 失败原因
        at: 失败时间，默认当前 UTC 时间

    Returns:
        追加后的新历史

    Raises:
        ValueError: at 早于历史中最后一条记录
    """
    record = FailureRecord(at or datetime.now(timezone.utc), description)
    if history and record.occurred_at < history[-1].occurred_at:
        raise ValueError(
            f"失败时间 {record.occurred_at.isoformat()} 早于最后一条记录 "
            f"{history[-1].occurred_at.isoformat()}"
        )
    return (*history, record)


def count_strikes(history: Sequence[FailureRecord], cutoff: datetime) -> int:
    """统计发生时间严格晚于 cutoff 的记录数 (恰好等于 cutoff 的不计入)"""
    return sum(1 for record in history if record.occurred_at > cutoff)


def trim_history(
    history: Sequence[FailureRecord], limit: int
) -> tuple[FailureRecord, ...]:
    """
    裁剪历史，只保留最近的 limit 条

    Args:
        history: 失败历史
        limit: 最多保留条数

    Returns:
        新的历史元组；长度不超过 limit 时内容不变
    """
    if limit <= 0:
        return ()
    if len(history) > limit:
        return tuple(history[-limit:])
    return tuple(history)

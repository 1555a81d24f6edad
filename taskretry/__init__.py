"""
taskretry - 有状态任务执行器的失败重试决策核心

处理器失败后，执行器把失败记录追加到任务历史并调用重试策略；
策略返回下一步的转移消息 (Sleep / Fail) 以及应持久化的新历史。
"""

from .core.retry import DefaultPolicy, RetryPolicy, build_policy, load_policy
from .models import (
    EXCEEDED_ERROR_RATE,
    FailureRecord,
    MessageCode,
    TransitionMessage,
    record_failure,
)

__version__ = "0.1.0"

__all__ = [
    "DefaultPolicy",
    "RetryPolicy",
    "build_policy",
    "load_policy",
    "EXCEEDED_ERROR_RATE",
    "FailureRecord",
    "MessageCode",
    "TransitionMessage",
    "record_failure",
]

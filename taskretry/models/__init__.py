"""
数据模型与异常定义模块

模块内容:
    数据模型:
        - FailureRecord: 单次失败记录
        - TransitionMessage: 状态转移消息
        - MessageCode: 转移代码枚举 (RUN/SLEEP/FAIL/ERROR)

    历史工具:
        - record_failure: 追加失败记录
        - count_strikes: 统计窗口内的失败次数
        - trim_history: 保留最近 N 条

    异常类:
        - TaskRetryError: 基础异常类
        - ConfigError: 配置错误
        - MessageError: 转移消息不一致
        - SchemaError: 传输格式错误
        - ExceededErrorRate: 错误率超限 (哨兵类型)

    常量:
        - EXCEEDED_ERROR_RATE: 错误率超限哨兵实例

使用示例:
    from taskretry.models import FailureRecord, record_failure

    history = record_failure((), "connection reset")
"""

from .errors import (
    EXCEEDED_ERROR_RATE,
    ConfigError,
    ExceededErrorRate,
    MessageError,
    SchemaError,
    TaskRetryError,
)
from .failure import FailureRecord, count_strikes, record_failure, trim_history
from .message import MessageCode, TransitionMessage

__all__ = [
    "EXCEEDED_ERROR_RATE",
    "ConfigError",
    "ExceededErrorRate",
    "MessageError",
    "SchemaError",
    "TaskRetryError",
    "FailureRecord",
    "count_strikes",
    "record_failure",
    "trim_history",
    "MessageCode",
    "TransitionMessage",
]

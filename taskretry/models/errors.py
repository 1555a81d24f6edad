"""
错误与异常定义

本模块定义 taskretry 的异常层次结构以及重试预算耗尽时使用的哨兵错误。

错误分类设计:
    ┌────────────────────┬─────────────────────────────────────────────┐
    │ 错误类别            │ 说明                                        │
    ├────────────────────┼─────────────────────────────────────────────┤
    │ 瞬时失败            │ 窗口内失败次数未达阈值，进入 Sleep 后重试   │
    │ 错误率超限 (哨兵)   │ 策略自身合成，表示重试预算耗尽 → Fail       │
    │ 处理器错误          │ 原样记录在历史中的字符串，策略不解读其内容  │
    └────────────────────┴─────────────────────────────────────────────┘

异常层次结构:
    Exception
    └── TaskRetryError (基础异常)
        ├── ConfigError (配置错误)
        │   └─ 配置文件无效、参数取值不合法
        ├── MessageError (转移消息错误)
        │   └─ code 与 until 不一致
        ├── SchemaError (序列化错误)
        │   └─ 传输格式的载荷无法解析
        └── ExceededErrorRate (错误率超限)
            └─ 仅作为 Fail 消息的 cause 返回，策略从不抛出

使用示例:
    from taskretry.models.errors import EXCEEDED_ERROR_RATE, ConfigError

    if message.cause is EXCEEDED_ERROR_RATE:
        alert(task_id)

    raise ConfigError("max_strikes 必须为正整数", details={"max_strikes": 0})
"""

from typing import Any


class TaskRetryError(Exception):
    """
    taskretry 基础异常类

    所有自定义异常的基类，提供统一的错误信息格式和附加详情支持。

    Attributes:
        message: 错误消息文本
        details: 附加的错误详情字典 (可选)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | 详情: {self.details}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class ConfigError(TaskRetryError):
    """
    配置错误

    常见场景:
        - 配置文件不存在
        - YAML 语法错误
        - lifetime 为 0、max_strikes 非正整数、backoff 为负
    """

    pass


class MessageError(TaskRetryError):
    """
    转移消息错误

    当 TransitionMessage 的 code 与 until 不一致时抛出:
    Sleep 必须带截止时间，其余 code 不允许带。
    """

    pass


class SchemaError(TaskRetryError):
    """
    序列化错误

    当 FailureRecord / TransitionMessage 的传输格式载荷缺字段、
    类型错误或 code 未知时抛出。
    """

    pass


class ExceededErrorRate(TaskRetryError):
    """
    错误率超限

    重试预算耗尽的哨兵错误类型。与历史中任何处理器错误都不同，
    只作为 Fail 转移消息的原因返回。
    """

    pass


# 哨兵实例: 默认策略在达到阈值时返回它作为 Fail 的原因
EXCEEDED_ERROR_RATE = ExceededErrorRate("exceeded error rate")

"""
重试策略实现

本模块实现 taskretry 的核心决策逻辑：处理器失败后，根据有界的失败历史
决定下一步是 Sleep 后重试，还是永久 Fail。

设计理念:
    策略是一个纯函数式的能力接口 (RetryPolicy)，任何提供
    decide(task_id, history) -> (TransitionMessage, history) 的对象都可替换，
    无需继承。除读取时钟外没有其他外部输入，也不修改传入的历史。

默认策略决策流程:
    ┌─────────────────────────────────────────────────────────────────┐
    │  now = clock()                                                   │
    │  cutoff = now - lifetime                                         │
    │  strikes = 发生时间严格晚于 cutoff 的记录数                      │
    │                                                                  │
    │  strikes >= max_strikes → Fail(cause=EXCEEDED_ERROR_RATE)        │
    │                           历史原样返回 (保留完整的失败原因)      │
    │  否则                    → Sleep(until=now + backoff)            │
    │                           历史裁剪为最近 max_strikes 条          │
    └─────────────────────────────────────────────────────────────────┘

Fail 路径不裁剪、Sleep 路径裁剪，这种不对称是有意保留的:
终止时保存完整的失败记录供排查。

并发:
    策略无共享可变状态，可并发地为不同任务调用。同一任务的
    "决策 + 写回历史" 需由执行器串行化，否则会丢失更新。

使用示例:
    policy = DefaultPolicy(PolicyConfig(max_strikes=5))
    message, history = policy.decide(task_id, history)
    if message.code == MessageCode.SLEEP:
        schedule(task_id, at=message.until)
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

from ...config.settings import (
    DEFAULT_CONFIG,
    PolicyConfig,
    get_nested,
    init_logging,
    load_config,
    merge_config,
)
from ...models.errors import EXCEEDED_ERROR_RATE, ConfigError
from ...models.failure import FailureRecord, count_strikes, trim_history
from ...models.message import TransitionMessage

# 返回无时区时间的时钟按 UTC 解释
Clock = Callable[[], datetime]
Decision = tuple[TransitionMessage, tuple[FailureRecord, ...]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class RetryPolicy(Protocol):
    """
    重试策略能力接口

    约定:
        - 给定参数与当前时钟时结果确定
        - 不修改调用方的历史，返回新的元组
        - 不阻塞，对任何合法输入 (包括空历史) 都不抛异常
    """

    def decide(self, task_id: str, history: Sequence[FailureRecord]) -> Decision:
        ...


class DefaultPolicy:
    """
    默认重试策略: 滑动时间窗口 + 失败次数阈值

    Attributes:
        config: 策略参数 (lifetime / max_strikes / backoff)
        clock: 返回当前时间的函数，测试时可注入固定时钟
    """

    def __init__(self, config: PolicyConfig | None = None, clock: Clock = utc_now):
        self.config = config or PolicyConfig()
        self.clock = clock

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.config!r})"

    def decide(self, task_id: str, history: Sequence[FailureRecord]) -> Decision:
        """
        根据失败历史做出决策

        Args:
            task_id: 任务标识 (默认策略不使用)
            history: 按时间排序的失败历史

        Returns:
            (转移消息, 调用方应持久化的新历史)
        """
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = now - self.config.lifetime
        strikes = count_strikes(history, cutoff)

        if strikes >= self.config.max_strikes:
            logging.warning(
                f"任务[{task_id}] {self.config.lifetime} 内失败 {strikes} 次，"
                f"达到阈值 {self.config.max_strikes}，转为 Fail"
            )
            return TransitionMessage.fail(EXCEEDED_ERROR_RATE), tuple(history)

        until = now + self.config.backoff
        logging.debug(
            f"任务[{task_id}] 窗口内失败 {strikes}/{self.config.max_strikes} 次，"
            f"Sleep 至 {until.isoformat()}"
        )
        return TransitionMessage.sleep(until), trim_history(
            history, self.config.max_strikes
        )


class CallablePolicy:
    """
    将普通函数包装为 RetryPolicy

    函数签名需为 (task_id, history) -> (TransitionMessage, history)。
    返回的历史统一转换为元组。
    """

    def __init__(
        self,
        func: Callable[[str, Sequence[FailureRecord]], tuple[TransitionMessage, Sequence[FailureRecord]]],
    ):
        self.func = func

    def decide(self, task_id: str, history: Sequence[FailureRecord]) -> Decision:
        message, kept = self.func(task_id, tuple(history))
        return message, tuple(kept)


class ThresholdOverridePolicy:
    """
    按任务覆盖失败阈值的策略

    未在 overrides 中出现的任务使用基础配置；出现的任务使用
    各自的 max_strikes，lifetime 与 backoff 保持一致。
    任务标识统一转换为字符串 (YAML 会把 1042 读成整数)。

    Example:
        >>> policy = ThresholdOverridePolicy({"nightly-report": 3})
        >>> policy.threshold_for("nightly-report")
        3
    """

    def __init__(
        self,
        overrides: Mapping[Any, int],
        config: PolicyConfig | None = None,
        clock: Clock = utc_now,
    ):
        self.default = DefaultPolicy(config, clock)
        self.overrides = {
            str(task_id): DefaultPolicy(
                replace(self.default.config, max_strikes=max_strikes), clock
            )
            for task_id, max_strikes in overrides.items()
        }

    def threshold_for(self, task_id: str) -> int:
        return self._policy_for(task_id).config.max_strikes

    def _policy_for(self, task_id: str) -> DefaultPolicy:
        return self.overrides.get(task_id, self.default)

    def decide(self, task_id: str, history: Sequence[FailureRecord]) -> Decision:
        return self._policy_for(task_id).decide(task_id, history)


def build_policy(config: dict[str, Any] | None = None, clock: Clock = utc_now) -> RetryPolicy:
    """
    从配置字典构建策略

    配置与 DEFAULT_CONFIG 深度合并后读取 retry 节。retry.overrides
    (任务标识 → max_strikes) 非空时返回 ThresholdOverridePolicy，
    否则返回 DefaultPolicy。

    Raises:
        ConfigError: 参数不合法
    """
    merged = merge_config(DEFAULT_CONFIG, config or {})
    section = dict(get_nested(merged, "retry", default={}))
    overrides = section.pop("overrides", None) or {}
    if not isinstance(overrides, dict):
        raise ConfigError("retry.overrides 必须是字典", details={"overrides": overrides})

    policy_config = PolicyConfig.from_dict(section)
    if overrides:
        logging.info(f"已加载 {len(overrides)} 个任务的阈值覆盖")
        return ThresholdOverridePolicy(overrides, policy_config, clock)
    return DefaultPolicy(policy_config, clock)


def load_policy(config_path: str | Path, clock: Clock = utc_now) -> RetryPolicy:
    """
    从 YAML 配置文件加载策略

    执行器启动时调用: 读取配置文件，按 global.log 初始化日志，
    再由 retry 节构建策略。

    Raises:
        ConfigError: 配置文件不存在、格式错误或参数不合法
    """
    config = merge_config(DEFAULT_CONFIG, load_config(config_path))
    init_logging(get_nested(config, "global", "log"))
    return build_policy(config, clock)

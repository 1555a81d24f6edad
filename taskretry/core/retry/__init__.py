"""
重试策略模块

本模块提供处理器失败后的重试决策逻辑，是错误处理的决策中枢。

类/函数清单:
    RetryPolicy (Protocol):
        - decide(task_id, history) -> (TransitionMessage, history)
          任何实现该方法的对象都可作为策略使用

    DefaultPolicy:
        - __init__(config: PolicyConfig | None, clock)
          滑动窗口 + 阈值策略，默认 4 小时内 8 次失败即 Fail，否则 Sleep 10 分钟
        - decide(task_id, history)

    ThresholdOverridePolicy:
        - __init__(overrides: Mapping[str, int], config, clock)
          按任务覆盖 max_strikes
        - threshold_for(task_id) -> int

    CallablePolicy:
        - __init__(func) 将普通函数包装为策略

    build_policy(config: dict | None, clock) -> RetryPolicy
        从配置字典构建策略

    load_policy(config_path, clock) -> RetryPolicy
        读取 YAML 配置文件，初始化日志并构建策略

默认参数:
    ┌──────────────┬──────────┬──────────────────────────────────┐
    │ 参数          │ 默认值   │ 说明                             │
    ├──────────────┼──────────┼──────────────────────────────────┤
    │ lifetime     │ 4 小时   │ 早于 now - lifetime 的失败不计入 │
    │ max_strikes  │ 8        │ 窗口内失败次数达到即 Fail        │
    │ backoff      │ 10 分钟  │ Sleep 的冷却时长                 │
    └──────────────┴──────────┴──────────────────────────────────┘

使用示例:
    from taskretry.core.retry import DefaultPolicy

    policy = DefaultPolicy()
    message, history = policy.decide("task-1", history)
"""

from .policy import (
    CallablePolicy,
    DefaultPolicy,
    RetryPolicy,
    ThresholdOverridePolicy,
    build_policy,
    load_policy,
    utc_now,
)

__all__ = [
    "CallablePolicy",
    "DefaultPolicy",
    "RetryPolicy",
    "ThresholdOverridePolicy",
    "build_policy",
    "load_policy",
    "utc_now",
]

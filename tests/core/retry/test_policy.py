"""
重试策略单元测试

被测模块: taskretry/core/retry/policy.py

测试 DefaultPolicy 及其它策略实现，包括：
- Sleep / Fail 决策与阈值边界
- 回看窗口 (严格大于 cutoff)
- Sleep 路径裁剪历史、Fail 路径保留完整历史
- 不修改调用方历史
- 按任务覆盖阈值、函数包装、从配置构建

测试类/函数清单:
    TestDefaultPolicy                              默认策略测试
        test_empty_history_sleeps                  验证空历史返回 Sleep 与空历史
        test_sleep_until_is_now_plus_backoff       验证 until = now + backoff
        test_below_threshold_sleeps                验证 max_strikes - 1 次失败返回 Sleep
        test_at_threshold_fails                    验证 max_strikes 次失败返回 Fail
        test_fail_keeps_full_history               验证 Fail 路径历史原样返回
        test_sleep_trims_to_most_recent            验证 Sleep 路径保留最近 max_strikes 条
        test_short_history_unchanged               验证短历史不填充
        test_old_records_never_counted             验证窗口外的记录不计入
        test_record_at_cutoff_excluded             验证恰好位于 cutoff 的记录不计入
        test_does_not_mutate_input                 验证不修改传入的列表
        test_task_id_ignored                       验证默认策略忽略任务标识
        test_default_parameters                    验证默认参数 4h / 8 / 10min
        test_naive_clock_treated_as_utc            验证无时区时钟按 UTC 解释
        test_longest_durations_do_not_overflow     验证上限时长下决策不溢出
    TestConcreteScenarios                          具体场景测试
        test_eight_recent_failures                 8 条 T-1h 记录 → Fail
        test_seven_recent_five_old                 7 条 T-1h + 5 条 T-5h → Sleep 并裁剪为 8
    TestThresholdOverridePolicy                    按任务覆盖阈值测试
    TestCallablePolicy                             函数包装测试
    TestBuildPolicy                                从配置构建策略测试
    TestLoadPolicy                                 从配置文件加载策略测试
"""

import logging
from datetime import timedelta

import pytest
import yaml

from taskretry.config.settings import MAX_DURATION, PolicyConfig, init_logging
from taskretry.core.retry.policy import (
    CallablePolicy,
    DefaultPolicy,
    RetryPolicy,
    ThresholdOverridePolicy,
    build_policy,
    load_policy,
)
from taskretry.models.errors import EXCEEDED_ERROR_RATE, ConfigError
from taskretry.models.failure import FailureRecord
from taskretry.models.message import MessageCode, TransitionMessage


class TestDefaultPolicy:
    """默认策略测试"""

    @pytest.fixture
    def policy(self, clock):
        return DefaultPolicy(
            PolicyConfig(
                lifetime=timedelta(hours=4),
                max_strikes=8,
                backoff=timedelta(minutes=10),
            ),
            clock=clock,
        )

    def test_empty_history_sleeps(self, policy, now):
        message, history = policy.decide("task_1", ())
        assert message.code == MessageCode.SLEEP
        assert message.until == now + timedelta(minutes=10)
        assert message.cause is None
        assert history == ()

    def test_sleep_until_is_now_plus_backoff(self, policy, now, make_history):
        message, _ = policy.decide("task_1", make_history((3, 1)))
        assert message.until == now + timedelta(minutes=10)

    def test_below_threshold_sleeps(self, policy, make_history):
        message, history = policy.decide("task_1", make_history((7, 1)))
        assert message.code == MessageCode.SLEEP
        assert len(history) == 7

    def test_at_threshold_fails(self, policy, make_history):
        message, _ = policy.decide("task_1", make_history((8, 1)))
        assert message.code == MessageCode.FAIL
        assert message.cause is EXCEEDED_ERROR_RATE
        assert message.until is None

    def test_fail_keeps_full_history(self, policy, make_history):
        original = make_history((12, 3), (8, 1))
        message, history = policy.decide("task_1", original)
        assert message.code == MessageCode.FAIL
        assert history == original
        assert len(history) == 20

    def test_sleep_trims_to_most_recent(self, policy, make_history):
        original = make_history((13, 10), (7, 1))
        message, history = policy.decide("task_1", original)
        assert message.code == MessageCode.SLEEP
        assert history == original[-8:]

    def test_short_history_unchanged(self, policy, make_history):
        original = make_history((2, 6), (3, 1))
        _, history = policy.decide("task_1", original)
        assert history == original

    def test_old_records_never_counted(self, policy, make_history):
        message, history = policy.decide("task_1", make_history((1000, 5)))
        assert message.code == MessageCode.SLEEP
        assert len(history) == 8

    def test_record_at_cutoff_excluded(self, policy, now, make_history):
        at_cutoff = FailureRecord(now - timedelta(hours=4), "at cutoff")
        recent = make_history((7, 1))
        message, _ = policy.decide("task_1", (at_cutoff, *recent))
        assert message.code == MessageCode.SLEEP

        just_inside = FailureRecord(now - timedelta(hours=4) + timedelta(microseconds=1), "inside")
        message, _ = policy.decide("task_1", (just_inside, *recent))
        assert message.code == MessageCode.FAIL

    def test_does_not_mutate_input(self, policy, make_history):
        original = list(make_history((20, 1)))
        snapshot = list(original)
        policy.decide("task_1", original)
        assert original == snapshot

        original = list(make_history((20, 10)))
        snapshot = list(original)
        _, history = policy.decide("task_1", original)
        assert original == snapshot
        assert isinstance(history, tuple)

    def test_task_id_ignored(self, policy, make_history):
        history = make_history((5, 1))
        assert policy.decide("a", history) == policy.decide("b", history)

    def test_default_parameters(self):
        policy = DefaultPolicy()
        assert policy.config.lifetime == timedelta(hours=4)
        assert policy.config.max_strikes == 8
        assert policy.config.backoff == timedelta(minutes=10)

    def test_satisfies_protocol(self, policy):
        assert isinstance(policy, RetryPolicy)

    def test_naive_clock_treated_as_utc(self, now, make_history):
        naive_now = now.replace(tzinfo=None)
        policy = DefaultPolicy(clock=lambda: naive_now)

        message, _ = policy.decide("task_1", make_history((8, 1)))
        assert message.code == MessageCode.FAIL

        message, _ = policy.decide("task_1", make_history((7, 1)))
        assert message.until == now + timedelta(minutes=10)
        assert message.until.tzinfo is not None

    def test_longest_durations_do_not_overflow(self, clock, now, make_history):
        policy = DefaultPolicy(
            PolicyConfig(lifetime=MAX_DURATION, backoff=MAX_DURATION), clock=clock
        )

        message, _ = policy.decide("task_1", ())
        assert message.until == now + MAX_DURATION

        message, _ = policy.decide("task_1", make_history((8, 24 * 365 * 100)))
        assert message.code == MessageCode.FAIL


class TestConcreteScenarios:
    """具体场景测试 (lifetime=4h, max_strikes=8, now=T)"""

    @pytest.fixture
    def policy(self, clock):
        return DefaultPolicy(clock=clock)

    def test_eight_recent_failures(self, policy, make_history):
        original = make_history((8, 1))
        message, history = policy.decide("task_1", original)
        assert message.code == MessageCode.FAIL
        assert message.cause is EXCEEDED_ERROR_RATE
        assert str(message.cause) == "exceeded error rate"
        assert history == original

    def test_seven_recent_five_old(self, policy, now, make_history):
        original = make_history((5, 5), (7, 1))
        message, history = policy.decide("task_1", original)
        assert message.code == MessageCode.SLEEP
        assert message.until == now + timedelta(minutes=10)
        assert len(history) == 8
        assert history == original[4:]


class TestThresholdOverridePolicy:
    """按任务覆盖阈值测试"""

    @pytest.fixture
    def policy(self, clock):
        return ThresholdOverridePolicy({"fragile": 3}, clock=clock)

    def test_override_applies(self, policy, make_history):
        message, history = policy.decide("fragile", make_history((3, 1)))
        assert message.code == MessageCode.FAIL
        assert len(history) == 3

    def test_other_tasks_use_default(self, policy, make_history):
        message, _ = policy.decide("sturdy", make_history((3, 1)))
        assert message.code == MessageCode.SLEEP

    def test_override_trims_to_own_threshold(self, policy, make_history):
        _, history = policy.decide("fragile", make_history((10, 6)))
        assert len(history) == 3

    def test_threshold_for(self, policy):
        assert policy.threshold_for("fragile") == 3
        assert policy.threshold_for("sturdy") == 8

    def test_numeric_task_ids(self, clock, make_history):
        policy = ThresholdOverridePolicy({1042: 2}, clock=clock)

        assert policy.threshold_for("1042") == 2
        message, _ = policy.decide("1042", make_history((2, 1)))
        assert message.code == MessageCode.FAIL

    def test_invalid_override(self):
        with pytest.raises(ConfigError):
            ThresholdOverridePolicy({"bad": 0})


class TestCallablePolicy:
    """函数包装测试"""

    def test_wraps_function(self, make_history):
        def always_fail(task_id, history):
            return TransitionMessage.fail(f"{task_id} is broken"), list(history)

        policy = CallablePolicy(always_fail)
        message, history = policy.decide("task_1", make_history((2, 1)))

        assert isinstance(policy, RetryPolicy)
        assert message.code == MessageCode.FAIL
        assert message.cause == "task_1 is broken"
        assert isinstance(history, tuple)
        assert len(history) == 2


class TestBuildPolicy:
    """从配置构建策略测试"""

    def test_defaults(self):
        policy = build_policy()
        assert isinstance(policy, DefaultPolicy)
        assert policy.config == PolicyConfig()

    def test_from_config(self, sample_config, clock, now):
        policy = build_policy(sample_config, clock=clock)
        assert policy.config.lifetime == timedelta(hours=2)
        assert policy.config.max_strikes == 5

        message, _ = policy.decide("task_1", ())
        assert message.until == now + timedelta(seconds=60)

    def test_with_overrides(self):
        policy = build_policy({"retry": {"overrides": {"fragile": 2}}})
        assert isinstance(policy, ThresholdOverridePolicy)
        assert policy.threshold_for("fragile") == 2

    def test_yaml_numeric_override_keys(self):
        policy = build_policy(yaml.safe_load("retry:\n  overrides:\n    1042: 2\n"))
        assert policy.threshold_for("1042") == 2

    def test_oversized_durations_rejected(self):
        with pytest.raises(ConfigError):
            build_policy({"retry": {"lifetime": float("inf")}})
        with pytest.raises(ConfigError):
            build_policy({"retry": {"backoff": 1e11}})

    def test_invalid_overrides(self):
        with pytest.raises(ConfigError):
            build_policy({"retry": {"overrides": ["fragile"]}})

    def test_invalid_max_strikes(self):
        with pytest.raises(ConfigError):
            build_policy({"retry": {"max_strikes": -1}})


class TestLoadPolicy:
    """从配置文件加载策略测试"""

    def test_load_from_file(self, sample_config_file, clock, now):
        policy = load_policy(sample_config_file, clock=clock)

        assert isinstance(policy, DefaultPolicy)
        assert policy.config.max_strikes == 5
        assert logging.getLogger().level == logging.DEBUG

        message, _ = policy.decide("task_1", ())
        assert message.until == now + timedelta(seconds=60)
        init_logging()

    def test_load_with_overrides(self, tmp_path):
        config_path = tmp_path / "retry.yaml"
        config_path.write_text(
            "retry:\n  max_strikes: 4\n  overrides:\n    1042: 2\n", encoding="utf-8"
        )

        policy = load_policy(config_path)
        assert isinstance(policy, ThresholdOverridePolicy)
        assert policy.threshold_for("1042") == 2
        assert policy.threshold_for("other") == 4
        init_logging()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_policy(tmp_path / "missing.yaml")

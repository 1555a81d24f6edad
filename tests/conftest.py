"""
pytest fixtures - 测试共享资源

Fixtures 用于:
1. 提供固定时钟与失败记录工厂
2. 提供示例配置与临时配置文件
3. 在多个测试间共享资源
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# 确保可以导入 taskretry 包
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskretry.models.failure import FailureRecord  # noqa: E402


# 所有时间相关测试使用的固定 "当前时间"
NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


# ==================== 时钟 Fixtures ====================


@pytest.fixture
def now() -> datetime:
    """固定的当前时间"""
    return NOW


@pytest.fixture
def clock(now):
    """返回固定时间的时钟函数"""
    return lambda: now


# ==================== 失败历史 Fixtures ====================


@pytest.fixture
def make_history(now):
    """
    失败历史工厂

    用法: make_history((count, hours_ago), ...) 依时间先后生成记录，
    先传入的组应更早。
    """

    def _make(*groups: tuple[int, float]) -> tuple[FailureRecord, ...]:
        records = []
        for count, hours_ago in groups:
            at = now - timedelta(hours=hours_ago)
            for i in range(count):
                records.append(FailureRecord(at, f"failure {len(records)} ({i})"))
        return tuple(records)

    return _make


# ==================== 配置 Fixtures ====================


@pytest.fixture
def sample_config() -> dict:
    """提供示例配置字典"""
    return {
        "global": {
            "log": {
                "level": "debug",
                "format": "text",
                "output": "console",
            },
        },
        "retry": {
            "lifetime": 7200,
            "max_strikes": 5,
            "backoff": 60,
        },
    }


@pytest.fixture
def sample_config_file(sample_config, tmp_path) -> Path:
    """创建临时配置文件"""
    import yaml

    config_path = tmp_path / "test_config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, allow_unicode=True)
    return config_path

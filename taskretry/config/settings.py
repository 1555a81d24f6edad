"""
配置管理模块

本模块提供 taskretry 的配置功能，包括：
- YAML 配置文件加载与解析
- 默认配置定义
- 重试策略参数 (PolicyConfig) 的解析与校验
- 日志系统初始化
- 配置工具函数

配置文件结构:
    ┌─────────────────────────────────────────────────────────────────┐
    │                        config.yaml                               │
    ├─────────────────────────────────────────────────────────────────┤
    │ global:                                                          │
    │   log:                                                           │
    │     level: info                  # 日志级别                      │
    │     format: text                 # 日志格式 (text/json)          │
    │     output: console              # 输出目标 (console/file)       │
    │                                                                  │
    │ retry:                                                           │
    │   lifetime: 14400                # 回看窗口 (秒)，负数表示回看   │
    │   max_strikes: 8                 # 窗口内失败次数阈值            │
    │   backoff: 600                   # Sleep 冷却时长 (秒)           │
    └─────────────────────────────────────────────────────────────────┘

配置合并策略:
    使用深度合并 (merge_config)，用户配置覆盖默认配置。

使用示例:
    config = merge_config(DEFAULT_CONFIG, load_config("config.yaml"))
    init_logging(get_nested(config, "global", "log"))
    policy_config = PolicyConfig.from_dict(config["retry"])
"""

import logging
import os
import sys
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from ..models.errors import ConfigError


# 默认重试参数
DEFAULT_LIFETIME = timedelta(hours=4)
DEFAULT_MAX_STRIKES = 8
DEFAULT_BACKOFF = timedelta(minutes=10)

# lifetime / backoff 的上限，保证 now ± 时长不超出 datetime 范围
MAX_DURATION = timedelta(days=365 * 1000)

# 默认配置值
# 用户配置会深度合并到此默认配置上
DEFAULT_CONFIG: dict[str, Any] = {
    "global": {
        "log": {
            "level": "info",
            "format": "text",
            "output": "console",
            "file_path": "./logs/taskretry.log",
            "date_format": "%Y-%m-%d %H:%M:%S",
        },
    },
    "retry": {
        "lifetime": DEFAULT_LIFETIME.total_seconds(),
        "max_strikes": DEFAULT_MAX_STRIKES,
        "backoff": DEFAULT_BACKOFF.total_seconds(),
    },
}


@dataclass(frozen=True)
class PolicyConfig:
    """
    默认重试策略参数

    Attributes:
        lifetime: 回看窗口，早于 now - lifetime 的失败不计入
        max_strikes: 窗口内失败次数达到该值即 Fail
        backoff: Sleep 的冷却时长
    """

    lifetime: timedelta = DEFAULT_LIFETIME
    max_strikes: int = DEFAULT_MAX_STRIKES
    backoff: timedelta = DEFAULT_BACKOFF

    def __post_init__(self):
        if not -MAX_DURATION <= self.lifetime <= MAX_DURATION:
            raise ConfigError(
                f"lifetime 超出上限 {MAX_DURATION.days} 天",
                details={"lifetime": self.lifetime.total_seconds()},
            )
        # 负的 lifetime 表示"向前回看"，统一为正值
        if self.lifetime < timedelta(0):
            object.__setattr__(self, "lifetime", -self.lifetime)
        if self.lifetime == timedelta(0):
            raise ConfigError("lifetime 不能为 0")
        if (
            isinstance(self.max_strikes, bool)
            or not isinstance(self.max_strikes, int)
            or self.max_strikes <= 0
        ):
            raise ConfigError(
                "max_strikes 必须为正整数", details={"max_strikes": self.max_strikes}
            )
        if self.backoff < timedelta(0):
            raise ConfigError(
                "backoff 不能为负", details={"backoff": self.backoff.total_seconds()}
            )
        if self.backoff > MAX_DURATION:
            raise ConfigError(
                f"backoff 超出上限 {MAX_DURATION.days} 天",
                details={"backoff": self.backoff.total_seconds()},
            )

    @classmethod
    def from_dict(cls, section: dict[str, Any] | None) -> "PolicyConfig":
        """
        从配置字典 (retry 节) 构建策略参数

        时长以秒为单位；缺失的键使用默认值。

        Args:
            section: retry 配置节

        Returns:
            PolicyConfig 实例

        Raises:
            ConfigError: 取值类型错误或不合法
        """
        section = section or {}
        try:
            lifetime = _seconds(section.get("lifetime"), DEFAULT_LIFETIME)
            backoff = _seconds(section.get("backoff"), DEFAULT_BACKOFF)
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigError(f"重试时长配置无效: {e}", details=dict(section)) from e
        max_strikes = section.get("max_strikes", DEFAULT_MAX_STRIKES)
        return cls(lifetime=lifetime, max_strikes=max_strikes, backoff=backoff)

    def to_dict(self) -> dict[str, Any]:
        """转换为与 DEFAULT_CONFIG["retry"] 相同形态的字典"""
        return {
            "lifetime": self.lifetime.total_seconds(),
            "max_strikes": self.max_strikes,
            "backoff": self.backoff.total_seconds(),
        }


def _seconds(value: Any, default: timedelta) -> timedelta:
    if value is None:
        return default
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise TypeError(f"期望秒数，得到 {value!r}")
    return timedelta(seconds=float(value))


def load_config(config_path: str | Path) -> dict[str, Any]:
    """
    加载 YAML 配置文件

    Args:
        config_path: 配置文件路径 (相对或绝对路径)

    Returns:
        配置字典

    Raises:
        ConfigError: 配置文件不存在或格式错误

    Note:
        此函数只负责加载和解析，不进行与默认配置的合并。
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析错误: {e}") from e
    except OSError as e:
        raise ConfigError(f"加载配置文件失败: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError("配置文件格式错误: 根节点必须是字典")

    logging.info(f"配置文件 '{config_path}' 加载成功")
    return config


def init_logging(log_config: dict[str, Any] | None = None) -> None:
    """
    初始化日志系统

    配置 Python 标准日志库，支持控制台和文件输出，支持 text 和 json 两种格式。

    Args:
        log_config: 日志配置字典，包含以下可选键:
            - level: 日志级别 (debug/info/warning/error)
            - format: 日志格式 (text/json)
            - output: 输出目标 (console/file)
            - file_path: 日志文件路径 (当 output=file 时)
            - date_format: 日期格式
    """
    if log_config is None:
        log_config = {}

    level_str = log_config.get("level", "info").upper()
    level = getattr(logging, level_str, logging.INFO)

    log_format_type = log_config.get("format", "text")
    if log_format_type == "json":
        log_format = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"name": "%(name)s", "message": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

    date_format = log_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    output_type = log_config.get("output", "console")

    handlers: list[logging.Handler] = []

    if output_type == "file":
        file_path = log_config.get("file_path", "./logs/taskretry.log")
        try:
            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(file_path, encoding="utf-8"))
        except OSError as e:
            print(f"创建日志文件失败: {e}，回退到控制台", file=sys.stderr)
            output_type = "console"

    if output_type == "console" or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,  # 覆盖已有配置
    )

    logging.info(f"日志系统初始化完成 | 级别: {level_str}, 输出: {output_type}")


def get_nested(config: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    安全获取嵌套配置值

    Example:
        >>> config = {"a": {"b": {"c": 1}}}
        >>> get_nested(config, "a", "b", "c")
        1
        >>> get_nested(config, "a", "x", default=0)
        0
    """
    result = config
    for key in keys:
        if isinstance(result, dict):
            result = result.get(key)
        else:
            return default
        if result is None:
            return default
    return result


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    深度合并配置字典

    递归合并两个字典，override 中的值覆盖 base 中的同名键。

    Returns:
        合并后的配置 (新字典，不修改原始配置)
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value

    return result

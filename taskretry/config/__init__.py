"""
配置管理模块

导出清单 (均来自 settings.py):
    类:
        PolicyConfig
            默认重试策略参数 (lifetime / max_strikes / backoff)
    函数:
        load_config(config_path: str | Path) -> dict[str, Any]
            加载 YAML 配置文件并解析为字典
        init_logging(log_config: dict | None) -> None
            初始化日志系统 (支持 text/json 格式, console/file 输出)
        merge_config(base: dict, override: dict) -> dict
            深度合并两个配置字典 (override 覆盖 base)
        get_nested(config: dict, *keys: str, default=None) -> Any
            安全获取嵌套字典值
    常量:
        DEFAULT_CONFIG: 默认配置字典
        DEFAULT_LIFETIME / DEFAULT_MAX_STRIKES / DEFAULT_BACKOFF: 默认重试参数
        MAX_DURATION: lifetime / backoff 的上限

配置层次:
    1. 构造时显式传入的 PolicyConfig
    2. 配置文件 (config.yaml)
    3. 默认配置 (DEFAULT_CONFIG)
"""

from .settings import (
    DEFAULT_BACKOFF,
    DEFAULT_CONFIG,
    DEFAULT_LIFETIME,
    DEFAULT_MAX_STRIKES,
    MAX_DURATION,
    PolicyConfig,
    get_nested,
    init_logging,
    load_config,
    merge_config,
)

__all__ = [
    "DEFAULT_BACKOFF",
    "DEFAULT_CONFIG",
    "DEFAULT_LIFETIME",
    "DEFAULT_MAX_STRIKES",
    "MAX_DURATION",
    "PolicyConfig",
    "get_nested",
    "init_logging",
    "load_config",
    "merge_config",
]

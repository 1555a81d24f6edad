"""核心决策逻辑模块"""

from .retry import DefaultPolicy, RetryPolicy

__all__ = [
    "DefaultPolicy",
    "RetryPolicy",
]

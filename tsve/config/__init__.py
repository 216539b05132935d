# 配置模块
"""配置加载和管理"""

from tsve.config.loader import load_config, apply_cli_overrides, deep_merge
from tsve.config.defaults import (
    DEFAULT_CONFIG,
    MIN_TARGET_SIZE_MB,
    MAX_TARGET_SIZE_MB,
    KILOBITS_PER_MEGABYTE,
)

__all__ = [
    "load_config",
    "apply_cli_overrides",
    "deep_merge",
    "DEFAULT_CONFIG",
    "MIN_TARGET_SIZE_MB",
    "MAX_TARGET_SIZE_MB",
    "KILOBITS_PER_MEGABYTE",
]

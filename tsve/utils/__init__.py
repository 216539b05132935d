# 工具模块
"""通用工具函数"""

from tsve.utils.logging import setup_logging
from tsve.utils.dependency_check import check_dependencies

__all__ = [
    "setup_logging",
    "check_dependencies",
]

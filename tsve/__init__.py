# TSVE - 按目标大小两遍编码
"""
TSVE (Target Size Video Encoder) 包

主要模块:
- config: 配置加载
- core: 探测、码率规划与两遍编码
- utils: 日志、进程与依赖检测
"""

__version__ = "1.0.0"

from tsve.config import load_config, apply_cli_overrides
from tsve.core import probe, plan, encode, resolve_output_paths
from tsve.service import run_job

__all__ = [
    "__version__",
    "load_config",
    "apply_cli_overrides",
    "probe",
    "plan",
    "encode",
    "resolve_output_paths",
    "run_job",
]

# 核心模块
"""探测、码率规划与两遍编码"""

from tsve.core.models import MediaProbe, EncodingPlan
from tsve.core.probe import probe, parse_probe_output
from tsve.core.planner import (
    plan,
    validate_target_size,
    parse_target_size,
    resolve_output_paths,
)
from tsve.core.encoder import (
    build_scale_filter,
    build_pass_command,
    build_encode_commands,
    execute_ffmpeg,
    encode,
)

__all__ = [
    "MediaProbe",
    "EncodingPlan",
    "probe",
    "parse_probe_output",
    "plan",
    "validate_target_size",
    "parse_target_size",
    "resolve_output_paths",
    "build_scale_filter",
    "build_pass_command",
    "build_encode_commands",
    "execute_ffmpeg",
    "encode",
]

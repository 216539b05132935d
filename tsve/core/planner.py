#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
码率规划模块

目标大小校验、码率分配与输出路径生成，均为纯函数
"""

from pathlib import Path
from typing import Any, Tuple

from tsve.config.defaults import (
    KILOBITS_PER_MEGABYTE,
    MIN_TARGET_SIZE_MB,
    MAX_TARGET_SIZE_MB,
    OUTPUT_CONTAINER,
)
from tsve.core.models import EncodingPlan, MediaProbe
from tsve.exceptions import InfeasiblePlanError, ValidationError


def validate_target_size(target_size_mb: Any) -> int:
    """
    校验目标大小

    Args:
        target_size_mb: 目标大小（MB），必须为 [1, 1000] 内的整数

    Returns:
        校验通过的目标大小
    """
    # bool 是 int 的子类，需单独排除
    if isinstance(target_size_mb, bool) or not isinstance(target_size_mb, int):
        raise ValidationError(f"目标大小必须是整数: {target_size_mb!r}")
    if not MIN_TARGET_SIZE_MB <= target_size_mb <= MAX_TARGET_SIZE_MB:
        raise ValidationError(
            f"目标大小必须在 {MIN_TARGET_SIZE_MB}-{MAX_TARGET_SIZE_MB} MB 之间: {target_size_mb}"
        )
    return target_size_mb


def parse_target_size(text: str) -> int:
    """将用户输入（提示符或命令行）解析为目标大小"""
    value = str(text).strip()
    try:
        number = int(value, 10)
    except ValueError:
        raise ValidationError(f"目标大小必须是整数: {value!r}")
    return validate_target_size(number)


def plan(media: MediaProbe, target_size_mb: int) -> EncodingPlan:
    """
    根据时长和目标大小计算码率

    total_kbps = target_size_mb * 8192 / duration
    video_kbps = round(total_kbps - audio_kbps)

    round 使用 Python 内置的四舍六入五成双（银行家舍入）。

    Args:
        media: 探测结果
        target_size_mb: 目标大小（MB）

    Returns:
        EncodingPlan
    """
    target_size_mb = validate_target_size(target_size_mb)

    total_kbps = target_size_mb * KILOBITS_PER_MEGABYTE / media.duration_seconds
    audio_kbps = media.audio_bitrate_kbps
    video_kbps = round(total_kbps - audio_kbps)

    if video_kbps <= 0:
        raise InfeasiblePlanError(
            f"目标 {target_size_mb}MB 对 {media.duration_seconds:.2f}s 的视频过小: "
            f"总码率 {total_kbps:.1f}kbps 不足以容纳 {audio_kbps}kbps 音频"
        )

    return EncodingPlan(
        target_size_mb=target_size_mb,
        total_kbps=total_kbps,
        audio_kbps=audio_kbps,
        video_kbps=video_kbps,
    )


def temp_path_for(output_path: str) -> str:
    """最终输出文件对应的临时文件路径（同目录，tmp_ 前缀）"""
    path = Path(output_path)
    return (path.parent / f"tmp_{path.name}").as_posix()


def resolve_output_paths(
    filepath: str, target_size_mb: int, container: str = OUTPUT_CONTAINER
) -> Tuple[str, str]:
    """
    根据输入文件和目标大小生成输出路径和临时路径

    输出与输入位于同一目录，命名为 <stem>_<size>MB.<container>，
    与输入容器格式无关。

    Returns:
        (最终输出文件路径, 临时文件路径)
    """
    source_path = Path(filepath)
    output_path = source_path.parent / f"{source_path.stem}_{target_size_mb}MB.{container}"

    # 统一使用 POSIX 风格路径，避免 Windows 下反斜杠导致路径对比或日志不一致
    new_filename = output_path.as_posix()
    return new_filename, temp_path_for(new_filename)

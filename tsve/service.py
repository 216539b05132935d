#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
服务层

串联 校验 → 探测 → 规划 → 编码 的单文件流水线，可被 CLI 或其他前端复用。
"""

import os
import logging
from typing import Any, Callable, Dict, Optional, Union

from tsve.core import (
    build_encode_commands,
    encode,
    parse_target_size,
    plan,
    probe,
    resolve_output_paths,
    validate_target_size,
)
from tsve.config.defaults import (
    DEFAULT_AUDIO_KBPS,
    FFMPEG_BIN,
    FFPROBE_BIN,
    OUTPUT_CONTAINER,
)
from tsve.core.encoder import PASSLOG_PREFIX, format_command
from tsve.exceptions import TargetSizeError, ValidationError

logger = logging.getLogger(__name__)


def report_failure(error: TargetSizeError) -> int:
    """输出失败阶段与原因，返回进程退出码"""
    logger.error(f"[{error.stage_label}] {error}", extra={"stage": error.stage})
    return 1


def _resolve_target_size(
    target_size: Union[int, str, None],
    ask_target_size: Optional[Callable[[], int]],
) -> int:
    if target_size is None:
        if ask_target_size is None:
            raise ValidationError("未指定目标大小")
        target_size = ask_target_size()
    if isinstance(target_size, str):
        return parse_target_size(target_size)
    return validate_target_size(target_size)


def process_file(
    config: Dict[str, Any],
    input_path: str,
    target_size: Union[int, str, None] = None,
    ask_target_size: Optional[Callable[[], int]] = None,
) -> Optional[str]:
    """
    对单个文件执行完整流水线

    Args:
        config: 配置
        input_path: 输入文件路径
        target_size: 目标大小（MB），None 时调用 ask_target_size 获取
        ask_target_size: 交互式获取目标大小的回调

    Returns:
        输出文件路径；预览模式下返回 None
    """
    encoding_cfg = config.get("encoding", {})
    tools_cfg = config.get("tools", {})
    logging_cfg = config.get("logging", {})
    dry_run = config.get("dry_run", False)
    file_name = os.path.basename(input_path)

    if not os.path.isfile(input_path):
        raise ValidationError(f"输入文件不存在: {input_path}")

    target_size_mb = _resolve_target_size(target_size, ask_target_size)

    media = probe(
        input_path,
        ffprobe_bin=tools_cfg.get("ffprobe", FFPROBE_BIN),
        default_audio_kbps=encoding_cfg.get("default_audio_kbps", DEFAULT_AUDIO_KBPS),
        timeout=encoding_cfg.get("timeout"),
    )

    encoding_plan = plan(media, target_size_mb)
    logger.info(
        f"目标 {encoding_plan.target_size_mb}MB: 总码率 {encoding_plan.total_kbps:.1f}kbps, "
        f"视频 {encoding_plan.video_kbps}kbps, 音频 {encoding_plan.audio_kbps}kbps",
        extra={"file": file_name, "stage": "plan"},
    )

    output_path, temp_path = resolve_output_paths(
        input_path, target_size_mb, encoding_cfg.get("container", OUTPUT_CONTAINER)
    )
    logger.info(f"输出文件: {output_path}")

    if dry_run:
        logger.info("[DRY RUN] 预览模式，不实际执行")
        commands = build_encode_commands(
            input_path,
            temp_path,
            encoding_plan,
            os.path.join("<scratch>", PASSLOG_PREFIX),
            encoding_cfg,
            tools_cfg.get("ffmpeg", FFMPEG_BIN),
        )
        for i, cmd in enumerate(commands, 1):
            logger.info(f"  {i}. {format_command(cmd)}")
        return None

    encode(
        input_path,
        output_path,
        encoding_plan,
        encoding_cfg=encoding_cfg,
        ffmpeg_bin=tools_cfg.get("ffmpeg", FFMPEG_BIN),
        scratch_root=config.get("paths", {}).get("scratch"),
        print_cmd=logging_cfg.get("print_cmd", False),
    )

    new_size = os.path.getsize(output_path)
    logger.info(
        f"完成: {os.path.basename(output_path)} "
        f"({new_size / 1024 / 1024:.2f} MB / 目标 {target_size_mb} MB)",
        extra={"file": file_name},
    )
    return output_path


def run_job(
    config: Dict[str, Any],
    input_path: str,
    target_size: Union[int, str, None] = None,
    ask_target_size: Optional[Callable[[], int]] = None,
) -> int:
    """
    执行单文件任务

    Returns:
        进程退出码：0 成功，1 任一阶段失败
    """
    try:
        process_file(config, input_path, target_size, ask_target_size)
    except TargetSizeError as e:
        return report_failure(e)
    return 0

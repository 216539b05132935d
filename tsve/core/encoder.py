#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FFmpeg 编码器模块

构建和执行两遍编码命令
"""

import os
import logging
import subprocess
from typing import Any, Dict, List, Optional, Tuple

from tsve.config.defaults import (
    AUDIO_CODEC,
    ENCODE_PASSES,
    FFMPEG_BIN,
    MAX_HEIGHT,
    MAX_WIDTH,
    VIDEO_CODEC,
)
from tsve.core.models import EncodingPlan
from tsve.core.planner import temp_path_for
from tsve.exceptions import (
    EncodeError,
    EncodeTimeoutError,
    MissingDependencyError,
    ValidationError,
)
from tsve.utils.process import (
    cleanup_scratch_dir,
    create_scratch_dir,
    is_shutdown_requested,
    register_process,
    remove_file_quietly,
    unregister_process,
)

logger = logging.getLogger(__name__)

PASSLOG_PREFIX = "passlog"


def format_command(cmd: List[str]) -> str:
    """将命令列表转换为便于阅读的字符串"""
    return " ".join(f'"{arg}"' if " " in str(arg) else str(arg) for arg in cmd)


def execute_ffmpeg(cmd: List[str], timeout: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    执行 FFmpeg 命令并检查错误

    Args:
        cmd: FFmpeg 命令列表
        timeout: 超时秒数，超时后终止进程并抛出 subprocess.TimeoutExpired

    Returns:
        (成功标志, 错误信息)
    """
    if is_shutdown_requested():
        return False, "程序正在退出"

    logger.debug(f"FFmpeg 命令: {format_command(cmd)}")

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            universal_newlines=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError:
        raise MissingDependencyError(f"{cmd[0]} 未安装或不在 PATH 中")
    except OSError as e:
        return False, str(e)

    register_process(process)
    try:
        try:
            _, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()
            raise
    finally:
        unregister_process(process)

    if process.returncode != 0:
        stderr = stderr or ""
        message = stderr[-500:] if len(stderr) > 500 else stderr
        return False, message.strip() or f"退出码 {process.returncode}"

    return True, None


def build_scale_filter(max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT) -> str:
    """
    构建缩放滤镜：保持宽高比缩放到 max_width x max_height 以内，只缩小不放大

    libx264 要求偶数尺寸，因此同时强制宽高可被 2 整除。
    """
    return (
        f"scale='min({max_width},iw)':'min({max_height},ih)'"
        ":force_original_aspect_ratio=decrease:force_divisible_by=2"
    )


def _video_args(plan: EncodingPlan, encoding_cfg: Dict[str, Any]) -> List[str]:
    args = [
        "-vf", build_scale_filter(
            encoding_cfg.get("max_width", MAX_WIDTH),
            encoding_cfg.get("max_height", MAX_HEIGHT),
        ),
        "-c:v", encoding_cfg.get("video_codec", VIDEO_CODEC),
    ]
    preset = encoding_cfg.get("preset")
    if preset:
        args.extend(["-preset", str(preset)])
    args.extend(["-b:v", plan.video_bitrate_arg])
    return args


def _audio_args(plan: EncodingPlan, encoding_cfg: Dict[str, Any]) -> List[str]:
    return [
        "-c:a", encoding_cfg.get("audio_codec", AUDIO_CODEC),
        "-b:a", plan.audio_bitrate_arg,
    ]


def build_pass_command(
    pass_number: int,
    input_path: str,
    output_path: str,
    plan: EncodingPlan,
    passlog_path: str,
    encoding_cfg: Optional[Dict[str, Any]] = None,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> List[str]:
    """
    构建两遍编码中某一遍的命令

    第 1 遍只分析视频，关闭音频，输出丢弃到空设备；
    第 2 遍复用第 1 遍的统计文件，同时编码音频并写入 output_path。

    Args:
        pass_number: 1 或 2
        input_path: 输入文件路径
        output_path: 第 2 遍的输出路径（第 1 遍忽略）
        plan: 编码计划
        passlog_path: pass log 文件前缀
        encoding_cfg: encoding 配置段
        ffmpeg_bin: ffmpeg 可执行文件

    Returns:
        命令列表
    """
    if pass_number not in (1, 2):
        raise ValueError(f"pass_number 只能是 1 或 2: {pass_number}")
    encoding_cfg = encoding_cfg or {}

    cmd = [ffmpeg_bin, "-y", "-hide_banner", "-i", str(input_path)]
    cmd.extend(_video_args(plan, encoding_cfg))
    cmd.extend(["-pass", str(pass_number), "-passlogfile", str(passlog_path)])

    if pass_number == 1:
        cmd.extend(["-an", "-f", "null", os.devnull])
    else:
        cmd.extend(_audio_args(plan, encoding_cfg))
        cmd.append(str(output_path))
    return cmd


def build_single_pass_command(
    input_path: str,
    output_path: str,
    plan: EncodingPlan,
    encoding_cfg: Optional[Dict[str, Any]] = None,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> List[str]:
    """构建单遍编码命令（encoding.passes: 1）"""
    encoding_cfg = encoding_cfg or {}
    cmd = [ffmpeg_bin, "-y", "-hide_banner", "-i", str(input_path)]
    cmd.extend(_video_args(plan, encoding_cfg))
    cmd.extend(_audio_args(plan, encoding_cfg))
    cmd.append(str(output_path))
    return cmd


def resolve_passes(encoding_cfg: Dict[str, Any]) -> int:
    """读取 encoding.passes，只接受 1 或 2，否则抛出 ValidationError"""
    value = encoding_cfg.get("passes", ENCODE_PASSES)
    if isinstance(value, bool) or value not in (1, 2):
        raise ValidationError(f"encoding.passes 只能是 1 或 2: {value!r}")
    return int(value)


def build_encode_commands(
    input_path: str,
    output_path: str,
    plan: EncodingPlan,
    passlog_path: str,
    encoding_cfg: Optional[Dict[str, Any]] = None,
    ffmpeg_bin: str = FFMPEG_BIN,
) -> List[List[str]]:
    """按配置的遍数返回全部命令，依次执行"""
    encoding_cfg = encoding_cfg or {}
    if resolve_passes(encoding_cfg) == 1:
        return [build_single_pass_command(input_path, output_path, plan, encoding_cfg, ffmpeg_bin)]
    return [
        build_pass_command(n, input_path, output_path, plan, passlog_path, encoding_cfg, ffmpeg_bin)
        for n in (1, 2)
    ]


def encode(
    input_path: str,
    output_path: str,
    plan: EncodingPlan,
    encoding_cfg: Optional[Dict[str, Any]] = None,
    ffmpeg_bin: str = FFMPEG_BIN,
    scratch_root: Optional[str] = None,
    print_cmd: bool = False,
) -> None:
    """
    执行两遍编码，成功后输出文件位于 output_path

    第 2 遍写入同目录的 tmp_ 临时文件，成功后重命名为最终文件；
    任一遍失败都会删除临时文件，第 1 遍失败时不会执行第 2 遍。
    pass log 放在本次调用独占的临时目录中，结束后尽力删除。

    Args:
        input_path: 输入文件路径
        output_path: 最终输出文件路径
        plan: 编码计划
        encoding_cfg: encoding 配置段
        ffmpeg_bin: ffmpeg 可执行文件
        scratch_root: pass log 临时目录的父目录，None 表示系统临时目录
        print_cmd: 是否以 INFO 级别输出完整命令
    """
    encoding_cfg = encoding_cfg or {}
    timeout = encoding_cfg.get("timeout")
    temp_output = temp_path_for(output_path)
    resolve_passes(encoding_cfg)

    scratch_dir = create_scratch_dir(scratch_root)
    passlog_path = os.path.join(scratch_dir, PASSLOG_PREFIX)
    commands = build_encode_commands(
        input_path, temp_output, plan, passlog_path, encoding_cfg, ffmpeg_bin
    )
    total = len(commands)

    succeeded = False
    try:
        for pass_number, cmd in enumerate(commands, 1):
            extra = {"file": os.path.basename(input_path), "stage": "encode", "pass_no": pass_number}
            if print_cmd:
                logger.info(f"FFmpeg 命令: {format_command(cmd)}", extra=extra)
            logger.info(f"开始第 {pass_number}/{total} 遍编码 ({plan.video_bitrate_arg})", extra=extra)

            try:
                ok, error = execute_ffmpeg(cmd, timeout=timeout)
            except subprocess.TimeoutExpired:
                raise EncodeTimeoutError(
                    f"第 {pass_number} 遍编码超时 ({timeout}s)", pass_number=pass_number
                )
            if not ok:
                raise EncodeError(f"第 {pass_number} 遍编码失败: {error}", pass_number=pass_number)

            logger.info(f"第 {pass_number}/{total} 遍编码完成", extra=extra)

        try:
            os.replace(temp_output, output_path)
        except OSError as e:
            raise EncodeError(f"无法写入输出文件: {e}", pass_number=total)
        succeeded = True
    finally:
        if not succeeded:
            remove_file_quietly(temp_output)
        cleanup_scratch_dir(scratch_dir)

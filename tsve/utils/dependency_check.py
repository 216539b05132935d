#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
外部依赖检测

在程序启动时确认 ffmpeg/ffprobe 及所需编码器可用
"""

import shutil
import subprocess
import logging
from typing import Tuple

from tsve.config.defaults import AUDIO_CODEC, FFMPEG_BIN, FFPROBE_BIN, VIDEO_CODEC
from tsve.exceptions import MissingDependencyError

logger = logging.getLogger("DependencyCheck")


def check_tool_available(tool: str) -> Tuple[bool, str]:
    """
    检测可执行文件是否存在于 PATH 中（或是否为有效路径）

    Returns:
        (是否可用, 错误信息)
    """
    if shutil.which(tool) is None:
        return False, f"{tool} 未安装或不在 PATH 中"
    return True, ""


def check_encoder_available(encoder_name: str, ffmpeg_bin: str = FFMPEG_BIN) -> Tuple[bool, str]:
    """
    检测单个编码器是否可用

    Args:
        encoder_name: ffmpeg 编码器名称 (如 libx264, aac)
        ffmpeg_bin: ffmpeg 可执行文件

    Returns:
        (是否可用, 错误信息)
    """
    try:
        # 使用 ffmpeg -encoders 查询
        result = subprocess.run(
            [ffmpeg_bin, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except FileNotFoundError:
        return False, f"{ffmpeg_bin} 未安装或不在 PATH 中"
    except subprocess.TimeoutExpired:
        return False, "ffmpeg 检测超时"
    except OSError as e:
        return False, f"检测失败: {e}"

    names = set()
    for line in result.stdout.splitlines():
        parts = line.split()
        # 编码器行格式: " V....D libx264   libx264 H.264 ..."
        if len(parts) >= 2 and len(parts[0]) == 6:
            names.add(parts[1])

    if encoder_name in names:
        return True, ""
    return False, f"编码器 {encoder_name} 未在 ffmpeg 中找到"


def check_dependencies(config: dict) -> None:
    """
    启动时检测全部外部依赖，任一缺失即抛出 MissingDependencyError

    Args:
        config: 完整配置
    """
    tools = config.get("tools", {})
    encoding = config.get("encoding", {})
    ffmpeg_bin = tools.get("ffmpeg", FFMPEG_BIN)
    ffprobe_bin = tools.get("ffprobe", FFPROBE_BIN)

    for tool in (ffmpeg_bin, ffprobe_bin):
        available, error = check_tool_available(tool)
        if not available:
            raise MissingDependencyError(error)
        logger.debug(f"✓ {tool} 可用")

    for encoder in (
        encoding.get("video_codec", VIDEO_CODEC),
        encoding.get("audio_codec", AUDIO_CODEC),
    ):
        available, error = check_encoder_available(encoder, ffmpeg_bin)
        if not available:
            raise MissingDependencyError(error)
        logger.debug(f"✓ {encoder} 可用")

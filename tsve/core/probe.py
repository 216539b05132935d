#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
媒体探测模块

通过 ffprobe 的 JSON 输出获取时长与首条音轨码率
"""

import json
import logging
import subprocess
from typing import Any, Dict, Optional

from tsve.config.defaults import DEFAULT_AUDIO_KBPS, FFPROBE_BIN
from tsve.core.models import MediaProbe
from tsve.exceptions import MissingDependencyError, ProbeError

logger = logging.getLogger(__name__)


def build_probe_command(filepath: str, ffprobe_bin: str = FFPROBE_BIN) -> list:
    """构建 ffprobe 命令（静默日志 + JSON 格式的 format/streams 信息）"""
    return [
        ffprobe_bin,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(filepath),
    ]


def _parse_duration(data: Dict[str, Any], filepath: str) -> float:
    fmt = data.get("format")
    if not isinstance(fmt, dict):
        raise ProbeError(f"ffprobe 输出中没有 format 信息: {filepath}")
    raw = fmt.get("duration")
    if raw is None:
        raise ProbeError(f"ffprobe 输出中没有时长信息: {filepath}")
    try:
        duration = float(raw)
    except (TypeError, ValueError):
        raise ProbeError(f"无法解析时长 {raw!r}: {filepath}")
    # NaN 不满足 > 0
    if not duration > 0:
        raise ProbeError(f"时长无效 ({duration}s): {filepath}")
    return duration


def _parse_audio_kbps(stream: Dict[str, Any]) -> Optional[int]:
    """bit_rate 为 bps 字符串或数字，返回 kbps；缺失或无效返回 None"""
    raw = stream.get("bit_rate")
    if raw is None:
        return None
    try:
        kbps = int(float(raw)) // 1000
    except (TypeError, ValueError):
        return None
    return kbps if kbps > 0 else None


def parse_probe_output(
    data: Dict[str, Any],
    filepath: str,
    default_audio_kbps: int = DEFAULT_AUDIO_KBPS,
) -> MediaProbe:
    """
    从 ffprobe JSON 文档构建 MediaProbe

    Args:
        data: ffprobe 输出的 JSON 文档
        filepath: 输入文件路径（仅用于日志和错误信息）
        default_audio_kbps: 无音轨或无音频码率时使用的默认值

    Returns:
        MediaProbe
    """
    if not isinstance(data, dict):
        raise ProbeError(f"ffprobe 输出格式异常: {filepath}")

    duration = _parse_duration(data, filepath)

    streams = data.get("streams") or []
    if not isinstance(streams, list):
        raise ProbeError(f"ffprobe 输出中的 streams 格式异常: {filepath}")
    audio_stream = next(
        (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "audio"), None
    )

    if audio_stream is None:
        logger.warning(
            f"未发现音轨，音频码率按默认值 {default_audio_kbps}kbps 计算",
            extra={"file": filepath, "stage": "probe"},
        )
        return MediaProbe(
            duration_seconds=duration,
            audio_bitrate_kbps=default_audio_kbps,
            has_audio=False,
            audio_bitrate_defaulted=True,
        )

    audio_kbps = _parse_audio_kbps(audio_stream)
    if audio_kbps is None:
        logger.warning(
            f"音轨未提供有效码率，按默认值 {default_audio_kbps}kbps 计算",
            extra={"file": filepath, "stage": "probe"},
        )
        return MediaProbe(
            duration_seconds=duration,
            audio_bitrate_kbps=default_audio_kbps,
            has_audio=True,
            audio_bitrate_defaulted=True,
        )

    return MediaProbe(
        duration_seconds=duration,
        audio_bitrate_kbps=audio_kbps,
        has_audio=True,
    )


def probe(
    filepath: str,
    ffprobe_bin: str = FFPROBE_BIN,
    default_audio_kbps: int = DEFAULT_AUDIO_KBPS,
    timeout: Optional[float] = None,
) -> MediaProbe:
    """
    探测媒体文件的时长与音频码率

    文件是否存在由调用方检查。

    Args:
        filepath: 媒体文件路径
        ffprobe_bin: ffprobe 可执行文件
        default_audio_kbps: 无音轨时使用的音频码率
        timeout: 超时秒数，None 表示不限

    Returns:
        MediaProbe
    """
    cmd = build_probe_command(filepath, ffprobe_bin)
    logger.debug(f"ffprobe 命令: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError:
        raise MissingDependencyError(f"{ffprobe_bin} 未安装或不在 PATH 中")
    except subprocess.TimeoutExpired:
        raise ProbeError(f"ffprobe 超时 ({timeout}s): {filepath}")

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ProbeError(
            f"ffprobe 退出码 {result.returncode}: {filepath}"
            + (f" ({stderr[-300:]})" if stderr else "")
        )

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"无法解析 ffprobe JSON 输出: {e}")

    media = parse_probe_output(data, filepath, default_audio_kbps)
    logger.info(
        f"时长: {media.duration_seconds:.2f}s, 音频码率: {media.audio_bitrate_kbps}kbps",
        extra={"file": filepath},
    )
    return media

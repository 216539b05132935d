#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
数据模型

探测结果与编码计划，均为一次运行内的只读值
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MediaProbe:
    """ffprobe 探测结果"""

    duration_seconds: float
    audio_bitrate_kbps: int
    has_audio: bool = True
    # 没有音轨或音轨缺少 bit_rate 时为 True，此时 audio_bitrate_kbps 为默认值
    audio_bitrate_defaulted: bool = False


@dataclass(frozen=True)
class EncodingPlan:
    """由探测结果和目标大小推导出的码率分配"""

    target_size_mb: int
    total_kbps: float
    audio_kbps: int
    video_kbps: int

    @property
    def video_bitrate_arg(self) -> str:
        return f"{self.video_kbps}k"

    @property
    def audio_bitrate_arg(self) -> str:
        return f"{self.audio_kbps}k"

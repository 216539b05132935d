#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
异常定义

每种异常对应流水线中的一个阶段，服务层据此输出失败阶段并返回非 0 退出码
"""

from typing import Optional


STAGE_LABELS = {
    "dependency": "依赖检测",
    "validation": "参数校验",
    "probe": "媒体探测",
    "plan": "码率规划",
    "encode": "编码",
}


class TargetSizeError(Exception):
    """所有流水线错误的基类"""

    stage = "unknown"

    @property
    def stage_label(self) -> str:
        return STAGE_LABELS.get(self.stage, self.stage)


class MissingDependencyError(TargetSizeError):
    """ffmpeg/ffprobe 或所需编码器不可用"""

    stage = "dependency"


class ValidationError(TargetSizeError):
    """目标大小或输入路径不合法"""

    stage = "validation"


class ProbeError(TargetSizeError):
    """无法从 ffprobe 输出中读取时长"""

    stage = "probe"


class InfeasiblePlanError(TargetSizeError):
    """计算出的视频码率 <= 0"""

    stage = "plan"


class EncodeError(TargetSizeError):
    """ffmpeg 某一遍以非 0 退出"""

    stage = "encode"

    def __init__(self, message: str, pass_number: Optional[int] = None):
        super().__init__(message)
        self.pass_number = pass_number


class EncodeTimeoutError(EncodeError):
    """ffmpeg 某一遍超过了配置的超时时间"""

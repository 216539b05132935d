#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
默认配置常量

定义程序的默认配置值
"""

# ============================================================
# 路径配置
# ============================================================
# None 表示不写日志文件，仅输出到控制台
DEFAULT_LOG_FOLDER = None
# None 表示使用系统临时目录存放 pass log
DEFAULT_SCRATCH_FOLDER = None

# ============================================================
# 外部工具
# ============================================================
FFMPEG_BIN = "ffmpeg"
FFPROBE_BIN = "ffprobe"

# ============================================================
# 目标大小配置
# ============================================================
MIN_TARGET_SIZE_MB = 1
MAX_TARGET_SIZE_MB = 1000
# 1 MB = 8 Mb = 8192 kb
KILOBITS_PER_MEGABYTE = 8192

# ============================================================
# 编码配置
# ============================================================
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
OUTPUT_CONTAINER = "mp4"
ENCODE_PASSES = 2

# 源文件没有音轨（或无法读取音频码率）时使用的音频码率
DEFAULT_AUDIO_KBPS = 128

# 缩放上限，只缩小不放大
MAX_WIDTH = 1280
MAX_HEIGHT = 720

# ============================================================
# 日志配置
# ============================================================
DEFAULT_LOG_LEVEL = "INFO"

# ============================================================
# 默认配置字典（用于配置加载）
# ============================================================
DEFAULT_CONFIG = {
    "paths": {
        "log": DEFAULT_LOG_FOLDER,
        "scratch": DEFAULT_SCRATCH_FOLDER,
    },
    "tools": {
        "ffmpeg": FFMPEG_BIN,
        "ffprobe": FFPROBE_BIN,
    },
    "encoding": {
        "video_codec": VIDEO_CODEC,
        "audio_codec": AUDIO_CODEC,
        "container": OUTPUT_CONTAINER,
        "preset": None,
        "passes": ENCODE_PASSES,
        "default_audio_kbps": DEFAULT_AUDIO_KBPS,
        "max_width": MAX_WIDTH,
        "max_height": MAX_HEIGHT,
        # 单次 ffprobe/ffmpeg 调用的超时秒数，None 表示不限
        "timeout": None,
    },
    "logging": {
        "level": DEFAULT_LOG_LEVEL,
        "plain": False,
        "json_console": False,
        "print_cmd": False,
    },
}

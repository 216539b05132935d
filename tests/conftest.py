#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pytest 配置文件
"""

import copy
import os
import sys
import pytest

# 添加项目根目录到 Python 路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tsve.config.defaults import DEFAULT_CONFIG


@pytest.fixture
def sample_config(tmp_path):
    """返回测试用配置，pass log 放在 tmp_path 下"""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["paths"]["scratch"] = str(tmp_path / "scratch")
    config["dry_run"] = False
    return config


@pytest.fixture
def ffprobe_document():
    """带一条视频流和一条 128kbps 音频流的 ffprobe JSON 文档"""
    return {
        "streams": [
            {"index": 0, "codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080},
            {"index": 1, "codec_type": "audio", "codec_name": "aac", "bit_rate": "128000"},
        ],
        "format": {"filename": "movie.mkv", "duration": "120.000000", "bit_rate": "5000000"},
    }

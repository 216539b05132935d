#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
启动准备模块

统一处理编码、日志初始化、信号/进程管理、外部依赖检测。
"""

import sys
import io
import logging
from typing import Dict, Any

from tsve.utils.process import setup_signal_handlers
from tsve.utils.logging import setup_logging
from tsve.utils.dependency_check import check_dependencies


def enforce_utf8_windows() -> None:
    """在 Windows 强制 stdout/stderr 使用 UTF-8，避免中文乱码"""
    if sys.platform != 'win32':
        return
    if sys.stdout.encoding != 'utf-8':
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    if sys.stderr.encoding != 'utf-8':
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')


def prepare_environment(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    启动前统一准备工作：编码、日志初始化、信号处理、依赖检测。

    依赖缺失时抛出 MissingDependencyError。

    Args:
        config: 已加载并应用 CLI 覆盖的配置

    Returns:
        配置（原样返回，便于链式调用）
    """
    enforce_utf8_windows()

    # 信号处理需尽早注册
    setup_signal_handlers()

    logging_cfg = config.get("logging", {})
    log_file = setup_logging(
        config.get("paths", {}).get("log"),
        level=logging_cfg.get("level", "INFO"),
        plain=logging_cfg.get("plain", False),
        json_console=logging_cfg.get("json_console", False),
    )
    if log_file:
        logging.debug(f"日志文件: {log_file}")

    logging.debug("检测外部依赖...")
    check_dependencies(config)

    return config

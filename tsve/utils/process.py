#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
进程与临时文件管理模块

管理 FFmpeg 子进程，支持优雅退出时清理所有进程；
负责 pass log 临时目录的创建与尽力清理
"""

import os
import shutil
import signal
import subprocess
import logging
import tempfile
import threading
from typing import Optional, Set

# 全局进程集合和锁
_ffmpeg_processes: Set = set()
_process_lock = threading.Lock()
_shutdown_requested = False

SCRATCH_PREFIX = "tsve-passlog-"


def register_process(process) -> None:
    """
    注册一个 FFmpeg 进程到全局集合

    Args:
        process: subprocess.Popen 对象
    """
    with _process_lock:
        _ffmpeg_processes.add(process)


def unregister_process(process) -> None:
    """
    从全局集合中移除一个 FFmpeg 进程

    Args:
        process: subprocess.Popen 对象
    """
    with _process_lock:
        _ffmpeg_processes.discard(process)


def is_shutdown_requested() -> bool:
    """是否已请求关闭"""
    return _shutdown_requested


def terminate_all_ffmpeg() -> None:
    """
    终止所有注册的 FFmpeg 进程
    """
    global _shutdown_requested
    _shutdown_requested = True

    with _process_lock:
        processes = list(_ffmpeg_processes)

    if not processes:
        return

    logging.info(f"正在终止 {len(processes)} 个 FFmpeg 进程...")

    for process in processes:
        try:
            if process.poll() is None:  # 进程仍在运行
                process.terminate()
                logging.debug(f"已发送 SIGTERM 到进程 {process.pid}")
        except OSError as e:
            logging.warning(f"终止进程时出错: {e}")

    # 等待进程退出，如果超时则强制杀死
    for process in processes:
        try:
            if process.poll() is None:
                process.wait(timeout=3)
        except subprocess.TimeoutExpired:
            try:
                process.kill()
                logging.debug(f"已发送 SIGKILL 到进程 {process.pid}")
            except OSError:
                pass

    logging.info("所有 FFmpeg 进程已终止")


def create_scratch_dir(scratch_root: Optional[str] = None) -> str:
    """
    为本次运行创建独占的 pass log 临时目录

    目录名包含随机后缀，多个实例同时运行时互不干扰。

    Args:
        scratch_root: 父目录，None 表示系统临时目录

    Returns:
        新建目录的路径
    """
    if scratch_root:
        os.makedirs(scratch_root, exist_ok=True)
    path = tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=scratch_root or None)
    logging.debug(f"pass log 临时目录: {path}")
    return path


def cleanup_scratch_dir(path: str) -> None:
    """删除 pass log 临时目录，失败时忽略"""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logging.debug(f"清理临时目录失败，已忽略 {path}: {e}")


def remove_file_quietly(path: str) -> bool:
    """
    删除单个文件，文件不存在或删除失败时忽略

    Returns:
        是否删除了文件
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logging.debug(f"删除文件失败，已忽略 {path}: {e}")
        return False
    logging.debug(f"[清理] 删除临时文件: {path}")
    return True


def setup_signal_handlers() -> None:
    """
    设置信号处理器，捕获 SIGINT (Ctrl+C) 和 SIGTERM
    """

    def signal_handler(signum, frame):
        sig_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logging.warning(f"收到 {sig_name} 信号，正在清理...")
        terminate_all_ffmpeg()
        raise KeyboardInterrupt()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
配置加载器

支持从 YAML 文件加载配置，并实现配置优先级合并
优先级: 命令行参数 > 配置文件 > 程序默认值
"""

import os
import logging
import copy
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from tsve.config.defaults import DEFAULT_CONFIG


def find_default_config() -> Optional[str]:
    """
    查找默认配置文件

    按以下顺序查找:
    1. 程序同目录下的 config.yaml
    2. 用户目录下的 .tsve/config.yaml

    Returns:
        找到的配置文件路径，如果没找到返回 None
    """
    # 程序同目录（项目根目录）
    script_dir = Path(__file__).parent.parent.parent
    local_config = script_dir / "config.yaml"
    if local_config.exists():
        return str(local_config)

    # 用户目录
    home_config = Path.home() / ".tsve" / "config.yaml"
    if home_config.exists():
        return str(home_config)

    return None


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    深度合并两个字典，override 中的值会覆盖 base 中的值

    Args:
        base: 基础字典
        override: 覆盖字典

    Returns:
        合并后的字典
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径，如果为 None 则使用默认路径

    Returns:
        配置字典
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is None:
        config_path = find_default_config()

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                raise ValueError("顶层必须是映射")
            logging.info(f"已加载配置文件: {config_path}")
            return deep_merge(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logging.warning(f"加载配置文件失败: {e}，使用默认配置")
            return config
    elif config_path:
        logging.warning(f"配置文件不存在: {config_path}，使用默认配置")

    return config


def _level_from_flags(verbose: int, quiet: int) -> Optional[str]:
    """-v/-q 计数转换为日志级别，均未指定时返回 None"""
    if verbose:
        return "DEBUG"
    if quiet >= 2:
        return "ERROR"
    if quiet == 1:
        return "WARNING"
    return None


def apply_cli_overrides(config: Dict[str, Any], args) -> Dict[str, Any]:
    """
    将命令行参数覆盖到配置中

    优先级: 命令行参数 > 配置文件 > 程序默认值

    Args:
        config: 配置字典
        args: 命令行参数

    Returns:
        更新后的配置字典
    """
    paths_cfg = config.setdefault("paths", {})
    logging_cfg = config.setdefault("logging", {})

    # 路径覆盖
    if getattr(args, "log", None):
        paths_cfg["log"] = args.log

    # 日志覆盖
    level = _level_from_flags(getattr(args, "verbose", 0) or 0, getattr(args, "quiet", 0) or 0)
    if level:
        logging_cfg["level"] = level
    if getattr(args, "plain", False):
        logging_cfg["plain"] = True
    if getattr(args, "json_logs", False):
        logging_cfg["json_console"] = True
    if getattr(args, "print_cmd", False):
        logging_cfg["print_cmd"] = True

    # 运行模式
    config["dry_run"] = bool(getattr(args, "dry_run", False))

    return config

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TSVE (Target Size Video Encoder) - CLI 入口

命令行参数解析与交互式目标大小输入
"""

import sys
import logging
import argparse
from typing import Callable

from tsve import __version__
from tsve.bootstrap import prepare_environment
from tsve.config import load_config, apply_cli_overrides
from tsve.config.defaults import MIN_TARGET_SIZE_MB, MAX_TARGET_SIZE_MB
from tsve.core import parse_target_size
from tsve.exceptions import TargetSizeError, ValidationError
from tsve.service import report_failure, run_job
from tsve.utils.process import terminate_all_ffmpeg

PROMPT_TEXT = f"目标大小 (MB, {MIN_TARGET_SIZE_MB}-{MAX_TARGET_SIZE_MB}): "


def parse_arguments(argv=None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description='TSVE (Target Size Video Encoder) - 按目标文件大小两遍编码视频',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
使用示例:
  # 交互式输入目标大小
  python main.py /path/to/movie.mkv

  # 直接指定目标大小（MB）
  python main.py /path/to/movie.mkv -s 18

  # 预览码率与命令（不实际执行）
  python main.py /path/to/movie.mkv -s 18 --dry-run
        '''
    )

    parser.add_argument('input', help='输入视频文件路径')
    parser.add_argument('-s', '--size', default=None,
                        help=f'目标大小(MB)，范围 {MIN_TARGET_SIZE_MB}-{MAX_TARGET_SIZE_MB}；省略时交互式输入')

    # 配置文件选项
    parser.add_argument('--config', type=str, default=None,
                        help='配置文件路径 (YAML 格式)')
    parser.add_argument('-l', '--log', default=None,
                        help='日志文件夹路径（默认不写日志文件）')

    # 日志选项
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='输出调试日志')
    parser.add_argument('-q', '--quiet', action='count', default=0,
                        help='减少输出 (-q 仅警告, -qq 仅错误)')
    parser.add_argument('--plain', action='store_true',
                        help='控制台禁用彩色输出')
    parser.add_argument('--json-logs', action='store_true',
                        help='控制台输出 JSON 行日志')
    parser.add_argument('--print-cmd', action='store_true',
                        help='输出完整的 ffmpeg 命令')

    parser.add_argument('--dry-run', action='store_true',
                        help='仅显示码率计划和命令，不实际执行')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser.parse_args(argv)


def prompt_target_size(input_func: Callable[[str], str] = input) -> int:
    """
    交互式读取目标大小，输入无效时重复询问

    Args:
        input_func: 读取一行输入的函数，默认为内置 input

    Returns:
        校验通过的目标大小（MB）
    """
    while True:
        try:
            text = input_func(PROMPT_TEXT)
        except EOFError:
            raise ValidationError("未输入目标大小")
        try:
            return parse_target_size(text)
        except ValidationError as e:
            print(f"输入无效: {e}")


def main(argv=None):
    """主函数"""
    args = parse_arguments(argv)

    try:
        config = load_config(args.config)
        config = apply_cli_overrides(config, args)
        prepare_environment(config)

        return run_job(config, args.input, args.size, prompt_target_size)

    except TargetSizeError as e:
        return report_failure(e)
    except KeyboardInterrupt:
        logging.warning("用户中断操作")
        terminate_all_ffmpeg()
        return 130


if __name__ == "__main__":
    sys.exit(main())

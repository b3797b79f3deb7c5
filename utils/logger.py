#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/5 15:33
# @Author  : hejun
"""
日志记录工具
"""
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

from config.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# 各模块的日志记录器都挂在该名称下，如 address_interpolation.pipeline
LOGGER_ROOT = 'address_interpolation'


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器"""

    # ANSI颜色代码
    COLORS = {
        'DEBUG': '\033[36m',  # 青色
        'INFO': '\033[32m',  # 绿色
        'WARNING': '\033[33m',  # 黄色
        'ERROR': '\033[31m',  # 红色
        'CRITICAL': '\033[35m',  # 紫色
        'RESET': '\033[0m'  # 重置
    }

    def __init__(self, fmt: str, datefmt: str = None):
        super().__init__(fmt, datefmt)
        self.fmt = fmt.replace('%(message)s', '[%(lineno)d] %(message)s')

    def format(self, record):
        # 着色只作用于本次输出，不改写record，避免污染文件处理器
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return logging.Formatter(self.fmt, self.datefmt).format(record)
        finally:
            record.levelname = levelname


class Logger:
    """日志记录器"""

    def __init__(self, name: str = LOGGER_ROOT,
                 log_dir: Optional[str] = None,
                 level: int = logging.INFO,
                 console: bool = True):
        """
        初始化日志记录器

        Args:
            name: 日志记录器名称，模块文件名会被挂到 LOGGER_ROOT 下
            log_dir: 日志目录，None表示不保存到文件
            level: 日志级别
            console: 是否输出到控制台
        """
        stem = Path(name).stem
        self.logger = logging.getLogger(stem if stem == LOGGER_ROOT else f"{LOGGER_ROOT}.{stem}")
        self.logger.setLevel(level)
        self.logger.handlers.clear()  # 清除现有处理器

        if console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(console_handler)

        self.log_file = None
        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            self.log_file = log_dir / f"{stem}_{timestamp}.log"

            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        """获取日志记录器实例"""
        return self.logger

    def get_log_file(self) -> Optional[Path]:
        """获取日志文件路径"""
        return self.log_file


def setup_logging(name: str = LOGGER_ROOT,
                  log_dir: Optional[str] = None,
                  level: Optional[int] = None) -> Logger:
    """
    快速设置日志记录

    未指定的参数取 Config.LOG_CONFIG 中的默认值

    Args:
        name: 日志记录器名称，通常为模块文件名
        log_dir: 日志目录
        level: 日志级别

    Returns:
        日志记录器实例
    """
    log_config = Config.LOG_CONFIG
    if level is None:
        level = logging.getLevelName(log_config.get('level', 'INFO'))
    if log_dir is None:
        log_dir = log_config.get('log_dir')
    return Logger(name, log_dir, level, log_config.get('console', True))

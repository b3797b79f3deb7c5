#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/5 15:17
# @Author  : hejun
"""
系统配置文件
"""
import copy
from typing import Dict, Any


class Config:
    """配置类"""

    # 算法参数
    ALGORITHM_CONFIG = {
        # 路段拼接与切分
        'line_joiner': {
            'deg_tolerance': 45,  # 拼接允许的最大方位角偏差（度）
            'no_intersect': False,  # True时跳过自相交检查
            'split_length_km': 0.5,  # 切分后每段最大长度（公里）
            'min_length_km': 0.001,  # 可忽略的最短长度（约1米）
        },

        # 地址分配
        'assigner': {
            'min_length_km': 0.001,
        },

        # 重复门牌处理
        'duplicates': {
            'dup_distance_km': 1.0,  # 同号地址相距超过该距离视为两个不同地址
            'min_network_km': 1.0,  # 短于该长度的路段不尝试内部切分
            'break_window': None,  # 滑动平均窗口，None表示按序列长度自动计算
            'cliff_ratio': 0.25,  # 断崖判定比例
        },

        # 区间插值
        'interpolation': {
            'outlier_multiplier': 10,  # 离线距离超过中位数的倍数视为离群点
            'parity_threshold': 0.7,  # 单侧奇偶占比阈值
            'lsb_offset_miles': 0.01,  # 判定左侧时的偏移距离（英里）
            'min_length_km': 0.001,
        },

        # 名称关联
        'linker': {
            'threshold': 70,  # 接受匹配的最低得分
            'tokenized_weight': 0.25,
            'tokenless_weight': 0.75,
            'token_overlap': 0.66,  # 全部由缩写词组成时的词重叠阈值
        },

        # 输出后处理
        'post': {
            'props': [],  # 需要提升为要素属性的地址属性名
            'intersections': False,  # 是否输出交叉口
        },
    }

    # 日志配置
    LOG_CONFIG = {
        'level': 'INFO',
        'log_dir': None,  # None表示只输出到控制台
        'console': True,
    }

    @classmethod
    def get_section(cls, name: str) -> Dict[str, Any]:
        """获取某一配置节的副本"""
        return copy.deepcopy(cls.ALGORITHM_CONFIG.get(name, {}))

    @classmethod
    def update_config(cls, updates: Dict[str, Any] = None) -> Dict[str, Any]:
        """
        合并配置

        不修改类上的默认值，返回合并后的新字典，各工作进程可以各自持有

        Args:
            updates: 需要覆盖的配置，按配置节组织

        Returns:
            合并后的完整配置
        """
        merged = copy.deepcopy(cls.ALGORITHM_CONFIG)
        for section, values in (updates or {}).items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = copy.deepcopy(values)
        return merged

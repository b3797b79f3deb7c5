#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/8 10:02
# @Author  : hejun
"""
插值引擎异常定义
"""


class InterpolationError(Exception):
    """插值引擎异常基类"""


class PreconditionError(InterpolationError, ValueError):
    """调用方违反输入约定，直接中止当前处理单元"""


class ParallelArrayError(PreconditionError):
    """地址坐标数组与门牌数组长度不一致"""

    def __init__(self, address_count: int, number_count: int):
        self.address_count = address_count
        self.number_count = number_count
        super().__init__(
            f"地址坐标与门牌数组必须等长: address={address_count}, number={number_count}"
        )


class GeometryTypeError(PreconditionError):
    """几何类型不符合要求"""

    def __init__(self, expected: str, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"需要 {expected}，实际为 {actual}")


class UnitEncodingError(InterpolationError, ValueError):
    """门牌单元后缀无法编码"""

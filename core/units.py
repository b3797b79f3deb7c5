#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/9 16:41
# @Author  : hejun
"""
门牌单元编解码
把带后缀的门牌（10a、10-1、n12w34、w543）编码为数值，存放在坐标的Z值中

编码格式:
    1<门牌>.<后缀ASCII码>      例: 10a    -> 110.65
    2<方向><方向><门牌>.<单元>  例: n12w34 -> 2788712.34
    3<方向><门牌>              例: w543   -> 387543
负值表示该地址不参与最终输出
"""
import re
from collections import namedtuple
from typing import Optional, Union

from core.exceptions import UnitEncodingError

DecodedNumber = namedtuple('DecodedNumber', ['num', 'output'])

MAX_SUFFIX_LENGTH = 8

_GRID_PAIR = re.compile(r'^([nesw])(\d+)([nesw])(\d+)$', re.IGNORECASE)
_GRID_SINGLE = re.compile(r'^([nesw])(\d+)$', re.IGNORECASE)
_LEADING_DIGITS = re.compile(r'^\d+')


def is_encoded(value) -> bool:
    """是否可能是编码后的门牌"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return number == number


def encode(value, output: bool = True) -> Optional[Union[int, float]]:
    """
    编码门牌

    Args:
        value: 原始门牌
        output: 是否在插值完成后输出该地址

    Returns:
        编码值；不以数字开头且不是方向格式时返回None
    """
    text = str(value).strip()

    grid_pair = _GRID_PAIR.match(text)
    grid_single = _GRID_SINGLE.match(text)
    if grid_pair:
        num = f"2{ord(grid_pair.group(1).upper())}{ord(grid_pair.group(3).upper())}{grid_pair.group(2)}"
        unit = str(int(grid_pair.group(4)))
    elif grid_single:
        num = f"3{ord(grid_single.group(1).upper())}{grid_single.group(2)}"
        unit = ''
    else:
        digits = _LEADING_DIGITS.match(text)
        if not digits:
            return None

        num = f"1{digits.group(0)}"
        suffix = text[digits.end():].upper()
        if len(suffix) > MAX_SUFFIX_LENGTH:
            raise UnitEncodingError(f"后缀超过{MAX_SUFFIX_LENGTH}个字符: {value}")

        codes = []
        for char in suffix:
            code = ord(char)
            if code > 99:
                raise UnitEncodingError(f"无法编码ASCII码大于99的字符: {value}")
            codes.append(str(code))
        unit = ''.join(codes)

    sign = '' if output else '-'
    if not unit:
        return int(f"{sign}{num}")
    return float(f"{sign}{num}.{unit}")


def decode(value) -> Optional[DecodedNumber]:
    """
    解码门牌

    Args:
        value: 编码值（数值或数值字符串）

    Returns:
        DecodedNumber(num, output)，无法识别时返回None
    """
    if not is_encoded(value):
        return None

    number = float(value)
    output = True
    if number < 0:
        output = False
        number = -number

    text = str(int(number)) if number.is_integer() else repr(number)
    prelim, _, unit = text.partition('.')
    fmt, num = prelim[:1], prelim[1:]

    if fmt == '1':
        if not unit:
            return DecodedNumber(num, output)
        if len(unit) % 2 == 1:
            unit += '0'
        decoded = ''.join(chr(int(unit[i:i + 2])) for i in range(0, len(unit), 2))
        return DecodedNumber(num + decoded.lower(), output)
    if fmt == '2':
        return DecodedNumber(f"{chr(int(num[:2]))}{num[4:]}{chr(int(num[2:4]))}{unit}".lower(), output)
    if fmt == '3':
        return DecodedNumber(f"{chr(int(num[:2]))}{num[2:]}".lower(), output)
    return None

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/10 09:40
# @Author  : hejun
"""
门牌区间插值模块
根据路段及其地址计算编号方向、左右两侧奇偶性和起止门牌
"""
import math
from typing import Dict, Any, List, Optional, Sequence

import numpy as np

from core.exceptions import GeometryTypeError, ParallelArrayError
from core.feature_builder import build_segment_feature, debug_collection, itp_sort_key, join_features
from core.models import AddressPoint, RangeResult, Segment, SideRange
from utils.geo import (KM_PER_MILE, bearing, center, destination, det2d, distance,
                       line_length, project_point, sign)
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('range_interpolator.py').get_logger()


def diff(max_number: int, min_number: int) -> int:
    """
    门牌跨度对应的10的幂，例如 3-9 -> 10

    Args:
        max_number: 最大门牌
        min_number: 最小门牌

    Returns:
        10^round(log10(|max-min|))
    """
    return 10 ** int(math.floor(math.log10(abs(max_number - min_number)) + 0.5))


def drop_low(low: int, d: int) -> int:
    """把最小门牌向下取整到d的倍数，保持奇偶，例如 22 -> 0"""
    is_even = low % 2 == 0
    if d == 1:
        d = 10
    if low - d < -1:
        return 0 if is_even else 1
    return low - low % d + (0 if is_even else 1)


def raise_high(high: int, d: int) -> int:
    """把最大门牌向上取整到d的倍数，保持奇偶，例如 9 -> 11"""
    is_even = high % 2 == 0
    if high % 10 == 0:
        high += 1
    if d == 1:
        d = 10
    if high < d:
        return d + (0 if is_even else 1)
    return -(-high // d) * d + (0 if is_even else 1)


def lsb(start: Sequence[float], end: Sequence[float], offset_miles: float = 0.01) -> int:
    """
    左侧标识：在 start->end 中点左侧90度偏移一个点，返回该点的叉积符号
    """
    offset = destination(center([start, end]), offset_miles * KM_PER_MILE, bearing(start, end) - 90)
    return sign(det2d(start, end, offset))


class RangeInterpolator:
    """门牌区间插值器"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}

        self.interpolation_config = self.config.get('interpolation', {
            'outlier_multiplier': 10,
            'parity_threshold': 0.7,
            'lsb_offset_miles': 0.01,
            'min_length_km': 0.001
        })

        self.outlier_multiplier = self.interpolation_config.get('outlier_multiplier', 10)
        self.parity_threshold = self.interpolation_config.get('parity_threshold', 0.7)
        self.lsb_offset_miles = self.interpolation_config.get('lsb_offset_miles', 0.01)
        self.min_length_km = self.interpolation_config.get('min_length_km', 0.001)

    def measure(self, path: Sequence[Sequence[float]],
                coords: Sequence[Sequence[float]],
                numbers: Sequence[AddressPoint]) -> List[Dict[str, Any]]:
        """
        计算每个地址与路段的相对位置，门牌不含数字的地址被跳过

        Returns:
            每个地址一条记录: index/number/dist_on_line/dist_from_line/dist_from_origin/dist_from_end/side
        """
        measures = []
        for index, (coord, number) in enumerate(zip(coords, numbers)):
            civic = number.civic
            if civic is None:
                logger.debug(f"门牌不含数字，跳过: {number.number}")
                continue

            projection = project_point(path, coord)
            seg_start, seg_end = path[projection.index], path[projection.index + 1]
            measures.append({
                'index': index,
                'number': civic,
                'dist_on_line': projection.dist_on_line,
                'dist_from_line': projection.dist_from_line,
                'dist_from_origin': distance(path[0], coord),
                'dist_from_end': distance(path[-1], coord),
                'side': sign(det2d(seg_start, seg_end, coord))
            })
        return measures

    def interpolate(self, path: Sequence[Sequence[float]],
                    coords: Sequence[Sequence[float]],
                    numbers: Sequence[AddressPoint]) -> Optional[RangeResult]:
        """
        计算单条路段的门牌区间

        Args:
            path: 路段折线
            coords: 地址坐标
            numbers: 与coords平行的门牌

        Returns:
            RangeResult，没有可用地址时返回None
        """
        if len(coords) != len(numbers):
            raise ParallelArrayError(len(coords), len(numbers))
        if len(path) < 2:
            raise GeometryTypeError('LineString', f'{len(path)}个坐标')

        street_dist = line_length(path)
        measures = self.measure(path, coords, numbers)
        if not measures:
            return None

        # 离线距离超过中位数若干倍的地址视为离群点
        limit = float(np.median([m['dist_from_line'] for m in measures])) * self.outlier_multiplier
        dist = [m for m in measures if m['dist_from_line'] <= limit]

        origin_closest = min(dist, key=lambda m: m['dist_from_origin'])
        end_closest = min(dist, key=lambda m: m['dist_from_end'])
        sequence = not origin_closest['number'] > end_closest['number']

        leftside = lsb(path[0], path[1], self.lsb_offset_miles)

        def start_key(m):
            if m['dist_on_line'] == 0:
                return (0, m['number'] if sequence else -m['number'])
            return (1, m['dist_on_line'] + m['dist_from_origin'])

        def end_key(m):
            if m['dist_on_line'] == street_dist:
                return (0, -m['number'] if sequence else m['number'])
            return (1, (street_dist - m['dist_on_line']) + m['dist_from_end'])

        dist_start = sorted(dist, key=start_key)
        dist_end = sorted(dist, key=end_key)

        # 路段两端之外的地址不参与奇偶统计，道路在端点处转弯时左右判断不可靠
        parity = {'lo': 0, 'le': 0, 'ro': 0, 're': 0}
        for m in dist:
            if m['dist_on_line'] == 0 or m['dist_on_line'] == street_dist:
                continue
            side = 'l' if m['side'] == leftside else 'r'
            parity[side + ('e' if m['number'] % 2 == 0 else 'o')] += 1

        lstart, rstart = self._pick(dist_start, leftside, parity, lambda m: m['dist_on_line'] != 0)
        lend, rend = self._pick(dist_end, leftside, parity, lambda m: m['dist_on_line'] != street_dist)

        rstart, rend = rstart or rend, rend or rstart
        lstart, lend = lstart or lend, lend or lstart

        result = RangeResult(
            sequence=sequence,
            leftside=leftside,
            kept=[m['index'] for m in dist],
            min_number=min(m['number'] for m in dist),
            max_number=max(m['number'] for m in dist)
        )

        if rstart and rend:
            result.right = self._side_range(rstart, rend, parity['ro'], parity['re'], 'E')
        if lstart and lend:
            result.left = self._side_range(lstart, lend, parity['lo'], parity['le'], 'O')

        for tag, picked in (('right', (rstart, rend)), ('left', (lstart, lend))):
            for position, m in zip(('start', 'end'), picked):
                if m:
                    result.debug.setdefault(m['index'], set()).update({tag, position})

        logger.debug(f"插值完成: 保留{len(dist)}/{len(measures)}个地址, sequence={sequence}")
        return result

    @staticmethod
    def _pick(ordered: List[Dict[str, Any]], leftside: int, parity: Dict[str, int], on_line):
        """
        按距离顺序选出左右两侧的端点地址

        优先选在路段范围内且位于对应一侧的地址，否则退而选择符合该侧多数奇偶性的地址
        """
        left = right = None
        for m in ordered:
            if on_line(m) and left is None and m['side'] == leftside:
                left = m
            elif on_line(m) and right is None and m['side'] != leftside:
                right = m
            else:
                is_odd = m['number'] % 2 == 1
                if left is None:
                    if (parity['lo'] > parity['le'] and is_odd) or (parity['le'] > parity['lo'] and not is_odd):
                        left = m
                if right is None:
                    if (parity['ro'] > parity['re'] and is_odd) or (parity['re'] > parity['ro'] and not is_odd):
                        right = m
        return left, right

    def _side_range(self, start: Dict[str, Any], end: Dict[str, Any],
                    odd: int, even: int, default: str) -> SideRange:
        """确定一侧的奇偶性，并把起止门牌调整为同一奇偶"""
        total = odd + even
        parity = None
        if total and odd / total >= self.parity_threshold:
            parity = 'O'
        elif total and even / total >= self.parity_threshold:
            parity = 'E'
        elif start['number'] % 2 == 0 and end['number'] % 2 == 0:
            parity = 'E'
        elif start['number'] % 2 == 1 and end['number'] % 2 == 1:
            parity = 'O'
        else:
            parity = default

        remainder = 0 if parity == 'E' else 1
        start_number = start['number'] if start['number'] % 2 == remainder else start['number'] + 1
        end_number = end['number'] if end['number'] % 2 == remainder else end['number'] + 1

        return SideRange(start['index'], end['index'], start_number, end_number, parity)

    def interpolize(self, segs: Sequence[Segment], debug: bool = False) -> Optional[Dict[str, Any]]:
        """
        对一个簇内所有路段插值并合并为一个要素

        簇内至少两条路段有区间时，把第一段的下界和最后一段的上界扩展到整数位

        Args:
            segs: 已分配地址的路段，network须为单条折线，否则抛出GeometryTypeError
            debug: 是否输出起止点调试信息

        Returns:
            合并后的GeoJSON要素，没有可输出的路段时返回None
        """
        min_number, max_number = None, None
        itps = []

        for seg in segs:
            if not seg.network:
                continue
            if len(seg.network) != 1:
                raise GeometryTypeError('单条LineString', f'{len(seg.network)}条折线')
            path = seg.network[0]
            if len(path) < 2:
                continue

            if not seg.has_addresses:
                if line_length(path) < self.min_length_km:
                    continue
                itps.append(build_segment_feature(seg))
                continue

            result = self.interpolate(path, seg.address, seg.number)
            feature = build_segment_feature(seg, result)
            if result is not None:
                min_number = result.min_number if min_number is None else min(min_number, result.min_number)
                max_number = result.max_number if max_number is None else max(max_number, result.max_number)
                if debug:
                    feature['debug'] = debug_collection(seg, result)
            itps.append(feature)

        itps.sort(key=itp_sort_key)

        ranged = [feature for feature in itps if feature['properties'].get('carmen:rangetype')]
        if len(ranged) >= 2 and max_number is not None and max_number > min_number:
            self._widen(ranged[0], ranged[-1], diff(max_number, min_number))

        return join_features(itps, debug)

    @staticmethod
    def _widen(first: Dict[str, Any], last: Dict[str, Any], d: int):
        """扩展首段下界与末段上界"""
        for side in ('l', 'r'):
            props = first['properties']
            low_from, low_to = props[f'carmen:{side}fromhn'][0], props[f'carmen:{side}tohn'][0]
            if low_from is not None and low_to is not None:
                key = f'carmen:{side}fromhn' if low_from < low_to else f'carmen:{side}tohn'
                props[key][0] = drop_low(props[key][0], d)

            props = last['properties']
            high_from, high_to = props[f'carmen:{side}fromhn'][0], props[f'carmen:{side}tohn'][0]
            if high_from is not None and high_to is not None:
                key = f'carmen:{side}fromhn' if high_from > high_to else f'carmen:{side}tohn'
                props[key][0] = raise_high(props[key][0], d)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/8 11:05
# @Author  : hejun
"""
路段拼接模块
把同名街道的零散路段拼接为尽量长的简单折线，并可按固定长度重新切分
"""
import copy
import math
from typing import Dict, Any, List

from shapely.geometry import LineString

from core.exceptions import GeometryTypeError
from utils.geo import bearing, dedup, line_length, slice_along
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('line_joiner.py').get_logger()


def bearing_within(angle: float, target: float, tolerance: float) -> bool:
    """
    判断方位角angle是否落在 target±tolerance 内，处理跨越0度的情况

    Args:
        angle: 待判断方位角
        target: 基准方位角
        tolerance: 容差（度）

    Returns:
        是否在范围内
    """
    low = (target - tolerance) % 360
    high = (target + tolerance) % 360
    angle = angle % 360

    if low < high:
        return low <= angle <= high
    return low <= angle or angle <= high


def has_intersect(working: List[List[float]], coords: List[List[float]]) -> bool:
    """
    拼接后是否会产生自相交

    只在working端点处相接不算相交，其余交点或重叠都算

    Args:
        working: 当前拼接中的折线
        coords: 候选折线

    Returns:
        是否相交
    """
    crossing = LineString([c[:2] for c in working]).intersection(LineString([c[:2] for c in coords]))
    if crossing.is_empty:
        return False

    ends = {tuple(working[0][:2]), tuple(working[-1][:2])}
    for part in getattr(crossing, 'geoms', [crossing]):
        if part.geom_type != 'Point':
            return True
        if (part.x, part.y) not in ends:
            return True
    return False


class LineJoiner:
    """同名路段拼接器"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}

        self.joiner_config = self.config.get('line_joiner', {
            'deg_tolerance': 45,
            'no_intersect': False,
            'split_length_km': 0.5,
            'min_length_km': 0.001
        })

        self.deg_tolerance = self.joiner_config.get('deg_tolerance', 45)
        self.no_intersect = self.joiner_config.get('no_intersect', False)
        self.split_length_km = self.joiner_config.get('split_length_km', 0.5)
        self.min_length_km = self.joiner_config.get('min_length_km', 0.001)

    @staticmethod
    def sort_key(feature: Dict[str, Any]):
        """单线要素排在最前，多线要素按长度降序、线数降序"""
        geometry = feature['geometry']
        if geometry['type'] != 'MultiLineString':
            return (0, 0.0, 0)
        lines = geometry['coordinates']
        return (1, -sum(line_length(line) for line in lines), -len(lines))

    def sort_streets(self, features: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """返回排序后的新列表"""
        return sorted(features, key=self.sort_key)

    def join(self, streets: Dict[str, Any]) -> Dict[str, Any]:
        """
        拼接路段

        Args:
            streets: GeoJSON FeatureCollection，每个MultiLineString要素为一条同名街道

        Returns:
            GeoJSON FeatureCollection，每个要素为一条拼接后的LineString
        """
        if not isinstance(streets, dict) or streets.get('type') != 'FeatureCollection':
            raise GeometryTypeError('FeatureCollection', streets.get('type') if isinstance(streets, dict) else type(streets).__name__)

        results = {'type': 'FeatureCollection', 'features': []}

        for feature in self.sort_streets(streets.get('features', [])):
            geometry = feature['geometry']
            properties = copy.deepcopy(feature.get('properties') or {})

            if geometry['type'] == 'LineString':
                results['features'].append(copy.deepcopy(feature))
                continue
            if geometry['type'] != 'MultiLineString':
                raise GeometryTypeError('LineString/MultiLineString', geometry['type'])

            pending = [[list(c) for c in line] for line in geometry['coordinates']]
            if len(pending) == 1:
                results['features'].append(self._line_feature(pending[0], properties))
                continue

            while pending:
                working = pending.pop(0)
                line_it = 0
                while line_it < len(pending):
                    joined = self._splice(working, pending[line_it])
                    if joined is None:
                        line_it += 1
                        continue
                    working = joined
                    pending.pop(line_it)
                    line_it = 0

                working = dedup(working)
                if len(working) < 2:
                    continue
                results['features'].append(self._line_feature(working, copy.deepcopy(properties)))

        logger.debug(f"路段拼接完成: 输入{len(streets.get('features', []))}个要素，输出{len(results['features'])}条折线")
        return results

    def _splice(self, working: List[List[float]], coords: List[List[float]]):
        """
        尝试把coords接到working的一端，无法拼接时返回None
        """
        if len(working) < 2 or len(coords) < 2:
            return None
        if not self.no_intersect and has_intersect(working, coords):
            return None

        tolerance = self.deg_tolerance
        ws_bearing = bearing(working[0], working[1])
        we_bearing = bearing(working[-2], working[-1])
        cs_bearing = bearing(coords[0], coords[1])
        ce_bearing = bearing(coords[-2], coords[-1])

        # <-c- . -w->
        if working[0] == coords[0] and bearing_within(cs_bearing + 180, ws_bearing, tolerance):
            return dedup(coords[::-1] + working)
        # -c-> . -w->
        if working[0] == coords[-1] and bearing_within(ce_bearing, ws_bearing, tolerance):
            return dedup(coords + working)
        # -w-> . -c->
        if working[-1] == coords[0] and bearing_within(cs_bearing, we_bearing, tolerance):
            return dedup(working + coords)
        # -w-> . <-c-
        if working[-1] == coords[-1] and bearing_within(ce_bearing + 180, we_bearing, tolerance):
            return dedup(working + coords[::-1])
        return None

    def split(self, streets: Dict[str, Any], max_length_km: float = None) -> Dict[str, Any]:
        """
        把每条折线切成不超过max_length_km的小段，丢弃长度可忽略的碎段

        Args:
            streets: GeoJSON FeatureCollection，要素为LineString
            max_length_km: 每段最大长度，默认取配置

        Returns:
            GeoJSON FeatureCollection
        """
        if max_length_km is None:
            max_length_km = self.split_length_km

        results = {'type': 'FeatureCollection', 'features': []}
        if not streets:
            return results

        for feature in streets.get('features', []):
            geometry = feature['geometry']
            if geometry['type'] != 'LineString':
                raise GeometryTypeError('LineString', geometry['type'])

            coords = geometry['coordinates']
            total = line_length(coords)
            pieces = int(math.ceil(total / max_length_km)) if total > 0 else 0

            for step in range(pieces):
                start = step * max_length_km
                piece = slice_along(coords, start, start + max_length_km)
                if len(piece) < 2 or line_length(piece) < self.min_length_km:
                    continue
                results['features'].append(self._line_feature(piece, copy.deepcopy(feature.get('properties') or {})))

        return results

    @staticmethod
    def _line_feature(coords: List[List[float]], properties: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'type': 'Feature',
            'properties': properties,
            'geometry': {'type': 'LineString', 'coordinates': coords}
        }

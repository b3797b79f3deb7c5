#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/8 14:30
# @Author  : hejun
"""
地址分配模块
把地址点分配给距离最近的路段
"""
from typing import Dict, Any, List, Optional, Sequence

from core.exceptions import GeometryTypeError, ParallelArrayError
from core.models import AddressPoint, Segment
from utils.geo import line_length, project_point
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('address_assigner.py').get_logger()


class AddressAssigner:
    """最近路段分配器"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}

        self.assigner_config = self.config.get('assigner', {
            'min_length_km': 0.001
        })
        self.min_length_km = self.assigner_config.get('min_length_km', 0.001)

    def nearest_line(self, lines: Sequence[Sequence[Sequence[float]]], point: Sequence[float]) -> Optional[int]:
        """
        查找离点最近的折线，距离相同时取靠前的

        Returns:
            折线下标，没有折线时返回None
        """
        best, best_dist = None, float('inf')
        for line_it, line in enumerate(lines):
            dist = project_point(line, point).dist_from_line
            if dist < best_dist:
                best, best_dist = line_it, dist
        return best

    def distribute(self,
                   network: Dict[str, Any],
                   coords: Sequence[Sequence[float]],
                   numbers: Sequence[AddressPoint],
                   intersections: Sequence[Dict[str, Any]] = None) -> List[Segment]:
        """
        把地址与交叉口分配到最近路段

        Args:
            network: GeoJSON FeatureCollection，要素为LineString
            coords: 地址坐标
            numbers: 与coords平行的门牌数组
            intersections: 交叉口，每项含 geom: {coordinates: [x, y]}

        Returns:
            每条有效路段一个Segment，未分配到地址的路段address/number为None
        """
        if len(coords) != len(numbers):
            raise ParallelArrayError(len(coords), len(numbers))

        lines = []
        for feature in network.get('features', []):
            geometry = feature['geometry']
            if geometry['type'] != 'LineString':
                raise GeometryTypeError('LineString', geometry['type'])
            if line_length(geometry['coordinates']) > self.min_length_km:
                lines.append(geometry['coordinates'])

        if not lines:
            logger.warning(f"没有可用路段，{len(coords)}个地址无法分配")
            return []

        address_cluster = [[] for _ in lines]
        number_cluster = [[] for _ in lines]
        for coord, number in zip(coords, numbers):
            line_it = self.nearest_line(lines, coord)
            address_cluster[line_it].append(list(coord))
            number_cluster[line_it].append(number)

        segs = [
            Segment(
                network=[[list(c) for c in line]],
                address=address_cluster[it] or None,
                number=number_cluster[it] or None,
                intersections=[]
            )
            for it, line in enumerate(lines)
        ]

        for intersection in intersections or []:
            point = intersection['geom']['coordinates']
            line_it = self.nearest_line(lines, point)
            segs[line_it].intersections.append(intersection)

        logger.debug(f"地址分配完成: {len(coords)}个地址 -> {len(segs)}条路段")
        return segs

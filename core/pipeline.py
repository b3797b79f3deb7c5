#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/11 15:02
# @Author  : hejun
"""
单簇处理流程
路段拼接 -> 重复门牌拆分 -> 地址分配 -> 区间插值 -> 输出后处理
"""
from typing import Dict, Any, List, Optional, Sequence

from config.config import Config
from core.address_assigner import AddressAssigner
from core.duplicate_resolver import DuplicateResolver, WarningSink, has_dup_address_within
from core.exceptions import ParallelArrayError
from core.feature_builder import post_process
from core.line_joiner import LineJoiner
from core.models import AddressPoint, Path, Segment
from core.range_interpolator import RangeInterpolator
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('pipeline.py').get_logger()


class ClusterPipeline:
    """
    单个街道簇的插值流程

    每个实例不持有跨簇的可变状态，多个工作线程可以各自创建实例并行处理不同的簇
    """

    def __init__(self, config: Dict[str, Any] = None,
                 warn: WarningSink = None,
                 debug: bool = False,
                 country: Optional[str] = None):
        self.config = config or Config.update_config()
        self.debug = debug
        self.country = country

        self.joiner = LineJoiner(self.config)
        self.assigner = AddressAssigner(self.config)
        self.resolver = DuplicateResolver(self.config, warn=warn)
        self.interpolator = RangeInterpolator(self.config)

        self.post_config = self.config.get('post', {
            'props': [],
            'intersections': False
        })
        self.post_props = self.post_config.get('props', [])
        self.output_intersections = self.post_config.get('intersections', False)

    @staticmethod
    def as_collection(lines: Sequence[Path]) -> Dict[str, Any]:
        """折线列表转为 FeatureCollection"""
        return {
            'type': 'FeatureCollection',
            'features': [
                {'type': 'Feature', 'properties': {}, 'geometry': {'type': 'LineString', 'coordinates': line}}
                for line in lines
            ]
        }

    def process(self, cluster_id: Any,
                names: Sequence[Dict[str, Any]],
                network: Dict[str, Any],
                coords: Sequence[Sequence[float]],
                numbers: Sequence[AddressPoint],
                intersections: Sequence[Dict[str, Any]] = None) -> Optional[List[Dict[str, Any]]]:
        """
        处理一个街道簇

        Args:
            cluster_id: 簇标识
            names: 名称列表，每项至少含 display
            network: 路段几何，LineString 或 MultiLineString
            coords: 地址坐标
            numbers: 与coords平行的门牌
            intersections: 交叉口

        Returns:
            每个拆分后的子簇一个要素；名称为空时返回None
        """
        if len(coords) != len(numbers):
            raise ParallelArrayError(len(coords), len(numbers))

        if not any(str(name.get('display') or '').strip() for name in names):
            logger.debug(f"簇{cluster_id}: 名称为空，跳过")
            return None

        intersections = list(intersections or [])

        pairs = [(list(coord), number) for coord, number in zip(coords, numbers) if number.civic is not None]
        if len(pairs) != len(coords):
            logger.warning(f"簇{cluster_id}: 丢弃{len(coords) - len(pairs)}个不含数字的门牌")

        # 按门牌、经度、纬度排序，保证插值输入稳定
        pairs.sort(key=lambda pair: (pair[1].civic, pair[0][0], pair[0][1]))
        coords = [pair[0] for pair in pairs]
        numbers = [pair[1] for pair in pairs]

        logger.info(f"簇{cluster_id}: 开始处理，{len(numbers)}个地址")

        joined = self.joiner.join({
            'type': 'FeatureCollection',
            'features': [{'type': 'Feature', 'properties': {}, 'geometry': network}]
        })

        groups = None
        if has_dup_address_within([n.number for n in numbers], coords, self.resolver.dup_distance_km):
            segs = self.assigner.distribute(joined, coords, numbers, intersections)
            broken = self.resolver.break_segments(segs, cluster_id) if segs else None
            if broken:
                groups = [self._redistribute(seg) for seg in broken]

        if groups is None:
            groups = [self.assigner.distribute(self.joiner.split(joined), coords, numbers, intersections)]

        features = []
        for group in groups:
            itp = self.interpolator.interpolize(group, debug=self.debug)
            if itp is None:
                continue

            itp['properties']['carmen:text'] = [name for name in names if name.get('display')]
            if self.country:
                itp['properties']['carmen:geocoder_stack'] = self.country
            itp['properties']['internal:nid'] = cluster_id

            itp = post_process(itp, self.post_props, self.output_intersections)
            features.append(itp)

        logger.info(f"簇{cluster_id}: 处理完成，输出{len(features)}个要素")
        return features

    def _redistribute(self, seg: Segment) -> List[Segment]:
        """拆分后的子簇重新切分并分配地址"""
        return self.assigner.distribute(
            self.joiner.split(self.as_collection(seg.network)),
            seg.address or [],
            seg.number or [],
            seg.intersections
        )

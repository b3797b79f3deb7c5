#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/9 09:12
# @Author  : hejun
"""
重复门牌处理模块

同一门牌号在相距较远的两处出现，说明同名街道实际是两条不同的路（或一条路上两套编号），
需要把路段和地址拆成独立的簇:

    跨路段重复            路段内重复
    --1--   --2--        ------1------
    1 2 3   3 2 1        1 2 3   3 2 1
"""
import math
from typing import Dict, Any, Callable, List, Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from core.address_assigner import AddressAssigner
from core.models import Diagnostic, Segment, civic_number
from utils.geo import center, distance, line_length, project_point, slice_along
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('duplicate_resolver.py').get_logger()

WarningSink = Callable[[Diagnostic], None]
BreakDetector = Callable[[Sequence[int]], List[int]]


def has_dup_address_within(numbers: Sequence[str],
                           coords: Sequence[Sequence[float]],
                           threshold_km: float = 1.0) -> Optional[str]:
    """
    查找相距超过threshold_km的同号地址

    Args:
        numbers: 门牌号
        coords: 与numbers平行的坐标
        threshold_km: 距离阈值

    Returns:
        第一个满足条件的门牌号，没有则返回None
    """
    order = sorted(range(len(numbers)), key=lambda i: (
        civic_number(numbers[i]) is None,
        civic_number(numbers[i]) or 0,
        str(numbers[i]),
        coords[i][0],
        coords[i][1]
    ))

    for prev, curr in zip(order, order[1:]):
        if str(numbers[prev]) != str(numbers[curr]):
            continue
        if distance(coords[prev], coords[curr]) > threshold_km:
            return str(numbers[prev])
    return None


def number_deltas(numbers: Sequence[int]) -> List[int]:
    """相邻门牌的变化方向，增大为1，否则为-1"""
    return [1 if nxt > curr else -1 for curr, nxt in zip(numbers, numbers[1:])]


def default_window(count: int) -> int:
    return max(2, min(count // 10, 10))


def detect_cliffs(numbers: Sequence[int], ratio: float = 0.25) -> List[int]:
    """
    断崖检测: 1 2 3 | 1 2 3

    方向翻转且翻转后的门牌回落到当前连续段范围的ratio以内时，视为一次重新编号

    Args:
        numbers: 按沿线距离排序后的门牌
        ratio: 断崖判定比例

    Returns:
        断点下标i，表示在numbers[i]与numbers[i+1]之间断开
    """
    deltas = number_deltas(numbers)
    breaks = []

    direction = None
    low = high = run = 0
    for i, step in enumerate(deltas):
        if direction is None:
            direction, low, high, run = step, numbers[i], numbers[i], 0

        if step != direction and run >= 2 and high > low:
            span = high - low
            following = numbers[i + 1]
            if (direction > 0 and following <= low + ratio * span) or \
                    (direction < 0 and following >= high - ratio * span):
                breaks.append(i)
                direction = None
                continue

        if step != direction:
            direction, low, high, run = step, numbers[i], numbers[i], 0

        run += 1
        low = min(low, numbers[i + 1])
        high = max(high, numbers[i + 1])

    return breaks


def detect_humps(deltas: Sequence[int], window: int) -> List[int]:
    """
    驼峰检测: 1 2 3 3 2 1

    对变化方向做滑动平均，平均值变号时在附近寻找实际的方向翻转点

    Args:
        deltas: number_deltas 的结果
        window: 滑动平均窗口

    Returns:
        断点下标
    """
    if len(deltas) < 2:
        return []

    values = np.asarray(deltas, dtype=float)
    averages = [values[max(0, i - window + 1):i + 1].mean() for i in range(len(values))]
    reach = int(math.ceil(window / 2))

    breaks = []
    current = 1 if averages[0] > 0 else -1
    for i in range(1, len(averages)):
        if averages[i] == 0:
            continue
        trend = 1 if averages[i] > 0 else -1
        if trend == current:
            continue

        flips = [
            k for k in range(max(1, i - reach), min(len(deltas) - 1, i + reach) + 1)
            if deltas[k] == trend and deltas[k - 1] != trend
        ]
        if flips:
            breaks.append(min(flips, key=lambda k: (abs(k - i), k)))
            current = trend

    return breaks


def find_breaks(numbers: Sequence[int], window: int = None, ratio: float = 0.25) -> List[int]:
    """
    断点检测，合并断崖与驼峰的结果

    Args:
        numbers: 按沿线距离排序后的门牌
        window: 滑动平均窗口，None时按序列长度计算
        ratio: 断崖判定比例

    Returns:
        升序排列的断点下标
    """
    if len(numbers) < 3:
        return []
    if window is None:
        window = default_window(len(numbers))

    cliffs = detect_cliffs(numbers, ratio)
    humps = [
        k for k in detect_humps(number_deltas(numbers), window)
        if all(abs(k - c) > 1 for c in cliffs)
    ]
    return sorted(set(cliffs) | set(humps))


def log_warning(diagnostic: Diagnostic):
    """默认告警输出"""
    logger.warning(f"[{diagnostic.code}] {diagnostic.message} {diagnostic.context}")


class DuplicateResolver:
    """重复门牌拆分器"""

    def __init__(self, config: Dict[str, Any] = None,
                 warn: WarningSink = None,
                 break_detector: BreakDetector = None):
        """
        Args:
            config: 算法配置
            warn: 告警接收函数，默认写日志
            break_detector: 断点检测策略，输入排序后的门牌，返回断点下标
        """
        self.config = config or {}

        self.duplicate_config = self.config.get('duplicates', {
            'dup_distance_km': 1.0,
            'min_network_km': 1.0,
            'break_window': None,
            'cliff_ratio': 0.25
        })

        self.dup_distance_km = self.duplicate_config.get('dup_distance_km', 1.0)
        self.min_network_km = self.duplicate_config.get('min_network_km', 1.0)
        self.window = self.duplicate_config.get('break_window')
        self.cliff_ratio = self.duplicate_config.get('cliff_ratio', 0.25)

        self.warn = warn or log_warning
        self.break_detector = break_detector or (
            lambda numbers: find_breaks(numbers, self.window, self.cliff_ratio)
        )
        self.assigner = AddressAssigner(self.config)

    def has_inner_dup(self, seg: Segment) -> bool:
        if not seg.has_addresses:
            return False
        numbers = [n.number for n in seg.number]
        return has_dup_address_within(numbers, seg.address, self.dup_distance_km) is not None

    def break_segments(self, segs: Sequence[Segment], cluster_id: Any = None) -> Optional[List[Segment]]:
        """
        拆分含重复门牌的簇

        Args:
            segs: AddressAssigner.distribute 的输出
            cluster_id: 簇标识，仅用于告警

        Returns:
            新的路段列表；没有产生新路段时返回None
        """
        seg_dup = [self.has_inner_dup(seg) for seg in segs]

        if not any(seg_dup):
            if len(segs) == 2:
                logger.debug(f"簇{cluster_id}: 跨路段重复，保持两条路段独立")
                return [
                    Segment(
                        network=[list(line) for line in seg.network],
                        address=list(seg.address) if seg.address is not None else None,
                        number=list(seg.number) if seg.number is not None else None,
                        intersections=list(seg.intersections)
                    )
                    for seg in segs
                ]
            self.warn(Diagnostic(
                code='unhandled_cluster_dup',
                message='检测到无法处理的跨路段重复门牌',
                context={'cluster_id': cluster_id, 'segments': len(segs)}
            ))

        orphans = []
        pieces = []
        for seg, is_dup in zip(segs, seg_dup):
            if not is_dup or self._network_length(seg) < self.min_network_km:
                orphans.append(seg)
                continue

            new_pieces = self._break_segment(seg)
            if not new_pieces:
                logger.debug(f"簇{cluster_id}: 路段未检测到断点，作为孤立路段处理")
                orphans.append(seg)
                continue
            pieces.extend(new_pieces)

        if not pieces:
            return None

        self._attach_orphans(pieces, orphans, cluster_id)

        return [
            Segment(
                network=piece['network'],
                address=piece['address'] or None,
                number=piece['number'] or None,
                intersections=piece['intersections']
            )
            for piece in pieces
        ]

    @staticmethod
    def _network_length(seg: Segment) -> float:
        return sum(line_length(line) for line in seg.network)

    def _break_segment(self, seg: Segment) -> List[Dict[str, Any]]:
        """
        按断点把单条路段切开

        Returns:
            切分后的片段，每个片段含 network/address/number/intersections
        """
        path = seg.network[0]
        total = line_length(path)

        dist = []
        for coord, number in zip(seg.address, seg.number):
            projection = project_point(path, coord)
            dist.append({
                'dist_on_line': projection.dist_on_line,
                'dist_from_line': projection.dist_from_line,
                'coord': coord,
                'number': number,
                'civic': number.civic if number.civic is not None else 0
            })
        dist.sort(key=lambda d: (d['dist_on_line'], d['dist_from_line']))

        breaks = sorted(b for b in self.break_detector([d['civic'] for d in dist]) if 0 <= b < len(dist) - 1)
        if not breaks:
            return []

        def midpoint(brk):
            return (dist[brk]['dist_on_line'] + dist[brk + 1]['dist_on_line']) / 2

        bounds = []
        start, first = 0.0, 0
        for brk in breaks:
            bounds.append((start, midpoint(brk), first, brk + 1))
            start, first = midpoint(brk), brk + 1
        bounds.append((start, total, first, len(dist)))

        pieces = []
        for start_km, end_km, lo, hi in bounds:
            network = []
            if start_km != end_km:
                sliced = slice_along(path, start_km, end_km)
                if len(sliced) >= 2:
                    network = [sliced]
                else:
                    logger.warning(f"路段切分失败: {start_km:.3f}km - {end_km:.3f}km")

            pieces.append({
                'network': network,
                'address': [d['coord'] for d in dist[lo:hi]],
                'number': [d['number'] for d in dist[lo:hi]],
                'intersections': []
            })

        # 原路段上的交叉口分给最近的新片段
        sliced_lines = [(i, p['network'][0]) for i, p in enumerate(pieces) if p['network']]
        for intersection in seg.intersections:
            nearest = self.assigner.nearest_line([line for _, line in sliced_lines], intersection['geom']['coordinates'])
            if nearest is not None:
                pieces[sliced_lines[nearest][0]]['intersections'].append(intersection)

        return pieces

    def _attach_orphans(self, pieces: List[Dict[str, Any]], orphans: Sequence[Segment], cluster_id: Any = None):
        """把孤立路段并入中心点最近的新片段"""
        if not orphans:
            return

        candidates = [i for i, piece in enumerate(pieces) if piece['network']]
        if not candidates:
            logger.warning(f"簇{cluster_id}: 新片段均无几何，孤立路段并入第一个片段")

        piece_centers = np.asarray([
            center([c for line in pieces[i]['network'] for c in line]) for i in candidates
        ])

        for orphan in orphans:
            target = 0
            if candidates:
                orphan_center = np.asarray([center([c for line in orphan.network for c in line])])
                dists = cdist(orphan_center, piece_centers, metric=lambda u, v: distance(u, v))
                target = candidates[int(np.argmin(dists[0]))]

            piece = pieces[target]
            piece['network'] = piece['network'] + [list(line) for line in orphan.network]
            piece['intersections'] = piece['intersections'] + list(orphan.intersections)
            if orphan.address and orphan.number:
                piece['address'] = piece['address'] + list(orphan.address)
                piece['number'] = piece['number'] + list(orphan.number)

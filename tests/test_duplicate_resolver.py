#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/12 13:40
# @Author  : hejun
"""
重复门牌处理测试
"""
import pytest

from core.duplicate_resolver import (DuplicateResolver, default_window, detect_cliffs, detect_humps,
                                     find_breaks, has_dup_address_within, number_deltas)
from core.models import AddressPoint, Segment

MERIDIAN = [[0, 0], [0, 0.03]]


def numbered(*numbers):
    return [AddressPoint(str(n)) for n in numbers]


def repeated_segment():
    """一条约3.3公里的路段，两端各有一套 1 2 3"""
    address = [[0.0001, lat] for lat in (0.002, 0.004, 0.006, 0.022, 0.024, 0.026)]
    return Segment(network=[MERIDIAN], address=address, number=numbered(1, 2, 3, 1, 2, 3))


class TestHasDupAddressWithin:
    """远距离同号检测"""

    def test_distant_duplicate(self):
        assert has_dup_address_within(['1', '1'], [[0, 0], [0, 0.02]]) == '1'

    def test_nearby_duplicate_is_ignored(self):
        assert has_dup_address_within(['1', '1'], [[0, 0], [0, 0.001]]) is None

    def test_unordered_input(self):
        assert has_dup_address_within(['1', '2', '1'], [[0, 0], [0, 0.01], [0, 0.02]]) == '1'

    def test_no_duplicates(self):
        assert has_dup_address_within(['1', '2', '3'], [[0, 0], [0, 0.02], [0, 0.04]]) is None


class TestBreakDetection:
    """断点检测"""

    def test_number_deltas(self):
        assert number_deltas([1, 3, 5, 9, 9, 5, 3]) == [1, 1, 1, -1, -1, -1]

    def test_default_window(self):
        assert default_window(6) == 2
        assert default_window(45) == 4
        assert default_window(500) == 10

    def test_cliff(self):
        assert detect_cliffs([1, 2, 3, 1, 2, 3]) == [2]
        assert detect_cliffs([3, 2, 1, 3, 2, 1]) == [2]

    def test_cliff_ignores_turnaround(self):
        assert detect_cliffs([1, 2, 3, 3, 2, 1]) == []

    def test_hump(self):
        assert detect_humps(number_deltas([1, 2, 3, 3, 2, 1]), 2) == [2]

    @pytest.mark.parametrize("numbers, expected", [
        ([1, 2, 3, 1, 2, 3], [2]),
        ([1, 2, 3, 3, 2, 1], [2]),
        ([1, 2, 3, 4, 1, 2, 3, 4], [3]),
        (list(range(2, 21, 2)) + list(range(20, 1, -2)), [9]),
        ([1, 2, 3, 5, 4, 6, 7], []),
        ([1, 2], []),
    ])
    def test_find_breaks(self, numbers, expected):
        assert find_breaks(numbers) == expected


class TestBreakSegments:
    """簇拆分"""

    def test_cross_segment_duplicate_returns_two_segments(self):
        first = Segment(network=[MERIDIAN],
                        address=[[0.0001, 0.001 * i] for i in range(1, 9)],
                        number=numbered(*range(1, 9)))
        second = Segment(network=[[[1, 0], [1, 0.03]]],
                         address=[[1.0001, 0.001 * i] for i in range(1, 9)],
                         number=numbered(*range(8, 0, -1)))

        result = DuplicateResolver().break_segments([first, second])

        assert len(result) == 2
        assert [n.number for n in result[0].number] == [str(n) for n in range(1, 9)]
        assert [n.number for n in result[1].number] == [str(n) for n in range(8, 0, -1)]
        assert result[0] is not first

    def test_more_than_two_cross_segments_warns(self):
        diagnostics = []
        segs = [
            Segment(network=[[[i, 0], [i, 0.01]]], address=[[i + 0.0001, 0.005]], number=numbered(1))
            for i in range(3)
        ]

        assert DuplicateResolver(warn=diagnostics.append).break_segments(segs, cluster_id=42) is None
        assert len(diagnostics) == 1
        assert diagnostics[0].code == 'unhandled_cluster_dup'
        assert diagnostics[0].context['cluster_id'] == 42

    def test_inner_duplicate_is_split_at_midpoint(self):
        result = DuplicateResolver().break_segments([repeated_segment()])

        assert len(result) == 2
        assert [n.number for n in result[0].number] == ['1', '2', '3']
        assert [n.number for n in result[1].number] == ['1', '2', '3']

        first_line, second_line = result[0].network[0], result[1].network[0]
        assert first_line[0] == [0, 0]
        assert first_line[-1][1] == pytest.approx(0.014)
        assert second_line[0][1] == pytest.approx(0.014)
        assert second_line[-1] == [0, 0.03]

    def test_orphan_joins_nearest_piece(self):
        orphan = Segment(network=[[[0, 0.03], [0.001, 0.031]]], address=[[0.0011, 0.031]], number=numbered(4))

        result = DuplicateResolver().break_segments([repeated_segment(), orphan])

        assert len(result) == 2
        assert [n.number for n in result[0].number] == ['1', '2', '3']
        assert [n.number for n in result[1].number] == ['1', '2', '3', '4']
        assert len(result[1].network) == 2

    def test_short_segment_is_not_split(self):
        seg = Segment(network=[[[0, 0], [0, 0.005]]],
                      address=[[0.0001, 0.0001], [0.0001, 0.0049]],
                      number=numbered(1, 1))
        resolver = DuplicateResolver({'duplicates': {'dup_distance_km': 0.1}})
        assert resolver.break_segments([seg]) is None

    def test_custom_break_detector(self):
        calls = []

        def detector(numbers):
            calls.append(list(numbers))
            return []

        assert DuplicateResolver(break_detector=detector).break_segments([repeated_segment()]) is None
        assert calls == [[1, 2, 3, 1, 2, 3]]

    def test_input_is_not_mutated(self):
        seg = repeated_segment()
        numbers_before = [n.number for n in seg.number]
        DuplicateResolver().break_segments([seg])
        assert [n.number for n in seg.number] == numbers_before
        assert seg.network == [MERIDIAN]

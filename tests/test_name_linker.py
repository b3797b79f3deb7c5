#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/12 16:02
# @Author  : hejun
"""
名称关联测试
"""
import pytest

from core.models import NameCandidate
from core.name_linker import NameLinker, is_numbered, is_routish

MAIN = NameCandidate('Main St', 'main st', 'main')
MAIM = NameCandidate('Maim St', 'maim st', 'maim')
MAINS = NameCandidate('Mains St', 'mains st', 'mains')


@pytest.fixture
def linker(config):
    return NameLinker(config)


class TestGuards:
    """排除规则"""

    def test_is_numbered(self):
        assert is_numbered(['11th', 'st']) == '11th'
        assert is_numbered(['21st', 'ave']) == '21st'
        assert is_numbered(['main', 'st']) is None

    def test_is_routish(self):
        assert is_routish(['us', 'route', '4']) == '4'
        assert is_routish(['route', 'four']) is None

    def test_first_letter(self, linker):
        assert linker.score(NameCandidate('Anne Blvd', 'anne blvd', 'anne'), MAIN) is None

    def test_numbered_streets_differ(self, linker):
        query = NameCandidate('11th St', '11th st', '11th')
        candidate = NameCandidate('12th St', '12th st', '12th')
        assert linker.link(query, [candidate]) is None

    def test_routes_differ(self, linker):
        query = NameCandidate('US Route 4', 'us route 4', '')
        candidate = NameCandidate('US Route 5', 'us route 5', '')
        assert linker.link(query, [candidate]) is None


class TestLink:
    """名称关联"""

    def test_close_match(self, linker):
        result = linker.link(MAIN, [MAIM])
        assert len(result) == 1
        assert result[0].candidate == MAIM
        assert result[0].score == pytest.approx(85.714, abs=0.001)

    def test_no_candidate_passes_guards(self, linker):
        assert linker.link(NameCandidate('Anne Blvd', 'anne blvd', 'anne'), [MAIN]) is None

    def test_exact_matches(self, linker):
        duplicate = NameCandidate('Main Street', 'main st', 'main')
        result = linker.link(MAIN, [MAIM, MAIN, duplicate])
        assert [(m.candidate, m.score) for m in result] == [(MAIN, 100.0), (duplicate, 100.0)]

    def test_best_match_only(self, linker):
        result = linker.link(MAIN, [MAIM, MAINS])
        assert [m.candidate for m in result] == [MAINS]
        assert result[0].score == pytest.approx(86.667, abs=0.001)

    def test_return_all(self, linker):
        result = linker.link(MAIN, [MAIM, MAINS], return_all=True)
        assert [m.candidate for m in result] == [MAIM, MAINS]
        assert [round(m.score, 2) for m in result] == [85.71, 86.67]

    def test_multiple_queries_keep_best_score(self, linker):
        other = NameCandidate('Oak Ave', 'oak ave', 'oak')
        result = linker.link([other, MAIN], [MAIM])
        assert result[0].candidate == MAIM
        assert result[0].score == pytest.approx(85.714, abs=0.001)

    def test_threshold(self):
        strict = NameLinker({'linker': {'threshold': 90}})
        assert strict.link(MAIN, [MAIM]) is None

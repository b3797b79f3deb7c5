#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/11 10:25
# @Author  : hejun
"""
名称关联模块
用加权编辑距离与词重叠度为地址簇名称挑选最匹配的街道名称
"""
import re
from typing import Dict, Any, List, Optional, Sequence, Union

import Levenshtein

from core.models import LinkMatch, NameCandidate
from utils.logger import setup_logging

# 初始化日志记录器
logger = setup_logging('name_linker.py').get_logger()

NUMBERED_PATTERNS = [
    re.compile(r'^(([0-9]+)?1st)$'),
    re.compile(r'^(([0-9]+)?2nd)$'),
    re.compile(r'^(([0-9]+)?3rd)$'),
    re.compile(r'^([0-9]+th)$'),
]
ROUTISH_PATTERN = re.compile(r'^\d+$')


def is_numbered(tokens: Sequence[str]) -> Optional[str]:
    """序数街道名（1st、22nd、11th），返回匹配到的词"""
    for token in tokens:
        for pattern in NUMBERED_PATTERNS:
            match = pattern.match(token)
            if match:
                return match.group(0)
    return None


def is_routish(tokens: Sequence[str]) -> Optional[str]:
    """纯数字路名（US Route 4），返回匹配到的词"""
    for token in tokens:
        match = ROUTISH_PATTERN.match(token)
        if match:
            return match.group(0)
    return None


class NameLinker:
    """地址簇与街道名称关联器"""

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config or {}

        self.linker_config = self.config.get('linker', {
            'threshold': 70,
            'tokenized_weight': 0.25,
            'tokenless_weight': 0.75,
            'token_overlap': 0.66
        })

        self.threshold = self.linker_config.get('threshold', 70)
        self.tokenized_weight = self.linker_config.get('tokenized_weight', 0.25)
        self.tokenless_weight = self.linker_config.get('tokenless_weight', 0.75)
        self.token_overlap = self.linker_config.get('token_overlap', 0.66)

    def edit_distance(self, query: NameCandidate, candidate: NameCandidate) -> float:
        """
        加权编辑距离

        两者都有tokenless形式时按权重组合；只有一方有时用完整名称的距离；
        都没有时（名称全部由缩写词组成）用词重叠度
        """
        if query.tokenless and candidate.tokenless:
            return (self.tokenized_weight * Levenshtein.distance(query.tokenized, candidate.tokenized) +
                    self.tokenless_weight * Levenshtein.distance(query.tokenless, candidate.tokenless))
        if query.tokenless or candidate.tokenless:
            return Levenshtein.distance(query.tokenized, candidate.tokenized)

        remaining = candidate.tokens
        total = len(remaining)
        matched = 0
        for token in query.tokens:
            # 重复词只能各匹配一次: saint street -> st st 不等于 main st
            if token in remaining:
                remaining.remove(token)
                matched += 1

        if total and matched / total > self.token_overlap:
            return matched / total
        return Levenshtein.distance(query.tokenized, candidate.tokenized)

    def score(self, query: NameCandidate, candidate: NameCandidate) -> Optional[float]:
        """
        计算匹配得分，被规则排除时返回None

        Returns:
            100 - 2*距离/(两者长度之和)*100
        """
        if query.tokenless and candidate.tokenless and query.tokenless[0] != candidate.tokenless[0]:
            return None

        query_numbered = is_numbered(query.tokens)
        candidate_numbered = is_numbered(candidate.tokens)
        if query_numbered and candidate_numbered and query_numbered != candidate_numbered:
            return None

        query_routish = is_routish(query.tokens)
        candidate_routish = is_routish(candidate.tokens)
        if query_routish and candidate_routish and query_routish != candidate_routish:
            return None

        length = len(query.tokenized) + len(candidate.tokenized)
        if not length:
            return None
        return 100 - (2 * self.edit_distance(query, candidate) / length) * 100

    def link(self, query: Union[NameCandidate, Sequence[NameCandidate]],
             candidates: Sequence[NameCandidate],
             return_all: bool = False) -> Optional[List[LinkMatch]]:
        """
        关联名称

        Args:
            query: 地址簇名称，可以是多个
            candidates: 候选街道名称
            return_all: True时返回全部打分结果，否则只返回最高分

        Returns:
            LinkMatch 列表；最高分不超过阈值时返回None
        """
        queries = [query] if isinstance(query, NameCandidate) else list(query)

        # 完全一致的名称直接返回
        for q in queries:
            exact = [LinkMatch(c, 100.0) for c in candidates if c.tokenized == q.tokenized]
            if exact:
                return exact

        scores = {}
        for q in queries:
            for index, candidate in enumerate(candidates):
                score = self.score(q, candidate)
                if score is not None:
                    scores[index] = max(score, scores.get(index, score))

        if not scores:
            logger.debug(f"名称关联无候选: {[q.display for q in queries]}")
            return None

        max_score = max(scores.values())
        if max_score <= self.threshold:
            logger.debug(f"名称关联得分不足: {[q.display for q in queries]} 最高分 {max_score:.2f}")
            return None

        return [
            LinkMatch(candidates[index], score)
            for index, score in sorted(scores.items())
            if return_all or score == max_score
        ]

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/8 10:11
# @Author  : hejun
"""
插值引擎数据模型
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from core import units
from core.exceptions import ParallelArrayError

_CIVIC = re.compile(r'^\s*(\d+)')

Coordinate = List[float]
Path = List[Coordinate]


def civic_number(number: str) -> Optional[int]:
    """取门牌开头的整数部分，10a -> 10，无数字时返回None"""
    match = _CIVIC.match(str(number))
    return int(match.group(1)) if match else None


@dataclass
class AddressPoint:
    """单个地址的门牌信息，坐标另存于平行数组中"""
    number: str
    output: bool = True
    props: Dict[str, Any] = field(default_factory=dict)
    id: Optional[Any] = None

    def __post_init__(self):
        self.number = str(self.number)
        if self.props is None:
            self.props = {}

    @property
    def civic(self) -> Optional[int]:
        return civic_number(self.number)

    @classmethod
    def from_encoded(cls, value, props: Dict[str, Any] = None, id: Any = None) -> Optional['AddressPoint']:
        """由Z值中的编码门牌构建地址"""
        decoded = units.decode(value)
        if decoded is None:
            return None
        return cls(decoded.num, decoded.output, props or {}, id)


@dataclass
class Segment:
    """
    一条路段及分配到它上面的地址

    network 为若干条折线，address 与 number 为平行数组
    """
    network: List[Path]
    address: Optional[List[Coordinate]] = None
    number: Optional[List[AddressPoint]] = None
    intersections: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        address_count = len(self.address) if self.address is not None else 0
        number_count = len(self.number) if self.number is not None else 0
        if address_count != number_count:
            raise ParallelArrayError(address_count, number_count)

    @property
    def has_addresses(self) -> bool:
        return bool(self.address)


@dataclass(frozen=True)
class NameCandidate:
    """
    名称候选

    tokenized 为分词规范化后的完整名称，tokenless 为去掉常见缩写词（st、ave等）后的名称
    """
    display: str
    tokenized: str
    tokenless: str = ''

    @property
    def tokens(self) -> List[str]:
        return self.tokenized.split()


@dataclass(frozen=True)
class LinkMatch:
    candidate: NameCandidate
    score: float


@dataclass(frozen=True)
class SideRange:
    """单侧门牌区间，start/end为地址在输入数组中的下标"""
    start: int
    end: int
    start_number: int
    end_number: int
    parity: str


@dataclass
class RangeResult:
    """一条路段的插值结果"""
    left: Optional[SideRange] = None
    right: Optional[SideRange] = None
    sequence: bool = True
    leftside: int = 1
    kept: List[int] = field(default_factory=list)
    min_number: Optional[int] = None
    max_number: Optional[int] = None
    # 调试标记，键为地址下标，值为 start/end/left/right 标记集合
    debug: Dict[int, Set[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class Diagnostic:
    """无法自动处理的拓扑情况"""
    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

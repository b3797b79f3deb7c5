#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/12 10:05
# @Author  : hejun
"""
测试公共夹具
"""
import pytest

from config.config import Config
from core.models import AddressPoint


@pytest.fixture
def config():
    return Config.update_config()


@pytest.fixture
def battleridge():
    """Battleridge Place: 右侧 8、10，左侧 9、11"""
    return {
        'network': [[-77.21062123775481, 39.17687343078357], [-77.21064805984497, 39.1773849237293]],
        'address': [
            [-77.21054881811142, 39.1769482836422],
            [-77.2107258439064, 39.176966996844406],
            [-77.21056759357452, 39.17731007133552],
            [-77.21077680587769, 39.177320467506085],
        ],
        'number': [AddressPoint('8'), AddressPoint('9'), AddressPoint('10'), AddressPoint('11')],
    }


def multiline(*lines, properties=None):
    return {
        'type': 'FeatureCollection',
        'features': [{
            'type': 'Feature',
            'properties': properties or {},
            'geometry': {'type': 'MultiLineString', 'coordinates': [list(line) for line in lines]}
        }]
    }


@pytest.fixture
def make_multiline():
    return multiline

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/10 14:18
# @Author  : hejun
"""
插值结果输出
生成 GeometryCollection[MultiLineString, MultiPoint] 形式的GeoJSON要素
"""
import copy
import json
from typing import Dict, Any, List, Optional, Sequence

from shapely.geometry import shape

from core.exceptions import GeometryTypeError
from core.models import RangeResult, Segment, civic_number

RANGE_PROPS = [
    'carmen:parityl', 'carmen:lfromhn', 'carmen:ltohn',
    'carmen:parityr', 'carmen:rfromhn', 'carmen:rtohn'
]


def _side_values(side) -> List[Any]:
    if side is None:
        return [None, None, None]
    return [side.parity, side.start_number, side.end_number]


def build_segment_feature(seg: Segment, result: Optional[RangeResult] = None) -> Dict[str, Any]:
    """
    生成单条路段的要素

    Args:
        seg: 路段，network必须恰好为一条折线
        result: 插值结果，None表示该路段没有地址

    Returns:
        GeoJSON Feature
    """
    if len(seg.network) != 1:
        raise GeometryTypeError('单条LineString', f'{len(seg.network)}条折线')

    feature = {
        'type': 'Feature',
        'properties': {
            'carmen:intersections': copy.deepcopy(seg.intersections)
        },
        'geometry': {
            'type': 'GeometryCollection',
            'geometries': [{
                'type': 'LineString',
                'coordinates': [list(c) for c in seg.network[0]]
            }]
        }
    }

    if result is None:
        return feature

    feature['properties']['carmen:rangetype'] = 'tiger'
    values = _side_values(result.left) + _side_values(result.right)
    for prop, value in zip(RANGE_PROPS, values):
        feature['properties'][prop] = [value]

    kept = set(result.kept)
    outputs = [
        i for i, number in enumerate(seg.number or [])
        if number.output and i in kept
    ]
    if not outputs:
        return feature

    for prop in RANGE_PROPS:
        feature['properties'][prop].append(None)

    feature['properties']['carmen:addressnumber'] = [None, [seg.number[i].number for i in outputs]]
    feature['properties']['address_props'] = [copy.deepcopy(seg.number[i].props) for i in outputs]
    feature['geometry']['geometries'].append({
        'type': 'MultiPoint',
        'coordinates': [[seg.address[i][0], seg.address[i][1]] for i in outputs]
    })

    return feature


def debug_collection(seg: Segment, result: RangeResult) -> Optional[Dict[str, Any]]:
    """起止点调试信息"""
    features = []
    for index in sorted(result.debug):
        features.append({
            'type': 'Feature',
            'properties': {tag: True for tag in sorted(result.debug[index])},
            'geometry': {'type': 'Point', 'coordinates': [seg.address[index][0], seg.address[index][1]]}
        })
    if not features:
        return None
    return {'type': 'FeatureCollection', 'features': features}


def itp_sort_key(feature: Dict[str, Any]):
    """按起始门牌升序，没有区间的排在最后"""
    props = feature['properties']
    value = None
    if props.get('carmen:lfromhn') and props['carmen:lfromhn'][0] is not None:
        value = props['carmen:lfromhn'][0]
    elif props.get('carmen:rfromhn') and props['carmen:rfromhn'][0] is not None:
        value = props['carmen:rfromhn'][0]
    return (value is None, value or 0)


def join_features(itps: Sequence[Dict[str, Any]], debug: bool = False) -> Optional[Dict[str, Any]]:
    """
    合并同一簇内各路段的要素

    Args:
        itps: build_segment_feature 生成的要素，已排序
        debug: 是否保留调试信息

    Returns:
        合并后的要素，输入为空时返回None
    """
    if not itps:
        return None

    itp = {
        'type': 'Feature',
        'properties': {
            'address_props': [],
            'carmen:intersections': [],
            'carmen:addressnumber': [None, []],
            'carmen:rangetype': 'tiger',
        },
        'geometry': {
            'type': 'GeometryCollection',
            'geometries': [
                {'type': 'MultiLineString', 'coordinates': []},
                {'type': 'MultiPoint', 'coordinates': []}
            ]
        }
    }
    for prop in RANGE_PROPS:
        itp['properties'][prop] = [[], None]
    if debug:
        itp['debug'] = []

    for res in itps:
        props = res['properties']
        geometries = res['geometry']['geometries']
        itp['geometry']['geometries'][0]['coordinates'].append(geometries[0]['coordinates'])

        if debug:
            itp['debug'].append(res.get('debug'))

        for prop in RANGE_PROPS:
            itp['properties'][prop][0].append(props[prop][0] if props.get('carmen:rangetype') else None)

        if props.get('carmen:intersections'):
            itp['properties']['carmen:intersections'].extend(props['carmen:intersections'])

        if props.get('carmen:addressnumber'):
            itp['properties']['address_props'].extend(props['address_props'])
            itp['properties']['carmen:addressnumber'][1].extend(props['carmen:addressnumber'][1])
            itp['geometry']['geometries'][1]['coordinates'].extend(geometries[1]['coordinates'])

    # 没有任何地址时去掉地址相关的属性和几何
    if not itp['properties']['carmen:addressnumber'][1]:
        del itp['properties']['carmen:addressnumber']
        for prop in RANGE_PROPS:
            itp['properties'][prop].pop()
        itp['geometry']['geometries'].pop()

    return itp


def dedupe_addresses(feature: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """同一门牌只保留第一次出现的坐标"""
    if not feature or not isinstance(feature.get('properties', {}).get('carmen:addressnumber'), list):
        return feature

    feature = copy.deepcopy(feature)
    props = feature['properties']
    geometries = feature['geometry']['geometries']

    for i, numbers in enumerate(props['carmen:addressnumber']):
        if not isinstance(numbers, list):
            continue

        seen = set()
        keep = []
        for j, number in enumerate(numbers):
            if not number or number in seen:
                continue
            seen.add(number)
            keep.append(j)

        props['carmen:addressnumber'][i] = [numbers[j] for j in keep]
        geometries[i]['coordinates'] = [geometries[i]['coordinates'][j] for j in keep]
        if isinstance(props.get('address_props'), list) and len(props['address_props']) == len(numbers):
            props['address_props'] = [props['address_props'][j] for j in keep]

    return feature


def _value_key(value) -> str:
    """属性值的比较键，列表与字典也可以计数"""
    return json.dumps(value, sort_keys=True, default=str)


def promote_props(feature: Optional[Dict[str, Any]], names: Sequence[str] = None) -> Optional[Dict[str, Any]]:
    """
    把地址属性中最常见的值提升为要素属性，其余值按地址下标记录到 carmen:addressprops

    Args:
        feature: join_features 的输出
        names: 需要提升的属性名

    Returns:
        新要素，address_props 被移除
    """
    if not feature:
        return feature

    feature = copy.deepcopy(feature)
    props = feature['properties']
    address_props = props.pop('address_props', None)
    if not names or not address_props:
        return feature

    for name in names:
        values = [prop.get(name) for prop in address_props]

        # 计数最先达到最大值的取值胜出
        counts = {}
        leader, leader_count = None, 0
        for value in values:
            key = _value_key(value)
            counts[key] = counts.get(key, 0) + 1
            if counts[key] > leader_count:
                leader, leader_count = value, counts[key]

        if leader is not None:
            props[name] = leader

        leader_key = _value_key(leader)
        for index, value in enumerate(values):
            if value is None and leader is None:
                continue
            if _value_key(value) != leader_key:
                props.setdefault('carmen:addressprops', {}).setdefault(name, {})[index] = value

    return feature


def output_intersections(feature: Optional[Dict[str, Any]], enabled: bool = False) -> Optional[Dict[str, Any]]:
    """
    输出交叉口

    未开启时删除 carmen:intersections；开启时把与本街道相交的街道名和交点
    作为一个新的MultiPoint追加到几何末尾，其余平行属性补None

    交叉口记录含 a_id/a_street/b_id/b_street/geom，按 internal:nid 取另一侧的街道名
    """
    if not feature:
        return feature

    feature = copy.deepcopy(feature)
    props = feature['properties']
    intersections = props.get('carmen:intersections')
    if not enabled or not intersections:
        props.pop('carmen:intersections', None)
        return feature

    nid = props.get('internal:nid')
    streets, points = [], []
    for intersection in intersections:
        if intersection.get('a_id') == nid:
            street = intersection.get('b_street')
        elif intersection.get('b_id') == nid:
            street = intersection.get('a_street')
        else:
            continue
        if not street:
            continue

        for name in str(street).split(','):
            name = name.strip()
            if name and name not in streets:
                streets.append(name)
                points.append(list(intersection['geom']['coordinates']))

    if not streets:
        del props['carmen:intersections']
        return feature

    geometries = feature['geometry']['geometries']
    props['carmen:intersections'] = [None] * len(geometries) + [streets]
    geometries.append({'type': 'MultiPoint', 'coordinates': points})

    if props.get('carmen:addressnumber'):
        props['carmen:addressnumber'].append(None)
    for prop in RANGE_PROPS:
        if props.get(prop):
            props[prop].append(None)

    return feature


def sort_addresses(feature: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """门牌按数值升序排列，坐标与地址属性同步调整"""
    if not feature or not feature.get('properties', {}).get('carmen:addressnumber'):
        return feature

    feature = copy.deepcopy(feature)
    props = feature['properties']
    geometries = feature['geometry']['geometries']

    for i, numbers in enumerate(props['carmen:addressnumber']):
        if not isinstance(numbers, list):
            continue

        order = sorted(range(len(numbers)), key=lambda j: (
            civic_number(numbers[j]) is None,
            civic_number(numbers[j]) or 0,
            str(numbers[j])
        ))

        props['carmen:addressnumber'][i] = [numbers[j] for j in order]
        geometries[i]['coordinates'] = [geometries[i]['coordinates'][j] for j in order]
        if isinstance(props.get('address_props'), list) and len(props['address_props']) == len(numbers):
            props['address_props'] = [props['address_props'][j] for j in order]

    return feature


def add_centre(feature: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """carmen:center 取地址点上的一点，没有地址时取路网上的一点"""
    if not feature:
        return feature

    feature = copy.deepcopy(feature)
    geometries = feature['geometry']['geometries']
    geometry = geometries[1] if len(geometries) > 1 else geometries[0]

    point = shape(geometry).representative_point()
    feature['properties']['carmen:center'] = [point.x, point.y]
    return feature


def strip_internal(feature: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """删除 internal: 前缀的属性"""
    if not feature or not feature.get('properties'):
        return feature

    feature = copy.deepcopy(feature)
    for key in [k for k in feature['properties'] if k.startswith('internal:')]:
        del feature['properties'][key]
    return feature


def post_process(feature: Optional[Dict[str, Any]],
                 props: Sequence[str] = None,
                 intersections: bool = False) -> Optional[Dict[str, Any]]:
    """
    输出前的固定后处理步骤

    交叉口 -> 门牌去重 -> 门牌排序 -> 中心点 -> 删除内部属性 -> 属性提升

    Args:
        feature: join_features 的输出，可含 internal:nid
        props: 需要提升的地址属性名
        intersections: 是否输出交叉口

    Returns:
        处理后的新要素
    """
    feature = output_intersections(feature, intersections)
    feature = dedupe_addresses(feature)
    feature = sort_addresses(feature)
    feature = add_centre(feature)
    feature = strip_internal(feature)
    return promote_props(feature, props)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/12 17:05
# @Author  : hejun
"""
输出要素测试
"""
import pytest

from core.exceptions import GeometryTypeError
from core.feature_builder import (RANGE_PROPS, add_centre, build_segment_feature, dedupe_addresses, itp_sort_key,
                                  join_features, output_intersections, post_process, promote_props,
                                  sort_addresses, strip_internal)
from core.models import AddressPoint, RangeResult, Segment, SideRange


def address_feature(numbers, address_props=None):
    coords = [[0.0001, 0.001 * (i + 1)] for i in range(len(numbers))]
    return {
        'type': 'Feature',
        'properties': {
            'carmen:addressnumber': [None, list(numbers)],
            'address_props': address_props if address_props is not None else [{} for _ in numbers],
        },
        'geometry': {
            'type': 'GeometryCollection',
            'geometries': [
                {'type': 'MultiLineString', 'coordinates': [[[0, 0], [0, 0.01]]]},
                {'type': 'MultiPoint', 'coordinates': coords}
            ]
        }
    }


class TestBuildSegmentFeature:
    """单路段要素"""

    def test_without_result(self):
        seg = Segment(network=[[[0, 0], [0, 0.01]]], intersections=[{'id': 1}])

        feature = build_segment_feature(seg)

        assert feature['properties'] == {'carmen:intersections': [{'id': 1}]}
        assert feature['geometry']['geometries'] == [{'type': 'LineString', 'coordinates': [[0, 0], [0, 0.01]]}]

    def test_with_result(self):
        seg = Segment(
            network=[[[0, 0], [0, 0.01]]],
            address=[[0.0001, 0.002], [-0.0001, 0.004], [0.5, 0.5]],
            number=[AddressPoint('2', props={'source': 'a'}), AddressPoint('3'), AddressPoint('900')]
        )
        result = RangeResult(
            left=SideRange(1, 1, 3, 3, 'O'),
            right=SideRange(0, 0, 2, 2, 'E'),
            kept=[0, 1]
        )

        props = build_segment_feature(seg, result)['properties']

        assert props['carmen:rangetype'] == 'tiger'
        assert props['carmen:parityl'] == ['O', None]
        assert props['carmen:rtohn'] == [2, None]
        assert props['carmen:addressnumber'] == [None, ['2', '3']]
        assert props['address_props'] == [{'source': 'a'}, {}]

    def test_rejects_several_lines(self):
        seg = Segment(network=[[[0, 0], [0, 0.002]], [[1, 0], [1, 0.002]]])
        with pytest.raises(GeometryTypeError):
            build_segment_feature(seg)


class TestJoinFeatures:
    """簇内合并"""

    def test_sort_key(self):
        ranged = {'properties': {'carmen:lfromhn': [None], 'carmen:rfromhn': [10]}}
        unranged = {'properties': {}}
        low = {'properties': {'carmen:lfromhn': [3]}}
        assert sorted([unranged, ranged, low], key=itp_sort_key) == [low, ranged, unranged]

    def test_join_without_addresses(self):
        segs = [Segment(network=[[[0, 0], [0, 0.01]]]), Segment(network=[[[0, 0.01], [0, 0.02]]])]

        itp = join_features([build_segment_feature(seg) for seg in segs])

        assert itp['geometry']['geometries'] == [
            {'type': 'MultiLineString', 'coordinates': [[[0, 0], [0, 0.01]], [[0, 0.01], [0, 0.02]]]}
        ]
        for prop in RANGE_PROPS:
            assert itp['properties'][prop] == [[None, None]]
        assert 'carmen:addressnumber' not in itp['properties']

    def test_join_empty(self):
        assert join_features([]) is None


class TestPostProcessing:
    """去重与属性提升"""

    def test_dedupe_addresses(self):
        feature = address_feature(['1', '1', '2'], [{'n': 0}, {'n': 1}, {'n': 2}])

        deduped = dedupe_addresses(feature)

        assert deduped['properties']['carmen:addressnumber'] == [None, ['1', '2']]
        assert deduped['geometry']['geometries'][1]['coordinates'] == [[0.0001, 0.001], [0.0001, 0.003]]
        assert deduped['properties']['address_props'] == [{'n': 0}, {'n': 2}]
        assert feature['properties']['carmen:addressnumber'] == [None, ['1', '1', '2']]

    def test_dedupe_without_addresses(self):
        feature = {'type': 'Feature', 'properties': {}, 'geometry': None}
        assert dedupe_addresses(feature) is feature

    def test_promote_props(self):
        feature = address_feature(['1', '2', '3'], [{'source': 'a'}, {'source': 'a'}, {'source': 'b'}])

        promoted = promote_props(feature, ['source'])

        assert promoted['properties']['source'] == 'a'
        assert promoted['properties']['carmen:addressprops'] == {'source': {2: 'b'}}
        assert 'address_props' not in promoted['properties']
        assert 'address_props' in feature['properties']

    def test_promote_without_names(self):
        promoted = promote_props(address_feature(['1']), [])
        assert 'address_props' not in promoted['properties']
        assert 'carmen:addressprops' not in promoted['properties']

    def test_promote_unhashable_values(self):
        feature = address_feature(['1', '2', '3'], [{'source': ['x']}, {'source': ['x']}, {'source': {'y': 1}}])

        promoted = promote_props(feature, ['source'])

        assert promoted['properties']['source'] == ['x']
        assert promoted['properties']['carmen:addressprops'] == {'source': {2: {'y': 1}}}

    def test_promote_tie_keeps_first_to_reach_max(self):
        feature = address_feature(['1', '2', '3', '4'],
                                  [{'source': 'a'}, {'source': 'b'}, {'source': 'b'}, {'source': 'a'}])

        promoted = promote_props(feature, ['source'])

        assert promoted['properties']['source'] == 'b'
        assert promoted['properties']['carmen:addressprops'] == {'source': {0: 'a', 3: 'a'}}

    def test_promote_missing_values(self):
        feature = address_feature(['1', '2', '3'], [{}, {}, {'source': 'a'}])

        promoted = promote_props(feature, ['source'])

        assert 'source' not in promoted['properties']
        assert promoted['properties']['carmen:addressprops'] == {'source': {2: 'a'}}

    def test_sort_addresses(self):
        feature = address_feature(['22', '24', '23', '10a'], [{'n': 0}, {'n': 1}, {'n': 2}, {'n': 3}])

        ordered = sort_addresses(feature)

        assert ordered['properties']['carmen:addressnumber'] == [None, ['10a', '22', '23', '24']]
        assert ordered['geometry']['geometries'][1]['coordinates'] == [
            [0.0001, 0.004], [0.0001, 0.001], [0.0001, 0.003], [0.0001, 0.002]
        ]
        assert ordered['properties']['address_props'] == [{'n': 3}, {'n': 0}, {'n': 2}, {'n': 1}]

    def test_strip_internal(self):
        feature = address_feature(['1'])
        feature['properties']['internal:nid'] = 4

        stripped = strip_internal(feature)

        assert 'internal:nid' not in stripped['properties']
        assert feature['properties']['internal:nid'] == 4


class TestIntersectionsAndCentre:
    """交叉口与中心点"""

    def intersection_feature(self):
        feature = address_feature(['1', '2'])
        feature['properties'].update({
            'internal:nid': 4,
            'carmen:lfromhn': [[1], None],
            'carmen:intersections': [
                {'a_id': 4, 'a_street': 'Main St', 'b_id': 9, 'b_street': 'Oak Ave,Route 7',
                 'geom': {'type': 'Point', 'coordinates': [0, 0.005]}},
                {'a_id': 9, 'a_street': 'Oak Ave', 'b_id': 4, 'b_street': 'Main St',
                 'geom': {'type': 'Point', 'coordinates': [0, 0.006]}},
                {'a_id': 2, 'a_street': 'Elm St', 'b_id': 3, 'b_street': 'Pine St',
                 'geom': {'type': 'Point', 'coordinates': [5, 5]}},
            ]
        })
        return feature

    def test_disabled_removes_intersections(self):
        result = output_intersections(self.intersection_feature(), enabled=False)
        assert 'carmen:intersections' not in result['properties']
        assert len(result['geometry']['geometries']) == 2

    def test_enabled_appends_cross_streets(self):
        result = output_intersections(self.intersection_feature(), enabled=True)

        props = result['properties']
        assert props['carmen:intersections'] == [None, None, ['Oak Ave', 'Route 7']]
        assert props['carmen:addressnumber'] == [None, ['1', '2'], None]
        assert props['carmen:lfromhn'] == [[1], None, None]
        assert result['geometry']['geometries'][2] == {
            'type': 'MultiPoint', 'coordinates': [[0, 0.005], [0, 0.005]]
        }

    def test_centre_prefers_addresses(self):
        feature = address_feature(['1'])
        assert add_centre(feature)['properties']['carmen:center'] == [0.0001, 0.001]

    def test_centre_falls_back_to_network(self):
        feature = {
            'type': 'Feature',
            'properties': {},
            'geometry': {'type': 'GeometryCollection', 'geometries': [
                {'type': 'MultiLineString', 'coordinates': [[[0, 0], [0, 0.01]]]}
            ]}
        }
        lon, lat = add_centre(feature)['properties']['carmen:center']
        assert lon == pytest.approx(0)
        assert 0 <= lat <= 0.01

    def test_post_process(self):
        feature = self.intersection_feature()
        feature['properties']['carmen:addressnumber'] = [None, ['2', '1', '2']]
        feature['properties']['address_props'] = [{'source': 'a'}, {'source': 'b'}, {'source': 'c'}]
        feature['geometry']['geometries'][1]['coordinates'] = [[0.0001, 0.002], [0.0001, 0.001], [0.0001, 0.003]]

        result = post_process(feature, ['source'])

        props = result['properties']
        assert props['carmen:addressnumber'] == [None, ['1', '2']]
        assert result['geometry']['geometries'][1]['coordinates'] == [[0.0001, 0.001], [0.0001, 0.002]]
        assert props['source'] == 'b'
        assert props['carmen:addressprops'] == {'source': {1: 'a'}}
        assert 'carmen:center' in props
        assert 'carmen:intersections' not in props
        assert 'internal:nid' not in props
        assert 'address_props' not in props

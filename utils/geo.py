#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/8 10:20
# @Author  : hejun
"""
地理计算工具
坐标统一为 [经度, 纬度]，距离单位为公里，方位角单位为度
"""
import math
from collections import namedtuple
from typing import List, Sequence

import numpy as np
from pyproj import Geod
from shapely.geometry import LineString, Point

EARTH_RADIUS_KM = 6371
KM_PER_MILE = 1.609344

# 与haversine同半径的球面，方位角与前向解算在球面上进行
GEOD = Geod(a=EARTH_RADIUS_KM * 1000, f=0)

# 点在线上的投影结果
Projection = namedtuple('Projection', ['point', 'index', 'dist_on_line', 'dist_from_line'])


def calculate_haversine_distance(lat1, lon1, lat2, lon2):
    """
    计算两个坐标之间的球面距离（公里）- Haversine公式
    支持标量或numpy数组

    Args:
        lat1, lon1: 第一个坐标
        lat2, lon2: 第二个坐标

    Returns:
        距离（公里）
    """
    lat1_rad, lon1_rad, lat2_rad, lon2_rad = map(np.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arcsin(np.sqrt(a))

    return EARTH_RADIUS_KM * c


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """两点球面距离（公里）"""
    return float(calculate_haversine_distance(a[1], a[0], b[1], b[0]))


def line_length(coords: Sequence[Sequence[float]]) -> float:
    """折线长度（公里）"""
    if len(coords) < 2:
        return 0.0
    arr = np.asarray([c[:2] for c in coords], dtype=float)
    return float(np.sum(calculate_haversine_distance(arr[:-1, 1], arr[:-1, 0], arr[1:, 1], arr[1:, 0])))


def bearing(start: Sequence[float], end: Sequence[float]) -> float:
    """起点到终点的初始方位角，范围 (-180, 180]"""
    azimuth = GEOD.inv(start[0], start[1], end[0], end[1])[0]
    return azimuth + 360 if azimuth <= -180 else azimuth


def destination(origin: Sequence[float], dist_km: float, bearing_deg: float) -> List[float]:
    """从origin沿bearing_deg方向行进dist_km后的坐标"""
    lon, lat, _ = GEOD.fwd(origin[0], origin[1], bearing_deg, dist_km * 1000)
    return [lon, lat]


def det2d(start: Sequence[float], end: Sequence[float], query: Sequence[float]) -> float:
    """
    二维叉积，判断query位于 start->end 的哪一侧
    正值为左侧，负值为右侧，0为共线
    """
    return (end[0] - start[0]) * (query[1] - start[1]) - (end[1] - start[1]) * (query[0] - start[0])


def sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def dedup(coords: Sequence[Sequence[float]]) -> List[List[float]]:
    """去除相邻的重复坐标"""
    processed = []
    for coord in coords:
        if processed and list(processed[-1]) == list(coord):
            continue
        processed.append(list(coord))
    return processed


def center(coords: Sequence[Sequence[float]]) -> List[float]:
    """外包框中心点"""
    arr = np.asarray([c[:2] for c in coords], dtype=float)
    mins = arr.min(axis=0)
    maxs = arr.max(axis=0)
    return [float((mins[0] + maxs[0]) / 2), float((mins[1] + maxs[1]) / 2)]


def project_point(coords: Sequence[Sequence[float]], point: Sequence[float]) -> Projection:
    """
    计算点在折线上的最近投影

    Args:
        coords: 折线坐标，至少2个点
        point: 待投影点

    Returns:
        Projection: 投影点、所在线段起点下标、沿线距离（公里）、离线距离（公里）
    """
    path = [(float(c[0]), float(c[1])) for c in coords]
    line = LineString(path)
    offset = line.project(Point(point[0], point[1]))

    if offset <= 0:
        index, projected, dist_on_line = 0, list(path[0]), 0.0
    elif offset >= line.length:
        index, projected, dist_on_line = len(path) - 2, list(path[-1]), line_length(path)
    else:
        walked = 0.0
        index = len(path) - 2
        for i in range(len(path) - 1):
            step = math.hypot(path[i + 1][0] - path[i][0], path[i + 1][1] - path[i][1])
            if walked + step >= offset:
                index = i
                break
            walked += step

        hit = line.interpolate(offset)
        projected = [hit.x, hit.y]
        dist_on_line = line_length(path[:index + 1]) + distance(path[index], projected)

    return Projection(projected, index, dist_on_line, distance(point, projected))


def slice_along(coords: Sequence[Sequence[float]], start_km: float, stop_km: float) -> List[List[float]]:
    """
    按沿线距离截取折线的一段

    Args:
        coords: 折线坐标
        start_km: 起始沿线距离
        stop_km: 结束沿线距离，超过全长时截至终点

    Returns:
        截取后的坐标，起点超出全长时返回空列表
    """
    sliced = []
    travelled = 0.0

    for i in range(len(coords) - 1):
        a, b = coords[i], coords[i + 1]
        step = distance(a, b)
        reached = travelled + step

        if not sliced and start_km <= reached:
            sliced.append(_interpolate(a, b, start_km - travelled, step))

        if sliced:
            if stop_km <= reached:
                sliced.append(_interpolate(a, b, stop_km - travelled, step))
                return dedup(sliced)
            sliced.append([b[0], b[1]])

        travelled = reached

    return dedup(sliced)


def _interpolate(a: Sequence[float], b: Sequence[float], along_km: float, step_km: float) -> List[float]:
    if step_km <= 0 or along_km <= 0:
        return [a[0], a[1]]
    if along_km >= step_km:
        return [b[0], b[1]]
    ratio = along_km / step_km
    return [a[0] + (b[0] - a[0]) * ratio, a[1] + (b[1] - a[1]) * ratio]

"""Layers computed directly from each triangle: area, height and edge length."""

from __future__ import annotations

import enum
import time

import numpy as np

from habicat.layers import DebugInfo, LayerManager, LayerType, MeshLayer


class EdgeMode(enum.IntEnum):
    """Which edge length of a triangle the edge layer records."""

    MAX = 0
    MIN = 1
    MEAN = 2


_EDGE_MODE_NAMES = {
    EdgeMode.MAX: "Max edge length.",
    EdgeMode.MIN: "Min edge length.",
    EdgeMode.MEAN: "Mean edge length.",
}


def _f32(value: float) -> float:
    return float(np.float32(value))


def _timed_debug_info(start: int) -> DebugInfo:
    info = DebugInfo()
    info.add_entry("Start time", start)
    info.add_entry("End time", time.time_ns())
    return info


def area_layer(manager: LayerManager) -> MeshLayer:
    """A layer holding the area of every triangle."""
    result = MeshLayer(type=LayerType.TRIANGLE_AREA)
    model = manager.model
    if model is None:
        return result
    start = time.time_ns()
    result.data = [_f32(area) for area in model.triangles_area]
    result.caption = manager.suitable_new_layer_caption("Triangle area")
    result.debug_info = _timed_debug_info(start)
    return result


def height_layer(manager: LayerManager) -> MeshLayer:
    """A layer holding each triangle's mean height along the mesh's average normal."""
    result = MeshLayer(type=LayerType.HEIGHT)
    model = manager.model
    if model is None:
        return result
    start = time.time_ns()
    normal = np.asarray(model.average_normal, dtype=np.float32)
    heights = []
    for triangle in model.triangles:
        homogeneous = np.hstack([triangle, np.ones((3, 1))])
        transformed = (homogeneous @ model.transform.T)[:, :3].astype(np.float32)
        heights.append(_f32(float(np.sum(transformed @ normal)) / 3.0))
    if heights:
        shift = abs(min(heights))
        heights = [_f32(np.float32(h) + np.float32(shift)) for h in heights]
    result.data = heights
    result.caption = manager.suitable_new_layer_caption("Height")
    result.debug_info = _timed_debug_info(start)
    return result


def triangle_edge_layer(manager: LayerManager, mode: int) -> MeshLayer:
    """A layer holding the max, min or mean edge length of every triangle."""
    result = MeshLayer(type=LayerType.TRIANGLE_EDGE)
    model = manager.model
    if model is None:
        return result
    start = time.time_ns()
    for a, b, c in model.triangles:
        edges = (
            float(np.linalg.norm(a - b)),
            float(np.linalg.norm(b - c)),
            float(np.linalg.norm(c - a)),
        )
        if mode == EdgeMode.MAX:
            value = max(edges)
        elif mode == EdgeMode.MIN:
            value = min(edges)
        else:
            value = sum(edges) / 3.0
        result.data.append(_f32(value))
    result.caption = manager.suitable_new_layer_caption("Triangle edge")
    result.debug_info = _timed_debug_info(start)
    try:
        mode_name = _EDGE_MODE_NAMES[EdgeMode(mode)]
    except ValueError:
        mode_name = "Unknown."
    result.debug_info.add_entry("Mode", mode_name)
    return result
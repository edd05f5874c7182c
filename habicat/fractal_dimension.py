"""Box-counting fractal dimension of the surface inside grid cells."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike

from habicat.layers import DebugInfo, GridNode, LayerManager, LayerType, MeshLayer, MeshModel

BoxCallback = Callable[[int, "AABB"], None]

_DIVISION_FACTORS = (32, 16, 8, 4)
_MAX_FRACTAL_DIMENSION = 3.0


def _divide(numerator: float, denominator: float) -> float:
    """IEEE-style division: a zero denominator yields an infinity or NaN."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


@dataclass
class AABB:
    """An axis-aligned box given by its minimum and maximum corners."""

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self) -> None:
        self.min = np.asarray(self.min, dtype=float).reshape(3)
        self.max = np.asarray(self.max, dtype=float).reshape(3)

    @classmethod
    def from_points(cls, points: ArrayLike) -> "AABB":
        """The smallest box that holds all the given points."""
        array = np.asarray(points, dtype=float).reshape(-1, 3)
        if len(array) == 0:
            raise ValueError("cannot build a box from no points")
        return cls(array.min(axis=0), array.max(axis=0))

    def intersects_triangle(self, triangle: ArrayLike) -> bool:
        """Whether the triangle touches or crosses the box (separating axis test)."""
        vertices = np.asarray(triangle, dtype=float).reshape(3, 3)
        center = (self.min + self.max) / 2.0
        half = (self.max - self.min) / 2.0
        v = vertices - center
        edges = (v[1] - v[0], v[2] - v[1], v[0] - v[2])
        unit_axes = np.identity(3)

        axes = [np.cross(axis, edge) for axis in unit_axes for edge in edges]
        axes.extend(unit_axes)
        axes.append(np.cross(edges[0], edges[1]))

        for axis in axes:
            if not np.any(axis):
                continue
            projections = v @ axis
            radius = float(half @ np.abs(axis))
            if projections.min() > radius or projections.max() < -radius:
                return False
        return True


def linear_regression(x_values: Sequence[float], y_values: Sequence[float]) -> tuple[float, float]:
    """Least-squares slope and intercept of y against x."""
    if len(x_values) != len(y_values):
        raise ValueError("x and y must hold the same number of values")
    n = float(len(x_values))
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in zip(x_values, y_values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x
    slope = _divide(n * sum_xy - sum_x * sum_y, n * sum_xx - sum_x * sum_x)
    intercept = _divide(sum_y - slope * sum_x, n)
    return slope, intercept


def generate_box_sizes(min_size: float, max_size: float, factor: float) -> list[float]:
    """Sizes from ``max_size`` down to ``min_size``, each one ``factor`` times smaller."""
    if factor <= 1.0:
        raise ValueError("factor must be greater than 1")
    if min_size <= 0.0:
        raise ValueError("min_size must be positive")
    sizes = []
    size = max_size
    while size >= min_size:
        sizes.append(size)
        size /= factor
    return sizes


def node_fractal_dimension(
    model: MeshModel, node: GridNode, on_box: Optional[BoxCallback] = None
) -> float:
    """Box-counting dimension of the triangles in a cell.

    ``on_box`` is called with the box-size index and the box for every
    newly counted box.
    """
    if not node.triangles_in_cell:
        return 0.0

    origin = np.asarray(node.aabb_min, dtype=float)
    voxel_size = float(node.aabb_max[0] - node.aabb_min[0])
    if voxel_size <= 0.0:
        raise ValueError("grid node has no extent")

    log_inverse_sizes: list[float] = []
    log_counts: list[float] = []

    for size_index, factor in enumerate(_DIVISION_FACTORS):
        box_size = voxel_size / factor
        occupied: set[tuple[int, int, int]] = set()

        for triangle_index in node.triangles_in_cell:
            triangle = model.triangles[triangle_index]
            bounds = AABB.from_points(triangle)
            low = [int((bounds.min[axis] - origin[axis]) / box_size) for axis in range(3)]
            high = [int((bounds.max[axis] - origin[axis]) / box_size) for axis in range(3)]

            for x in range(max(low[0], 0), min(high[0], factor - 1) + 1):
                for y in range(max(low[1], 0), min(high[1], factor - 1) + 1):
                    for z in range(max(low[2], 0), min(high[2], factor - 1) + 1):
                        cell = (x, y, z)
                        if cell in occupied:
                            continue
                        box_min = origin + np.array(cell, dtype=float) * box_size
                        box = AABB(box_min, box_min + box_size)
                        if box.intersects_triangle(triangle):
                            occupied.add(cell)
                            if on_box is not None:
                                on_box(size_index, box)

        count = len(occupied)
        log_inverse_sizes.append(math.log10(1.0 / box_size))
        log_counts.append(math.log10(count) if count > 0 else -math.inf)

    slope, _ = linear_regression(log_inverse_sizes, log_counts)
    return slope


class FractalDimensionProducer:
    """Per-cell fractal dimension and the layer built from it."""

    fallback_value = 2.0

    def __init__(
        self,
        filter_values: bool = True,
        calculate_standard_deviation: bool = False,
        on_calculations_end: Optional[Callable[[MeshLayer], None]] = None,
    ) -> None:
        self.filter_values = filter_values
        self.calculate_standard_deviation = calculate_standard_deviation
        self.on_calculations_end = on_calculations_end

    def ignore_value(self, value: float) -> bool:
        """Whether a cell value is left out of the per-triangle result."""
        return self.filter_values and value < 2.0

    def work_on_node(self, model: MeshModel, node: GridNode) -> None:
        """Store the cell's fractal dimension, clamped to at most 3, in the node."""
        dimension = node_fractal_dimension(model, node)
        if math.isnan(dimension):
            dimension = 0.0
        if dimension > _MAX_FRACTAL_DIMENSION:
            dimension = _MAX_FRACTAL_DIMENSION
        node.user_data = dimension

    def finish(
        self,
        manager: LayerManager,
        layer: MeshLayer,
        deviation: Optional[Sequence[float]] = None,
    ) -> Optional[MeshLayer]:
        """Add a finished layer to the model and make it active.

        With standard deviation enabled and ``deviation`` given, a second
        layer holding it is added after the first.
        """
        model = manager.model
        if model is None:
            return None

        layer.type = LayerType.FRACTAL_DIMENSION
        if layer.debug_info is None:
            layer.debug_info = DebugInfo()
        layer.debug_info.add_entry("FD outliers: ", "Yes" if self.filter_values else "No")

        model.add_layer(layer)
        layer.caption = manager.suitable_new_layer_caption("Fractal dimension")
        manager.set_active_layer_index(len(model.layers) - 1)

        if self.calculate_standard_deviation and deviation is not None:
            start = time.time_ns()
            deviation_layer = model.add_data_layer(list(deviation))
            deviation_layer.caption = manager.suitable_new_layer_caption("Standard deviation")
            info = DebugInfo(type="FractalDimensionDeviationLayerDebugInfo")
            info.add_entry("Start time", start)
            info.add_entry("End time", time.time_ns())
            info.add_entry("Source layer ID", layer.id)
            info.add_entry("Source layer caption", layer.caption)
            deviation_layer.debug_info = info

        if self.on_calculations_end is not None:
            self.on_calculations_end(layer)
        return layer
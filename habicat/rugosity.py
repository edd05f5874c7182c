"""Rugosity: surface area of a cell's triangles over the area they project to."""

from __future__ import annotations

import math
import time
from typing import Callable, Mapping, Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike

from habicat.geometry import Plane, triangle_area
from habicat.layers import DebugInfo, GridNode, LayerManager, LayerType, MeshLayer, MeshModel
from habicat.rugosity_projection import (
    fit_plane_normal,
    project_onto_plane_2d,
    projected_hull_area,
    projected_unique_area,
)

OutlierAdjuster = Callable[[list[float], float, float], list[float]]

FLT_EPSILON = float(np.finfo(np.float32).eps)
MAX_TRIANGLE_RUGOSITY = 100.0

RUGOSITY_ALGORITHMS = ("Average normal", "Min Rugosity(default)", "Least square fitting")
ORIENTATION_SET_NAMES = (
    "1", "9", "19", "33", "51", "73", "91", "99",
    "129", "163", "201", "289", "339", "393", "441",
)
DEFAULT_ORIENTATION_SET = "91"


def _hemisphere_directions(count: int) -> tuple[np.ndarray, ...]:
    """``count`` unit directions spread over the hemisphere y >= 0, starting at +y."""
    if count == 1:
        return (np.array([0.0, 1.0, 0.0]),)
    golden_angle = math.pi * (3.0 - math.sqrt(5.0))
    directions = []
    for i in range(count):
        y = 1.0 - i / (count - 1)
        radius = math.sqrt(max(0.0, 1.0 - y * y))
        theta = golden_angle * i
        directions.append(np.array([radius * math.cos(theta), y, radius * math.sin(theta)]))
    return tuple(directions)


ORIENTATION_SETS: dict[str, tuple[np.ndarray, ...]] = {
    name: _hemisphere_directions(int(name)) for name in ORIENTATION_SET_NAMES
}


def _triangle_area_2d(points: Sequence[tuple[float, float]]) -> float:
    (ax, ay), (bx, by), (cx, cy) = points
    return abs(0.5 * ((bx - ax) * (cy - ay) - (cx - ax) * (by - ay)))


class RugosityProducer:
    """Per-cell rugosity and the layer built from it."""

    fallback_value = 1.0

    def __init__(
        self,
        orientation_sets: Optional[Mapping[str, Sequence[ArrayLike]]] = None,
        on_calculations_start: Optional[Callable[[], None]] = None,
        on_calculations_end: Optional[Callable[[MeshLayer], None]] = None,
    ) -> None:
        self.orientation_sets = {
            name: tuple(np.asarray(v, dtype=float).reshape(3) for v in vectors)
            for name, vectors in (orientation_sets or ORIENTATION_SETS).items()
        }
        self.weighted_normals = True
        self.normalized_normals = True
        self.delete_outliers = False
        self.calculate_standard_deviation = False
        self.use_find_smallest_rugosity = True
        self.use_least_squares_fitting = False
        self.unique_projected_area = False
        self.unique_projected_area_approximation = True
        self.use_plane_frame_in_min = False
        self.last_time_took_for_calculation = 0.0
        self.on_calculations_start = on_calculations_start
        self.on_calculations_end = on_calculations_end
        self._orientation_set = DEFAULT_ORIENTATION_SET
        self._waiting_for_result = False
        self._start_ns: Optional[int] = None

    def algorithm_name(self) -> str:
        if self.use_find_smallest_rugosity:
            return RUGOSITY_ALGORITHMS[1]
        if self.use_least_squares_fitting:
            return RUGOSITY_ALGORITHMS[2]
        return RUGOSITY_ALGORITHMS[0]

    def set_algorithm_name(self, name: str) -> None:
        """Select an algorithm by name; unknown names select the average normal."""
        self.use_find_smallest_rugosity = name == RUGOSITY_ALGORITHMS[1]
        self.use_least_squares_fitting = name == RUGOSITY_ALGORITHMS[2]

    def orientation_set_name(self) -> str:
        return self._orientation_set

    def set_orientation_set_name(self, name: str) -> None:
        """Select an orientation set; names without a set are ignored."""
        if name in self.orientation_sets:
            self._orientation_set = name

    def cell_rugosity(
        self,
        model: MeshModel,
        node: GridNode,
        point_on_plane: ArrayLike,
        normal: ArrayLike,
    ) -> float:
        """Rugosity of the cell's triangles against the plane with the given normal."""
        indices = node.triangles_in_cell
        areas = [float(model.triangles_area[i]) for i in indices]
        triangles = [model.triangles[i] for i in indices]
        total_area = sum(areas)
        normal = np.asarray(normal, dtype=float).reshape(3)
        plane = Plane(np.asarray(point_on_plane, dtype=float).reshape(3), normal)

        if self.unique_projected_area:
            corrected_area = total_area
            if self.unique_projected_area_approximation:
                projected = projected_hull_area(triangles, normal)
            else:
                projected, dropped = projected_unique_area(triangles, normal)
                corrected_area -= dropped
            result = 1.0 if projected == 0 else corrected_area / projected
            if math.isnan(result):
                result = 1.0
        else:
            rugosities = []
            for triangle, original in zip(triangles, areas):
                if not self.use_plane_frame_in_min:
                    projected_corners = [plane.project_point(p) for p in triangle]
                    projection = triangle_area(*projected_corners)
                else:
                    try:
                        corners = [project_onto_plane_2d(p, normal) for p in triangle]
                        projection = _triangle_area_2d(corners)
                    except ValueError:
                        projection = original
                if (
                    original == 0.0
                    or projection == 0.0
                    or original < FLT_EPSILON
                    or projection < FLT_EPSILON
                ):
                    value = 1.0
                else:
                    value = original / projection
                rugosities.append(min(value, MAX_TRIANGLE_RUGOSITY))

            if total_area == 0.0:
                result = 1.0
            else:
                result = 0.0
                for value, area in zip(rugosities, areas):
                    result += value * (area / total_area)
                    if math.isnan(result):
                        result = 1.0

        return max(result, 1.0)

    def work_on_node(self, model: MeshModel, node: GridNode) -> None:
        """Store the rugosity of the cell in the node."""
        indices = node.triangles_in_cell
        if not indices:
            return
        areas = [float(model.triangles_area[i]) for i in indices]
        total_area = sum(areas)

        if self.use_least_squares_fitting:
            points = np.vstack([model.triangles[i] for i in indices])
            normal = fit_plane_normal(points)
            node.user_data = self.cell_rugosity(model, node, node.cell_triangles_centroid, normal)
            return

        normal_sum = np.zeros(3)
        centroid_sum = np.zeros(3)
        for index, area in zip(indices, areas):
            vertex_normals = np.asarray(model.triangles_normals[index], dtype=float)
            if self.weighted_normals:
                coefficient = area / total_area if total_area > 0 else math.nan
                normal_sum = normal_sum + vertex_normals.sum(axis=0) * coefficient
            else:
                normal_sum = normal_sum + vertex_normals.sum(axis=0)
            centroid_sum = centroid_sum + model.triangles[index].sum(axis=0)

        vertex_count = len(indices) * 3
        average = np.asarray(node.average_cell_normal, dtype=float) + normal_sum
        if not self.weighted_normals:
            average = average / vertex_count
        if self.normalized_normals:
            length = float(np.linalg.norm(average))
            if length > 0 and math.isfinite(length):
                average = average / length
        centroid = (np.asarray(node.cell_triangles_centroid, dtype=float) + centroid_sum) / vertex_count
        node.average_cell_normal = average
        node.cell_triangles_centroid = centroid

        degenerate = not np.all(np.isfinite(average)) or not np.any(average)

        if self.use_find_smallest_rugosity and self._orientation_set != "1":
            if self._orientation_set not in self.orientation_sets:
                self._orientation_set = DEFAULT_ORIENTATION_SET
            candidates = []
            if not degenerate:
                candidates.append(self.cell_rugosity(model, node, centroid, average))
            for direction in self.orientation_sets[self._orientation_set]:
                candidates.append(self.cell_rugosity(model, node, np.zeros(3), direction))
            valid = [c for c in candidates if not math.isnan(c)]
            node.user_data = min(valid) if valid else 1.0
        else:
            value = 1.0 if degenerate else self.cell_rugosity(model, node, centroid, average)
            node.user_data = 1.0 if math.isnan(value) else value

    def start(self) -> None:
        """Mark the start of a calculation whose layer ``finish`` will accept."""
        self._waiting_for_result = True
        self._start_ns = time.time_ns()
        if self.on_calculations_start is not None:
            self.on_calculations_start()

    def finish(
        self,
        manager: LayerManager,
        layer: MeshLayer,
        deviation: Optional[Sequence[float]] = None,
        adjust_outliers: Optional[OutlierAdjuster] = None,
    ) -> Optional[MeshLayer]:
        """Add a finished layer to the model and make it active.

        Only a layer following ``start`` is accepted. Outliers are passed to
        ``adjust_outliers`` with the 0.0 and 0.99 bounds when removal applies.
        """
        if not self._waiting_for_result:
            return None
        model = manager.model
        if model is None:
            return None

        layer.type = LayerType.RUGOSITY
        self._waiting_for_result = False
        if layer.debug_info is None:
            layer.debug_info = DebugInfo()
        info = layer.debug_info
        info.type = "RugosityMeshLayerDebugInfo"

        algorithm = RUGOSITY_ALGORITHMS[0]
        if self.use_find_smallest_rugosity:
            algorithm = RUGOSITY_ALGORITHMS[1]
        if self.use_least_squares_fitting:
            algorithm = RUGOSITY_ALGORITHMS[2]
        info.add_entry("Algorithm used", algorithm)
        if algorithm == RUGOSITY_ALGORITHMS[1]:
            info.add_entry("Orientation set name", self._orientation_set)

        remove_outliers = self.delete_outliers or (
            self.use_find_smallest_rugosity and self._orientation_set == "1"
        )
        if remove_outliers and adjust_outliers is not None:
            layer.data = list(adjust_outliers(list(layer.data), 0.0, 0.99))
        info.add_entry("Delete outliers", "Yes" if remove_outliers else "No")
        info.add_entry(
            "Unique projected area (very slow)", "Yes" if self.unique_projected_area else "No"
        )
        info.add_entry(
            "Approximation of unique projected area",
            "Yes" if self.unique_projected_area_approximation else "No",
        )

        if self._start_ns is not None:
            self.last_time_took_for_calculation = (time.time_ns() - self._start_ns) / 1e6

        model.add_layer(layer)
        layer.type = LayerType.RUGOSITY
        layer.caption = manager.suitable_new_layer_caption("Rugosity")
        manager.set_active_layer_index(len(model.layers) - 1)

        if self.calculate_standard_deviation and deviation is not None:
            start = time.time_ns()
            deviation_layer = model.add_data_layer(list(deviation))
            deviation_layer.caption = manager.suitable_new_layer_caption("Standard deviation")
            deviation_info = DebugInfo(type="RugosityStandardDeviationLayerDebugInfo")
            deviation_info.add_entry("Start time", start)
            deviation_info.add_entry("End time", time.time_ns())
            deviation_info.add_entry("Source layer ID", layer.id)
            deviation_info.add_entry("Source layer caption", layer.caption)
            deviation_layer.debug_info = deviation_info

        if self.on_calculations_end is not None:
            self.on_calculations_end(layer)
        return layer
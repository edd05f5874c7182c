"""Spread of surface normals inside grid cells."""

from __future__ import annotations

import math
import time
from typing import Callable, Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike

from habicat.layers import DebugInfo, GridNode, LayerManager, LayerType, MeshLayer, MeshModel


def vector_dispersion(normals: Sequence[ArrayLike]) -> float:
    """Square root of the summed per-component variance of the normals."""
    array = np.asarray(normals, dtype=float).reshape(-1, 3)
    if len(array) == 0:
        return 0.0
    count = len(array)
    total = 0.0
    for component in array.T:
        mean = float(component.sum()) / count
        portion = float(component @ component) / count - mean * mean
        if math.isnan(portion):
            portion = 0.0
        total += portion
    if math.isnan(total) or total < 0.0:
        return 0.0
    return math.sqrt(total)


class VectorDispersionProducer:
    """Per-cell vector dispersion and the layer built from it."""

    def __init__(
        self,
        calculate_standard_deviation: bool = False,
        on_calculations_end: Optional[Callable[[MeshLayer], None]] = None,
    ) -> None:
        self.calculate_standard_deviation = calculate_standard_deviation
        self.on_calculations_end = on_calculations_end

    def work_on_node(self, model: MeshModel, node: GridNode) -> None:
        """Store the dispersion of the cell's vertex normals in the node."""
        if not node.triangles_in_cell:
            return
        normals = [
            normal
            for index in node.triangles_in_cell
            for normal in model.triangles_normals[index]
        ]
        node.user_data = vector_dispersion(normals)

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

        layer.type = LayerType.VECTOR_DISPERSION
        model.add_layer(layer)
        layer.caption = manager.suitable_new_layer_caption("Vector dispersion")
        manager.set_active_layer_index(len(model.layers) - 1)

        if self.calculate_standard_deviation and deviation is not None:
            start = time.time_ns()
            deviation_layer = model.add_data_layer(list(deviation))
            deviation_layer.caption = manager.suitable_new_layer_caption("Standard deviation")
            info = DebugInfo(type="VectorDispersionDeviationLayerDebugInfo")
            info.add_entry("Start time", start)
            info.add_entry("End time", time.time_ns())
            info.add_entry("Source layer ID", layer.id)
            info.add_entry("Source layer caption", layer.caption)
            deviation_layer.debug_info = info

        if self.on_calculations_end is not None:
            self.on_calculations_end(layer)
        return layer
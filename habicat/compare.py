"""Difference of two layers, optionally normalised."""

from __future__ import annotations

import time
from typing import Callable, Optional, Sequence

import numpy as np

from habicat.layers import DebugInfo, LayerManager, LayerType, MeshLayer

OutlierAdjuster = Callable[[list[float], float, float], list[float]]


def normalize(values: Sequence[float]) -> list[float]:
    """Scale positives into (0, 1] and negatives into [-1, 0) separately."""
    data = np.asarray(values, dtype=np.float32)
    max_positive = np.float32(max((v for v in data if v > 0), default=0.0))
    max_negative = np.float32(min((v for v in data if v < 0), default=0.0))
    result = []
    for value in data:
        if value > 0:
            result.append(float(value / max_positive))
        elif value < 0:
            result.append(float(value / abs(max_negative)))
        else:
            result.append(0.0)
    return result


class CompareLayerProducer:
    """Builds a layer holding the per-triangle difference of two layers."""

    def __init__(self, should_normalize: bool = False) -> None:
        self.should_normalize = should_normalize

    def calculate(
        self,
        manager: LayerManager,
        first_layer: int,
        second_layer: int,
        adjust_outliers: Optional[OutlierAdjuster] = None,
    ) -> MeshLayer:
        """Subtract the second layer from the first.

        Without normalisation the result is passed to ``adjust_outliers``
        with the 0.01 and 0.99 bounds when one is given.
        """
        result = MeshLayer(type=LayerType.COMPARE)
        model = manager.model
        if model is None or first_layer == -1 or second_layer == -1:
            return result
        for index in (first_layer, second_layer):
            if not 0 <= index < len(model.layers):
                raise IndexError(f"layer index {index} out of range")
        start = time.time_ns()
        first = model.layers[first_layer]
        second = model.layers[second_layer]
        if len(second.data) != len(first.data):
            raise ValueError("layers to compare must have the same number of values")

        if self.should_normalize:
            a = np.asarray(normalize(first.data), dtype=np.float32)
            b = np.asarray(normalize(second.data), dtype=np.float32)
            data = normalize((a - b).tolist())
        else:
            a = np.asarray(first.data, dtype=np.float32)
            b = np.asarray(second.data, dtype=np.float32)
            data = [float(v) for v in (a - b)]
            if adjust_outliers is not None:
                data = list(adjust_outliers(data, 0.01, 0.99))

        result.data = data
        result.caption = manager.suitable_new_layer_caption("Compare")
        info = DebugInfo(type="CompareMeshLayerDebugInfo")
        info.add_entry("Start time", start)
        info.add_entry("End time", time.time_ns())
        info.add_entry("Normalized", "Yes" if self.should_normalize else "No")
        info.add_entry("First layer ID", first.id)
        info.add_entry("First layer caption", first.caption)
        info.add_entry("Second layer ID", second.id)
        info.add_entry("Second layer caption", second.caption)
        result.debug_info = info
        return result
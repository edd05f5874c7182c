"""Mesh data, per-triangle layers and the manager of the active layer."""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from habicat.geometry import triangle_area


class LayerType(enum.Enum):
    """What a layer's per-triangle values measure."""

    UNKNOWN = "unknown"
    HEIGHT = "height"
    TRIANGLE_AREA = "triangle_area"
    TRIANGLE_EDGE = "triangle_edge"
    TRIANGLE_DENSITY = "triangle_density"
    COMPARE = "compare"
    RUGOSITY = "rugosity"
    VECTOR_DISPERSION = "vector_dispersion"
    FRACTAL_DIMENSION = "fractal_dimension"


@dataclass
class DebugInfo:
    """Ordered named values describing how a layer was produced."""

    type: str = "MeshLayerDebugInfo"
    entries: dict[str, Any] = field(default_factory=dict)

    def add_entry(self, name: str, value: Any) -> None:
        self.entries[name] = value


@dataclass
class MeshLayer:
    """One value per triangle of the mesh."""

    data: list[float] = field(default_factory=list)
    caption: str = ""
    type: LayerType = LayerType.UNKNOWN
    debug_info: Optional[DebugInfo] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class GridNode:
    """A measurement-grid cell and the triangles that fall into it."""

    triangles_in_cell: list[int] = field(default_factory=list)
    aabb_min: np.ndarray = field(default_factory=lambda: np.zeros(3))
    aabb_max: np.ndarray = field(default_factory=lambda: np.zeros(3))
    user_data: float = 0.0
    average_cell_normal: np.ndarray = field(default_factory=lambda: np.zeros(3))
    cell_triangles_centroid: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.aabb_min = np.asarray(self.aabb_min, dtype=float)
        self.aabb_max = np.asarray(self.aabb_max, dtype=float)
        self.average_cell_normal = np.asarray(self.average_cell_normal, dtype=float)
        self.cell_triangles_centroid = np.asarray(self.cell_triangles_centroid, dtype=float)


def _face_normal(triangle: np.ndarray) -> np.ndarray:
    normal = np.cross(triangle[1] - triangle[0], triangle[2] - triangle[0])
    length = np.linalg.norm(normal)
    return normal / length if length > 0 else np.zeros(3)


@dataclass
class MeshModel:
    """Triangles of a mesh with their derived quantities and layers."""

    triangles: list[np.ndarray]
    triangles_area: Optional[list[float]] = None
    triangles_normals: Optional[list[np.ndarray]] = None
    transform: np.ndarray = field(default_factory=lambda: np.identity(4))
    average_normal: Optional[np.ndarray] = None
    layers: list[MeshLayer] = field(default_factory=list)
    current_layer_index: int = -1

    def __post_init__(self) -> None:
        self.triangles = [np.asarray(t, dtype=float).reshape(3, 3) for t in self.triangles]
        if self.triangles_area is None:
            self.triangles_area = [triangle_area(*t) for t in self.triangles]
        if self.triangles_normals is None:
            self.triangles_normals = [np.tile(_face_normal(t), (3, 1)) for t in self.triangles]
        else:
            self.triangles_normals = [
                np.asarray(n, dtype=float).reshape(3, 3) for n in self.triangles_normals
            ]
        self.transform = np.asarray(self.transform, dtype=float)
        if self.average_normal is None:
            total = np.zeros(3)
            for area, normals in zip(self.triangles_area, self.triangles_normals):
                total += normals.mean(axis=0) * area
            length = np.linalg.norm(total)
            self.average_normal = total / length if length > 0 else np.array([0.0, 1.0, 0.0])
        else:
            self.average_normal = np.asarray(self.average_normal, dtype=float)

    def add_layer(self, layer: MeshLayer) -> MeshLayer:
        """Append a layer and return it."""
        self.layers.append(layer)
        return layer

    def add_data_layer(self, data: list[float]) -> MeshLayer:
        """Append a new layer holding the given per-triangle values."""
        return self.add_layer(MeshLayer(data=[float(v) for v in data]))


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def find_highest_int_postfix(prefix: str, delimiter: str, captions: list[str]) -> int:
    """Highest integer following the delimiter in captions containing the prefix."""
    prefix = prefix.lower()
    delimiter = delimiter.lower()
    result = 0
    for caption in captions:
        caption = caption.lower()
        if prefix not in caption:
            continue
        delimiter_pos = caption.find(delimiter)
        if delimiter_pos != -1 and len(caption) > len(prefix) + len(delimiter):
            result = max(result, _atoi(caption[delimiter_pos + 1:]))
    return result


class LayerManager:
    """Tracks the active mesh model and which of its layers is shown."""

    def __init__(self, model: Optional[MeshModel] = None) -> None:
        self.model = model
        self._callbacks: list[Optional[Callable[[], None]]] = []

    def suitable_new_layer_caption(self, base: str) -> str:
        """A caption based on ``base`` that does not clash with existing ones."""
        if self.model is None:
            return base
        captions = [layer.caption for layer in self.model.layers]
        index = find_highest_int_postfix(base, "_", captions) + 1
        if index < 2:
            lowered = base.lower()
            if any(lowered in caption.lower() for caption in captions):
                index = 2
        return f"{base}_{index}" if index > 1 else base

    def set_active_layer_index(self, index: int) -> None:
        """Select a layer (or -1 for none); out-of-range indices are ignored."""
        if self.model is None or index < -1 or index >= len(self.model.layers):
            return
        self.model.current_layer_index = index
        for callback in self._callbacks:
            if callback is not None:
                callback()

    def active_layer_index(self) -> int:
        if self.model is None:
            return -1
        return self.model.current_layer_index

    def active_layer(self) -> Optional[MeshLayer]:
        if self.model is None or self.model.current_layer_index == -1:
            return None
        return self.model.layers[self.model.current_layer_index]

    def add_active_layer_changed_callback(self, func: Optional[Callable[[], None]]) -> None:
        self._callbacks.append(func)
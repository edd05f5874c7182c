"""Small geometric helpers shared by the layer producers."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike


def _vec3(value: ArrayLike) -> np.ndarray:
    vector = np.asarray(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vector.shape}")
    return vector


@dataclass
class Plane:
    """A plane given by a point on it and its normal."""

    point_on_plane: np.ndarray
    normal: np.ndarray
    distance: float = field(init=False)

    def __post_init__(self) -> None:
        self.point_on_plane = _vec3(self.point_on_plane)
        self.normal = _vec3(self.normal)
        # Length of the perpendicular from the origin to the plane.
        self.distance = abs(float(np.dot(self.point_on_plane, self.normal)))

    def project_point(self, point: ArrayLike) -> np.ndarray:
        """Project a point onto the plane: q' = q + (d - q.n) n."""
        q = _vec3(point)
        return q + (self.distance - float(np.dot(q, self.normal))) * self.normal


def triangle_area(a: ArrayLike, b: ArrayLike, c: ArrayLike) -> float:
    """Area of the triangle with corners a, b and c."""
    a, b, c = _vec3(a), _vec3(b), _vec3(c)
    return 0.5 * float(np.linalg.norm(np.cross(b - a, c - a)))
"""Projections of triangles onto planes and the areas they cover there."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike
from shapely.errors import GEOSException
from shapely.geometry import MultiPoint, Polygon
from shapely.ops import unary_union

from habicat.geometry import Plane, triangle_area


def _vec3(value: ArrayLike) -> np.ndarray:
    vector = np.asarray(value, dtype=float).reshape(-1)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vector.shape}")
    return vector


def local_coordinate_system(normal: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Two in-plane axes (u, v) for a plane with the given normal."""
    n = _vec3(normal)
    temp = np.array([1.0, 0.0, 0.0])
    if np.linalg.norm(np.cross(n, temp)) < 0.01:
        temp = np.array([0.0, 1.0, 0.0])
    u = np.cross(n, temp)
    length = np.linalg.norm(u)
    if length == 0:
        raise ValueError("normal must not be the zero vector")
    u = u / length
    v = np.cross(n, u)
    return u, v


def project_to_local(point: ArrayLike, u: ArrayLike, v: ArrayLike) -> tuple[float, float]:
    """Coordinates of a point along the axes u and v."""
    p = _vec3(point)
    return float(np.dot(p, _vec3(u))), float(np.dot(p, _vec3(v)))


def _plane_bases(normal: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    a, b, c = normal
    if a == 0:
        base1 = np.array([1.0, 0.0, 0.0])
    elif b == 0:
        base1 = np.array([0.0, 1.0, 0.0])
    elif c == 0:
        base1 = np.array([0.0, 0.0, 1.0])
    else:
        base1 = np.array([-b, a, 0.0])
    base2 = np.cross(normal, base1)
    return base1, base2


def project_onto_plane_2d(point: ArrayLike, normal: ArrayLike) -> tuple[float, float]:
    """2D coordinates of a point projected onto the plane through the origin.

    The plane's own (not necessarily unit) base vectors span the 2D frame.
    """
    p = _vec3(point)
    n = _vec3(normal)
    squared = float(np.dot(n, n))
    if squared == 0:
        raise ValueError("normal must not be the zero vector")
    projected = p - (float(np.dot(p, n)) / squared) * n
    base1, base2 = _plane_bases(n)
    return float(np.dot(projected, base1)), float(np.dot(projected, base2))


def _as_triangles(triangles: Sequence[ArrayLike]) -> list[np.ndarray]:
    return [np.asarray(t, dtype=float).reshape(3, 3) for t in triangles]


def projected_unique_area(
    triangles: Sequence[ArrayLike], normal: ArrayLike
) -> tuple[float, float]:
    """Area covered by the triangles' projections, counting overlaps once.

    Returns the covered area and the summed original area of triangles whose
    projection is degenerate or could not be merged; the latter should be
    left out of the surface area that is compared with the covered area.
    """
    n = _vec3(normal)
    plane = Plane(np.zeros(3), n)
    u, v = local_coordinate_system(n)

    polygons: list[Polygon] = []
    polygon_areas: list[float] = []
    dropped_area = 0.0
    for triangle in _as_triangles(triangles):
        area = triangle_area(*triangle)
        if area == 0.0:
            continue
        corners = [project_to_local(plane.project_point(p), u, v) for p in triangle]
        polygon = Polygon(corners)
        if polygon.area == 0.0:
            dropped_area += area
        else:
            polygons.append(polygon)
            polygon_areas.append(area)

    if not polygons:
        return 0.0, dropped_area

    try:
        union = unary_union(polygons)
    except (GEOSException, ValueError):
        union = Polygon()
        for polygon, area in zip(polygons, polygon_areas):
            try:
                union = union.union(polygon)
            except (GEOSException, ValueError):
                dropped_area += area

    return float(union.area), dropped_area


def projected_hull_area(triangles: Sequence[ArrayLike], normal: ArrayLike) -> float:
    """Area of the convex hull of the triangles projected onto the plane."""
    points = [
        project_onto_plane_2d(p, normal)
        for triangle in _as_triangles(triangles)
        if triangle_area(*triangle) != 0.0
        for p in triangle
    ]
    if not points:
        return 0.0
    return abs(float(MultiPoint(points).convex_hull.area))


def fit_plane_normal(points: Sequence[ArrayLike]) -> np.ndarray:
    """Unit normal of the least-squares plane through the points."""
    array = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(array) == 0:
        raise ValueError("cannot fit a plane to no points")
    centered = array - array.mean(axis=0)
    covariance = centered.T @ centered
    _, eigenvectors = np.linalg.eigh(covariance)
    normal = eigenvectors[:, 0]
    return normal / np.linalg.norm(normal)
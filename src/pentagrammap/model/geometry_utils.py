from __future__ import annotations

from typing import TYPE_CHECKING

from math import pi
import numba as nb
import numpy as np

if TYPE_CHECKING:
    from numpy import typing as npt

from pentagrammap.config import DEFAULT_DIGITS
from pentagrammap.model.geometry_primitives import dehomogenize, is_same_point


def intersection(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    d: npt.NDArray[np.float64],
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Intersection of the line through a, b with the line through c, d.

    Computed as ``(a × b) × (c × d)`` and scaled to w = 1 (unit norm for a
    point at infinity).

    Args:
        a, b: Homogeneous points spanning the first line.
        c, d: Homogeneous points spanning the second line.
        digits: Digits used to decide whether the result is at infinity.

    Returns:
        Homogeneous coordinates of the intersection point.
    """
    return dehomogenize(np.cross(np.cross(a, b), np.cross(c, d)), digits)


def is_point(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> bool:
    """True if all vertices are the same projective point."""
    first = vertices[0]
    return all(is_same_point(first, v, digits) for v in vertices[1:])


def is_linear(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> bool:
    """True if all vertices lie on one line (a single point counts as linear)."""
    first = vertices[0]
    line = None
    for v in vertices[1:]:
        if not is_same_point(first, v, digits):
            line = np.cross(first, v)
            break
    if line is None:
        return True

    line = line / np.linalg.norm(line)
    pts = vertices / np.linalg.norm(vertices, axis=1)[:, np.newaxis]
    return bool(np.all(np.round(pts @ line, digits) == 0))


def affine_coords(
    vertices: npt.NDArray[np.float64],
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64] | None:
    """
    Affine (x, y) coordinates of an (n, 3) vertex array.

    Returns:
        An (n, 2) array, or None if some vertex lies at infinity.
    """
    w = vertices[:, 2]
    if np.any(np.round(w, digits) == 0):
        return None
    return vertices[:, :2] / w[:, np.newaxis]


@nb.njit(cache=True)
def _orient(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """Twice the signed area of the triangle abc."""
    return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)


@nb.njit(cache=True)
def _has_proper_crossing(xy: npt.NDArray[np.float64]) -> bool:
    """
    Check whether two non-adjacent edges of a closed polyline cross.

    Only proper crossings are detected (each edge strictly separates the
    endpoints of the other one).
    """
    n = xy.shape[0]
    for i in range(n):
        i1 = (i + 1) % n
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            j1 = (j + 1) % n
            o1 = _orient(xy[i, 0], xy[i, 1], xy[i1, 0], xy[i1, 1], xy[j, 0], xy[j, 1])
            o2 = _orient(xy[i, 0], xy[i, 1], xy[i1, 0], xy[i1, 1], xy[j1, 0], xy[j1, 1])
            o3 = _orient(xy[j, 0], xy[j, 1], xy[j1, 0], xy[j1, 1], xy[i, 0], xy[i, 1])
            o4 = _orient(xy[j, 0], xy[j, 1], xy[j1, 0], xy[j1, 1], xy[i1, 0], xy[i1, 1])
            if o1 * o2 < 0.0 and o3 * o4 < 0.0:
                return True
    return False


def is_embedded(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> bool:
    """
    True if the closed polygon has no self-intersections.

    A polygon with a vertex at infinity is never embedded.
    """
    xy = affine_coords(vertices, digits)
    if xy is None:
        return False
    if len(xy) < 4:
        return True
    return not _has_proper_crossing(np.ascontiguousarray(xy))


def is_convex(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> bool:
    """
    True if the closed polygon is strictly convex.

    Every turn must have the same orientation and the edges must wind around
    exactly once.
    """
    xy = affine_coords(vertices, digits)
    if xy is None:
        return False

    edges = np.roll(xy, -1, axis=0) - xy
    nxt = np.roll(edges, -1, axis=0)
    turns = edges[:, 0] * nxt[:, 1] - edges[:, 1] * nxt[:, 0]
    dots = np.sum(edges * nxt, axis=1)
    turns_r = np.round(turns, digits)
    if not (np.all(turns_r > 0) or np.all(turns_r < 0)):
        return False

    total = float(np.sum(np.arctan2(turns, dots)))
    return abs(abs(total) - 2.0 * pi) < 1e-6


def is_bird(vertices: npt.NDArray[np.float64], l: int, digits: int = DEFAULT_DIGITS) -> bool:
    """
    True if the polygon is an l-bird.

    The polygon must be embedded, have more than 2l vertices, and every
    l-diagonal (v_i, v_{i+l}) must strictly separate the l - 1 vertices it cuts
    off from all other vertices. For l = 2 this is strict convexity.
    """
    n = len(vertices)
    if n <= 2 * l:
        return False
    xy = affine_coords(vertices, digits)
    if xy is None or not is_embedded(vertices, digits):
        return False

    for i in range(n):
        a = xy[i]
        b = xy[(i + l) % n]
        d = b - a
        rel = xy - a
        side = np.round(d[0] * rel[:, 1] - d[1] * rel[:, 0], digits)
        inner = side[[(i + j) % n for j in range(1, l)]]
        outer = side[[(i + j) % n for j in range(l + 1, n)]]
        if not (np.all(inner > 0) and np.all(outer < 0)) and not (np.all(inner < 0) and np.all(outer > 0)):
            return False
    return True


def _basis_coords(
    p: npt.NDArray[np.float64],
    u: npt.NDArray[np.float64],
    v: npt.NDArray[np.float64]
) -> tuple[float, float]:
    """Coordinates (alpha, beta) of p = alpha u + beta v for a point p on the line uv."""
    uv = np.cross(u, v)
    norm2 = uv @ uv
    with np.errstate(divide='ignore', invalid='ignore'):
        alpha = np.divide(np.cross(p, v) @ uv, norm2)
        beta = np.divide(np.cross(p, u) @ -uv, norm2)
    return float(alpha), float(beta)


def inverse_cross_ratio(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    d: npt.NDArray[np.float64]
) -> float:
    """
    Inverse cross ratio ``[a,b][c,d] / ([a,c][b,d])`` of four collinear points.

    Brackets are 2x2 determinants of coordinates taken in a basis of the line;
    for affine points on a real line this is ``(a-b)(c-d) / ((a-c)(b-d))``.
    The basis is the pair of the four points spanning the line best, so
    coinciding points give 0 or infinity instead of an undefined result.
    """
    pts = (a, b, c, d)
    best = (0, 1)
    best_norm = -1.0
    for i in range(4):
        for j in range(i + 1, 4):
            norm = float(np.linalg.norm(np.cross(pts[i], pts[j])))
            if norm > best_norm:
                best, best_norm = (i, j), norm

    u, v = pts[best[0]], pts[best[1]]
    coords = [_basis_coords(p, u, v) for p in pts]

    def bracket(s: int, t: int) -> float:
        return coords[s][0] * coords[t][1] - coords[s][1] * coords[t][0]

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        return float(np.divide(np.float64(bracket(0, 1)) * bracket(2, 3), np.float64(bracket(0, 2)) * bracket(1, 3)))


def point_from_cross_ratio(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    x: float,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    The point d on the line through a, b with ``inverse_cross_ratio(a, b, c, d) == x``.

    Args:
        a, b: Distinct points spanning the line.
        c: A third point of the line.
        x: Prescribed inverse cross ratio.
        digits: Digits used to dehomogenize the result.
    """
    alpha, beta = _basis_coords(c, a, b)
    with np.errstate(divide='ignore', invalid='ignore'):
        r = np.divide((1.0 - x) * beta, alpha)
    return dehomogenize(a + r * b, digits)


def corner_invariants(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    The 2n corner invariants of a closed polygon, two per vertex, indices taken cyclically.

    ``x[2k]`` is measured on the line (v[k-2], v[k-1]) and ``x[2k+1]`` on the
    line (v[k+1], v[k+2]).
    """
    n = len(vertices)
    v = lambda i: vertices[i % n]
    x = np.empty(2 * n, dtype=np.float64)
    for k in range(n):
        x[2 * k] = inverse_cross_ratio(
            v(k - 2),
            v(k - 1),
            intersection(v(k - 2), v(k - 1), v(k), v(k + 1), digits),
            intersection(v(k - 2), v(k - 1), v(k + 1), v(k + 2), digits),
        )
        x[2 * k + 1] = inverse_cross_ratio(
            intersection(v(k + 2), v(k + 1), v(k - 1), v(k - 2), digits),
            intersection(v(k + 2), v(k + 1), v(k), v(k - 1), digits),
            v(k + 1),
            v(k + 2),
        )
    return x


def pencil_cross_ratio(
    u1: npt.NDArray[np.float64],
    u2: npt.NDArray[np.float64],
    u3: npt.NDArray[np.float64],
    u4: npt.NDArray[np.float64]
) -> float:
    """Inverse cross ratio of four lines through a common point, given by direction vectors."""
    det = lambda p, q: p[0] * q[1] - p[1] * q[0]
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.divide(det(u1, u2) * det(u3, u4), det(u1, u3) * det(u2, u4)))


def energy(vertices: npt.NDArray[np.float64], k: int, l: int, digits: int = DEFAULT_DIGITS) -> float:
    """
    Product over the vertices of the cross ratio of the pencil of lines from
    v[i] to v[i-k], v[i-l], v[i+l] and v[i+k].

    Returns:
        The energy, or NaN if some vertex lies at infinity.
    """
    xy = affine_coords(vertices, digits)
    if xy is None:
        return float("nan")
    n = len(xy)
    result = 1.0
    for i in range(n):
        p = xy[i]
        result *= pencil_cross_ratio(
            xy[(i - k) % n] - p,
            xy[(i - l) % n] - p,
            xy[(i + l) % n] - p,
            xy[(i + k) % n] - p,
        )
    return result

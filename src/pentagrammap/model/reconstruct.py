"""
Twisted Polygon Reconstruction
==============================
Rebuild explicit vertices of a twisted polygon from its corner invariants.

A twisted n-gon is an infinite vertex sequence with ``V[j + n] = M V[j]``
for a projective transformation ``M`` (the monodromy). It is determined, up
to projective equivalence, by 2n corner invariants. Reconstruction fixes the
first four vertices at the canonical unit square and solves for each next
vertex from two invariants, so vertex ``j`` of a reconstructed window carries
invariants ``x[2j - 4]`` and ``x[2j - 3]`` (indices mod 2n).
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from pentagrammap.config import CANONICAL_SQUARE, DEFAULT_DIGITS
from pentagrammap.model.geometry_primitives import dehomogenize
from pentagrammap.model.geometry_utils import intersection, point_from_cross_ratio
from pentagrammap.model.linalg import invert3x3
from pentagrammap.model.projective import projective_lift

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def _check_invariants(invariants: npt.ArrayLike) -> npt.NDArray[np.float64]:
    x = np.asarray(invariants, dtype=np.float64)
    if x.ndim != 1 or len(x) < 2 or len(x) % 2 != 0:
        raise ValueError(f"Corner invariants must be a flat array of even length, got shape {x.shape}.")
    return x


def next_vertex(
    window: npt.NDArray[np.float64],
    j: int,
    x_even: float,
    x_odd: float,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Vertex ``V[j + 2]`` from ``V[j - 2] .. V[j + 1]`` and the two invariants of vertex ``j``.

    The even invariant locates the point where the line (V[j+1], V[j+2])
    meets the line (V[j-2], V[j-1]); the odd invariant then locates V[j+2] on
    that line.
    """
    v_m2, v_m1, v_0, v_p1 = window[j - 2], window[j - 1], window[j], window[j + 1]
    c = intersection(v_m2, v_m1, v_0, v_p1, digits)
    d = point_from_cross_ratio(v_m2, v_m1, c, x_even, digits)
    e = intersection(v_m1, v_0, v_p1, d, digits)
    return point_from_cross_ratio(d, e, v_p1, x_odd, digits)


def reconstruct(
    invariants: npt.ArrayLike,
    num_vertices: int,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    First ``num_vertices`` vertices of the twisted polygon, by direct recursion.

    Args:
        invariants: 2n corner invariants.
        num_vertices: Window length (at least 4).
        digits: Digits used to dehomogenize the vertices.

    Returns:
        An (num_vertices, 3) array starting with the canonical unit square.
    """
    x = _check_invariants(invariants)
    size = len(x)
    if num_vertices < 4:
        raise ValueError(f"A window needs at least 4 vertices, got {num_vertices}.")

    window = np.empty((num_vertices, 3), dtype=np.float64)
    window[:4] = CANONICAL_SQUARE
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        for j in range(2, num_vertices - 2):
            window[j + 2] = next_vertex(
                window, j, x[(2 * j - 4) % size], x[(2 * j - 3) % size], digits
            )
    return window


def monodromy(invariants: npt.ArrayLike, digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Monodromy ``M = lift(V[n..n+3])⁻¹ · lift(V[0..3])`` of the twisted polygon.

    Raises:
        NotInGeneralPositionError: If a frame of four consecutive vertices is degenerate.
    """
    x = _check_invariants(invariants)
    n = len(x) // 2
    window = reconstruct(x, n + 4, digits)
    lift_start = projective_lift(*window[:4], digits=digits)
    lift_end = projective_lift(*window[n:n + 4], digits=digits)
    return invert3x3(lift_end, digits) @ lift_start


def reconstruct_with_monodromy(
    invariants: npt.ArrayLike,
    num_vertices: int,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Window of the twisted polygon extended by the monodromy.

    The first n + 4 vertices come from the recursion; every later vertex is
    ``M V[j - n]``.
    """
    x = _check_invariants(invariants)
    n = len(x) // 2
    base_length = min(num_vertices, n + 4)
    window = np.empty((max(num_vertices, 4), 3), dtype=np.float64)
    window[:max(base_length, 4)] = reconstruct(x, max(base_length, 4), digits)
    if num_vertices <= n + 4:
        return window[:num_vertices]

    m = monodromy(x, digits)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        for j in range(n + 4, num_vertices):
            window[j] = dehomogenize(m @ window[j - n], digits)
    logger.debug("Extended a twisted window to %d vertices with the monodromy.", num_vertices)
    return window

"""
Polygon Normalization
=====================
Projective and affine normalizations applied after each map step.

Without a normalization the iterates of the pentagram map shrink to a point
(or blow up), so every step is followed by one of:

* ``square_normalize``: four reference vertices go to a fixed square.
* ``twisted_square_normalize``: reference vertices 0, 2, 4, 6 go to a regular
  star; used for twisted polygons drawn with a two-fold symmetry.
* ``ellipse_normalize``: the inertia ellipse becomes a circle (affine only).
"""
from __future__ import annotations

import logging
from math import cos, sin, pi
from typing import TYPE_CHECKING, Sequence

import numpy as np

from pentagrammap.config import DEFAULT_DIGITS, INSCRIBED_RADIUS, UNIT_SQUARE
from pentagrammap.errors import AtInfinityError, CollapsedToLineError, CollapsedToPointError, MalformedTwistedBigon
from pentagrammap.model.geometry_utils import affine_coords
from pentagrammap.model.linalg import round_to, spectral_decomposition2x2
from pentagrammap.model.projective import apply_affine, apply_transform, frame_transform

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def _rotation(angle: float) -> npt.NDArray[np.float64]:
    c, s = cos(angle), sin(angle)
    return np.array([[c, -s], [s, c]])


def _require_affine(vertices: npt.NDArray[np.float64], digits: int) -> npt.NDArray[np.float64]:
    xy = affine_coords(vertices, digits)
    if xy is None:
        raise AtInfinityError("Cannot normalize a polygon with a vertex at infinity.")
    return xy


def square_normalize(
    vertices: npt.NDArray[np.float64],
    ref: Sequence[int] = (0, 1, 2, 3),
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Send four reference vertices to the corners (1,1), (-1,1), (-1,-1), (1,-1).

    Args:
        vertices: (n, 3) homogeneous vertices.
        ref: Indices of the four reference vertices.
        digits: Digits used for the degeneracy checks.

    Raises:
        NotInGeneralPositionError: If the reference vertices are not a frame.

    Returns:
        The transformed vertices, scaled to w = 1 where the image is affine.
    """
    transform = frame_transform([vertices[i] for i in ref], UNIT_SQUARE, digits)
    image = apply_transform(transform, vertices)
    w = image[:, 2]
    finite = np.round(w, digits) != 0
    image[finite] = image[finite] / w[finite, np.newaxis]
    return image


def twisted_square_normalize(
    vertices: npt.NDArray[np.float64],
    broadcast: bool = True,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Normalize a polygon read as a twisted bigon with n/2 periods.

    Vertices 0, 2, 4, 6 are sent to four consecutive points of the regular
    n/2-gon of radius √2 (angles 0, θ, 2θ, 3θ with θ = 2π/(n/2)).

    Args:
        vertices: (n, 3) homogeneous vertices, n even.
        broadcast: If True, vertices 2i and 2i+1 are replaced by the images of
            vertices 0 and 1 rotated through iθ, which makes the result exactly
            periodic.
        digits: Digits used for the degeneracy checks.

    Raises:
        MalformedTwistedBigon: If n is odd.
        AtInfinityError: If a vertex is sent to infinity.
    """
    n = len(vertices)
    if n % 2 != 0:
        raise MalformedTwistedBigon(f"A twisted bigon needs an even number of vertices, got {n}.")
    periods = n // 2
    theta = 2.0 * pi / periods

    star = [
        (INSCRIBED_RADIUS * cos(j * theta), INSCRIBED_RADIUS * sin(j * theta), 1.0)
        for j in range(4)
    ]
    transform = frame_transform([vertices[0], vertices[2], vertices[4], vertices[6]], star, digits)

    image = np.array([apply_affine(transform, v, digits) for v in vertices])
    if not broadcast:
        return image

    a0, a1 = image[0, :2], image[1, :2]
    result = np.ones((n, 3), dtype=np.float64)
    for i in range(periods):
        rot = _rotation(i * theta)
        result[2 * i, :2] = rot @ a0
        result[2 * i + 1, :2] = rot @ a1
    return result


def center_of_mass(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """Mean of the affine vertex coordinates."""
    return _require_affine(vertices, digits).mean(axis=0)


def normalize_com(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """Translate the polygon so that its center of mass is the origin."""
    xy = _require_affine(vertices, digits)
    xy = xy - xy.mean(axis=0)
    return np.c_[xy, np.ones(len(xy))]


def inertia_matrix(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Second-moment matrix [[<x²>, <xy>], [<xy>, <y²>]] of the vertices about their center of mass.
    """
    xy = _require_affine(vertices, digits)
    xy = xy - xy.mean(axis=0)
    ixx = float(np.mean(xy[:, 0] ** 2))
    iyy = float(np.mean(xy[:, 1] ** 2))
    ixy = float(np.mean(xy[:, 0] * xy[:, 1]))
    return np.array([[ixx, ixy], [ixy, iyy]])


def ellipse_normalize(vertices: npt.NDArray[np.float64], digits: int = DEFAULT_DIGITS) -> npt.NDArray[np.float64]:
    """
    Affine normalization making the inertia ellipse of the vertices a circle.

    The polygon is centered and whitened by ``C^(-1/2)`` where ``C`` is the
    inertia matrix, so a regular polygon ends up inscribed in the circle of
    radius √2.

    Raises:
        AtInfinityError: If a vertex lies at infinity.
        CollapsedToPointError: If the inertia matrix vanishes.
        CollapsedToLineError: If the inertia matrix has rank one.
    """
    centered = normalize_com(vertices, digits)
    q, lam = spectral_decomposition2x2(inertia_matrix(centered, digits))
    eigenvalues = np.diag(lam)
    degenerate = round_to(eigenvalues, digits) <= 0
    if np.all(degenerate):
        raise CollapsedToPointError("The inertia matrix of the polygon vanishes.")
    if np.any(degenerate):
        raise CollapsedToLineError("The inertia matrix of the polygon is singular.")

    whitening = q @ np.diag(1.0 / np.sqrt(eigenvalues)) @ q.T
    xy = round_to(centered[:, :2] @ whitening.T, digits)
    logger.debug("Ellipse normalization with eigenvalues %s.", eigenvalues)
    return np.c_[xy, np.ones(len(xy))]

"""
Projective Frames
=================
Projective transformations determined by four points in general position.

A "lift" of four points p0..p3 is the transformation sending p0, p1, p2 to the
coordinate points e0, e1, e2 and p3 to (1, 1, 1). Composing the inverse lift of
one frame with the lift of another gives the unique transformation between the
two frames.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np

from pentagrammap.config import DEFAULT_DIGITS
from pentagrammap.errors import AtInfinityError, NotInGeneralPositionError, SingularMatrixError
from pentagrammap.model.linalg import invert3x3, round_to

if TYPE_CHECKING:
    import numpy.typing as npt


def projective_lift(
    p0: Sequence[float],
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Transformation L with ``L p_i ∝ e_i`` (i = 0, 1, 2) and ``L p3 ∝ (1, 1, 1)``.

    With ``V = [p0 p1 p2]`` (as columns) and ``λ = V⁻¹ p3`` the lift is
    ``diag(1/λ) V⁻¹``.

    Args:
        p0, p1, p2, p3: Homogeneous coordinates of the frame points.
        digits: Digits used for the degeneracy checks.

    Raises:
        NotInGeneralPositionError: If three of the points are collinear.

    Returns:
        The 3x3 lift matrix.
    """
    v = np.column_stack([
        np.asarray(p0, dtype=np.float64),
        np.asarray(p1, dtype=np.float64),
        np.asarray(p2, dtype=np.float64),
    ])
    try:
        v_inv = invert3x3(v, digits)
    except SingularMatrixError as exc:
        raise NotInGeneralPositionError("The first three frame points are collinear.") from exc

    lam = v_inv @ np.asarray(p3, dtype=np.float64)
    if np.any(round_to(lam, digits) == 0):
        raise NotInGeneralPositionError("The fourth frame point lies on a line through two others.")

    return v_inv / lam[:, np.newaxis]

def frame_transform(
    source: Sequence[Sequence[float]],
    target: Sequence[Sequence[float]],
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Transformation sending the four source points to the four target points.

    Args:
        source: Four homogeneous points.
        target: Four homogeneous points.
        digits: Digits used for the degeneracy checks.

    Returns:
        ``lift(target)⁻¹ · lift(source)``.
    """
    if len(source) != 4 or len(target) != 4:
        raise ValueError(f"A projective frame needs 4 points, got {len(source)} and {len(target)}.")
    lift_source = projective_lift(*source, digits=digits)
    lift_target = projective_lift(*target, digits=digits)
    return invert3x3(lift_target, digits) @ lift_source

def apply_transform(
    transform: npt.NDArray[np.float64],
    points: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """
    Apply a 3x3 transformation to one point (shape (3,)) or to a point array (shape (n, 3)).
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim == 1:
        return transform @ pts
    return pts @ np.asarray(transform, dtype=np.float64).T

def apply_affine(
    transform: npt.NDArray[np.float64],
    point: npt.ArrayLike,
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Apply a transformation and scale the result to w = 1.

    Raises:
        AtInfinityError: If the image lies on the line at infinity.
    """
    image = apply_transform(transform, point)
    if round_to(image[2], digits) == 0:
        raise AtInfinityError(f"Point {np.asarray(point)} is sent to infinity.")
    return image / image[2]


def is_affine_transform(transform: npt.ArrayLike, digits: int = DEFAULT_DIGITS) -> bool:
    """True if the transformation preserves the line at infinity (bottom row ∝ (0, 0, 1))."""
    t = np.asarray(transform, dtype=np.float64)
    return round_to(t[2, 0], digits) == 0 and round_to(t[2, 1], digits) == 0 and round_to(t[2, 2], digits) != 0

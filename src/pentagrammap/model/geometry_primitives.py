"""
Projective Primitives.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, TYPE_CHECKING
import numpy as np
import math

from pentagrammap.config import DEFAULT_DIGITS
from pentagrammap.errors import AtInfinityError

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(eq=False)
class ProjectivePoint:
    """
    A point of the real projective plane in homogeneous coordinates (x, y, w).

    Two points are equal when their coordinates differ by a nonzero scalar
    multiple. ``w == 0`` describes a point at infinity.
    """
    x: float
    y: float
    w: float = 1.0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectivePoint):
            return NotImplemented
        return is_same_point(self.to_array(), other.to_array())

    def __mul__(self, scalar: float) -> ProjectivePoint:
        return ProjectivePoint(self.x * scalar, self.y * scalar, self.w * scalar)

    def cross(self, other: ProjectivePoint) -> ProjectivePoint:
        """Line through two points, or intersection of two lines."""
        return ProjectivePoint(
            self.y * other.w - self.w * other.y,
            self.w * other.x - self.x * other.w,
            self.x * other.y - self.y * other.x
        )

    def is_at_infinity(self, digits: int = DEFAULT_DIGITS) -> bool:
        return round(self.w, digits) == 0

    def affine(self, digits: int = DEFAULT_DIGITS) -> tuple[float, float]:
        """
        Affine image (x/w, y/w).

        Raises:
            AtInfinityError: If the point lies on the line at infinity.
        """
        if self.is_at_infinity(digits):
            raise AtInfinityError(f"{self} has no affine image.")
        return self.x / self.w, self.y / self.w

    def dehomogenized(self, digits: int = DEFAULT_DIGITS) -> ProjectivePoint:
        """Representative with w = 1, or with unit norm for a point at infinity."""
        return ProjectivePoint.from_array(dehomogenize(self.to_array(), digits))

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.w], dtype=np.float64)

    @classmethod
    def from_array(cls, coords: Iterable[float]) -> ProjectivePoint:
        x, y, w = (float(c) for c in coords)
        return cls(x, y, w)

    @classmethod
    def from_affine(cls, x: float, y: float) -> ProjectivePoint:
        return cls(float(x), float(y), 1.0)


def is_same_point(
    p: npt.NDArray[np.float64],
    q: npt.NDArray[np.float64],
    digits: int = DEFAULT_DIGITS
) -> bool:
    """True if two homogeneous coordinate vectors represent the same projective point."""
    return bool(np.all(np.round(np.cross(p, q), digits) == 0))


def dehomogenize(
    point: npt.NDArray[np.float64],
    digits: int = DEFAULT_DIGITS
) -> npt.NDArray[np.float64]:
    """
    Scale a homogeneous vector to w = 1.

    Points whose w rounds to zero are scaled to unit length instead so that
    they stay finite.
    """
    p = np.asarray(point, dtype=np.float64)
    if round(float(p[2]), digits) != 0:
        return p / p[2]
    norm = math.sqrt(float(p @ p))
    if norm == 0.0:
        return p.copy()
    return p / norm


def to_homogeneous(points: Iterable[Iterable[float]]) -> npt.NDArray[np.float64]:
    """
    Stack 2D or homogeneous points into an (n, 3) array.

    Affine (x, y) pairs get w = 1.
    """
    arr = np.array(list(points), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"Expected an (n, 2) or (n, 3) array of points, got shape {arr.shape}.")
    if arr.shape[1] == 2:
        arr = np.c_[arr, np.ones(len(arr))]
    return arr

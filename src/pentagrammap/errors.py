"""
Error kinds raised by the projective engine.

All errors are raised synchronously at the point of detection and propagate
through the ``step``/``act`` call that triggered them. Each kind also derives
from the closest builtin exception.
"""
from __future__ import annotations

from typing import Any


class PentagramError(Exception):
    """Base class of every error raised by the engine."""


class DimensionError(PentagramError, ValueError):
    """Matrix shapes do not match for the requested operation."""


class SingularMatrixError(PentagramError, ArithmeticError):
    """The determinant of a matrix rounds to zero."""


class NotInGeneralPositionError(PentagramError, ValueError):
    """Four points do not define a projective frame."""


class AtInfinityError(PentagramError, ArithmeticError):
    """A point that must be affine lies on the line at infinity."""


class DegeneratePolygonError(PentagramError, ArithmeticError):
    """The polygon degenerated and the map cannot be applied."""


class CollapsedToPointError(DegeneratePolygonError):
    """All vertices of the polygon coincide."""


class CollapsedToLineError(DegeneratePolygonError):
    """All vertices of the polygon are collinear."""


class SingularityError(PentagramError, ArithmeticError):
    """An image corner invariant is zero, infinite or NaN."""


class MalformedTwistedBigon(PentagramError, ValueError):
    """A vertex list cannot be read as a twisted bigon (odd length)."""


class SearchCapExceeded(PentagramError, RuntimeError):
    """
    A filtered search (embedded/convex/bird) gave up.

    The search is recoverable: ``state`` holds the unchanged pre-step state.
    """

    def __init__(self, message: str, state: Any = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.state = state
        self.attempts = attempts

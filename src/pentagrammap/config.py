"""
Numeric Configuration
=====================
This module serves as the central registry for the numeric constants of the
engine.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (rounding digits, iteration caps)
   scattered throughout the code.
2. Explicitness: Rounding is never read from hidden global state. Every map
   carries its own ``digits`` (see ``MapConfig``) and passes it down; the
   constants here only provide the defaults.

Exports:
    DEFAULT_DIGITS (int): Digits used to suppress floating noise.
    HISTORY_LIMIT (int): Maximum number of undo entries per map.
    EMBEDDED_SEARCH_CAP, CONVEX_SEARCH_CAP, BIRD_SEARCH_CAP (int): Caps of the
        filtered searches.
    NEXT_EMBEDDED_CAP, NEXT_CONVEX_CAP, NEXT_BIRD_CAP (int): Caps of the
        "next power" queries.
    INSCRIBED_RADIUS (float): Radius of the circle used for inscribed polygons.
    UNIT_SQUARE (tuple): Target corners of the square normalization.
    CANONICAL_SQUARE (tuple): First four vertices of a reconstructed twisted polygon.
"""
from math import sqrt

# Rounding
DEFAULT_DIGITS: int = 10

# Undo history
HISTORY_LIMIT: int = 20

# Filtered search caps (number of attempts)
EMBEDDED_SEARCH_CAP: int = 1_000
CONVEX_SEARCH_CAP: int = 100_000
BIRD_SEARCH_CAP: int = 100_000

# "Next power" query caps
NEXT_EMBEDDED_CAP: int = 1_000
NEXT_CONVEX_CAP: int = 100_000
NEXT_BIRD_CAP: int = 10_000

# Geometry
INSCRIBED_RADIUS: float = sqrt(2.0)

UNIT_SQUARE: tuple[tuple[float, float, float], ...] = (
    (1.0, 1.0, 1.0),
    (-1.0, 1.0, 1.0),
    (-1.0, -1.0, 1.0),
    (1.0, -1.0, 1.0),
)

CANONICAL_SQUARE: tuple[tuple[float, float, float], ...] = (
    (0.0, 0.0, 1.0),
    (1.0, 0.0, 1.0),
    (1.0, 1.0, 1.0),
    (0.0, 1.0, 1.0),
)

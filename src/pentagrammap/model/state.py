"""
Map State (Data Model)
======================
This module defines the configuration and the undo history carried by a map.

Why is this file needed?
------------------------
1. Configuration: The parameters of a map variant (l, k, power, shifts,
   normalization, search filter, rounding) live in one dataclass that is
   passed around instead of module-level globals.
2. Undo: Every map owns a bounded LIFO of pre-step states so that an
   iteration can be reverted.

Classes:
    Normalization: Per-step normalization mode.
    SearchFilter: Predicate a filtered search waits for.
    SearchCaps: Attempt caps of the filtered searches.
    MapConfig: The full parameter set of a map.
    HistoryEntry: One undo record.
    HistoryStack: Bounded LIFO of undo records.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Any, Optional

from pentagrammap.config import (
    BIRD_SEARCH_CAP,
    CONVEX_SEARCH_CAP,
    DEFAULT_DIGITS,
    EMBEDDED_SEARCH_CAP,
    HISTORY_LIMIT,
    NEXT_BIRD_CAP,
    NEXT_CONVEX_CAP,
    NEXT_EMBEDDED_CAP,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class Normalization(StrEnum):
    """Normalization applied after every step."""
    NONE = "None"
    SQUARE = "Square"
    SQUARE_TWISTED = "SquareT"
    ELLIPSE = "Ellipse"


class SearchFilter(StrEnum):
    """Predicate a filtered search keeps stepping for."""
    NONE = "None"
    ONLY_EMBEDDED = "Embedded"
    ONLY_CONVEX = "Convex"
    ONLY_BIRD = "Bird"


# ------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class SearchCaps:
    embedded: int = EMBEDDED_SEARCH_CAP
    convex: int = CONVEX_SEARCH_CAP
    bird: int = BIRD_SEARCH_CAP
    next_embedded: int = NEXT_EMBEDDED_CAP
    next_convex: int = NEXT_CONVEX_CAP
    next_bird: int = NEXT_BIRD_CAP

    def for_filter(self, search: SearchFilter) -> int:
        match search:
            case SearchFilter.ONLY_EMBEDDED:
                return self.embedded
            case SearchFilter.ONLY_CONVEX:
                return self.convex
            case SearchFilter.ONLY_BIRD:
                return self.bird
            case _:
                return 1


@dataclass
class MapConfig:
    """
    Parameters of a pentagram-map variant T_{l,k}.

    The image vertex i is the intersection of the l-diagonals starting at
    vertices i and i - k.

    Attributes:
        l: Diagonal length (l >= 2).
        k: Offset of the second diagonal (1 <= k < l).
        power: Number of applications per step.
        shifts: Cyclic relabelling applied after each application.
        normalization: Per-step normalization.
        search: Filtered search mode.
        square_vertices: Reference indices of the square normalization.
        digits: Rounding digits for every degeneracy check.
        caps: Attempt caps of the filtered searches.
    """
    l: int = 2
    k: int = 1
    power: int = 1
    shifts: int = 0
    normalization: Normalization = Normalization.ELLIPSE
    search: SearchFilter = SearchFilter.NONE
    square_vertices: tuple[int, int, int, int] = (0, 1, 2, 3)
    digits: int = DEFAULT_DIGITS
    caps: SearchCaps = field(default_factory=SearchCaps)

    def __post_init__(self) -> None:
        if self.l < 2:
            raise ValueError(f"Diagonal length 'l' must be at least 2, got {self.l}.")
        if not 1 <= self.k < self.l:
            raise ValueError(f"Offset 'k' must satisfy 1 <= k < l, got k={self.k}, l={self.l}.")
        if self.power < 1:
            raise ValueError(f"'power' must be at least 1, got {self.power}.")
        if self.shifts < 0:
            raise ValueError(f"'shifts' must be non-negative, got {self.shifts}.")
        self.normalization = Normalization(self.normalization)
        self.search = SearchFilter(self.search)

    def is_valid_for(self, n: int) -> bool:
        """True if the map is meaningful on a closed n-gon (3l < n, 3k + 1 < n, k < l)."""
        return 3 * self.l < n and 3 * self.k + 1 < n and self.k < self.l


# ------------------------------------------------------------------------------
# History
# ------------------------------------------------------------------------------
@dataclass
class HistoryEntry:
    """Pre-step state and iteration counter."""
    state: Any
    iterations: int


class HistoryStack:
    """
    Bounded LIFO of ``HistoryEntry`` records.

    When full, pushing silently drops the oldest entry.
    """
    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self.limit = limit
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, state: Any, iterations: int) -> None:
        if len(self._entries) == self.limit:
            logger.debug("History full, dropping the oldest entry.")
        self._entries.append(HistoryEntry(state=state, iterations=iterations))

    def pop(self) -> Optional[HistoryEntry]:
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("History cleared.")

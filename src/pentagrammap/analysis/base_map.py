from __future__ import annotations

from abc import ABC, abstractmethod
import copy
import logging
from typing import Any, Optional

from pentagrammap.config import HISTORY_LIMIT
from pentagrammap.errors import SearchCapExceeded
from pentagrammap.model.state import HistoryEntry, HistoryStack, MapConfig, SearchFilter

logger = logging.getLogger(__name__)


class BaseMap(ABC):
    """
    Abstract base class of the pentagram-map variants.

    A map owns its configuration, an iteration counter and a bounded undo
    history. Subclasses implement ``apply_map`` on their own state type
    (a vertex array for closed polygons, corner invariants for twisted ones).
    """
    def __init__(
        self,
        config: Optional[MapConfig] = None,
        history_limit: int = HISTORY_LIMIT
    ) -> None:
        """
        Initialize the map.

        Args:
            config: Map parameters. Defaults to ``default_config()``.
            history_limit: Maximum number of undo entries.
        """
        self.config = config if config is not None else self.default_config()
        self.history = HistoryStack(history_limit)
        self.iterations: int = 0

    def __repr__(self) -> str:
        cfg = self.config
        return f"{self.__class__.__name__}(l={cfg.l}, k={cfg.k}, power={cfg.power}, iterations={self.iterations})"

    @staticmethod
    def default_config() -> MapConfig:
        return MapConfig()

    @abstractmethod
    def apply_map(self, state: Any, power: Optional[int] = None, **options: Any) -> Any:
        """
        Apply the map ``power`` times (``config.power`` by default).

        Raises:
            PentagramError: On any degeneracy of an intermediate state.
        """
        raise NotImplementedError

    def satisfies(self, state: Any, search: SearchFilter) -> bool:
        """Predicate used by the filtered searches. Unfiltered maps accept every state."""
        return True

    def step(self, state: Any, **options: Any) -> tuple[Any, int]:
        """
        One step of the map, honouring the search filter of the configuration.

        In a filtered mode the map is applied repeatedly until the predicate
        holds.

        Returns:
            The new state and the number of applications of ``apply_map``.

        Raises:
            SearchCapExceeded: If the predicate does not hold within the cap.
                The exception carries the unchanged input state.
        """
        search = self.config.search
        power = self.config.power
        if search == SearchFilter.NONE:
            return self.apply_map(state, power, **options), 1

        cap = self.config.caps.for_filter(search)
        current = state
        for attempt in range(1, cap + 1):
            current = self.apply_map(current, power, **options)
            if self.satisfies(current, search):
                logger.debug("Found a %s polygon after %d attempts.", search, attempt)
                return current, attempt

        msg = f"No {search} polygon found within {cap} attempts."
        logger.error(msg)
        raise SearchCapExceeded(msg, state=state, attempts=cap)

    def act(self, state: Any, store: bool = True, count_iterations: bool = True, **options: Any) -> Any:
        """
        Step the map and record the step.

        Args:
            state: Current state (never modified).
            store: Push the pre-step state and counter onto the history.
            count_iterations: Advance the counter by ``power`` (times the
                number of attempts in a filtered mode).
            **options: Passed through to ``apply_map``.

        Returns:
            The new state. Nothing is recorded if the step raises.
        """
        new_state, attempts = self.step(state, **options)
        if store:
            self.history.push(copy.deepcopy(state), self.iterations)
        if count_iterations:
            self.iterations += self.config.power * attempts
        return new_state

    def revert(self) -> Optional[HistoryEntry]:
        """
        Pop the most recent history entry.

        The counter is decremented by ``power``; callers that need the exact
        pre-step counter read ``entry.iterations``.

        Returns:
            The entry, or None if the history is empty.
        """
        entry = self.history.pop()
        if entry is None:
            return None
        self.iterations -= self.config.power
        return entry

    def can_revert(self) -> int:
        """Number of steps that can be reverted."""
        return len(self.history)

    def clear_history(self) -> None:
        self.history.clear()

    def reset(self) -> None:
        """Clear the history and the iteration counter."""
        self.history.clear()
        self.iterations = 0
        logger.info("%s reset.", self.__class__.__name__)

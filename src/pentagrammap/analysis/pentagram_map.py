from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

from pentagrammap.analysis.base_map import BaseMap
from pentagrammap.errors import CollapsedToLineError, CollapsedToPointError, DegeneratePolygonError, SingularityError
from pentagrammap.model.geometry_primitives import dehomogenize
from pentagrammap.model.geometry_utils import intersection, is_bird, is_convex, is_embedded, is_linear, is_point
from pentagrammap.model.normalize import ellipse_normalize, square_normalize, twisted_square_normalize
from pentagrammap.model.state import MapConfig, Normalization, SearchFilter

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class PentagramMap(BaseMap):
    """
    The map T_{l,k} acting on closed polygons.

    Image vertex i is the intersection of the l-diagonals (v[i], v[i+l]) and
    (v[i-k], v[i-k+l]); the classical pentagram map is l = 2, k = 1.
    """
    def apply_map(
        self,
        vertices: npt.NDArray[np.float64],
        power: Optional[int] = None,
        **options: Any
    ) -> npt.NDArray[np.float64]:
        """
        Apply the map ``power`` times, normalizing and shifting after every application.

        Args:
            vertices: (n, 3) homogeneous vertices.
            power: Number of applications. Defaults to ``config.power``.

        Raises:
            CollapsedToPointError: If all vertices, or all image vertices, coincide.
            CollapsedToLineError: If all vertices, or all image vertices, are collinear.

        Returns:
            The (n, 3) image vertices.
        """
        power = self.config.power if power is None else power
        current = np.asarray(vertices, dtype=np.float64)
        for _ in range(power):
            current = self._apply_once(current, self.config)
        return current

    def _apply_once(self, vertices: npt.NDArray[np.float64], config: MapConfig) -> npt.NDArray[np.float64]:
        digits = config.digits
        if is_point(vertices, digits):
            raise CollapsedToPointError("The polygon collapsed to a point.")
        if is_linear(vertices, digits):
            raise CollapsedToLineError("The polygon collapsed to a line.")

        n = len(vertices)
        l, k = config.l, config.k
        image = np.array([
            intersection(vertices[i], vertices[(i + l) % n], vertices[(i - k) % n], vertices[(i - k + l) % n], digits)
            for i in range(n)
        ])
        if is_point(image, digits):
            raise CollapsedToPointError("The image of the polygon collapsed to a point.")
        if is_linear(image, digits):
            raise CollapsedToLineError("The image of the polygon collapsed to a line.")
        image = self.normalize(image, config)
        return np.roll(image, config.shifts, axis=0)

    def normalize(self, vertices: npt.NDArray[np.float64], config: Optional[MapConfig] = None) -> npt.NDArray[np.float64]:
        config = config or self.config
        match config.normalization:
            case Normalization.SQUARE:
                return square_normalize(vertices, config.square_vertices, config.digits)
            case Normalization.SQUARE_TWISTED:
                return twisted_square_normalize(vertices, broadcast=True, digits=config.digits)
            case Normalization.ELLIPSE:
                return ellipse_normalize(vertices, config.digits)
            case _:
                return vertices

    def satisfies(self, vertices: npt.NDArray[np.float64], search: SearchFilter) -> bool:
        digits = self.config.digits
        match search:
            case SearchFilter.ONLY_EMBEDDED:
                return is_embedded(vertices, digits)
            case SearchFilter.ONLY_CONVEX:
                return is_convex(vertices, digits)
            case SearchFilter.ONLY_BIRD:
                return is_bird(vertices, self.config.l, digits)
            case _:
                return True

    def next_power(self, vertices: npt.NDArray[np.float64], search: SearchFilter, cap: int) -> Optional[int]:
        """
        Number of single applications (with ellipse normalization) until the polygon satisfies ``search``.

        Args:
            vertices: Starting vertices.
            search: Predicate to wait for.
            cap: Maximum number of applications.

        Returns:
            The distance, or None if the cap is reached or the polygon degenerates.
        """
        lookahead = dataclasses.replace(self.config, power=1, normalization=Normalization.ELLIPSE)
        current = np.asarray(vertices, dtype=np.float64)
        for distance in range(1, cap + 1):
            try:
                current = self._apply_once(current, lookahead)
            except (DegeneratePolygonError, SingularityError) as exc:
                logger.warning("Look-ahead for a %s polygon stopped after %d steps: %s", search, distance, exc)
                return None
            if self.satisfies(current, search):
                return distance
        return None

    def next_embedded(self, vertices: npt.NDArray[np.float64]) -> Optional[int]:
        return self.next_power(vertices, SearchFilter.ONLY_EMBEDDED, self.config.caps.next_embedded)

    def next_convex(self, vertices: npt.NDArray[np.float64]) -> Optional[int]:
        return self.next_power(vertices, SearchFilter.ONLY_CONVEX, self.config.caps.next_convex)

    def next_bird(self, vertices: npt.NDArray[np.float64]) -> Optional[int]:
        return self.next_power(vertices, SearchFilter.ONLY_BIRD, self.config.caps.next_bird)

    def apply_factor(self, vertices: npt.NDArray[np.float64], k: int) -> npt.NDArray[np.float64]:
        """
        The factor map D_k: vertex i of the image is the line through v[-i] and v[-i-k].

        The image lives in the dual plane; lines are returned as homogeneous
        coordinate vectors scaled to w = 1 where possible.
        """
        v = np.asarray(vertices, dtype=np.float64)
        n = len(v)
        return np.array([
            dehomogenize(np.cross(v[(-i) % n], v[(-i - k) % n]), self.config.digits)
            for i in range(n)
        ])

"""
Closed Polygon State
====================
A closed polygon together with the map acting on it and the information
derived from its vertices.

Classes:
    PolygonInfo: Flags and metrics recomputed after every change.
    Polygon: The state object driven by a ``PentagramMap``.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from math import pi
from typing import TYPE_CHECKING, Optional

import numpy as np

from pentagrammap.analysis.pentagram_map import PentagramMap
from pentagrammap.config import INSCRIBED_RADIUS
from pentagrammap.model.geometry_primitives import ProjectivePoint, to_homogeneous
from pentagrammap.model.geometry_utils import corner_invariants, energy, is_bird, is_convex, is_embedded
from pentagrammap.model.linalg import round_to
from pentagrammap.model.normalize import ellipse_normalize

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class PolygonInfo:
    embedded: bool = False
    convex: bool = False
    bird: bool = False
    energy: float = float("nan")
    next_embedded: Optional[int] = None
    next_convex: Optional[int] = None
    next_bird: Optional[int] = None


def regular_polygon(n: int, radius: float = 1.0, phase: float = 0.0) -> npt.NDArray[np.float64]:
    """Vertices of the regular n-gon of the given radius, as an (n, 3) array."""
    angles = phase + 2.0 * pi * np.arange(n) / n
    return np.c_[radius * np.cos(angles), radius * np.sin(angles), np.ones(n)]


class Polygon:
    """
    A closed polygon acted on by a ``PentagramMap``.

    The vertex array is replaced (never modified in place) by every mutator,
    after which ``info`` is recomputed.
    """
    def __init__(
        self,
        pentagram_map: PentagramMap,
        n: int = 7,
        show_next: bool = False,
        rng: Optional[np.random.Generator] = None
    ) -> None:
        """
        Initialize the polygon as the regular n-gon.

        Args:
            pentagram_map: The map acting on the polygon.
            n: Number of vertices (at least 4).
            show_next: Also compute the distances to the next embedded/convex/bird iterates.
            rng: Random generator used by the ``random_*`` setters.
        """
        self.map = pentagram_map
        self.show_next = show_next
        self.rng = rng if rng is not None else np.random.default_rng()
        self.vertices: npt.NDArray[np.float64] = np.empty((0, 3))
        self.reference: npt.NDArray[np.float64] = np.empty(0)
        self.info = PolygonInfo()
        self.set_default(n)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n={self.n}, iterations={self.iterations})"

    @property
    def n(self) -> int:
        return len(self.vertices)

    @property
    def iterations(self) -> int:
        return self.map.iterations

    @property
    def points(self) -> list[ProjectivePoint]:
        return [ProjectivePoint.from_array(v) for v in self.vertices]

    def clone_vertices(self) -> npt.NDArray[np.float64]:
        return self.vertices.copy()

    # --------------------------------------------------------------------------
    # Mutators
    # --------------------------------------------------------------------------
    def act(self, store: bool = True, count_iterations: bool = True) -> None:
        """
        Apply one step of the map.

        Raises:
            PentagramError: If the step fails; the polygon is left unchanged.
        """
        self.vertices = self.map.act(self.vertices, store=store, count_iterations=count_iterations)
        self.update_info()

    def revert(self) -> bool:
        """
        Restore the polygon and the counter from before the last stored step.

        Returns:
            False if there was nothing to revert.
        """
        entry = self.map.revert()
        if entry is None:
            return False
        self.vertices = entry.state
        self.map.iterations = entry.iterations
        self.update_info()
        return True

    def can_revert(self) -> int:
        return self.map.can_revert()

    def reset_to(self, vertices: npt.ArrayLike) -> None:
        """
        Replace the vertices and start a new history.

        Args:
            vertices: (n, 2) affine or (n, 3) homogeneous coordinates, n >= 4.
        """
        new_vertices = to_homogeneous(vertices)
        if len(new_vertices) < 4:
            raise ValueError(f"A polygon needs at least 4 vertices, got {len(new_vertices)}.")
        self.vertices = new_vertices
        self.map.reset()
        self.reference = corner_invariants(self.vertices, self.map.config.digits)
        self.update_info()

    def set_default(self, n: Optional[int] = None) -> None:
        """Reset to the ellipse-normalized regular n-gon."""
        n = self.n if n is None else n
        self.reset_to(ellipse_normalize(regular_polygon(n), self.map.config.digits))

    def set_to_inscribed(self) -> None:
        """
        Push every vertex radially onto the circle of radius √2.

        Raises:
            ValueError: If a vertex lies at the origin.
        """
        xy = self.vertices[:, :2] / self.vertices[:, 2:3]
        radii = np.linalg.norm(xy, axis=1)
        if np.any(round_to(radii, self.map.config.digits) == 0):
            raise ValueError("Cannot inscribe a polygon with a vertex at the center.")
        self.reset_to(INSCRIBED_RADIUS * xy / radii[:, np.newaxis])

    def random_inscribed(self, n: Optional[int] = None) -> None:
        """Random polygon inscribed in the circle of radius √2."""
        n = self.n if n is None else n
        angles = np.sort(self.rng.uniform(0.0, 2.0 * pi, n))
        self.reset_to(np.c_[INSCRIBED_RADIUS * np.cos(angles), INSCRIBED_RADIUS * np.sin(angles)])

    def random_convex(self, n: Optional[int] = None) -> None:
        """
        Random convex polygon.

        Random edge vectors summing to zero are sorted by angle and chained.
        """
        n = self.n if n is None else n
        edges = self.rng.normal(size=(n, 2))
        edges -= edges.mean(axis=0)
        edges = edges[np.argsort(np.arctan2(edges[:, 1], edges[:, 0]))]
        xy = np.cumsum(edges, axis=0)
        self.reset_to(ellipse_normalize(to_homogeneous(xy), self.map.config.digits))

    def random_star_shaped(self, n: Optional[int] = None) -> None:
        """Random polygon that is star-shaped with respect to the origin."""
        n = self.n if n is None else n
        angles = np.sort(self.rng.uniform(0.0, 2.0 * pi, n))
        radii = self.rng.uniform(0.2, 1.0, n)
        xy = np.c_[radii * np.cos(angles), radii * np.sin(angles)]
        self.reset_to(ellipse_normalize(to_homogeneous(xy), self.map.config.digits))

    def random_nonconvex(self, n: Optional[int] = None) -> None:
        """Random vertices in a square, in random order (usually self-intersecting)."""
        n = self.n if n is None else n
        xy = self.rng.uniform(-1.0, 1.0, size=(n, 2))
        self.reset_to(ellipse_normalize(to_homogeneous(xy), self.map.config.digits))

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------
    @property
    def reference_coords(self) -> npt.NDArray[np.float64]:
        """Corner invariants of the polygon at the last reset."""
        return self.reference

    @property
    def corner_coords(self) -> npt.NDArray[np.float64]:
        return corner_invariants(self.vertices, self.map.config.digits)

    @property
    def energy(self) -> float:
        cfg = self.map.config
        return energy(self.vertices, cfg.k, cfg.l, cfg.digits)

    def update_info(self) -> PolygonInfo:
        cfg = self.map.config
        info = PolygonInfo(
            embedded=is_embedded(self.vertices, cfg.digits),
            convex=is_convex(self.vertices, cfg.digits),
            bird=is_bird(self.vertices, cfg.l, cfg.digits),
            energy=self.energy,
        )
        if self.show_next:
            info.next_embedded = self.map.next_embedded(self.vertices)
            info.next_convex = self.map.next_convex(self.vertices)
            info.next_bird = self.map.next_bird(self.vertices)
        self.info = info
        return info

"""
Pentagram-map variants acting on closed and twisted polygons of the
projective plane.
"""
from pentagrammap.analysis.pentagram_map import PentagramMap
from pentagrammap.analysis.polygon import Polygon
from pentagrammap.analysis.twisted_map import TwistedMap
from pentagrammap.analysis.twisted_polygon import TwistedBigon
from pentagrammap.model.state import MapConfig, Normalization, SearchFilter

__all__ = [
    "MapConfig",
    "Normalization",
    "PentagramMap",
    "Polygon",
    "SearchFilter",
    "TwistedBigon",
    "TwistedMap",
]

"""Demo run: iterate a heptagon and a twisted bigon and log the results."""
import logging

from pentagrammap.analysis.pentagram_map import PentagramMap
from pentagrammap.analysis.polygon import Polygon
from pentagrammap.analysis.twisted_map import TwistedMap
from pentagrammap.analysis.twisted_polygon import TwistedBigon
from pentagrammap.dev import timer
from pentagrammap.logging_config import setup_logging
from pentagrammap.model.state import MapConfig

logger = logging.getLogger("pentagrammap")


@timer
def main() -> None:
    polygon = Polygon(PentagramMap(MapConfig(l=2, k=1)), n=7, show_next=True)
    for _ in range(5):
        polygon.act()
    logger.info("Heptagon after %d iterations: %s", polygon.iterations, polygon.info)

    bigon = TwistedBigon(TwistedMap())
    bigon.random_alpha3()
    omega1, omega2 = bigon.omegas
    bigon.act(check_affine=False)
    logger.info("Bigon %s: omega1=%.6g, omega2=%.6g, now %s", bigon.reference, omega1, omega2, bigon.omegas)


if __name__ == "__main__":
    setup_logging(logging.INFO)
    main()

"""Connector lookups over elements and the document's connector graph."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from pipesplit.core.logging_setup import get_logger
from pipesplit.model.elements import Connector, ConnectorType, Element
from pipesplit.model.geometry import DEFAULT_TOLERANCE, PointLike, as_point, format_point, is_almost_equal

logger = get_logger(__name__)


def find_connector(element: Element, point: PointLike,
                   tolerance: float = DEFAULT_TOLERANCE) -> Optional[Connector]:
    """Connector of ``element`` whose origin coincides with ``point``."""
    for connector in element.connectors or []:
        if is_almost_equal(connector.origin, point, tolerance):
            return connector
    return None


def find_connected_to(element: Element, point: PointLike,
                      tolerance: float = DEFAULT_TOLERANCE) -> Optional[Connector]:
    """External END connector attached to ``element`` at ``point``.

    Returns None when the element has no connector there or the end is open.
    """
    own = find_connector(element, point, tolerance)
    if own is None:
        logger.debug(f"No connector on {element!r} at {format_point(point)}")
        return None
    for peer in own.peers:
        if peer.owner_id != element.id and peer.kind is ConnectorType.END:
            return peer
    return None


class ConnectorIndex:
    """Spatial hash of connectors keyed by position, cell size = tolerance.

    Neighbouring cells are searched too, so two origins within tolerance are
    always found even when they straddle a cell boundary.
    """

    def __init__(self, connectors: Iterable[Connector] = (),
                 tolerance: float = DEFAULT_TOLERANCE):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self._cells: Dict[Tuple[int, int, int], List[Connector]] = {}
        for connector in connectors:
            self.add(connector)

    @classmethod
    def from_elements(cls, elements: Iterable[Element],
                      tolerance: float = DEFAULT_TOLERANCE) -> "ConnectorIndex":
        return cls((c for e in elements for c in (e.connectors or [])), tolerance)

    def _cell(self, point) -> Tuple[int, int, int]:
        x, y, z = as_point(point) / self.tolerance
        return int(x // 1), int(y // 1), int(z // 1)

    def add(self, connector: Connector) -> None:
        self._cells.setdefault(self._cell(connector.origin), []).append(connector)

    def connectors_near(self, point: PointLike) -> List[Connector]:
        cx, cy, cz = self._cell(point)
        found = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    for connector in self._cells.get((cx + dx, cy + dy, cz + dz), ()):
                        if is_almost_equal(connector.origin, point, self.tolerance):
                            found.append(connector)
        return found


def auto_connect(document, tolerance: Optional[float] = None) -> int:
    """Connect open END connectors of different elements that share a position.

    Each connector is joined to at most one partner. Returns the number of
    connections made. Must run inside a transaction.
    """
    tolerance = document.tolerance if tolerance is None else tolerance
    index = ConnectorIndex.from_elements(document.elements(), tolerance)
    made = 0
    for element in document.elements():
        for connector in element.connectors or []:
            if connector.kind is not ConnectorType.END or connector.is_connected:
                continue
            for candidate in index.connectors_near(connector.origin):
                if (candidate.owner is connector.owner
                        or candidate.kind is not ConnectorType.END
                        or candidate.is_connected):
                    continue
                document.connect(connector, candidate)
                made += 1
                logger.coord(f"Auto-connected {connector.key} <-> {candidate.key} "
                             f"at {format_point(connector.origin)}")
                break
    logger.debug(f"Auto-connect made {made} connection(s)")
    return made

"""In-memory host document: element registry, connectivity, systems and transactions."""
from __future__ import annotations

import copy
from collections import deque
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple, Type

from pipesplit.core.logging_setup import get_logger
from pipesplit.errors import (
    ConnectivityError,
    ElementNotFoundError,
    HostError,
    TransactionError,
)
from .elements import (
    Connector,
    ConnectorType,
    ConduitType,
    DistributionSystem,
    Element,
    FamilyInstance,
    Fitting,
    Level,
    LinearElement,
    SystemKind,
    SystemNetwork,
    SystemType,
)
from .geometry import DEFAULT_TOLERANCE, PointLike, as_point, distance, format_point

logger = get_logger(__name__)


class Document:
    """Host document holding elements by id.

    Every mutation must happen inside ``with doc.transaction(label):``.
    Leaving the block normally commits; an exception restores the state
    captured on entry and propagates.
    """

    def __init__(self, name: str = "Untitled", tolerance: float = DEFAULT_TOLERANCE):
        self.name = name
        self.tolerance = tolerance
        self.selection: List[int] = []
        self.history: List[str] = []
        self._elements: Dict[int, Element] = {}
        self._next_id = 1
        self._active_transaction: Optional[str] = None

    def __repr__(self):
        return f"Document('{self.name}', {len(self._elements)} elements)"

    def __len__(self):
        return len(self._elements)

    def __contains__(self, element_id) -> bool:
        return element_id in self._elements

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get_element(self, element_id: int) -> Element:
        try:
            return self._elements[element_id]
        except KeyError:
            raise ElementNotFoundError(element_id) from None

    def find_element(self, element_id: int) -> Optional[Element]:
        return self._elements.get(element_id)

    def elements(self, of_type: Optional[Type[Element]] = None) -> Iterator[Element]:
        for element in list(self._elements.values()):
            if of_type is None or isinstance(element, of_type):
                yield element

    def systems(self) -> List[DistributionSystem]:
        return list(self.elements(DistributionSystem))

    def selected_elements(self) -> List[Element]:
        return [self.get_element(element_id) for element_id in self.selection]

    def find_connector_by_key(self, key: Tuple[int, int]) -> Optional[Connector]:
        element_id, index = key
        element = self._elements.get(element_id)
        if element is None:
            return None
        connectors = element.connectors or []
        if 0 <= index < len(connectors):
            return connectors[index]
        return None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @property
    def in_transaction(self) -> bool:
        return self._active_transaction is not None

    @contextmanager
    def transaction(self, label: str):
        if self._active_transaction is not None:
            raise TransactionError(
                f"Cannot start '{label}': transaction '{self._active_transaction}' is active"
            )
        snapshot = copy.deepcopy((self._elements, self._next_id, self.selection))
        self._active_transaction = label
        logger.debug(f"Transaction '{label}' started")
        try:
            yield self
        except BaseException:
            self._elements, self._next_id, self.selection = snapshot
            logger.warning(f"Transaction '{label}' rolled back")
            raise
        else:
            self.history.append(label)
            logger.debug(f"Transaction '{label}' committed")
        finally:
            self._active_transaction = None

    def _require_transaction(self, action: str) -> None:
        if self._active_transaction is None:
            raise TransactionError(f"'{action}' requires an open transaction")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def allocate_id(self, requested: Optional[int] = None) -> int:
        if requested is None:
            requested = self._next_id
        if requested in self._elements:
            raise HostError(f"Element id {requested} is already in use")
        self._next_id = max(self._next_id, requested + 1)
        return requested

    def add(self, element: Element) -> Element:
        self._require_transaction("add")
        if element.id in self._elements:
            raise HostError(f"Element id {element.id} is already in use")
        self._next_id = max(self._next_id, element.id + 1)
        self._elements[element.id] = element
        logger.debug(f"Added {element!r}")
        return element

    def add_level(self, name: str = "", elevation: float = 0.0,
                  element_id: Optional[int] = None) -> Level:
        return self.add(Level(self.allocate_id(element_id), name, elevation))

    def add_conduit_type(self, name: str = "", default_diameter: float = 0.0,
                         element_id: Optional[int] = None) -> ConduitType:
        return self.add(ConduitType(self.allocate_id(element_id), name, default_diameter))

    def add_system_type(self, name: str = "", kind: SystemKind = SystemKind.PIPING,
                        element_id: Optional[int] = None) -> SystemType:
        return self.add(SystemType(self.allocate_id(element_id), name, kind))

    def add_family_instance(self, name: str = "", level_id: Optional[int] = None,
                            has_mep_model: bool = True, is_equipment: bool = False,
                            element_id: Optional[int] = None) -> FamilyInstance:
        return self.add(FamilyInstance(self.allocate_id(element_id), level_id, name,
                                       has_mep_model, is_equipment))

    def add_system(self, kind: SystemKind, base_connector: Connector,
                   type_id: Optional[int] = None, name: str = "",
                   element_id: Optional[int] = None) -> DistributionSystem:
        if self._elements.get(base_connector.owner_id) is not base_connector.owner:
            raise ConnectivityError(f"Base connector {base_connector!r} is not in this document")
        system = DistributionSystem(self.allocate_id(element_id), kind, type_id,
                                    base_connector.owner_id, base_connector.index, name)
        return self.add(system)

    def _typed(self, element_id: int, expected: Type[Element]) -> Element:
        element = self.get_element(element_id)
        if not isinstance(element, expected):
            raise HostError(f"Element {element_id} is not a {expected.__name__}")
        return element

    # ------------------------------------------------------------------
    # Mutation primitives
    # ------------------------------------------------------------------
    def create_linear_element(self, type_id: int, level_id: int, end: PointLike,
                              start: Optional[PointLike] = None,
                              start_connector: Optional[Connector] = None,
                              system_type_id: Optional[int] = None,
                              diameter: Optional[float] = None,
                              name: str = "",
                              element_id: Optional[int] = None) -> LinearElement:
        """Create a pipe from two points, or from a connector to a point.

        Created from a connector, the new pipe starts at the connector's
        origin, is connected to it, and inherits its size and system type
        unless given explicitly.
        """
        self._require_transaction("create_linear_element")
        if (start is None) == (start_connector is None):
            raise HostError("Give exactly one of start point or start connector")

        conduit_type = self._typed(type_id, ConduitType)
        self._typed(level_id, Level)

        if start_connector is not None:
            start = start_connector.origin
            if diameter is None:
                diameter = start_connector.diameter
            if system_type_id is None:
                system_type_id = getattr(start_connector.owner, "system_type_id", None)
        if diameter is None:
            diameter = conduit_type.default_diameter

        start = as_point(start)
        end = as_point(end)
        if distance(start, end) <= self.tolerance:
            raise HostError(
                f"Cannot create a pipe of zero length at {format_point(start)}"
            )

        pipe = LinearElement(self.allocate_id(element_id), type_id, level_id, start, end,
                             diameter, system_type_id, name)
        self.add(pipe)
        if start_connector is not None:
            self.connect(pipe.connectors[0], start_connector)
        return pipe

    def connect(self, first: Connector, second: Connector) -> None:
        self._require_transaction("connect")
        if first.owner is second.owner:
            raise ConnectivityError(f"Cannot connect {first!r} to its own element")
        for connector in (first, second):
            if self._elements.get(connector.owner_id) is not connector.owner:
                raise ConnectivityError(f"{connector!r} is not in this document")
        if first.is_connected_to(second):
            return
        first.peers.append(second)
        second.peers.append(first)
        logger.debug(f"Connected {first.key} <-> {second.key}")

    def disconnect(self, first: Connector, second: Connector) -> None:
        self._require_transaction("disconnect")
        first.peers = [peer for peer in first.peers if peer is not second]
        second.peers = [peer for peer in second.peers if peer is not first]

    def new_union_fitting(self, first: Connector, second: Connector) -> Fitting:
        """Join two open pipe ends with a union placed across the gap between them."""
        self._require_transaction("new_union_fitting")
        if first.owner is second.owner:
            raise ConnectivityError("A union must join two different elements")
        for connector in (first, second):
            if connector.kind is not ConnectorType.END:
                raise ConnectivityError(f"{connector!r} is not an end connector")
            if connector.is_connected:
                raise ConnectivityError(f"{connector!r} is already connected")

        fitting = Fitting(self.allocate_id(), getattr(first.owner, "level_id", None))
        fitting.add_connector(first.origin, ConnectorType.END, first.diameter)
        fitting.add_connector(second.origin, ConnectorType.END, second.diameter)
        self.add(fitting)
        near, far = fitting.connectors
        self.connect(near, first)
        self.connect(far, second)
        return fitting

    def delete(self, element_id: int) -> Set[int]:
        """Remove an element and its connections. Returns the ids removed."""
        self._require_transaction("delete")
        element = self.get_element(element_id)
        for connector in element.connectors or []:
            for peer in list(connector.peers):
                self.disconnect(connector, peer)
        del self._elements[element_id]
        if element_id in self.selection:
            self.selection.remove(element_id)
        logger.debug(f"Deleted {element!r}")
        return {element_id}

    # ------------------------------------------------------------------
    # Systems
    # ------------------------------------------------------------------
    def trace_system(self, system: DistributionSystem) -> SystemNetwork:
        """Walk the connector graph from the system's base connector.

        Equipment reached from the network joins it, but the walk does not
        continue through the equipment's other connectors. Reaching another
        system's base connector marks the network as not well connected.
        """
        base = self.find_connector_by_key(system.base_key)
        if base is None:
            return SystemNetwork(system.id, frozenset(), frozenset(), False)

        other_bases = {other.base_key for other in self.systems() if other.id != system.id}
        members = {base.owner_id}
        visited = {base.key}
        well_connected = True
        queue = deque([base])

        while queue:
            connector = queue.popleft()
            for peer in connector.peers:
                if peer.key in visited:
                    continue
                visited.add(peer.key)
                members.add(peer.owner_id)
                if peer.key in other_bases:
                    well_connected = False
                    continue
                owner = peer.owner
                if isinstance(owner, FamilyInstance) and owner.is_equipment:
                    queue.append(peer)
                    continue
                for sibling in owner.connectors or []:
                    if sibling is peer or sibling.key not in visited:
                        visited.add(sibling.key)
                        queue.append(sibling)

        return SystemNetwork(system.id, frozenset(members), frozenset(visited), well_connected)

    def system_of(self, connector: Connector) -> Optional[DistributionSystem]:
        """System whose network contains the connector, recomputed on every call."""
        for system in self.systems():
            if connector.key in self.trace_system(system).connector_keys:
                return system
        return None

    def system_elements(self, system: DistributionSystem) -> List[Element]:
        network = self.trace_system(system)
        return [self._elements[element_id] for element_id in sorted(network.member_ids)]

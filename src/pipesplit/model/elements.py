"""Element types held by the host document.

Lengths and points are stored in internal units (feet); conversion to
display units happens at the parameter boundary (see core.units).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from pipesplit.errors import ParameterError
from .geometry import PointLike, as_point, distance, format_point


class ConnectorType(Enum):
    """Kind of a connector. Everything but END counts as "other"."""
    END = "end"
    CURVE = "curve"
    LOGICAL = "logical"


class SystemKind(Enum):
    MECHANICAL = "mechanical"
    PIPING = "piping"
    ELECTRICAL = "electrical"


class ParameterName(Enum):
    DIAMETER = "diameter"
    LENGTH = "length"
    START_LEVEL = "start_level"


class Connector:
    """Attachment point on an element.

    The peer list is maintained by Document.connect/disconnect so that the
    relation stays symmetric.
    """

    def __init__(self, owner: "Element", index: int, origin: PointLike,
                 kind: ConnectorType = ConnectorType.END,
                 diameter: Optional[float] = None):
        self.owner = owner
        self.index = index
        self.origin = as_point(origin)
        self.kind = kind
        self.peers: List["Connector"] = []
        self._diameter = diameter

    @property
    def owner_id(self) -> int:
        return self.owner.id

    @property
    def key(self) -> Tuple[int, int]:
        return self.owner.id, self.index

    @property
    def diameter(self) -> Optional[float]:
        if self._diameter is not None:
            return self._diameter
        return getattr(self.owner, "diameter", None)

    @property
    def is_connected(self) -> bool:
        return bool(self.peers)

    def is_connected_to(self, other: "Connector") -> bool:
        return any(peer is other for peer in self.peers)

    def __repr__(self):
        return (f"Connector({self.owner_id}:{self.index}, {self.kind.value}, "
                f"at {format_point(self.origin)}, {len(self.peers)} peers)")


class Element:
    """Anything with an id in the document."""

    def __init__(self, element_id: int, name: str = ""):
        self.id = element_id
        self.name = name

    @property
    def connectors(self) -> Optional[List[Connector]]:
        return None

    def get_parameter(self, name: ParameterName):
        raise ParameterError(f"{type(self).__name__} {self.id} has no parameter '{name.value}'")

    def set_parameter(self, name: ParameterName, value) -> None:
        raise ParameterError(f"{type(self).__name__} {self.id} has no parameter '{name.value}'")

    def __repr__(self):
        label = f" '{self.name}'" if self.name else ""
        return f"{type(self).__name__}({self.id}{label})"


class Level(Element):
    def __init__(self, element_id: int, name: str = "", elevation: float = 0.0):
        super().__init__(element_id, name)
        self.elevation = float(elevation)


class ConduitType(Element):
    """Pipe type; new segments of this type start with default_diameter."""

    def __init__(self, element_id: int, name: str = "", default_diameter: float = 0.0):
        super().__init__(element_id, name)
        self.default_diameter = float(default_diameter)


class SystemType(Element):
    def __init__(self, element_id: int, name: str = "",
                 kind: SystemKind = SystemKind.PIPING):
        super().__init__(element_id, name)
        self.kind = kind


class LinearElement(Element):
    """Straight pipe with one END connector per endpoint (index 0 start, 1 end)."""

    def __init__(self, element_id: int, type_id: int, level_id: int,
                 start: PointLike, end: PointLike, diameter: float,
                 system_type_id: Optional[int] = None, name: str = ""):
        super().__init__(element_id, name)
        self.type_id = type_id
        self.level_id = level_id
        self.system_type_id = system_type_id
        self.diameter = float(diameter)
        self._connectors = [
            Connector(self, 0, start, ConnectorType.END),
            Connector(self, 1, end, ConnectorType.END),
        ]

    @property
    def connectors(self) -> List[Connector]:
        return list(self._connectors)

    @property
    def start(self) -> np.ndarray:
        return self._connectors[0].origin.copy()

    @property
    def end(self) -> np.ndarray:
        return self._connectors[1].origin.copy()

    @property
    def length(self) -> float:
        return distance(self.start, self.end)

    def get_parameter(self, name: ParameterName):
        if name is ParameterName.DIAMETER:
            return self.diameter
        if name is ParameterName.LENGTH:
            return self.length
        if name is ParameterName.START_LEVEL:
            return self.level_id
        return super().get_parameter(name)

    def set_parameter(self, name: ParameterName, value) -> None:
        if name is ParameterName.DIAMETER:
            if value <= 0:
                raise ParameterError(f"Diameter must be positive, got {value}")
            self.diameter = float(value)
            return
        if name in (ParameterName.LENGTH, ParameterName.START_LEVEL):
            raise ParameterError(f"Parameter '{name.value}' is read-only on {self!r}")
        super().set_parameter(name, value)

    def __repr__(self):
        return (f"LinearElement({self.id}, {format_point(self.start)} -> "
                f"{format_point(self.end)}, length={self.length:.4f})")


class FamilyInstance(Element):
    """Inserted component. Without an MEP model it exposes no connectors."""

    def __init__(self, element_id: int, level_id: Optional[int] = None,
                 name: str = "", has_mep_model: bool = True,
                 is_equipment: bool = False):
        super().__init__(element_id, name)
        self.level_id = level_id
        self.has_mep_model = has_mep_model
        self.is_equipment = is_equipment
        self._connectors: List[Connector] = []

    @property
    def connectors(self) -> Optional[List[Connector]]:
        if not self.has_mep_model:
            return None
        return list(self._connectors)

    @property
    def defined_connectors(self) -> List[Connector]:
        """Connectors as placed, whether or not the MEP model exposes them."""
        return list(self._connectors)

    def add_connector(self, origin: PointLike, kind: ConnectorType = ConnectorType.END,
                      diameter: Optional[float] = None) -> Connector:
        connector = Connector(self, len(self._connectors), origin, kind, diameter)
        self._connectors.append(connector)
        return connector


class Fitting(FamilyInstance):
    """Union joining two pipe ends across the gap left for it."""

    def __init__(self, element_id: int, level_id: Optional[int] = None,
                 name: str = "", part_type: str = "union"):
        super().__init__(element_id, level_id, name)
        self.part_type = part_type

    @property
    def gap(self) -> float:
        first, second = self._connectors
        return distance(first.origin, second.origin)


@dataclass(frozen=True)
class SystemNetwork:
    """Result of tracing a system from its base connector."""
    system_id: int
    member_ids: frozenset
    connector_keys: frozenset
    well_connected: bool

    @property
    def size(self) -> int:
        return len(self.member_ids)


class DistributionSystem(Element):
    """Logical network started from a connector on a piece of equipment.

    Members and the well-connected flag come from Document.trace_system and
    are never cached on the system itself.
    """

    def __init__(self, element_id: int, kind: SystemKind, type_id: Optional[int],
                 base_element_id: int, base_connector_index: int = 0, name: str = ""):
        super().__init__(element_id, name)
        self.kind = kind
        self.type_id = type_id
        self.base_element_id = base_element_id
        self.base_connector_index = base_connector_index

    @property
    def base_key(self) -> Tuple[int, int]:
        return self.base_element_id, self.base_connector_index

    def __repr__(self):
        label = f" '{self.name}'" if self.name else ""
        return f"DistributionSystem({self.id}{label}, {self.kind.value})"

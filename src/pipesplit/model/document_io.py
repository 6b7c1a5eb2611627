"""Build a Document from the ``document:`` section of a project file and dump it back.

Coordinates and diameters in the mapping use ``unit`` (default mm); the
Document stores internal units.

    document:
      name: Plant room
      unit: mm
      auto_connect: true
      levels:        [{id: 1, name: Level 1, elevation: 0}]
      conduit_types: [{id: 10, name: Steel, default_diameter: 100}]
      system_types:  [{id: 20, name: Hydronic Supply, kind: piping}]
      elements:
        - {id: 100, kind: equipment, level: 1, connectors: [{origin: [0, 0, 0], diameter: 150}]}
        - {id: 101, kind: pipe, type: 10, level: 1, system_type: 20,
           start: [0, 0, 0], end: [20000, 0, 0], diameter: 150}
      systems:
        - {id: 200, name: HWS, kind: piping, type: 20, base: [100, 0]}
      connections: [[[100, 0], [101, 0]]]
      selection: [101]
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from pipesplit.core.logging_setup import get_logger
from pipesplit.core.units import convert_from_internal, convert_to_internal
from pipesplit.errors import HostError
from .document import Document
from .elements import (
    ConduitType,
    ConnectorType,
    DistributionSystem,
    FamilyInstance,
    Fitting,
    Level,
    LinearElement,
    SystemKind,
    SystemType,
)
from .geometry import DEFAULT_TOLERANCE

logger = get_logger(__name__)

INSTANCE_KINDS = ("instance", "equipment", "fitting")


def _require(data: Dict[str, Any], key: str, where: str):
    if key not in data:
        raise HostError(f"{where} is missing '{key}'")
    return data[key]


def _build_instance(doc: Document, data: Dict[str, Any], unit: str) -> FamilyInstance:
    kind = data.get("kind", "instance")
    element_id = doc.allocate_id(data.get("id"))
    if kind == "fitting":
        instance = Fitting(element_id, data.get("level"), data.get("name", ""),
                           data.get("part_type", "union"))
    else:
        instance = FamilyInstance(element_id, data.get("level"), data.get("name", ""),
                                  data.get("has_mep_model", True), kind == "equipment")
    for connector in data.get("connectors", []) or []:
        diameter = connector.get("diameter")
        instance.add_connector(
            convert_to_internal(_require(connector, "origin", f"connector of element {element_id}"), unit),
            ConnectorType(connector.get("kind", "end")),
            convert_to_internal(diameter, unit) if diameter is not None else None,
        )
    return doc.add(instance)


def build_document(data: Dict[str, Any], tolerance: float = DEFAULT_TOLERANCE) -> Document:
    """Create a Document from a mapping. Runs in its own 'load' transaction."""
    from pipesplit.splitting.connector_graph import auto_connect

    unit = data.get("unit", "mm")
    doc = Document(data.get("name", "Untitled"), tolerance)

    with doc.transaction("load document"):
        for level in data.get("levels", []) or []:
            doc.add_level(level.get("name", ""), convert_to_internal(level.get("elevation", 0.0), unit),
                          element_id=level.get("id"))
        for conduit_type in data.get("conduit_types", []) or []:
            doc.add_conduit_type(conduit_type.get("name", ""),
                                 convert_to_internal(conduit_type.get("default_diameter", 0.0), unit),
                                 element_id=conduit_type.get("id"))
        for system_type in data.get("system_types", []) or []:
            doc.add_system_type(system_type.get("name", ""),
                                SystemKind(str(system_type.get("kind", "piping")).lower()),
                                element_id=system_type.get("id"))

        for element in data.get("elements", []) or []:
            kind = element.get("kind", "pipe")
            if kind == "pipe":
                where = f"pipe {element.get('id', '?')}"
                diameter = element.get("diameter")
                doc.create_linear_element(
                    _require(element, "type", where),
                    _require(element, "level", where),
                    convert_to_internal(_require(element, "end", where), unit),
                    start=convert_to_internal(_require(element, "start", where), unit),
                    system_type_id=element.get("system_type"),
                    diameter=convert_to_internal(diameter, unit) if diameter is not None else None,
                    name=element.get("name", ""),
                    element_id=element.get("id"),
                )
            elif kind in INSTANCE_KINDS:
                _build_instance(doc, element, unit)
            else:
                raise HostError(f"Unknown element kind '{kind}'. Available kinds: "
                                f"{['pipe', *INSTANCE_KINDS]}")

        for pair in data.get("connections", []) or []:
            (a_key, b_key) = pair
            first = doc.find_connector_by_key(tuple(a_key))
            second = doc.find_connector_by_key(tuple(b_key))
            if first is None or second is None:
                raise HostError(f"Connection {pair} refers to a missing connector")
            doc.connect(first, second)

        if data.get("auto_connect", True):
            auto_connect(doc)

        for system in data.get("systems", []) or []:
            where = f"system {system.get('id', '?')}"
            base_key = tuple(_require(system, "base", where))
            base = doc.find_connector_by_key(base_key)
            if base is None:
                raise HostError(f"{where}: base connector {list(base_key)} not found")
            doc.add_system(SystemKind(str(system.get("kind", "piping")).lower()), base,
                           type_id=system.get("type"), name=system.get("name", ""),
                           element_id=system.get("id"))

    doc.selection = list(data.get("selection", []) or [])
    logger.info(f"Loaded {doc!r}")
    return doc


def dump_document(doc: Document, unit: str = "mm") -> Dict[str, Any]:
    """Inverse of build_document (connections listed explicitly, auto_connect off)."""

    def display(value):
        return convert_from_internal(value, unit)

    def point(value) -> List[float]:
        return [round(float(v), 6) for v in display(value)]

    out: Dict[str, Any] = {
        "name": doc.name,
        "unit": unit,
        "auto_connect": False,
        "levels": [],
        "conduit_types": [],
        "system_types": [],
        "elements": [],
        "systems": [],
        "connections": [],
        "selection": list(doc.selection),
    }
    seen = set()

    for element in doc.elements():
        if isinstance(element, Level):
            out["levels"].append({"id": element.id, "name": element.name,
                                  "elevation": display(element.elevation)})
        elif isinstance(element, ConduitType):
            out["conduit_types"].append({"id": element.id, "name": element.name,
                                         "default_diameter": display(element.default_diameter)})
        elif isinstance(element, SystemType):
            out["system_types"].append({"id": element.id, "name": element.name,
                                        "kind": element.kind.value})
        elif isinstance(element, LinearElement):
            out["elements"].append({
                "id": element.id, "kind": "pipe", "name": element.name,
                "type": element.type_id, "level": element.level_id,
                "system_type": element.system_type_id,
                "start": point(element.start), "end": point(element.end),
                "diameter": display(element.diameter),
            })
        elif isinstance(element, FamilyInstance):
            if isinstance(element, Fitting):
                kind = "fitting"
            else:
                kind = "equipment" if element.is_equipment else "instance"
            entry = {"id": element.id, "kind": kind, "name": element.name,
                     "level": element.level_id, "has_mep_model": element.has_mep_model,
                     "connectors": [
                         {"origin": point(c.origin), "kind": c.kind.value,
                          "diameter": display(c.diameter) if c.diameter is not None else None}
                         for c in element.defined_connectors
                     ]}
            if isinstance(element, Fitting):
                entry["part_type"] = element.part_type
            out["elements"].append(entry)
        elif isinstance(element, DistributionSystem):
            out["systems"].append({"id": element.id, "name": element.name,
                                   "kind": element.kind.value, "type": element.type_id,
                                   "base": list(element.base_key)})

        for connector in getattr(element, "defined_connectors", None) or element.connectors or []:
            for peer in connector.peers:
                pair = tuple(sorted((connector.key, peer.key)))
                if pair not in seen:
                    seen.add(pair)
                    out["connections"].append([list(pair[0]), list(pair[1])])

    return out


def load_document_file(path, tolerance: float = DEFAULT_TOLERANCE) -> Document:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return build_document(data.get("document", data), tolerance)


def save_document_file(doc: Document, path, unit: str = "mm") -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"document": dump_document(doc, unit)}, f, sort_keys=False)
    logger.info(f"Document written to {path}")
    return path

"""Find the distribution system a selected element belongs to."""
from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from pipesplit.core.logging_setup import get_logger
from pipesplit.model.elements import (
    Connector,
    DistributionSystem,
    Element,
    FamilyInstance,
    LinearElement,
    SystemKind,
)

logger = get_logger(__name__)

DEFAULT_ACCEPTED_KINDS = (SystemKind.MECHANICAL, SystemKind.PIPING)


class ElementCategory(Enum):
    SYSTEM = "system"
    CONNECTABLE_INSTANCE = "connectable_instance"
    CONNECTABLE_CURVE = "connectable_curve"
    UNSUPPORTED = "unsupported"


def classify(element: Element) -> ElementCategory:
    if isinstance(element, DistributionSystem):
        return ElementCategory.SYSTEM
    if isinstance(element, FamilyInstance):
        return ElementCategory.CONNECTABLE_INSTANCE
    if isinstance(element, LinearElement):
        return ElementCategory.CONNECTABLE_CURVE
    return ElementCategory.UNSUPPORTED


def connectors_of(element: Element) -> Optional[List[Connector]]:
    """Connector set of a connectable element, or None when it exposes none.

    Instances without an MEP model report None rather than raising.
    """
    connectors = element.connectors
    if connectors is None:
        return None
    return list(connectors)


class SystemResolver:
    """Resolve a selection to its enclosing mechanical or piping system.

    When a component touches several systems, the well-connected one with
    the most members wins; on equal size the first one seen is kept.
    """

    def __init__(self, document, accepted_kinds: Iterable = DEFAULT_ACCEPTED_KINDS):
        self.document = document
        self.accepted_kinds = frozenset(
            kind if isinstance(kind, SystemKind) else SystemKind(str(kind).lower())
            for kind in accepted_kinds
        )

    def is_accepted(self, system: DistributionSystem) -> bool:
        return system.kind in self.accepted_kinds

    def resolve(self, selected: Element) -> Optional[DistributionSystem]:
        category = classify(selected)
        logger.debug(f"Resolving system for {selected!r} ({category.value})")

        if category is ElementCategory.SYSTEM:
            if self.is_accepted(selected):
                return selected
            logger.info(f"{selected!r} is a {selected.kind.value} system, which is not accepted")
            return None

        if category is ElementCategory.UNSUPPORTED:
            logger.info(f"{selected!r} has no connectors to resolve a system from")
            return None

        return self.resolve_from_connectors(connectors_of(selected))

    def resolve_from_connectors(self, connectors: Optional[List[Connector]]
                                ) -> Optional[DistributionSystem]:
        if not connectors:
            return None

        candidates = []
        for connector in connectors:
            system = self.document.system_of(connector)
            if system is None or not self.is_accepted(system):
                continue
            network = self.document.trace_system(system)
            if network.well_connected:
                candidates.append((system, network.size))
            else:
                logger.debug(f"Skipping {system!r}: not well connected")

        best = None
        best_size = 0
        for system, size in candidates:
            if size > best_size:
                best = system
                best_size = size

        if best is not None:
            logger.info(f"Resolved system {best!r} with {best_size} elements")
        return best

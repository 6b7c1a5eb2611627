"""Host document model: elements, connectors, systems and transactions."""

from .document import Document
from .elements import (
    ConduitType,
    Connector,
    ConnectorType,
    DistributionSystem,
    Element,
    FamilyInstance,
    Fitting,
    Level,
    LinearElement,
    ParameterName,
    SystemKind,
    SystemNetwork,
    SystemType,
)

__all__ = [
    'Document',
    'ConduitType',
    'Connector',
    'ConnectorType',
    'DistributionSystem',
    'Element',
    'FamilyInstance',
    'Fitting',
    'Level',
    'LinearElement',
    'ParameterName',
    'SystemKind',
    'SystemNetwork',
    'SystemType',
]

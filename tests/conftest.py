# conftest.py
import os
import sys
import tempfile

import numpy as np
import pytest

# Keep test logs out of the home directory
os.environ.setdefault("PIPESPLIT_LOG_DIR", tempfile.mkdtemp(prefix="pipesplit-logs-"))

# Add source directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pipesplit.core.split_settings import SplitSettings  # noqa: E402
from pipesplit.model.document_io import build_document  # noqa: E402

MM_PER_FOOT = 304.8

PIPE_TYPE = 10
LEVEL = 1
SYSTEM_TYPE = 20
EQUIPMENT = 100
RUN = 101
DOWNSTREAM = 102
SYSTEM = 200


def base_document(elements, systems=None, selection=None, **extra):
    """Document mapping with one level, one pipe type and one piping system type."""
    data = {
        "name": "test",
        "unit": "mm",
        "levels": [{"id": LEVEL, "name": "Level 1", "elevation": 0.0}],
        "conduit_types": [{"id": PIPE_TYPE, "name": "Steel", "default_diameter": 50.0}],
        "system_types": [{"id": SYSTEM_TYPE, "name": "Hydronic Supply", "kind": "piping"}],
        "elements": elements,
        "systems": systems or [],
        "selection": selection or [],
    }
    data.update(extra)
    return data


def pipe(element_id, start, end, diameter=150.0):
    return {"id": element_id, "kind": "pipe", "type": PIPE_TYPE, "level": LEVEL,
            "system_type": SYSTEM_TYPE, "start": list(start), "end": list(end),
            "diameter": diameter}


def equipment(element_id, *origins, diameter=150.0):
    return {"id": element_id, "kind": "equipment", "level": LEVEL, "name": "Pump",
            "connectors": [{"origin": list(o), "diameter": diameter} for o in origins]}


def run_document(length=6500.0, diameter=150.0, upstream=True, downstream=True):
    """A straight run along +X from the origin, selected for splitting.

    upstream: pump connector at the run's start
    downstream: a second pipe continues from the run's end along +Y
    The system always starts at the pump, which sits at the start of the
    run when upstream is set and at the far end of the network otherwise.
    """
    elements = [pipe(RUN, (0, 0, 0), (length, 0, 0), diameter)]
    if downstream:
        elements.append(pipe(DOWNSTREAM, (length, 0, 0), (length, 2000, 0), diameter))
    if upstream:
        pump_at = (0, 0, 0)
    elif downstream:
        pump_at = (length, 2000, 0)
    else:
        pump_at = (length, 0, 0)
    elements.append(equipment(EQUIPMENT, pump_at, diameter=diameter))
    systems = [{"id": SYSTEM, "name": "HWS", "kind": "piping", "type": SYSTEM_TYPE,
                "base": [EQUIPMENT, 0]}]
    return build_document(base_document(elements, systems, selection=[RUN]))


@pytest.fixture
def settings():
    return SplitSettings()


@pytest.fixture
def make_run():
    """Factory fixture: make_run(length=..., diameter=..., upstream=..., downstream=...)"""
    return run_document


def mm(value):
    """Internal feet -> millimetres, for scalars and points."""
    return np.asarray(value, dtype=float) * MM_PER_FOOT if np.ndim(value) else float(value) * MM_PER_FOOT

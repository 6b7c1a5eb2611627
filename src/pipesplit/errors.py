# src/pipesplit/errors.py
"""Exception hierarchy for pipe splitting.

Selection and system-resolution failures are raised before the document is
touched. Everything raised inside a transaction rolls the whole split back.
"""


class PipeSplitError(Exception):
    """Base class for all pipe splitting errors."""
    pass


class SelectionError(PipeSplitError):
    """Raised when the selection is not exactly one splittable element."""
    pass


class SystemResolutionError(PipeSplitError):
    """Raised when no well-connected enclosing system is found."""
    pass


class DeletionInconsistency(PipeSplitError):
    """Raised when deleting the original segment did not remove it."""

    def __init__(self, element_id: int, deleted_ids=None):
        self.element_id = element_id
        self.deleted_ids = set(deleted_ids or ())
        super().__init__(
            f"Deleting element {element_id} failed "
            f"(host removed {sorted(self.deleted_ids) or 'nothing'})"
        )


class SegmentPlanningError(PipeSplitError):
    """Raised when a run cannot be split at the requested length."""
    pass


class HostError(PipeSplitError):
    """Failure reported by the host document (geometry, parameters, connectors)."""
    pass


class ElementNotFoundError(HostError):
    """Raised when an element id is not in the document."""

    def __init__(self, element_id):
        self.element_id = element_id
        super().__init__(f"Element {element_id} not found in document")


class ParameterError(HostError):
    """Raised for unknown or read-only parameters."""
    pass


class ConnectivityError(HostError):
    """Raised when connectors cannot be joined."""
    pass


class TransactionError(HostError):
    """Raised on mutation outside a transaction or on nested transactions."""
    pass


class CommandFailedError(PipeSplitError):
    """Raised by the driver when a split command reports failure."""
    pass

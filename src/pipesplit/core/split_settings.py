from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SplitSettings:
    max_segment_length: float = 6000.0
    fitting_length_factor: float = 1.1
    fitting_length_offset: float = 14.4
    length_unit: str = "mm"
    point_tolerance: float = 1e-6
    accepted_system_kinds: Tuple[str, ...] = ("mechanical", "piping")

    @classmethod
    def from_dict(cls, d: dict) -> "SplitSettings":
        """Create from YAML dict, ignoring unknown keys."""
        import inspect
        valid_keys = inspect.signature(cls).parameters
        filtered = {k: v for k, v in (d or {}).items() if k in valid_keys}
        if "accepted_system_kinds" in filtered:
            filtered["accepted_system_kinds"] = tuple(
                str(kind).lower() for kind in filtered["accepted_system_kinds"]
            )
        return cls(**filtered)

    def fitting_length(self, diameter: float) -> float:
        """Union fitting length for a pipe diameter, both in length_unit."""
        return self.fitting_length_factor * diameter + self.fitting_length_offset

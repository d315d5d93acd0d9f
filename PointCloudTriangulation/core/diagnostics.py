"""
Diagnostics collected while smoothing and reconstructing.

Non-fatal conditions (dropped points, dropped polygons) are recorded here
instead of being raised, so callers can report aggregate counts.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

from .exceptions import DegenerateFitWarning, DegenerateMeshWarning


@dataclass
class Diagnostics:
    """
    Record of non-fatal events for one smoothing or reconstruction call.

    Attributes:
        warnings: Recorded warning instances, in the order they occurred
        counters: Named integer counters (e.g. 'planar_fallbacks')
    """
    warnings: List[UserWarning] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)

    def add_warning(self, warning: UserWarning):
        """Record a warning without raising it"""
        self.warnings.append(warning)

    def increment(self, name: str, amount: int = 1):
        self.counters[name] = self.counters.get(name, 0) + amount

    @property
    def dropped_points(self) -> int:
        """Number of points dropped because their local fit was degenerate"""
        return sum(1 for w in self.warnings if isinstance(w, DegenerateFitWarning))

    @property
    def dropped_polygons(self) -> int:
        """Number of polygons dropped because they were malformed"""
        return sum(1 for w in self.warnings if isinstance(w, DegenerateMeshWarning))

    def merge(self, other: 'Diagnostics') -> 'Diagnostics':
        """Return a new Diagnostics holding the events of both records"""
        merged = Diagnostics(warnings=list(self.warnings), counters=dict(self.counters))
        merged.warnings.extend(other.warnings)
        for name, value in other.counters.items():
            merged.increment(name, value)
        return merged

    def summary(self) -> Dict[str, Any]:
        summary = {
            'dropped_points': self.dropped_points,
            'dropped_polygons': self.dropped_polygons,
        }
        summary.update(self.counters)
        return summary

    @property
    def is_clean(self) -> bool:
        """True when nothing had to be dropped"""
        return not self.warnings

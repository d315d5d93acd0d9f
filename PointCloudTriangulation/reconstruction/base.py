"""
Base Reconstruction Strategy

Abstract base class for surface reconstruction strategies. A strategy turns
a smoothed point set into an output vertex cloud plus polygons indexing it;
polygon sanitation and triangle emission happen in mesh.assembly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..core.structures import Polygon


@dataclass
class ReconstructionResult:
    """
    Raw output of a reconstruction strategy.

    Attributes:
        vertices: Output vertex cloud (V, 3)
        polygons: Polygons indexing ``vertices``
        degenerate_reason: Why nothing could be reconstructed, if so
        metadata: Strategy specific information (facet counts, planar flag...)
    """
    vertices: np.ndarray
    polygons: List[Polygon] = field(default_factory=list)
    degenerate_reason: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def degenerate(cls, reason: str) -> 'ReconstructionResult':
        return cls(vertices=np.empty((0, 3)), polygons=[], degenerate_reason=reason)

    @property
    def is_degenerate(self) -> bool:
        return self.degenerate_reason is not None

    def __repr__(self) -> str:
        return f"ReconstructionResult(vertices={len(self.vertices)}, polygons={len(self.polygons)})"


class ReconstructionStrategy(ABC):
    """
    Interface for surface reconstruction.

    Implementations must be stateless across calls and must not raise on
    degenerate input: they return ReconstructionResult.degenerate(...) instead.
    """

    name: str = "base"

    @abstractmethod
    def reconstruct(self, points: np.ndarray) -> ReconstructionResult:
        """
        Reconstruct a surface from points.

        Args:
            points: Smoothed points (M, 3)

        Returns:
            ReconstructionResult whose polygon indices refer to its own vertices
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

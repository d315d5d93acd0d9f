"""
Factory for creating reconstruction strategies by name.
"""

from typing import Dict, List, Type

from ..config import ReconstructionConfig
from .base import ReconstructionStrategy
from .convex_hull import ConvexHullReconstruction


_STRATEGIES: Dict[str, Type[ReconstructionStrategy]] = {
    ConvexHullReconstruction.name: ConvexHullReconstruction,
}


def register_strategy(name: str, strategy_class: Type[ReconstructionStrategy]):
    """
    Make a strategy available to create_strategy().

    Raises:
        TypeError: If the class does not implement ReconstructionStrategy
    """
    if not (isinstance(strategy_class, type) and issubclass(strategy_class, ReconstructionStrategy)):
        raise TypeError(f"{strategy_class!r} is not a ReconstructionStrategy subclass")
    _STRATEGIES[name] = strategy_class


def available_strategies() -> List[str]:
    return sorted(_STRATEGIES)


def create_strategy(name: str, **kwargs) -> ReconstructionStrategy:
    """
    Create a reconstruction strategy.

    Args:
        name: Registered strategy name (e.g. 'convex_hull')
        **kwargs: Passed to the strategy constructor

    Raises:
        ValueError: If the name is not registered
    """
    if name not in _STRATEGIES:
        available = ', '.join(available_strategies())
        raise ValueError(f"Unknown reconstruction strategy: {name}. Available: {available}")
    return _STRATEGIES[name](**kwargs)


def create_from_config(config: ReconstructionConfig) -> ReconstructionStrategy:
    """Create the strategy selected by a ReconstructionConfig"""
    if config.strategy == ConvexHullReconstruction.name:
        return ConvexHullReconstruction(
            coplanar_tolerance=config.coplanar_tolerance,
            merge_coplanar_facets=config.merge_coplanar_facets
        )
    return create_strategy(config.strategy)

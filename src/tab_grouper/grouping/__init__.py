"""
Deterministic tab grouping engine.

This package provides:
- Content-intent classification of tabs (exploration / reference / general)
- Time-based session segmentation
- Similarity-graph clustering with confidence scoring
- Deterministic group naming
- Domain, semantic and hybrid strategies behind a single `cluster()` call
"""

from tab_grouper.grouping.models import (
    Anchor,
    ContentType,
    DomainGrouping,
    ErrorKind,
    Group,
    GroupingConfig,
    GroupingError,
    GroupingResult,
    GroupType,
    ScoreWeights,
    Strategy,
    TabDescriptor,
)
from tab_grouper.grouping.strategies import TabGrouper, cluster

__all__ = [
    "Anchor",
    "ContentType",
    "DomainGrouping",
    "ErrorKind",
    "Group",
    "GroupingConfig",
    "GroupingError",
    "GroupingResult",
    "GroupType",
    "ScoreWeights",
    "Strategy",
    "TabDescriptor",
    "TabGrouper",
    "cluster",
]

"""
Data models for tab grouping.

This module defines the core data structures passed into and returned by the
grouping engine: tab descriptors, the engine configuration, similarity edges,
groups, and the structured results (including structured failures) that the
engine hands back to its callers.
"""

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TabDescriptor(BaseModel):
    """Immutable description of a browser tab as seen by the engine.

    Attributes:
        id: Identifier of the tab, unique within one invocation
        title: The title of the tab
        url: The URL of the tab
        open_time: When the tab was opened (epoch milliseconds, 0 if unknown)
    """

    id: int
    title: str = ""
    url: str = ""
    open_time: int = 0

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator('title', 'url', mode='before')
    @classmethod
    def convert_none_to_empty_string(cls, v):
        """Browsers report missing titles/urls as null."""
        return v if v is not None else ""

    @field_validator('open_time', mode='before')
    @classmethod
    def convert_none_to_zero(cls, v):
        return v if v is not None else 0


class ContentType(str, Enum):
    """Browsing intent behind a tab."""
    EXPLORATION = "EXPLORATION"
    REFERENCE = "REFERENCE"
    GENERAL = "GENERAL"


class Strategy(str, Enum):
    """Available grouping pipelines."""
    DOMAIN = "domain"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class GroupType(str, Enum):
    """Which pipeline phase produced a group."""
    SEMANTIC = "semantic"
    ANCHOR = "anchor"
    RESIDUAL = "semantic-residual"
    DOMAIN = "domain"


class ErrorKind(str, Enum):
    """Kinds of structured failures returned by the engine."""
    INPUT_MISMATCH = "InputMismatch"
    INVALID_VECTOR = "InvalidVector"
    EMBEDDING_UNAVAILABLE = "EmbeddingUnavailable"


class GroupingInputError(Exception):
    """Raised inside the engine for malformed input; never leaves `cluster()`."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class EmbeddingUnavailableError(Exception):
    """Raised by embedding providers when vectors cannot be produced."""


class ScoreWeights(BaseModel):
    """Weights of the confidence formula."""

    sim: float = Field(default=0.7, ge=0.0, le=1.0)
    time: float = Field(default=0.3, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class GroupingConfig(BaseModel):
    """Thresholds and weights used by the grouping engine.

    Every field has a default; callers override any subset either by field
    name or by its camelCase alias (e.g. ``minSimilarity``, ``sessionGap``).
    Durations are in milliseconds unless the name says otherwise.
    """

    # Similarity graph
    min_similarity: float = Field(default=0.65, ge=-1.0, le=2.0)
    prune_similarity: float = Field(default=0.3, ge=-1.0, le=1.0)
    affinity_boost: float = 0.10
    affinity_min_similarity: float = 0.55
    dedup_penalty: float = 0.20
    dedup_window: int = Field(default=30 * 60 * 1000, ge=0)
    domain_discount: float = Field(default=0.95, ge=0.0)

    # Sessions
    session_gap: int = Field(default=45 * 60 * 1000, ge=0)

    # Validation and scoring
    min_group_size: int = Field(default=2, ge=1)
    min_confidence: float = 0.60
    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    workflow_bonus: float = 0.05
    time_horizon_minutes: float = Field(default=120.0, gt=0.0)
    time_coherence_floor: float = Field(default=0.5, ge=0.0, le=1.0)

    # Naming
    phrase_ratio: float = Field(default=0.5, gt=0.0, le=1.0)

    # Hybrid phases
    threshold_anchor: float = 0.45
    threshold_semantic: float = 0.55

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TabNode(BaseModel):
    """A tab enriched with the derived fields the pipeline needs.

    ``index`` is the tab's position in the caller's list and doubles as the row
    of its embedding in the invocation's similarity matrix.
    """

    index: int
    tab: TabDescriptor
    content_type: ContentType
    hostname: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def id(self) -> int:
        return self.tab.id

    @property
    def title(self) -> str:
        return self.tab.title

    @property
    def url(self) -> str:
        return self.tab.url

    @property
    def open_time(self) -> int:
        return self.tab.open_time


class Anchor(BaseModel):
    """A named reference embedding for a broad topic (hybrid mode only)."""

    label: str
    embedding: list[float]


class SimilarityEdge(BaseModel):
    """Undirected weighted edge between two tabs of the same session."""

    source: int
    target: int
    weight: float
    debug: dict = Field(default_factory=dict)


class Group(BaseModel):
    """A named set of tabs returned by the engine.

    Attributes:
        id: Deterministic identifier derived from the group type and members
        title: Human-readable name
        members: Tab ids, in session (or input) order
        confidence: Confidence score, set for semantic-mode groups only
        type: Pipeline phase that produced the group
        debug: Metrics that explain why the group exists
    """

    id: str
    title: str
    members: list[int]
    confidence: Optional[float] = None
    type: GroupType
    debug: dict = Field(default_factory=dict)


class GroupingError(BaseModel):
    """Structured failure returned instead of raising across the boundary."""

    kind: ErrorKind
    message: str


class GroupingResult(BaseModel):
    """Result of a semantic or hybrid grouping run.

    Attributes:
        strategy: Pipeline that produced the result
        groups: Accepted groups, in discovery order
        ungrouped: Tab ids not placed in any group, in input order
        error: Set when the input was rejected; all tabs are then ungrouped
    """

    strategy: Strategy
    groups: list[Group] = Field(default_factory=list)
    ungrouped: list[int] = Field(default_factory=list)
    error: Optional[GroupingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def group_map(self) -> dict[str, list[int]]:
        """Flatten groups into a ``{title: [tab ids]}`` map.

        Titles are unique per invocation already; should two collide anyway the
        later one is suffixed " (2)", " (3)", ...
        """
        result: dict[str, list[int]] = {}
        for group in self.groups:
            name = group.title
            counter = 2
            while name in result:
                name = f"{group.title} ({counter})"
                counter += 1
            result[name] = list(group.members)
        return result


class DomainGrouping(BaseModel):
    """Result of a domain-only grouping run: every tab lands in one bucket."""

    strategy: Strategy = Strategy.DOMAIN
    buckets: dict[str, list[int]] = Field(default_factory=dict)

    def group_map(self) -> dict[str, list[int]]:
        return {name: list(ids) for name, ids in self.buckets.items()}


_GROUP_NAMESPACE = uuid.UUID("6f1c2a9e-3b7d-5e4a-9c8b-2d0f4e6a8b1c")


def make_group_id(group_type: GroupType, members: list[int]) -> str:
    """Deterministic group id: the same members always get the same id."""
    key = f"{group_type.value}:{','.join(str(m) for m in members)}"
    return str(uuid.uuid5(_GROUP_NAMESPACE, key))

"""
Pydantic models for API request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tab_grouper.grouping.models import (
    Anchor,
    GroupingConfig,
    GroupingError,
    GroupType,
    Strategy,
)


# ============================================================================
# Request Models
# ============================================================================


class TabInput(BaseModel):
    """Input model for a browser tab from the extension."""

    id: int
    url: str
    title: str
    open_time: Optional[int] = None  # epoch ms

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TabsGroupRequest(BaseModel):
    """Request model for /api/tabs/group endpoint."""

    tabs: list[TabInput]
    mode: Optional[Strategy] = None  # Defaults to settings.default_mode
    embeddings: Optional[list[list[float]]] = None
    anchors: Optional[list[Anchor]] = None
    config: Optional[GroupingConfig] = None


# ============================================================================
# Response Models
# ============================================================================


class GroupResponse(BaseModel):
    """Response model for a single group."""

    id: str
    title: str
    members: list[int]
    confidence: Optional[float] = None
    type: GroupType
    debug: dict = Field(default_factory=dict)


class TabsGroupResponse(BaseModel):
    """Response model for /api/tabs/group endpoint."""

    mode: Strategy
    groups: list[GroupResponse] = Field(default_factory=list)
    ungrouped: list[int] = Field(default_factory=list)
    group_map: dict[str, list[int]] = Field(default_factory=dict)
    error: Optional[GroupingError] = None
    degraded: bool = False
    timestamp: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str
    embeddings_available: bool = False
    timestamp: str

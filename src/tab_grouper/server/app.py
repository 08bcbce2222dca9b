"""
FastAPI application for the tab grouping service.

This server provides endpoints for:
- Health checks
- Grouping a batch of tabs (domain, semantic or hybrid)

The grouping engine is pure; this layer only gathers embeddings when the
caller did not send them and degrades to domain grouping when the embedding
provider is unavailable.
"""

from datetime import datetime, UTC
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from tab_grouper import __version__
from tab_grouper.config import get_logger, get_settings
from tab_grouper.grouping.embedding_provider import OpenAIEmbeddingProvider, tab_text
from tab_grouper.grouping.models import (
    Anchor,
    DomainGrouping,
    EmbeddingUnavailableError,
    Strategy,
    TabDescriptor,
)
from tab_grouper.grouping.strategies import cluster

logger = get_logger(__name__)
from tab_grouper.server.models import (
    GroupResponse,
    HealthResponse,
    TabsGroupRequest,
    TabsGroupResponse,
)

# ============================================================================
# FastAPI App Initialization
# ============================================================================

app = FastAPI(
    title="Tab Grouper API",
    description="Deterministic semantic tab grouping",
    version=__version__,
)

# CORS middleware for browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "chrome-extension://*",
        "http://localhost:*",
        "https://localhost:*",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Global State
# ============================================================================

# The provider only holds an API client; grouping itself is stateless
_provider: OpenAIEmbeddingProvider | None = None


def get_embedding_provider() -> OpenAIEmbeddingProvider:
    """Get or create the global embedding provider."""
    global _provider
    if _provider is None:
        _provider = OpenAIEmbeddingProvider()
    return _provider


def gather_embeddings(
    tabs: list[TabDescriptor],
    mode: Strategy,
    anchors: list[Anchor] | None,
) -> tuple[list[list[float]], list[Anchor] | None]:
    """
    Embed tab titles, plus the configured anchor labels for hybrid mode.

    Tabs and anchor labels go out in one batch request.

    Raises:
        EmbeddingUnavailableError: If the provider cannot produce vectors
    """
    provider = get_embedding_provider()
    texts = [tab_text(tab) for tab in tabs]

    if mode is Strategy.HYBRID and anchors is None:
        labels = get_settings().anchor_labels
        vectors = provider.embed_texts(texts + labels)
        anchors = [
            Anchor(label=label, embedding=vector)
            for label, vector in zip(labels, vectors[len(texts):])
        ]
        return vectors[:len(texts)], anchors

    return provider.embed_texts(texts), anchors


# ============================================================================
# API Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        embeddings_available=get_embedding_provider().available,
        timestamp=datetime.now(UTC).isoformat(),
    )


@app.post("/api/tabs/group", response_model=TabsGroupResponse)
def group_tabs(request: TabsGroupRequest):
    """
    Group a batch of tabs.

    This endpoint:
    1. Converts the extension's tabs into engine descriptors
    2. Embeds titles in one batch call when no embeddings were sent
       (semantic/hybrid only)
    3. Falls back to domain grouping if embeddings are unavailable
    4. Runs the grouping engine and returns groups plus a name -> ids map

    Args:
        request: Tabs, mode, optional embeddings/anchors and config overrides

    Returns:
        Groups, ungrouped tab ids and the map the extension applies. Malformed
        input is reported in ``error`` with every tab ungrouped.
    """
    settings = get_settings()
    if len(request.tabs) > settings.max_tabs_per_request:
        raise HTTPException(
            status_code=422,
            detail=f"Too many tabs: {len(request.tabs)} > {settings.max_tabs_per_request}",
        )

    mode = request.mode or Strategy(settings.default_mode)
    tabs = [
        TabDescriptor(id=t.id, title=t.title, url=t.url, open_time=t.open_time or 0)
        for t in request.tabs
    ]
    embeddings = request.embeddings
    anchors = request.anchors
    degraded = False

    if mode is not Strategy.DOMAIN and embeddings is None and not tabs:
        embeddings = []
    elif mode is not Strategy.DOMAIN and embeddings is None:
        try:
            embeddings, anchors = gather_embeddings(tabs, mode, anchors)
        except EmbeddingUnavailableError as e:
            logger.warning(f"Embeddings unavailable, falling back to domain grouping: {e}")
            mode = Strategy.DOMAIN
            degraded = True

    result = cluster(tabs, embeddings, request.config, mode, anchors)
    timestamp = datetime.now(UTC).isoformat()

    if isinstance(result, DomainGrouping):
        return TabsGroupResponse(
            mode=mode,
            group_map=result.group_map(),
            degraded=degraded,
            timestamp=timestamp,
        )

    return TabsGroupResponse(
        mode=mode,
        groups=[GroupResponse(**g.model_dump()) for g in result.groups],
        ungrouped=result.ungrouped,
        group_map=result.group_map(),
        error=result.error,
        degraded=degraded,
        timestamp=timestamp,
    )

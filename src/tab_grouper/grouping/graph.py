"""
Similarity graph construction and connected-component clustering.

Nodes are tabs; an undirected edge joins two tabs of the same session when
their adjusted similarity clears the configured threshold. Components of the
resulting graph are the candidate groups.
"""

from typing import Optional

import numpy as np

from tab_grouper.config import get_logger
from tab_grouper.grouping.models import (
    ContentType,
    GroupingConfig,
    SimilarityEdge,
    TabNode,
)

logger = get_logger(__name__)

_WORKFLOW_PAIR = {ContentType.EXPLORATION, ContentType.REFERENCE}


def is_workflow_pair(a: TabNode, b: TabNode) -> bool:
    """True for an exploration tab paired with a reference tab (search + docs)."""
    return {a.content_type, b.content_type} == _WORKFLOW_PAIR


def adjusted_score(
    a: TabNode, b: TabNode, raw_similarity: float, config: GroupingConfig
) -> float:
    """
    Adjust a raw cosine similarity with intent, duplicate and domain signals.

    Args:
        a: First tab
        b: Second tab
        raw_similarity: Cosine similarity of the two embeddings
        config: Engine configuration

    Returns:
        Edge weight candidate
    """
    score = raw_similarity

    # Workflow affinity (search + docs)
    if is_workflow_pair(a, b) and raw_similarity > config.affinity_min_similarity:
        score += config.affinity_boost

    # Dedup penalty: same title, far apart in time
    if a.title == b.title and abs(a.open_time - b.open_time) > config.dedup_window:
        score -= config.dedup_penalty

    # Domain discount
    if a.hostname is not None and a.hostname == b.hostname:
        score *= config.domain_discount

    return score


def build_similarity_graph(
    session: list[TabNode], sims: np.ndarray, config: GroupingConfig
) -> list[SimilarityEdge]:
    """
    Build the weighted edge list of one session.

    Args:
        session: Tabs of the session, in session order
        sims: Invocation-wide cosine matrix indexed by ``TabNode.index``
        config: Engine configuration

    Returns:
        Edges whose adjusted score is at least ``config.min_similarity``
    """
    edges: list[SimilarityEdge] = []
    count = len(session)

    for i in range(count):
        a = session[i]
        for j in range(i + 1, count):
            b = session[j]
            raw = float(sims[a.index, b.index])

            if raw < config.prune_similarity:
                continue

            score = adjusted_score(a, b, raw, config)
            if score >= config.min_similarity:
                edges.append(
                    SimilarityEdge(
                        source=a.id,
                        target=b.id,
                        weight=score,
                        debug={"raw": round(raw, 2), "adjusted": round(score, 2)},
                    )
                )

    logger.debug(f"Session of {count} tabs produced {len(edges)} edges")
    return edges


def build_threshold_graph(
    nodes: list[TabNode], sims: np.ndarray, threshold: float
) -> list[SimilarityEdge]:
    """Edges between every pair whose raw cosine similarity reaches ``threshold``."""
    edges: list[SimilarityEdge] = []
    for i, a in enumerate(nodes):
        for b in nodes[i + 1:]:
            raw = float(sims[a.index, b.index])
            if raw >= threshold:
                edges.append(SimilarityEdge(source=a.id, target=b.id, weight=raw))
    return edges


def find_connected_components(
    nodes: list[TabNode],
    edges: list[SimilarityEdge],
    visited: Optional[set[int]] = None,
) -> list[list[TabNode]]:
    """
    Find connected components with an iterative depth-first traversal.

    Components are seeded in ``nodes`` order and their members are returned in
    ``nodes`` order, so identical input always yields identical output. Tabs
    without edges come back as singleton components.

    Args:
        nodes: Graph nodes
        edges: Undirected edges between node ids
        visited: Tab ids to treat as already taken; updated in place

    Returns:
        Components as lists of nodes
    """
    if visited is None:
        visited = set()

    position = {node.id: pos for pos, node in enumerate(nodes)}
    adjacency: dict[int, list[int]] = {node.id: [] for node in nodes}
    for edge in edges:
        adjacency[edge.source].append(edge.target)
        adjacency[edge.target].append(edge.source)

    components: list[list[TabNode]] = []
    for node in nodes:
        if node.id in visited:
            continue

        member_ids: list[int] = []
        stack = [node.id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            member_ids.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    stack.append(neighbor)

        member_ids.sort(key=position.__getitem__)
        components.append([nodes[position[tab_id]] for tab_id in member_ids])

    return components

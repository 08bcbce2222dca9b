"""
Validation and confidence scoring of candidate groups.

A candidate (a connected component) becomes a group only if it is large
enough and its confidence, blended from semantic cohesion and temporal
coherence, clears the configured minimum.
"""

from itertools import combinations

import numpy as np

from tab_grouper.config import get_logger
from tab_grouper.grouping.models import (
    ContentType,
    Group,
    GroupingConfig,
    GroupType,
    TabNode,
    make_group_id,
)
from tab_grouper.grouping.naming import generate_group_name, unique_name

logger = get_logger(__name__)


def average_similarity(nodes: list[TabNode], sims: np.ndarray) -> float:
    """Mean cosine similarity over all member pairs (1.0 for a single tab)."""
    pairs = list(combinations(nodes, 2))
    if not pairs:
        return 1.0
    return float(sum(sims[a.index, b.index] for a, b in pairs) / len(pairs))


def span_minutes(nodes: list[TabNode]) -> float:
    """Minutes between the first and last opened member."""
    times = [n.open_time for n in nodes]
    return (max(times) - min(times)) / 60000


def time_coherence(span: float, config: GroupingConfig) -> float:
    """Score in [floor, 1] that decays linearly with the group's time span."""
    return max(config.time_coherence_floor, 1.0 - span / config.time_horizon_minutes)


def has_workflow(nodes: list[TabNode]) -> bool:
    """True when the group mixes exploration and reference tabs."""
    types = {n.content_type for n in nodes}
    return ContentType.REFERENCE in types and ContentType.EXPLORATION in types


def score_component(
    nodes: list[TabNode], sims: np.ndarray, config: GroupingConfig
) -> tuple[float, dict]:
    """
    Compute the confidence of a candidate group.

    Args:
        nodes: Members of the candidate
        sims: Invocation-wide cosine matrix indexed by ``TabNode.index``
        config: Engine configuration

    Returns:
        Tuple of (confidence, metrics)
    """
    avg_sim = average_similarity(nodes, sims)
    span = span_minutes(nodes)
    coherence = time_coherence(span, config)

    confidence = config.weights.sim * avg_sim + config.weights.time * coherence
    if has_workflow(nodes):
        confidence += config.workflow_bonus

    metrics = {
        "avgSim": round(avg_sim, 2),
        "spanMinutes": round(span, 2),
        "timeCoherence": round(coherence, 2),
    }
    return confidence, metrics


def validate_and_score(
    components: list[list[TabNode]],
    sims: np.ndarray,
    config: GroupingConfig,
    taken_names: set[str],
    session_index: int = 0,
) -> list[Group]:
    """
    Turn the components of one session into accepted, named groups.

    Components below ``min_group_size`` or ``min_confidence`` are dropped; their
    tabs stay ungrouped.

    Args:
        components: Candidate groups, in seed order
        sims: Invocation-wide cosine matrix indexed by ``TabNode.index``
        config: Engine configuration
        taken_names: Names already used in this invocation; updated in place
        session_index: Index of the session, recorded in debug output

    Returns:
        Accepted groups in component order
    """
    groups: list[Group] = []

    for component in components:
        if len(component) < config.min_group_size:
            continue

        confidence, metrics = score_component(component, sims, config)
        if confidence < config.min_confidence:
            logger.debug(
                f"Rejected component of {len(component)} tabs "
                f"(confidence {confidence:.2f} < {config.min_confidence})"
            )
            continue

        members = [n.id for n in component]
        name = unique_name(generate_group_name(component, config.phrase_ratio), taken_names)
        groups.append(
            Group(
                id=make_group_id(GroupType.SEMANTIC, members),
                title=name,
                members=members,
                confidence=confidence,
                type=GroupType.SEMANTIC,
                debug={**metrics, "session": session_index},
            )
        )

    return groups

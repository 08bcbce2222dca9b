"""
Grouping strategies and the single entry point that selects between them.

Three pipelines share the similarity primitives and the naming engine:

- domain: one bucket per site, every tab placed
- semantic: sessions -> similarity graph -> components -> scored, named groups
- hybrid: topic anchors first, then residual semantic clustering, then
  same-site fallback for whatever is left

Every pipeline is a pure function of its input. Malformed input never raises
out of `cluster()`; it comes back as a `GroupingResult` carrying a structured
error with every tab ungrouped.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
from pydantic import ValidationError

from tab_grouper.config import get_logger
from tab_grouper.grouping.classifier import detect_content_type
from tab_grouper.grouping.graph import (
    build_similarity_graph,
    build_threshold_graph,
    find_connected_components,
)
from tab_grouper.grouping.models import (
    Anchor,
    DomainGrouping,
    ErrorKind,
    Group,
    GroupingConfig,
    GroupingError,
    GroupingInputError,
    GroupingResult,
    GroupType,
    Strategy,
    TabDescriptor,
    TabNode,
    make_group_id,
)
from tab_grouper.grouping.naming import generate_group_name, unique_name
from tab_grouper.grouping.scoring import average_similarity, validate_and_score
from tab_grouper.grouping.sessions import segment_sessions
from tab_grouper.grouping.similarity import get_hostname, similarity_matrix, site_label

logger = get_logger(__name__)

OTHER_BUCKET = "Other"
RESIDUAL_SUFFIX = "(Ext)"
DOMAIN_FALLBACK_SUFFIX = "(Web)"

TabsInput = Sequence[Union[TabDescriptor, dict]]
EmbeddingsInput = Optional[Sequence[Sequence[float]]]


# ============================================================================
# Input preparation
# ============================================================================


def coerce_tabs(tabs: TabsInput) -> tuple[list[TabDescriptor], list[int]]:
    """
    Accept descriptors or plain dicts (``openTime`` or ``open_time``).

    Returns:
        Tuple of (tabs that parsed, positions of entries that did not)
    """
    parsed: list[TabDescriptor] = []
    invalid: list[int] = []
    for position, tab in enumerate(tabs):
        if isinstance(tab, TabDescriptor):
            parsed.append(tab)
            continue
        try:
            parsed.append(TabDescriptor.model_validate(tab))
        except ValidationError:
            invalid.append(position)
    return parsed, invalid


def coerce_anchors(anchors: Optional[Sequence[Union[Anchor, dict]]]) -> list[Anchor]:
    """
    Accept anchors or plain ``{"label", "embedding"}`` dicts.

    Raises:
        GroupingInputError: InvalidVector for a bad embedding, InputMismatch otherwise
    """
    result = []
    for position, anchor in enumerate(anchors or []):
        if isinstance(anchor, Anchor):
            result.append(anchor)
            continue
        try:
            result.append(Anchor.model_validate(anchor))
        except ValidationError as e:
            bad_vector = any(err["loc"][:1] == ("embedding",) for err in e.errors())
            kind = ErrorKind.INVALID_VECTOR if bad_vector else ErrorKind.INPUT_MISMATCH
            raise GroupingInputError(kind, f"Invalid anchor at position {position}") from e
    return result


def coerce_config(config: Union[GroupingConfig, dict, None]) -> GroupingConfig:
    if config is None:
        return GroupingConfig()
    if isinstance(config, GroupingConfig):
        return config
    return GroupingConfig.model_validate(config)


def prepare_nodes(tabs: list[TabDescriptor]) -> list[TabNode]:
    """Derive content type and hostname once per tab."""
    return [
        TabNode(
            index=i,
            tab=tab,
            content_type=detect_content_type(tab.title, tab.url),
            hostname=get_hostname(tab.url),
        )
        for i, tab in enumerate(tabs)
    ]


def check_unique_ids(tabs: list[TabDescriptor]) -> None:
    seen: set[int] = set()
    for tab in tabs:
        if tab.id in seen:
            raise GroupingInputError(ErrorKind.INPUT_MISMATCH, f"Duplicate tab id {tab.id}")
        seen.add(tab.id)


def to_matrix(vectors: Sequence[Sequence[float]], what: str) -> np.ndarray:
    """
    Stack vectors into a 2-D float matrix.

    Raises:
        GroupingInputError: If dimensions differ or values are not finite numbers
    """
    try:
        dims = {len(v) for v in vectors}
    except TypeError:
        raise GroupingInputError(ErrorKind.INVALID_VECTOR, f"{what} must be numeric sequences")

    if len(dims) > 1:
        raise GroupingInputError(
            ErrorKind.INVALID_VECTOR,
            f"Inconsistent {what} dimensions: {sorted(dims)}",
        )

    try:
        matrix = np.asarray(vectors, dtype=float)
    except (TypeError, ValueError):
        raise GroupingInputError(ErrorKind.INVALID_VECTOR, f"{what} must be numeric sequences")

    if not len(vectors):
        return matrix.reshape(0, 0)

    if matrix.ndim != 2:
        raise GroupingInputError(
            ErrorKind.INVALID_VECTOR,
            f"{what} must be flat vectors, got {matrix.ndim}-D input",
        )

    if not np.all(np.isfinite(matrix)):
        raise GroupingInputError(ErrorKind.INVALID_VECTOR, f"{what} contain non-finite values")

    return matrix


def validate_embeddings(embeddings: EmbeddingsInput, tab_count: int) -> np.ndarray:
    """
    Check embeddings against the tab list and stack them.

    Raises:
        GroupingInputError: EmbeddingUnavailable, InputMismatch or InvalidVector
    """
    if embeddings is None:
        raise GroupingInputError(ErrorKind.EMBEDDING_UNAVAILABLE, "No embeddings supplied")

    if len(embeddings) != tab_count:
        raise GroupingInputError(
            ErrorKind.INPUT_MISMATCH,
            f"Mismatch between tabs ({tab_count}) and embeddings ({len(embeddings)})",
        )

    return to_matrix(embeddings, "embeddings")


def make_anchors(labels: Sequence[str], embeddings: Sequence[Sequence[float]]) -> list[Anchor]:
    """Pair anchor labels with their embeddings, in order."""
    if len(labels) != len(embeddings):
        raise GroupingInputError(
            ErrorKind.INPUT_MISMATCH,
            f"Mismatch between anchor labels ({len(labels)}) and embeddings ({len(embeddings)})",
        )
    return coerce_anchors(
        [{"label": label, "embedding": vec} for label, vec in zip(labels, embeddings)]
    )


def domain_buckets(nodes: list[TabNode]) -> dict[Optional[str], list[TabNode]]:
    """Bucket tabs by hostname in first-seen order; hostless URLs share the None key."""
    buckets: dict[Optional[str], list[TabNode]] = {}
    for node in nodes:
        buckets.setdefault(node.hostname, []).append(node)
    return buckets


def bucket_label(hostname: Optional[str]) -> str:
    """Display name of a hostname bucket (en.wikipedia.org -> Wikipedia)."""
    return site_label(hostname) or OTHER_BUCKET


# ============================================================================
# Strategies
# ============================================================================


class GroupingStrategy(ABC):
    """Base class for the grouping pipelines."""

    strategy: Strategy

    def __init__(self, config: GroupingConfig):
        self.config = config

    @abstractmethod
    def run(
        self,
        tabs: list[TabDescriptor],
        embeddings: EmbeddingsInput = None,
        anchors: Optional[list[Anchor]] = None,
    ) -> Union[GroupingResult, DomainGrouping]:
        """Group ``tabs``; may raise `GroupingInputError` for malformed input."""


class DomainStrategy(GroupingStrategy):
    """
    Group tabs by hostname. No gating: every tab lands in exactly one bucket.

    Buckets are named after the site; two hostnames of one site
    (en.wikipedia.org, de.wikipedia.org) become "Wikipedia" and "Wikipedia (2)".
    """

    strategy = Strategy.DOMAIN

    def run(self, tabs, embeddings=None, anchors=None) -> DomainGrouping:
        taken_names: set[str] = set()
        buckets = {}
        for hostname, nodes in domain_buckets(prepare_nodes(tabs)).items():
            name = unique_name(bucket_label(hostname), taken_names)
            buckets[name] = [n.id for n in nodes]
        return DomainGrouping(buckets=buckets)


class SemanticStrategy(GroupingStrategy):
    """Session-isolated similarity-graph clustering with confidence scoring."""

    strategy = Strategy.SEMANTIC

    def run(self, tabs, embeddings=None, anchors=None) -> GroupingResult:
        check_unique_ids(tabs)
        vectors = validate_embeddings(embeddings, len(tabs))
        if not tabs:
            return GroupingResult(strategy=self.strategy)

        nodes = prepare_nodes(tabs)
        sims = similarity_matrix(vectors)

        sessions = segment_sessions(nodes, self.config.session_gap)
        logger.debug(f"Split {len(nodes)} tabs into {len(sessions)} sessions")

        taken_names: set[str] = set()
        groups: list[Group] = []
        for session_index, session in enumerate(sessions):
            edges = build_similarity_graph(session, sims, self.config)
            components = find_connected_components(session, edges)
            groups.extend(
                validate_and_score(components, sims, self.config, taken_names, session_index)
            )

        assigned = {tab_id for g in groups for tab_id in g.members}
        ungrouped = [n.id for n in nodes if n.id not in assigned]
        return GroupingResult(strategy=self.strategy, groups=groups, ungrouped=ungrouped)


class HybridStrategy(GroupingStrategy):
    """
    Three-phase grouping, each phase seeing only the tabs left by the previous.

    1. Anchor phase: each tab joins its best-matching topic anchor if the score
       exceeds ``threshold_anchor`` (ties go to the earlier anchor).
    2. Semantic-residual phase: connected components at ``threshold_semantic``
       over the remaining tabs, no session split.
    3. Domain-fallback phase: same-hostname buckets of the remaining tabs;
       tabs without a hostname are left ungrouped.
    """

    strategy = Strategy.HYBRID

    def run(self, tabs, embeddings=None, anchors=None) -> GroupingResult:
        check_unique_ids(tabs)
        vectors = validate_embeddings(embeddings, len(tabs))
        if not tabs:
            return GroupingResult(strategy=self.strategy)

        anchors = anchors or []
        anchor_matrix = to_matrix([a.embedding for a in anchors], "anchor embeddings")
        if anchors and anchor_matrix.shape[1] != vectors.shape[1]:
            raise GroupingInputError(
                ErrorKind.INVALID_VECTOR,
                f"Anchor dimension {anchor_matrix.shape[1]} does not match "
                f"embedding dimension {vectors.shape[1]}",
            )

        nodes = prepare_nodes(tabs)
        sims = similarity_matrix(vectors)
        taken_names: set[str] = set()
        assigned: set[int] = set()

        groups = self._anchor_phase(nodes, vectors, anchors, anchor_matrix, taken_names)
        assigned.update(tab_id for g in groups for tab_id in g.members)

        remaining = [n for n in nodes if n.id not in assigned]
        residual = self._residual_phase(remaining, sims, taken_names)
        assigned.update(tab_id for g in residual for tab_id in g.members)

        remaining = [n for n in nodes if n.id not in assigned]
        fallback = self._domain_phase(remaining, taken_names)
        assigned.update(tab_id for g in fallback for tab_id in g.members)

        logger.debug(
            f"Hybrid phases: {len(groups)} anchor, {len(residual)} residual, "
            f"{len(fallback)} domain groups"
        )

        ungrouped = [n.id for n in nodes if n.id not in assigned]
        return GroupingResult(
            strategy=self.strategy,
            groups=groups + residual + fallback,
            ungrouped=ungrouped,
        )

    def _anchor_phase(
        self,
        nodes: list[TabNode],
        vectors: np.ndarray,
        anchors: list[Anchor],
        anchor_matrix: np.ndarray,
        taken_names: set[str],
    ) -> list[Group]:
        if not anchors:
            return []

        scores = similarity_matrix(vectors, anchor_matrix)
        claimed: dict[int, list[tuple[TabNode, float]]] = {}
        for node in nodes:
            row = scores[node.index]
            # argmax returns the first maximum, i.e. the lowest anchor index
            best = int(np.argmax(row))
            score = float(row[best])
            if score > self.config.threshold_anchor:
                claimed.setdefault(best, []).append((node, score))

        groups = []
        for anchor_index in sorted(claimed):
            members = [node.id for node, _ in claimed[anchor_index]]
            avg_score = sum(score for _, score in claimed[anchor_index]) / len(members)
            label = anchors[anchor_index].label
            groups.append(
                Group(
                    id=make_group_id(GroupType.ANCHOR, members),
                    title=unique_name(label, taken_names),
                    members=members,
                    type=GroupType.ANCHOR,
                    debug={"anchor": label, "avgScore": round(avg_score, 2)},
                )
            )
        return groups

    def _residual_phase(
        self, nodes: list[TabNode], sims: np.ndarray, taken_names: set[str]
    ) -> list[Group]:
        edges = build_threshold_graph(nodes, sims, self.config.threshold_semantic)
        groups = []
        for component in find_connected_components(nodes, edges):
            if len(component) < self.config.min_group_size:
                continue
            members = [n.id for n in component]
            name = generate_group_name(component, self.config.phrase_ratio)
            groups.append(
                Group(
                    id=make_group_id(GroupType.RESIDUAL, members),
                    title=unique_name(name, taken_names, RESIDUAL_SUFFIX),
                    members=members,
                    type=GroupType.RESIDUAL,
                    debug={"avgSim": round(average_similarity(component, sims), 2)},
                )
            )
        return groups

    def _domain_phase(self, nodes: list[TabNode], taken_names: set[str]) -> list[Group]:
        groups = []
        for hostname, bucket in domain_buckets(nodes).items():
            # Hostless tabs and singleton buckets stay ungrouped
            if hostname is None or len(bucket) < self.config.min_group_size:
                continue
            members = [n.id for n in bucket]
            label = bucket_label(hostname)
            groups.append(
                Group(
                    id=make_group_id(GroupType.DOMAIN, members),
                    title=unique_name(label, taken_names, DOMAIN_FALLBACK_SUFFIX),
                    members=members,
                    type=GroupType.DOMAIN,
                    debug={"site": label, "hostname": hostname},
                )
            )
        return groups


STRATEGIES: dict[Strategy, type[GroupingStrategy]] = {
    Strategy.DOMAIN: DomainStrategy,
    Strategy.SEMANTIC: SemanticStrategy,
    Strategy.HYBRID: HybridStrategy,
}


# ============================================================================
# Entry points
# ============================================================================


def _failure(strategy: Strategy, tabs: list[TabDescriptor], error: GroupingInputError) -> GroupingResult:
    logger.warning(f"Grouping rejected input ({error.kind.value}): {error.message}")
    return GroupingResult(
        strategy=strategy,
        ungrouped=[t.id for t in tabs],
        error=GroupingError(kind=error.kind, message=error.message),
    )


def cluster(
    tabs: TabsInput,
    embeddings: EmbeddingsInput = None,
    config: Union[GroupingConfig, dict, None] = None,
    strategy: Union[Strategy, str] = Strategy.SEMANTIC,
    anchors: Optional[Sequence[Union[Anchor, dict]]] = None,
) -> Union[GroupingResult, DomainGrouping]:
    """
    Group a batch of tabs with the selected strategy.

    Args:
        tabs: Tab descriptors (or dicts) in caller order; ids must be unique
        embeddings: One vector per tab, same order (semantic/hybrid only)
        config: Overrides of the engine thresholds and weights
        strategy: "domain", "semantic" or "hybrid"
        anchors: Named topic embeddings (hybrid only)

    Returns:
        `DomainGrouping` for the domain strategy, otherwise a `GroupingResult`.
        Malformed input yields a `GroupingResult` whose ``error`` is set and
        whose ``ungrouped`` lists every tab that could be parsed.
    """
    strategy = Strategy(strategy)
    impl = STRATEGIES[strategy](coerce_config(config))
    tab_list, invalid = coerce_tabs(tabs)

    try:
        if invalid:
            raise GroupingInputError(
                ErrorKind.INPUT_MISMATCH,
                f"Invalid tab descriptors at positions {invalid}",
            )
        anchor_list = coerce_anchors(anchors)
        result = impl.run(tab_list, embeddings, anchor_list)
    except GroupingInputError as e:
        return _failure(strategy, tab_list, e)

    if isinstance(result, GroupingResult):
        logger.info(
            f"{strategy.value} grouping: {len(tab_list)} tabs -> "
            f"{len(result.groups)} groups, {len(result.ungrouped)} ungrouped"
        )
    else:
        logger.info(f"domain grouping: {len(tab_list)} tabs -> {len(result.buckets)} buckets")
    return result


class TabGrouper:
    """
    Convenience facade over `cluster()` bound to one configuration.

    Holds no state besides the configuration, so one instance can serve
    concurrent callers.

    Attributes:
        config: Engine thresholds and weights
    """

    def __init__(self, config: Union[GroupingConfig, dict, None] = None):
        self.config = coerce_config(config)

    def group(
        self,
        tabs: TabsInput,
        embeddings: EmbeddingsInput = None,
        strategy: Union[Strategy, str] = Strategy.SEMANTIC,
        anchors: Optional[Sequence[Union[Anchor, dict]]] = None,
    ) -> Union[GroupingResult, DomainGrouping]:
        return cluster(tabs, embeddings, self.config, strategy, anchors)

    def group_by_domain(self, tabs: TabsInput) -> dict[str, list[int]]:
        """Return ``{site name: [tab ids]}`` covering every tab (empty on malformed input)."""
        return cluster(tabs, config=self.config, strategy=Strategy.DOMAIN).group_map()

    def group_semantic(self, tabs: TabsInput, embeddings: EmbeddingsInput) -> GroupingResult:
        return cluster(tabs, embeddings, self.config, Strategy.SEMANTIC)

    def group_hybrid(
        self,
        tabs: TabsInput,
        embeddings: EmbeddingsInput,
        anchor_labels: Sequence[str] = (),
        anchor_embeddings: Sequence[Sequence[float]] = (),
    ) -> GroupingResult:
        """
        Run the hybrid pipeline with anchors given as parallel label/vector lists.

        A label/vector count mismatch is reported as an InputMismatch failure.
        """
        try:
            anchors = make_anchors(anchor_labels, anchor_embeddings)
        except GroupingInputError as e:
            return _failure(Strategy.HYBRID, coerce_tabs(tabs)[0], e)
        return cluster(tabs, embeddings, self.config, Strategy.HYBRID, anchors)

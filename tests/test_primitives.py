"""
Unit tests for the building blocks of the grouping pipeline.

Covers content classification, URL helpers, session segmentation, the
similarity graph, connected components and group naming.
"""

import numpy as np
import pytest

from tab_grouper.grouping.classifier import detect_content_type
from tab_grouper.grouping.graph import (
    build_similarity_graph,
    find_connected_components,
)
from tab_grouper.grouping.models import (
    ContentType,
    GroupingConfig,
    SimilarityEdge,
    TabDescriptor,
)
from tab_grouper.grouping.naming import generate_group_name, title_tokens, unique_name
from tab_grouper.grouping.sessions import segment_sessions
from tab_grouper.grouping.similarity import (
    cosine_similarity,
    get_hostname,
    similarity_matrix,
    site_label,
)
from tab_grouper.grouping.strategies import prepare_nodes

MINUTE = 60 * 1000


def nodes_for(*titles_and_urls, times=None):
    tabs = [
        TabDescriptor(id=i + 1, title=title, url=url, open_time=(times[i] if times else 0))
        for i, (title, url) in enumerate(titles_and_urls)
    ]
    return prepare_nodes(tabs)


class TestContentClassifier:
    """Tests for detect_content_type."""

    def test_stackoverflow_is_exploration(self):
        assert detect_content_type("python - asyncio gather", "https://stackoverflow.com/questions/1") is ContentType.EXPLORATION

    def test_reddit_url_is_exploration(self):
        assert detect_content_type("r/rust", "https://www.reddit.com/r/rust") is ContentType.EXPLORATION

    def test_mdn_is_reference(self):
        assert detect_content_type("Array.prototype.map()", "https://developer.mozilla.org/en-US/docs/Web") is ContentType.REFERENCE

    def test_exploration_wins_over_reference(self):
        """A search page on a docs site counts as exploration."""
        assert detect_content_type("Search docs", "https://docs.python.org/3/search.html") is ContentType.EXPLORATION

    def test_matching_is_case_insensitive(self):
        assert detect_content_type("API Reference", "https://example.com") is ContentType.REFERENCE

    def test_general(self):
        assert detect_content_type("Flights to Lisbon", "https://www.kayak.com/flights") is ContentType.GENERAL

    def test_missing_title_and_url(self):
        assert detect_content_type(None, None) is ContentType.GENERAL


class TestUrlHelpers:
    """Tests for hostname extraction and site labels."""

    def test_hostname_strips_www(self):
        assert get_hostname("https://www.GitHub.com/a") == "github.com"

    @pytest.mark.parametrize("url", ["", "not a url", "about:blank", "http://[::1"])
    def test_hostname_of_unparsable_urls(self, url):
        assert get_hostname(url) is None

    @pytest.mark.parametrize("hostname,label", [
        ("en.wikipedia.org", "Wikipedia"),
        ("github.com", "Github"),
        ("news.bbc.co.uk", "Bbc"),
        ("localhost", "Localhost"),
        ("127.0.0.1", "127.0.0.1"),
    ])
    def test_site_label(self, hostname, label):
        assert site_label(hostname) == label


class TestSimilarity:
    """Tests for cosine similarity helpers."""

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_matrix_matches_pairwise(self):
        vectors = np.array([[1.0, 0.0], [1.0, 1.0], [0.0, 0.0]])

        sims = similarity_matrix(vectors)

        assert sims[0, 1] == pytest.approx(cosine_similarity([1.0, 0.0], [1.0, 1.0]))
        assert sims[0, 0] == pytest.approx(1.0)
        assert sims[2, 2] == 0.0
        assert not np.isnan(sims).any()


class TestSessions:
    """Tests for time-based session segmentation."""

    def test_split_on_gap(self):
        nodes = nodes_for(("a", ""), ("b", ""), ("c", ""), times=[0, 10 * MINUTE, 70 * MINUTE])

        sessions = segment_sessions(nodes, 45 * MINUTE)

        assert [[n.id for n in s] for s in sessions] == [[1, 2], [3]]

    def test_gap_equal_to_threshold_stays_in_session(self):
        nodes = nodes_for(("a", ""), ("b", ""), times=[0, 45 * MINUTE])

        assert len(segment_sessions(nodes, 45 * MINUTE)) == 1

    def test_sorted_by_time_with_stable_ties(self):
        nodes = nodes_for(("a", ""), ("b", ""), ("c", ""), times=[5, 0, 5])

        sessions = segment_sessions(nodes, 45 * MINUTE)

        assert [n.id for n in sessions[0]] == [2, 1, 3]

    def test_sessions_partition_input(self):
        times = [0, 90 * MINUTE, 1, 200 * MINUTE, 91 * MINUTE]
        nodes = nodes_for(*[(str(t), "") for t in times], times=times)

        sessions = segment_sessions(nodes, 45 * MINUTE)

        ids = [n.id for s in sessions for n in s]
        assert sorted(ids) == [1, 2, 3, 4, 5]
        assert all(sessions)

    def test_empty(self):
        assert segment_sessions([], 45 * MINUTE) == []


class TestSimilarityGraph:
    """Tests for edge construction and connected components."""

    def test_low_similarity_pairs_are_pruned(self):
        nodes = nodes_for(("react hooks - Google Search", "https://google.com/search?q=x"),
                          ("Hooks API Reference", "https://react.dev/reference"))
        # 0.29 is below the prune floor, so even the affinity boost cannot help
        sims = np.array([[1.0, 0.29], [0.29, 1.0]])

        assert build_similarity_graph(nodes, sims, GroupingConfig()) == []

    def test_edge_debug_carries_raw_and_adjusted(self):
        nodes = nodes_for(("A", "https://a.com/1"), ("B", "https://a.com/2"))
        sims = np.array([[1.0, 0.8], [0.8, 1.0]])

        edges = build_similarity_graph(nodes, sims, GroupingConfig())

        assert len(edges) == 1
        assert edges[0].weight == pytest.approx(0.76)
        assert edges[0].debug == {"raw": 0.8, "adjusted": 0.76}

    def test_components_in_node_order(self):
        nodes = nodes_for(("a", ""), ("b", ""), ("c", ""), ("d", ""))
        edges = [
            SimilarityEdge(source=4, target=1, weight=0.9),
            SimilarityEdge(source=2, target=3, weight=0.9),
        ]

        components = find_connected_components(nodes, edges)

        assert [[n.id for n in c] for c in components] == [[1, 4], [2, 3]]

    def test_singletons_are_components(self):
        nodes = nodes_for(("a", ""), ("b", ""))

        components = find_connected_components(nodes, [])

        assert [[n.id for n in c] for c in components] == [[1], [2]]

    def test_visited_tabs_are_skipped(self):
        nodes = nodes_for(("a", ""), ("b", ""), ("c", ""))
        edges = [SimilarityEdge(source=1, target=2, weight=0.9)]
        visited = {1}

        components = find_connected_components(nodes, edges, visited)

        assert [[n.id for n in c] for c in components] == [[2], [3]]
        assert visited == {1, 2, 3}

    def test_long_chain_does_not_recurse(self):
        count = 5000
        nodes = nodes_for(*[(str(i), "") for i in range(count)])
        edges = [SimilarityEdge(source=i, target=i + 1, weight=1.0) for i in range(1, count)]

        components = find_connected_components(nodes, edges)

        assert len(components) == 1
        assert len(components[0]) == count


class TestNaming:
    """Tests for group name generation and disambiguation."""

    def test_common_phrase_wins(self):
        nodes = nodes_for(
            ("Chewy Chocolate Chip Cookie Recipe", ""),
            ("Brown Butter Cookie Recipe", ""),
            ("Soft Sugar Cookie Recipe", ""),
        )

        assert generate_group_name(nodes) == "Cookie Recipe"

    def test_falls_back_to_top_word(self):
        nodes = nodes_for(
            ("Python decorators", ""),
            ("Python generators", ""),
            ("Python typing", ""),
            ("Async python", ""),
        )

        assert generate_group_name(nodes) == "Python"

    def test_falls_back_to_first_host_label(self):
        nodes = nodes_for(("Home", "https://docs.python.org/3/"), ("Welcome", "https://peps.python.org"))

        assert generate_group_name(nodes) == "Docs"

    def test_falls_back_to_group(self):
        nodes = nodes_for(("New Tab", ""), ("", ""))

        assert generate_group_name(nodes) == "Group"

    def test_tokens_drop_punctuation_and_short_words(self):
        assert title_tokens("C++ vs. Rust: a comparison!") == ["rust", "comparison"]

    def test_unique_name_counters(self):
        taken = set()

        names = [unique_name("Docs", taken) for _ in range(3)]

        assert names == ["Docs", "Docs (2)", "Docs (3)"]

    def test_unique_name_with_suffix(self):
        taken = {"Docs"}

        first = unique_name("Docs", taken, "(Ext)")
        second = unique_name("Docs", taken, "(Ext)")

        assert first == "Docs (Ext)"
        assert second == "Docs (Ext) (2)"
        assert taken == {"Docs", "Docs (Ext)", "Docs (Ext) (2)"}

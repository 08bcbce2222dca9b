"""
Deterministic group naming from tab titles.

Names come from word and two-word phrase frequencies across the titles of a
group, falling back to the site of the first member and finally to "Group".
"""

import math
import re
from collections import Counter
from typing import Optional

from tab_grouper.grouping.models import TabNode
from tab_grouper.grouping.similarity import first_label, title_case

STOP_WORDS = frozenset({
    # articles, prepositions, conjunctions
    'the', 'and', 'or', 'a', 'an', 'of', 'in', 'on', 'at', 'to', 'for', 'with',
    'by', 'from', 'up', 'about', 'into', 'over', 'after', 'vs', 'via', 'your',
    'you', 'this', 'that', 'are', 'is', 'was', 'not', 'but',
    # generic web terms
    'new', 'tab', 'page', 'home', 'index', 'welcome', 'login', 'signup', 'sign',
    'log', 'how', 'what', 'when', 'where', 'why', 'best', 'top', 'get', 'make',
    'find', 'www', 'com', 'http', 'https', 'html',
    # brands
    'google', 'search', 'github', 'youtube', 'amazon', 'stackoverflow', 'reddit',
    'facebook', 'twitter', 'linkedin', 'wikipedia', 'medium',
})

DEFAULT_GROUP_NAME = "Group"

_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def title_tokens(title: str) -> list[str]:
    """
    Normalize a title and return its meaningful words in order.

    Lowercases, replaces characters outside ``[a-z0-9 ]`` with spaces, and drops
    stop words and tokens of two characters or fewer.
    """
    clean = _NON_ALNUM.sub(" ", (title or "").lower()).strip()
    return [w for w in clean.split() if len(w) > 2 and w not in STOP_WORDS]


def generate_group_name(nodes: list[TabNode], phrase_ratio: float = 0.5) -> str:
    """
    Generate a name for a group of tabs.

    Precedence:
        1. The most common two-word phrase, if it occurs in at least
           ``ceil(len(nodes) * phrase_ratio)`` titles
        2. The most frequent single word
        3. The first DNS label of the first member's URL
        4. "Group"

    Ties go to the phrase or word seen first.

    Args:
        nodes: Members of the group, in group order
        phrase_ratio: Share of titles a phrase must appear in

    Returns:
        Title-cased group name
    """
    if not nodes:
        return DEFAULT_GROUP_NAME

    word_counts: Counter[str] = Counter()
    phrase_counts: Counter[str] = Counter()

    for node in nodes:
        words = title_tokens(node.title)
        word_counts.update(words)
        # Phrases are counted once per title
        phrases = dict.fromkeys(f"{w1} {w2}" for w1, w2 in zip(words, words[1:]))
        phrase_counts.update(phrases.keys())

    if phrase_counts:
        phrase, count = phrase_counts.most_common(1)[0]
        if count >= math.ceil(len(nodes) * phrase_ratio):
            return title_case(phrase)

    if word_counts:
        word, _ = word_counts.most_common(1)[0]
        return title_case(word)

    return first_label(nodes[0].url) or DEFAULT_GROUP_NAME


def unique_name(name: str, taken: set[str], suffix: Optional[str] = None) -> str:
    """
    Return a name not in ``taken`` and reserve it.

    A colliding name first gets ``suffix`` appended (e.g. "(Ext)"); if that is
    taken too, or no suffix is given, " (2)", " (3)", ... are tried in turn.

    Args:
        name: Preferred name
        taken: Names already used in this invocation; updated in place
        suffix: Strategy-specific disambiguation suffix

    Returns:
        The reserved name
    """
    candidate = name
    if candidate in taken and suffix:
        candidate = f"{name} {suffix}"

    base = candidate
    counter = 2
    while candidate in taken:
        candidate = f"{base} ({counter})"
        counter += 1

    taken.add(candidate)
    return candidate

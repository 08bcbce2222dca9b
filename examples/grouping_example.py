"""
Example demonstrating the three grouping strategies.

This example shows:
1. Domain grouping (no embeddings needed)
2. Semantic grouping with session isolation and confidence scores
3. Hybrid grouping with topic anchors

Embeddings are hand-made 4-dimensional vectors so the example runs offline;
in the service they come from the OpenAI embeddings API.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tab_grouper.config import setup_logging
from tab_grouper.grouping import Anchor, TabDescriptor, TabGrouper

MINUTE = 60 * 1000

TABS = [
    TabDescriptor(id=1, title="Chewy Chocolate Chip Cookie Recipe", url="https://www.allrecipes.com/cookies", open_time=0),
    TabDescriptor(id=2, title="Best Chocolate Chip Cookie Recipe Ever", url="https://www.bonappetit.com/recipe", open_time=1 * MINUTE),
    TabDescriptor(id=3, title="Brown Butter Cookie Recipe", url="https://www.seriouseats.com/cookies", open_time=2 * MINUTE),
    TabDescriptor(id=4, title="useEffect - React", url="https://react.dev/reference/react/useEffect", open_time=3 * MINUTE),
    TabDescriptor(id=5, title="react useeffect cleanup - Google Search", url="https://www.google.com/search?q=useeffect", open_time=4 * MINUTE),
    TabDescriptor(id=6, title="Flights to Lisbon", url="https://www.kayak.com/flights", open_time=120 * MINUTE),
]

EMBEDDINGS = [
    [0.9, 0.1, 0.0, 0.0],
    [0.88, 0.12, 0.0, 0.05],
    [0.85, 0.15, 0.05, 0.0],
    [0.0, 0.9, 0.3, 0.0],
    [0.05, 0.85, 0.35, 0.0],
    [0.0, 0.0, 0.1, 0.95],
]

ANCHORS = [
    Anchor(label="Coding", embedding=[0.0, 1.0, 0.2, 0.0]),
    Anchor(label="Travel", embedding=[0.0, 0.0, 0.0, 1.0]),
]


def main():
    """Run grouping example."""
    setup_logging("INFO")
    grouper = TabGrouper()

    print("=" * 80)
    print("Domain grouping")
    print("=" * 80)
    for name, ids in grouper.group_by_domain(TABS).items():
        print(f"  {name}: {ids}")
    print()

    print("=" * 80)
    print("Semantic grouping")
    print("=" * 80)
    result = grouper.group_semantic(TABS, EMBEDDINGS)
    for group in result.groups:
        print(f"  {group.title}: {group.members} (confidence {group.confidence:.2f}, {group.debug})")
    print(f"  Ungrouped: {result.ungrouped}")
    print()

    print("=" * 80)
    print("Hybrid grouping")
    print("=" * 80)
    result = grouper.group(TABS, EMBEDDINGS, strategy="hybrid", anchors=ANCHORS)
    for group in result.groups:
        print(f"  [{group.type.value}] {group.title}: {group.members}")
    print(f"  Ungrouped: {result.ungrouped}")


if __name__ == "__main__":
    main()

"""
Shared fixtures for grouping engine tests.

Embeddings are built from orthonormal axes so that cosine similarities in
tests are exact and easy to reason about.
"""

import math

import pytest

from tab_grouper.grouping.models import TabDescriptor

DIM = 16
MINUTE = 60 * 1000


def _basis(i: int, dim: int = DIM) -> list[float]:
    vec = [0.0] * dim
    vec[i] = 1.0
    return vec


def _correlated(n: int, cos: float, shared_axis: int = 0, first_unique: int = 1, dim: int = DIM) -> list[list[float]]:
    """n unit vectors whose pairwise cosine similarity is exactly ``cos``."""
    a = math.sqrt(cos)
    b = math.sqrt(1.0 - cos)
    vectors = []
    for k in range(n):
        vec = [0.0] * dim
        vec[shared_axis] = a
        vec[first_unique + k] = b
        vectors.append(vec)
    return vectors


@pytest.fixture
def basis():
    """Factory for unit vectors along one axis."""
    return _basis


@pytest.fixture
def correlated():
    """Factory for groups of vectors with a fixed pairwise cosine."""
    return _correlated


@pytest.fixture
def cookie_tabs():
    """Five cookie-recipe tabs opened within three minutes on different sites."""
    return [
        TabDescriptor(id=1, title="Chewy Chocolate Chip Cookie Recipe", url="https://www.allrecipes.com/chewy", open_time=0),
        TabDescriptor(id=2, title="Best Chocolate Chip Cookie Recipe Ever", url="https://www.bonappetit.com/best", open_time=30_000),
        TabDescriptor(id=3, title="Brown Butter Cookie Recipe", url="https://www.seriouseats.com/brown-butter", open_time=MINUTE),
        TabDescriptor(id=4, title="Soft Sugar Cookie Recipe", url="https://sallysbakingaddiction.com/sugar", open_time=2 * MINUTE),
        TabDescriptor(id=5, title="Easy Oatmeal Cookie Recipe", url="https://www.foodnetwork.com/oatmeal", open_time=3 * MINUTE),
    ]

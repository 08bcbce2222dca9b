"""
Similarity and URL primitives shared by every grouping strategy.
"""

import ipaddress
from typing import Optional
from urllib.parse import urlparse

import numpy as np

# Second-level labels that are not a site name (bbc.co.uk -> "bbc")
_GENERIC_SECOND_LEVEL = {"co", "com", "org", "net", "gov", "ac", "edu"}


def cosine_similarity(embedding1: list[float], embedding2: list[float]) -> float:
    """
    Calculate cosine similarity between two embeddings.

    Args:
        embedding1: First embedding vector
        embedding2: Second embedding vector

    Returns:
        Cosine similarity score (-1 to 1); 0.0 if either vector has zero magnitude
    """
    vec1 = np.asarray(embedding1, dtype=float)
    vec2 = np.asarray(embedding2, dtype=float)

    # Handle zero vectors
    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)

    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.dot(vec1, vec2) / (norm1 * norm2))


def similarity_matrix(vectors: np.ndarray, others: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Pairwise cosine similarities between the rows of two matrices.

    Rows with zero magnitude score 0.0 against everything.

    Args:
        vectors: (n, d) matrix
        others: (m, d) matrix; defaults to ``vectors``

    Returns:
        (n, m) matrix of cosine similarities
    """
    if others is None:
        others = vectors

    norms = np.linalg.norm(vectors, axis=1)
    other_norms = np.linalg.norm(others, axis=1)

    safe = np.where(norms == 0, 1.0, norms)
    safe_other = np.where(other_norms == 0, 1.0, other_norms)

    sims = (vectors / safe[:, None]) @ (others / safe_other[:, None]).T
    # Zero rows were divided by 1 and are still zero, so their dot products are 0
    return sims


def get_hostname(url: str) -> Optional[str]:
    """
    Extract the lowercase hostname of a URL with a leading "www." stripped.

    Returns:
        Hostname, or None if the URL has none or cannot be parsed
    """
    if not url:
        return None
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname or None


def capitalize(word: str) -> str:
    """Uppercase the first character only ("github" -> "Github")."""
    return word[:1].upper() + word[1:]


def title_case(phrase: str) -> str:
    """Capitalize every space-separated word of a phrase."""
    return " ".join(capitalize(w) for w in phrase.split(" "))


def site_label(hostname: Optional[str]) -> Optional[str]:
    """
    Name of the site behind a hostname, capitalized.

    Examples:
        en.wikipedia.org -> Wikipedia
        github.com -> Github
        news.bbc.co.uk -> Bbc
        localhost -> Localhost
    """
    if not hostname:
        return None

    try:
        ipaddress.ip_address(hostname)
        return hostname
    except ValueError:
        pass

    parts = [p for p in hostname.split(".") if p]
    if not parts:
        return None
    if len(parts) == 1:
        return capitalize(parts[0])

    label = parts[-2]
    if len(parts) >= 3 and label in _GENERIC_SECOND_LEVEL:
        label = parts[-3]
    return capitalize(label)


def first_label(url: str) -> Optional[str]:
    """First DNS label of a URL's hostname, capitalized (docs.python.org -> Docs)."""
    hostname = get_hostname(url)
    if not hostname:
        return None
    label = hostname.split(".")[0]
    return capitalize(label) if label else None

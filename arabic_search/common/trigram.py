"""
Trigram similarity with PostgreSQL pg_trgm semantics.

Registered as the SQL function ``similarity(a, b)`` on SQLite connections so
the candidate source can run the fuzzy supplement/fallback queries.
"""

import re
from typing import FrozenSet, Optional

_WORD_SPLIT = re.compile(r'[^\w]+', re.UNICODE)


def trigrams(text: Optional[str]) -> FrozenSet[str]:
    """
    Extract the set of trigrams of a text.

    Each alphanumeric word is lowercased and padded with two spaces in front
    and one behind before slicing, as pg_trgm does.
    """
    if not text:
        return frozenset()

    grams = set()
    for word in _WORD_SPLIT.split(text.lower()):
        word = word.replace('_', '')
        if not word:
            continue
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i:i + 3])

    return frozenset(grams)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """Shared trigrams over all distinct trigrams of both strings."""
    grams_a = trigrams(a)
    grams_b = trigrams(b)

    if not grams_a or not grams_b:
        return 0.0

    return len(grams_a & grams_b) / len(grams_a | grams_b)


def register(connection):
    """Expose similarity() to SQL on a sqlite3 connection."""
    connection.create_function("similarity", 2, similarity, deterministic=True)

"""
TF-IDF vectors over a request-scoped vocabulary.

The vocabulary is built from the candidate batch only, so vectors stay as
small as the candidate set allows. IDF values come from the term statistics
store; terms it does not know get ln(total_docs).

Vector formula:
    v[t] = (count(t, D) / |D|) * IDF(t), then L2-normalized
"""

import math
from collections import Counter
from typing import List, Dict, Iterable, Optional
import logging

from ..common.text_normalizer import normalize

logger = logging.getLogger('search')


def vocabulary_tokens(text: Optional[str]) -> List[str]:
    """Normalized tokens longer than one character."""
    return [word for word in normalize(text or '').split() if len(word) > 1]


def build_vocabulary(documents: Iterable[str]) -> Dict[str, int]:
    """
    Assign a dense index to every token of a document batch.

    Args:
        documents: Document texts

    Returns:
        Mapping token -> index in first-seen order
    """
    vocabulary: Dict[str, int] = {}
    for text in documents:
        for word in vocabulary_tokens(text):
            if word not in vocabulary:
                vocabulary[word] = len(vocabulary)
    return vocabulary


def vectorize(
    text: Optional[str],
    vocabulary: Dict[str, int],
    idf: Dict[str, float],
    total_docs: int
) -> List[float]:
    """
    Build the L2-normalized TF-IDF vector of a text.

    Args:
        text: Text to vectorize
        vocabulary: Token -> index mapping from build_vocabulary()
        idf: Token -> IDF mapping (may be incomplete)
        total_docs: Corpus size used for the ln(total_docs) fallback

    Returns:
        Vector of len(vocabulary) floats (all zero when nothing matches)
    """
    vector = [0.0] * len(vocabulary)

    words = vocabulary_tokens(text)
    if not words:
        return vector

    fallback_idf = math.log(total_docs) if total_docs > 0 else 0.0

    for word, count in Counter(words).items():
        index = vocabulary.get(word)
        if index is None:
            continue
        tf = count / len(words)
        vector[index] = tf * (idf.get(word) or fallback_idf)

    magnitude = math.sqrt(sum(value * value for value in vector))
    if magnitude > 0:
        return [value / magnitude for value in vector]

    return vector


def cosine_similarity(v1: Optional[List[float]], v2: Optional[List[float]]) -> float:
    """
    Cosine similarity of two pre-normalized vectors, clamped to [0, 1].

    Returns 0 when either vector is missing or their lengths differ.
    """
    if not v1 or not v2 or len(v1) != len(v2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(v1, v2))
    return max(0.0, min(1.0, dot_product))

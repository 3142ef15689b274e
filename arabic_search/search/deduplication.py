"""
Two-phase result deduplication.

Phase 1 (always): hash-based. A result whose location (file + page) was
already seen with the same content key, or whose content key was already
seen, is a duplicate; the higher re_rank_score instance survives.

Phase 2 (optional, DEDUP_CONFIG['similarity_phase_enabled']): pairwise text
similarity against the survivors of phase 1, dropping results at or above
the similarity threshold.
"""

import time
from typing import List, Dict, Optional, Any, TypeVar
import logging

from ..common.text_normalizer import normalize, normalize_lower, edit_distance
from .models import RankedDocument
from config.search_config import DEDUP_CONFIG

logger = logging.getLogger('search')

Doc = TypeVar('Doc', bound=RankedDocument)


def generate_text_hash(text: Optional[str], prefix_chars: int = 100) -> str:
    """
    Content key of a snippet.

    The normalized, lowercased, whitespace-collapsed text truncated to
    prefix_chars, suffixed with the full normalized length.
    """
    if not text:
        return ''
    normalized = ' '.join(normalize_lower(text).split())
    return f"{normalized[:prefix_chars]}_{len(normalized)}"


def generate_location_hash(doc: RankedDocument) -> str:
    """Location key of a result (file id + page index)."""
    return f"{doc.file_id}_{doc.page_index}"


def calculate_text_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """
    Similarity of two snippets in [0, 1].

    0.5 * word Jaccard + 0.3 * Levenshtein similarity + 0.2 * length ratio.
    Texts whose lengths differ by more than half of the longer one score 0.
    """
    norm1 = normalize(text1 or '')
    norm2 = normalize(text2 or '')

    if norm1 == norm2:
        return 1.0

    len1, len2 = len(norm1), len(norm2)
    if len1 == 0 or len2 == 0:
        return 0.0

    max_len = max(len1, len2)
    if abs(len1 - len2) > max_len * 0.5:
        return 0.0

    words1 = {w for w in norm1.split() if len(w) > 1}
    words2 = {w for w in norm2.split() if len(w) > 1}
    if not words1 or not words2:
        return 0.0

    jaccard = len(words1 & words2) / len(words1 | words2)
    lev_similarity = 1 - (edit_distance(norm1, norm2) / max_len)
    length_ratio = min(len1, len2) / max_len

    return jaccard * 0.5 + lev_similarity * 0.3 + length_ratio * 0.2


def _hash_dedup(results: List[Doc], prefix_chars: int) -> List[Doc]:
    seen_locations: Dict[str, Doc] = {}
    seen_hashes: Dict[str, Doc] = {}
    kept: List[Doc] = []

    for result in results:
        is_duplicate = False
        replaced = None
        text_hash = generate_text_hash(result.text_snippet, prefix_chars)
        location = generate_location_hash(result)

        existing = seen_locations.get(location)
        if existing is None:
            seen_locations[location] = result
        elif text_hash and text_hash == generate_text_hash(existing.text_snippet, prefix_chars):
            # Same place, same content
            is_duplicate = True
            if result.re_rank_score > existing.re_rank_score:
                seen_locations[location] = result
                if seen_hashes.get(text_hash) is existing:
                    seen_hashes[text_hash] = result
                replaced = existing

        if not is_duplicate and text_hash:
            existing = seen_hashes.get(text_hash)
            if existing is None:
                seen_hashes[text_hash] = result
            else:
                is_duplicate = True
                if result.re_rank_score > existing.re_rank_score:
                    seen_hashes[text_hash] = result
                    replaced = existing

        if not is_duplicate:
            kept.append(result)
        elif replaced is not None:
            kept = [doc for doc in kept if doc is not replaced]
            kept.append(result)

    return kept


def _similarity_dedup(results: List[Doc], threshold: float) -> List[Doc]:
    kept: List[Doc] = []
    for result in sorted(results, key=lambda d: d.re_rank_score, reverse=True):
        if any(
            calculate_text_similarity(result.text_snippet, other.text_snippet) >= threshold
            for other in kept
        ):
            continue
        kept.append(result)
    return kept


def deduplicate_results(
    results: List[Doc],
    config: Optional[Dict[str, Any]] = None
) -> List[Doc]:
    """
    Remove duplicate results, keeping the higher-scoring instance.

    Args:
        results: Ranked documents in score order
        config: Dedup settings (defaults to DEDUP_CONFIG)

    Returns:
        Unique documents sorted by re_rank_score, best first
    """
    if not results:
        return []

    config = config or DEDUP_CONFIG
    start = time.perf_counter()

    unique = _hash_dedup(list(results), config['hash_prefix_chars'])
    hash_removed = len(results) - len(unique)

    similarity_removed = 0
    if config['similarity_phase_enabled']:
        before = len(unique)
        unique = _similarity_dedup(unique, config['similarity_threshold'])
        similarity_removed = before - len(unique)

    unique.sort(key=lambda d: d.re_rank_score, reverse=True)

    logger.debug(
        f"Dedup removed {hash_removed} by hash, {similarity_removed} by similarity "
        f"in {(time.perf_counter() - start) * 1000:.1f}ms"
    )
    return unique

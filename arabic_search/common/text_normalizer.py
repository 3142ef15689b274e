"""
Arabic text normalization, fuzzy matching and phonetic distance.

Everything in the ranking pipeline compares text through this module:
- normalize() folds Arabic/Persian orthographic variants to one form
- edit_distance() / phonetic_distance() compare single tokens
- fuzzy_variants() / fuzzy_match() find approximate spellings in a text
- word_root() gives a crude morphological stem
- TextNormalizer cleans raw (possibly HTML) snippets before loading
"""

import re
import html
from dataclasses import dataclass
from typing import List, Optional
import logging

from ..search.lexicon import (
    PHONETIC_SIMILARITY_MAP,
    ROOT_PREFIXES,
    VARIANT_PREFIXES,
)

logger = logging.getLogger(__name__)


# Variant glyph -> canonical glyph (None removes the character)
_NORMALIZATION_TABLE = {}
for _source, _target in (
    ("إأٱآا", "ا"),
    ("ىيئ", "ي"),
    ("ة", "ه"),
    ("ھۀ", "ه"),
    ("ک", "ك"),
    ("ؤ", "و"),
    ("پ", "ب"),
    ("چ", "ج"),
    ("ژ", "ز"),
    ("گ", "ك"),
):
    for _char in _source:
        _NORMALIZATION_TABLE[ord(_char)] = _target

# Harakat, tanween, shadda, sukun and the other combining marks
for _codepoint in range(0x064B, 0x0660):
    _NORMALIZATION_TABLE[_codepoint] = None
_NORMALIZATION_TABLE[0x0670] = None

MAX_FUZZY_VARIANTS = 15
MAX_TRANSPOSITIONS = 5
MAX_PHONETIC_SUBSTITUTIONS = 3
PHONETIC_CUTOFF = 100


def normalize(text: Optional[str]) -> str:
    """
    Map Arabic/Persian orthographic variants to canonical forms.

    Hamza-bearing alef forms become bare alef, yeh forms become yeh,
    teh marbuta becomes heh, Persian letters fold to their Arabic
    counterparts and combining diacritics are removed.

    The function is total and idempotent.

    Args:
        text: Raw text (None is treated as empty)

    Returns:
        Normalized text
    """
    if not text:
        return ""
    return text.translate(_NORMALIZATION_TABLE)


def normalize_lower(text: Optional[str]) -> str:
    """Lowercase then normalize; used wherever Latin text may appear."""
    return normalize((text or "").lower())


def tokenize(text: Optional[str]) -> List[str]:
    """Split text on whitespace."""
    return (text or "").split()


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between the normalized forms of two strings.

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning normalize(a) into normalize(b)
    """
    a = normalize(a)
    b = normalize(b)

    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost
            ))
        previous = current

    return previous[-1]


def fuzzy_score(term1: str, term2: str) -> float:
    """Similarity in [0, 1] derived from edit distance."""
    max_length = max(len(term1), len(term2))
    if max_length == 0:
        return 1.0
    return 1 - (edit_distance(term1, term2) / max_length)


def are_phonetically_similar(char1: str, char2: str) -> bool:
    """
    Check whether two letters are equal or listed as confusable.

    The confusability table is directional, so the lookup uses char1 as key.
    """
    if char1 == char2:
        return True

    if normalize(char1) == normalize(char2):
        return True

    return char2 in PHONETIC_SIMILARITY_MAP.get(char1, ())


def phonetic_distance(word1: str, word2: str) -> float:
    """
    Position-by-position phonetic distance between two words.

    Exact letters add 0, confusable letters add 0.5, anything else adds 2.
    The length difference is charged 2 per character up front, and a
    difference above 3 returns PHONETIC_CUTOFF (no phonetic relation).

    Args:
        word1: First word
        word2: Second word

    Returns:
        Distance (0 for identical words)
    """
    length_diff = abs(len(word1) - len(word2))
    if length_diff > 3:
        return PHONETIC_CUTOFF

    distance = length_diff * 2.0
    for i in range(max(len(word1), len(word2))):
        char1 = word1[i] if i < len(word1) else ""
        char2 = word2[i] if i < len(word2) else ""

        if char1 == char2:
            continue
        if are_phonetically_similar(char1, char2):
            distance += 0.5
        else:
            distance += 2

    return distance


def fuzzy_variants(word: str) -> List[str]:
    """
    Generate approximate spellings of a word.

    Produces the normalized form, adjacent-character transpositions,
    single phonetic substitutions (first confusable letter only) and
    definite-article/conjunction prefix toggling. Words shorter than
    3 characters only yield themselves.

    Args:
        word: Word to expand

    Returns:
        Ordered list of at most MAX_FUZZY_VARIANTS unique variants,
        the word itself first
    """
    if not word or len(word) < 3:
        return [word]

    variants = {}

    def add(variant: str):
        if len(variants) < MAX_FUZZY_VARIANTS:
            variants.setdefault(variant, None)

    add(word)
    add(normalize(word))

    for i in range(min(MAX_TRANSPOSITIONS, len(word) - 1)):
        transposed = word[:i] + word[i + 1] + word[i] + word[i + 2:]
        add(transposed)
        add(normalize(transposed))

    for i in range(min(MAX_PHONETIC_SUBSTITUTIONS, len(word))):
        similar = PHONETIC_SIMILARITY_MAP.get(word[i])
        if similar:
            add(word[:i] + similar[0] + word[i + 1:])

    for prefix in VARIANT_PREFIXES:
        if word.startswith(prefix):
            add(word[len(prefix):])
        else:
            add(prefix + word)

    return list(variants)


@dataclass
class FuzzyMatch:
    """A token of a text that approximately matches a query word."""
    match: str
    score: float
    position: int
    match_type: str  # "exact" or "fuzzy"
    lev_distance: Optional[int] = None
    phonetic_distance: Optional[float] = None


def fuzzy_match(word: str, text: str, threshold: float = 0.7) -> List[FuzzyMatch]:
    """
    Find tokens of a text that approximately match a word.

    Tokens equal to the word or one of its fuzzy variants score 1.0.
    Otherwise, for tokens within 2 characters of the word's length, the
    score is 0.6 * Levenshtein similarity + 0.4 * phonetic similarity.
    Tokens shorter than 2 characters or more than 3 characters longer or
    shorter than the word are skipped.

    Args:
        word: Query word
        text: Text to scan
        threshold: Minimum score to keep a token

    Returns:
        Matches sorted by score, best first
    """
    if not word or not text:
        return []

    normalized_word = normalize_lower(word)
    variants = set(fuzzy_variants(normalized_word))
    matches = []

    for index, token in enumerate(tokenize(normalize_lower(text))):
        if len(token) < 2:
            continue

        if token == normalized_word or token in variants:
            matches.append(FuzzyMatch(token, 1.0, index, "exact"))
            continue

        length_diff = abs(len(token) - len(normalized_word))
        if length_diff > 2:
            continue

        lev_distance = edit_distance(normalized_word, token)
        if lev_distance > 3:
            continue

        max_len = max(len(normalized_word), len(token))
        lev_similarity = 1 - (lev_distance / max_len)
        if lev_similarity < 0.6:
            continue

        phon_distance = phonetic_distance(normalized_word, token)
        phonetic_similarity = 1 / (1 + phon_distance / 10)
        score = (lev_similarity * 0.6) + (phonetic_similarity * 0.4)

        if score >= threshold:
            matches.append(FuzzyMatch(
                token, score, index, "fuzzy",
                lev_distance=lev_distance,
                phonetic_distance=phon_distance
            ))

    matches.sort(key=lambda m: m.score, reverse=True)
    return matches


def word_root(word: str) -> str:
    """
    Approximate morphological stem of an Arabic word.

    Strips the first matching prefix from ROOT_PREFIXES when at least
    3 characters remain, then keeps the first 4 characters (or 3 for
    3-character remainders). Not a linguistic root.
    """
    if not word or len(word) < 3:
        return word

    cleaned = word
    for prefix in ROOT_PREFIXES:
        if cleaned.startswith(prefix) and len(cleaned) > len(prefix) + 2:
            cleaned = cleaned[len(prefix):]
            break

    if len(cleaned) >= 4:
        return cleaned[:4]
    return cleaned[:3]


class TextNormalizer:
    """Cleans raw document text (HTML remnants, whitespace) before loading."""

    def __init__(self):
        """Initialize text normalizer."""
        self.multiple_spaces = re.compile(r'\s+')
        self.html_tag = re.compile(r'<[^>]+>')
        self.script_style = re.compile(r'<(script|style)[^>]*>.*?</\1>', re.DOTALL | re.IGNORECASE)
        self.html_comment = re.compile(r'<!--.*?-->', re.DOTALL)

    def clean(self, text: Optional[str]) -> str:
        """
        Decode entities, strip HTML tags and collapse whitespace.

        Args:
            text: Raw snippet text

        Returns:
            Cleaned text
        """
        if not text:
            return ""

        text = html.unescape(text)
        text = self.script_style.sub('', text)
        text = self.html_comment.sub('', text)
        text = self.html_tag.sub(' ', text)
        text = self.multiple_spaces.sub(' ', text)

        return text.strip()

    def processed_text(self, text: Optional[str]) -> str:
        """Cleaned and Arabic-normalized form stored alongside a snippet."""
        return normalize_lower(self.clean(text))

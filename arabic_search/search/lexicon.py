"""
Static Arabic lexicon tables used by query analysis and document scoring.

This module holds data only:
- Stop word lists for query analysis and query processing
- Question-type trigger phrases (ordered, first match wins)
- Intent trigger words
- Answer-type and domain indicator lists
- Phonetic confusability table

Entries are written in raw Arabic and normalized by their consumers before
matching against normalized text. Count-based indicator lists go through
normalized_entries(), which keeps entries that normalize to the same form
(each one counts); membership lists and stop words go through
normalized_terms().
"""

from typing import Iterable, Tuple

# ---------------------------------------------------------------------------
# Punctuation removed from queries before any processing
# ---------------------------------------------------------------------------
QUERY_PUNCTUATION = '.,;:!?،؛؟«»""()[]{}'
TOKEN_PUNCTUATION = '؟?،,;:.!«»"“”()[]{}'

DEFINITE_ARTICLE = "ال"


# ---------------------------------------------------------------------------
# Stop words
#
# Query analysis (concept extraction) and query processing (search words)
# use two slightly different lists. They are kept apart because merging
# them changes which terms count as meaningful.
# ---------------------------------------------------------------------------
ANALYSIS_STOP_WORDS = frozenset({
    "في", "من", "إلى", "الى", "على", "عن", "هذا", "هذه", "ذلك", "تلك",
    "هل", "كان", "يكون", "أن", "ان", "إن", "ين", "قد", "لقد", "كل",
    "بعض", "أي", "اي", "التي", "الذي", "هو", "هي", "هم", "هن",
    "و", "أو", "او", "لكن", "ثم", "ف", "ب", "ل", "ك",
    "فيه", "به", "له", "منه", "عنه", "ما", "متى", "اين", "كيف", "لماذا", "ماذا",
})

PROCESSING_STOP_WORDS = frozenset({
    "في", "من", "إلى", "على", "عن", "هذا", "هذه", "ذلك", "تلك",
    "هل", "ما", "كان", "يكون", "أن", "إن", "قد", "لقد", "كل",
    "بعض", "أي", "التي", "الذي", "هو", "هي", "هم", "هن",
    "و", "أو", "لكن", "ثم", "ف", "ب", "ل", "ك", "النص", "بحسب",
})

# Very common short words penalized by the term quality ranker
VERY_COMMON_SHORT_WORDS = frozenset({
    "في", "من", "عن", "على", "هو", "هي", "كان", "قد",
})


# ---------------------------------------------------------------------------
# Question types (table order is the tie-break)
# ---------------------------------------------------------------------------
QUESTION_PATTERNS = (
    ("who", ("من", "من هو", "من هي")),
    ("what", ("ما", "ماذا", "ما هو", "ما هي")),
    ("when", ("متى", "في اي", "في ايه")),
    ("where", ("اين", "في اين")),
    ("how", ("كيف", "بماذا", "كيف يستدل", "كيفية")),
    ("why", ("لماذا", "لم", "ما سبب", "ما السبب", "سبب")),
    ("which", ("اي", "ايه")),
)


# ---------------------------------------------------------------------------
# Intent triggers
# ---------------------------------------------------------------------------
CAUSALITY_TRIGGERS = ("سبب", "لماذا", "لم", "علة")
METHOD_TRIGGERS = ("كيف", "يستدل", "استدلال", "كيفية", "بماذا")
DEFINITION_TRIGGERS = ("ما هو", "ما هي", "تعريف", "معنى", "ماهية")
DEFINITION_QUESTION_MARKERS = ("ما هو", "ما هي")

CAUSALITY_SUBJECT_MARKER = "سبب"
METHOD_SUBJECT_MARKER = "على"
METHOD_QUESTION_WORD = "كيف"
VERB_PREFIX = "ي"

METHOD_VERBS = ("يستدل", "يستشهد", "يثبت", "يبرهن", "يصل", "يعرف", "يتوصل")

QUOTE_INTENT_TRIGGERS = ("قال", "نص", "عبارة", "ذكر")
SUMMARY_INTENT_TRIGGERS = ("ملخص", "باختصار", "مختصر")
COMPARISON_INTENT_TRIGGERS = ("الفرق", "مقارنة", "بين")
LIST_INTENT_TRIGGERS = ("اذكر", "عدد", "اسرد")

SUBJECT_MAX_WORDS = 3
DEFINITION_TERM_MAX_WORDS = 2


# ---------------------------------------------------------------------------
# Morphology
# ---------------------------------------------------------------------------
# Ordered: the first matching prefix is stripped
ROOT_PREFIXES = ("ال", "و", "ف", "ب", "ل", "ك")

# Prefixes toggled when generating fuzzy variants
VARIANT_PREFIXES = ("ال", "و", "ف", "ب")


# ---------------------------------------------------------------------------
# Phonetic confusability
# ---------------------------------------------------------------------------
PHONETIC_SIMILARITY_MAP = {
    "ت": ("ط", "ث"),
    "ط": ("ت", "ظ"),
    "ث": ("ت", "س"),
    "د": ("ض", "ذ"),
    "ض": ("د", "ظ"),
    "ذ": ("د", "ز", "ظ"),
    "س": ("ص", "ث"),
    "ص": ("س", "ض"),
    "ز": ("ذ", "ظ"),
    "ظ": ("ز", "ذ", "ض", "ط"),
    "ق": ("ك", "غ"),
    "ك": ("ق", "خ"),
    "ه": ("ح", "خ"),
    "ح": ("ه", "خ"),
    "خ": ("ح", "ه", "ك"),
    "ع": ("غ",),
    "غ": ("ع", "ق"),
    "ب": ("ن", "ت"),
    "ن": ("ب", "ي"),
    "ي": ("ن",),
    "و": ("ؤ",),
    "ا": ("ى",),
}


# ---------------------------------------------------------------------------
# Answer-type indicators: question type -> (indicators, increment, cap)
# ---------------------------------------------------------------------------
ANSWER_TYPE_INDICATORS = {
    "who": (
        ("النبي", "الرسول", "حضرة", "شخص", "رجل", "امرأة",
         "الامام", "العالم", "الشيخ", "المؤمن", "المؤمنون"),
        0.1, 0.25,
    ),
    "when": (
        ("سنة", "عام", "يوم", "شهر", "قبل", "بعد", "خلال",
         "وقت", "زمن", "تاريخ", "حين", "عندما"),
        0.1, 0.25,
    ),
    "where": (
        ("في", "بلد", "مدينة", "مكان", "موضع", "ارض",
         "دار", "بيت", "مسجد", "قرية"),
        0.1, 0.25,
    ),
    "how": (
        ("بواسطة", "وسيلة", "طريقة", "منهج", "اسلوب",
         "كيفية", "ثم", "اولا", "ثانيا", "الخطوة"),
        0.08, 0.25,
    ),
    "why": (
        ("لانه", "لأنه", "بسبب", "السبب", "لذلك", "لهذا",
         "نتيجة", "علة", "ذلك ان", "فان"),
        0.1, 0.3,
    ),
}


# ---------------------------------------------------------------------------
# Negation
# ---------------------------------------------------------------------------
NEGATION_WORDS = frozenset({"لا", "ليس", "لم", "لن", "ما", "غير", "ليست"})
NEGATION_WINDOW = 3


# ---------------------------------------------------------------------------
# Quotes and impressions
# ---------------------------------------------------------------------------
STRONG_QUOTE_INDICATORS = (
    "قالوا", "قال", "قالت", "يقول", "يقولون",
    "فقال", "فقالوا", "قال له", "قالوا له",
)

IMPRESSION_INDICATORS = (
    "انطباع", "رأي", "رأى", "وصف", "وصفوا",
    "اعتراف", "معترفين", "يصفونه", "اعترفيين",
)

QUOTE_MARKERS = ("«", "»", '"', "“", "”", "إن", "أن", "إنّ", "أنّ")


# ---------------------------------------------------------------------------
# Causality
# ---------------------------------------------------------------------------
CAUSALITY_INDICATORS = (
    "لانه", "لأنه", "لان", "لأن",
    "بسبب", "السبب", "سبب",
    "لذلك", "لهذا", "من اجل",
    "نتيجة", "نتيجه", "بناء علي",
    "ذلك ان", "اذ ان", "حيث ان",
    "فان", "كون", "علة", "معلول",
)

STRONG_CAUSALITY_INDICATORS = frozenset({"لانه", "لأنه", "بسبب", "السبب"})


# ---------------------------------------------------------------------------
# Method
# ---------------------------------------------------------------------------
METHOD_INDICATORS = (
    "يستدل", "استدلال", "دليل", "دلائل",
    "يستشهد", "استشهاد", "شهادة", "شاهد",
    "بواسطة", "وسيلة", "طريقة", "منهج", "مناهج",
    "كيفية", "اسلوب", "نهج", "مسلك",
    "يتوصل", "توصل", "وسط", "برهان",
)

STRONG_METHOD_INDICATORS = frozenset({
    "يستدل", "استدلال", "يستشهد", "استشهاد", "منهج", "مناهج", "برهان",
})

SEQUENTIAL_INDICATORS = (
    "واحدا بعد واحد", "بعد واحد",
    "ثم", "فثم", "اولا", "ثانيا", "ثالثا",
    "الخطوة", "المرحلة", "اولا ثم",
    "بعد ذلك", "من ثم", "تاليا",
)

DEFINITIVE_METHOD_INDICATORS = (
    "فهؤلاء هم الذين", "هؤلاء هم", "هم الذين",
    "هذا المنهاج", "هذه الطريقة", "هذا الاسلوب",
    "احكم واشرف", "افضل", "اصح",
)

TESTIMONY_MARKERS = ("يستشهد", "استشهاد")


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------
DEFINITION_PATTERNS = (
    "عبارة عن", "عباره عن",
    "هو عبارة", "هي عبارة",
    "معناه", "معناها", "معنى",
    "المراد من", "المراد به", "المقصود من",
    "يعني", "اي", "بمعنى", "والمعنى",
    "تعريف", "تعريفه", "تعريفها",
    "حقيقة", "حقيقته", "حقيقتها",
    "ماهية", "ماهيته", "ماهيتها",
    "هو ان", "هي ان",
)

STRONG_DEFINITION_PATTERNS = (
    "عبارة عن", "عباره عن",
    "المراد من", "المراد به",
    "حقيقة", "حقيقته",
    "تعريف", "تعريفه",
    "ماهية", "ماهيته",
)

EXPLANATORY_CONNECTORS = (
    "وهو", "وهي", "فهو", "فهي",
    "اقول", "والمعنى", "يعني ان",
    "بمعنى ان", "اي ان",
)

# Sentence boundaries for contextual relevance
SENTENCE_DELIMITERS = ".!؟।"


def normalized_terms(terms: Iterable[str]) -> Tuple[str, ...]:
    """Normalize a trigger or membership list, dropping repeats, keeping first-seen order."""
    from ..common.text_normalizer import normalize_lower

    seen = {}
    for term in terms:
        seen.setdefault(normalize_lower(term), None)
    return tuple(seen)


def normalized_entries(terms: Iterable[str]) -> Tuple[str, ...]:
    """Normalize an indicator list entry by entry, duplicates included."""
    from ..common.text_normalizer import normalize_lower

    return tuple(normalize_lower(term) for term in terms)

from arabic_search.search.lexicon import normalized_entries, normalized_terms


def test_terms_drop_folded_repeats():
    assert normalized_terms(["لانه", "لأنه", "على", "علي"]) == ("لانه", "علي")


def test_entries_keep_folded_repeats():
    assert normalized_entries(["لانه", "لأنه", "إن"]) == ("لانه", "لانه", "ان")

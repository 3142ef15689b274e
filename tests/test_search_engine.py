import sqlite3

import pytest

from arabic_search.search.models import SearchStatus
from arabic_search.search.search_engine import SearchEngine, SearchError
from conftest import (
    DEFINITION_DOC,
    FakeCandidateSource,
    FakeTermStatistics,
    make_candidate,
)


def make_engine(documents=None, error=None):
    source = FakeCandidateSource(documents, error)
    return SearchEngine(source, FakeTermStatistics(), scoring_workers=1), source


class TestRank:
    def test_definition_ranks_first(self, engine):
        outcome = engine.rank("ما هو الصبر")

        assert outcome.status == SearchStatus.OK
        assert outcome.query.analysis.needs_definition
        assert outcome.results[0].id == 1
        assert outcome.results[0].definition_score > 0

        mention = [doc for doc in outcome.results if doc.id == 2]
        for doc in mention:
            assert doc.definition_score == 0.0
            assert doc.re_rank_score <= outcome.results[0].re_rank_score

    def test_single_word_keyword_floor(self):
        engine, _ = make_engine([make_candidate(4, "العلم نور والعلم قوة وطلب العلم فريضة")])
        try:
            outcome = engine.rank("العلم")
        finally:
            engine.close()

        assert outcome.results
        assert outcome.results[0].keyword_score >= 0.95

    def test_duplicates_removed(self):
        engine, _ = make_engine([
            make_candidate(1, DEFINITION_DOC, "5", 2),
            make_candidate(2, DEFINITION_DOC, "5", 2),
        ])
        try:
            outcome = engine.rank("الصبر")
        finally:
            engine.close()

        assert len(outcome.results) == 1
        assert outcome.duplicates_removed == 1

    def test_stop_words_only(self, engine, fake_source):
        outcome = engine.rank("في من")

        assert outcome.status == SearchStatus.NO_TERMS
        assert outcome.results == []
        assert fake_source.calls == []

    def test_empty_query(self, engine, fake_source):
        assert engine.rank("").status == SearchStatus.NO_TERMS
        assert fake_source.calls == []

    def test_no_candidates(self):
        engine, source = make_engine([])
        try:
            outcome = engine.rank("الصبر")
        finally:
            engine.close()

        assert outcome.status == SearchStatus.NO_MATCHES
        assert len(source.calls) == 1

    def test_fetch_arguments(self, engine, fake_source):
        engine.rank("ما هو الصبر")

        call = fake_source.calls[0]
        assert call['query_word_count'] == 3
        assert call['fallback_terms'] == ["صبر"]
        assert "صبر" in call['expanded_terms']
        assert len(call['important_terms']) <= 5

    def test_limit(self, engine):
        outcome = engine.rank("الصبر", limit=1)
        assert len(outcome.results) == 1

    def test_results_sorted_and_above_threshold(self, engine):
        outcome = engine.rank("الصبر")
        scores = [doc.re_rank_score for doc in outcome.results]

        assert scores == sorted(scores, reverse=True)
        assert all(0.35 <= score <= 1.0 for score in scores)

    def test_query_too_long(self, engine):
        with pytest.raises(ValueError):
            engine.rank("ا" * 1001)

    def test_source_failure(self):
        engine, _ = make_engine(error=sqlite3.OperationalError("no such table: documents"))
        try:
            with pytest.raises(SearchError):
                engine.rank("الصبر")
        finally:
            engine.close()

    def test_parallel_scoring_matches_sequential(self, candidates):
        sequential = SearchEngine(FakeCandidateSource(candidates), FakeTermStatistics(), scoring_workers=1)
        parallel = SearchEngine(FakeCandidateSource(candidates), FakeTermStatistics(), scoring_workers=3)
        try:
            expected = [(d.id, d.re_rank_score) for d in sequential.rank("ما هو الصبر").results]
            actual = [(d.id, d.re_rank_score) for d in parallel.rank("ما هو الصبر").results]
        finally:
            sequential.close()
            parallel.close()

        assert actual == expected


class TestStats:
    def test_stats(self, engine):
        engine.rank("الصبر")
        engine.rank("الصبر")

        stats = engine.get_stats()

        assert stats['total_documents'] == 100
        assert stats['term_cache']['hits'] >= 1
        assert stats['document_count_cache']['total_documents'] == 100
        assert 'store' not in stats


class TestDatabaseEngine:
    def test_rank_over_sqlite(self, db_path):
        engine = SearchEngine.from_database(db_path)
        try:
            outcome = engine.rank("ما هو الصبر")
            stats = engine.get_stats()
        finally:
            engine.close()

        assert outcome.status == SearchStatus.OK
        assert outcome.results[0].id == 1
        assert stats['total_documents'] == 4
        assert stats['store']['documents'] == 4

    def test_fresh_database(self, tmp_path):
        engine = SearchEngine.from_database(str(tmp_path / "empty.db"))
        try:
            outcome = engine.rank("الصبر")
        finally:
            engine.close()

        assert outcome.status == SearchStatus.NO_MATCHES

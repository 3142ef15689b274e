import math
import sqlite3

import pytest

from arabic_search.search.search_metadata import DocumentCountCache, SearchMetadata
from conftest import FakeTermStatistics


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingStatistics(FakeTermStatistics):
    def __init__(self, stored=None, counted=42):
        super().__init__(total=counted)
        self.stored_value = stored
        self.count_calls = 0

    def stored_total_documents(self):
        return self.stored_value

    def count_documents(self):
        self.count_calls += 1
        return self.total


class BrokenStatistics(FakeTermStatistics):
    def stored_total_documents(self):
        raise sqlite3.OperationalError("database is locked")

    def document_frequencies(self, terms):
        raise sqlite3.OperationalError("database is locked")


class TestDocumentCountCache:
    def test_refresh_window(self):
        clock = FakeClock()
        cache = DocumentCountCache(refresh_interval=300, clock=clock)
        assert cache.get_fresh() is None

        cache.set(10)
        assert cache.get_fresh() == 10

        clock.now += 301
        assert cache.get_fresh() is None
        assert cache.value == 10

    def test_zero_is_not_fresh(self):
        cache = DocumentCountCache()
        cache.set(0)
        assert cache.get_fresh() is None


class TestTotalDocuments:
    def test_stored_value_used(self):
        source = CountingStatistics(stored=500)
        metadata = SearchMetadata(source)
        assert metadata.total_documents() == 500
        assert source.count_calls == 0

    def test_counts_and_stores_when_missing(self):
        source = CountingStatistics(stored=None, counted=42)
        metadata = SearchMetadata(source)
        assert metadata.total_documents() == 42
        assert source.stored == [42]

    def test_cached_within_window(self):
        clock = FakeClock()
        source = CountingStatistics(stored=None, counted=42)
        metadata = SearchMetadata(source, DocumentCountCache(300, clock))

        metadata.total_documents()
        source.total = 99
        assert metadata.total_documents() == 42

        clock.now += 600
        assert metadata.total_documents() == 99
        assert source.count_calls == 2

    def test_failure_falls_back_to_one(self):
        assert SearchMetadata(BrokenStatistics()).total_documents() == 1

    def test_failure_falls_back_to_cached_value(self):
        clock = FakeClock()
        cache = DocumentCountCache(300, clock)
        cache.set(77)
        clock.now += 600
        assert SearchMetadata(BrokenStatistics(), cache).total_documents() == 77


class TestBatchIdf:
    def test_known_and_unknown_terms(self):
        source = FakeTermStatistics(total=100, frequencies={"صبر": 10})
        idf = SearchMetadata(source).batch_idf(["صبر", "شكر"], 100)

        assert idf["صبر"] == pytest.approx(math.log(10))
        assert idf["شكر"] == pytest.approx(math.log(100))

    def test_batches(self):
        source = FakeTermStatistics(total=100)
        terms = [f"كلمه{i}" for i in range(1200)]
        idf = SearchMetadata(source, batch_size=500).batch_idf(terms, 100)

        assert [len(batch) for batch in source.lookups] == [500, 500, 200]
        assert len(idf) == 1200

    def test_failure_returns_empty(self):
        assert SearchMetadata(BrokenStatistics()).batch_idf(["صبر"], 100) == {}

    def test_looks_up_total_when_omitted(self):
        source = FakeTermStatistics(total=50, frequencies={"صبر": 5})
        assert SearchMetadata(source).batch_idf(["صبر"])["صبر"] == pytest.approx(math.log(10))

    def test_no_terms(self):
        assert SearchMetadata(FakeTermStatistics()).batch_idf([], 100) == {}

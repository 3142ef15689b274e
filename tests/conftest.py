import json

import pytest

from arabic_search.search.models import CandidateDocument
from arabic_search.search.search_engine import SearchEngine
from arabic_search.ingestion.database import init_database
from arabic_search.ingestion.document_loader import DocumentLoader


DEFINITION_DOC = "الصبر عبارة عن حبس النفس عن الجزع عند المصيبة"
MENTION_DOC = "ذكر الصبر في كتاب قديم مع أمور أخرى كثيرة"
UNRELATED_DOC = "الماء بارد جدا في الشتاء"

SAMPLE_RECORDS = [
    {"file_id": "1", "page_index": 0, "text_snippet": DEFINITION_DOC},
    {"file_id": "1", "page_index": 1, "text_snippet": MENTION_DOC},
    {"file_id": "2", "page_index": 0, "text_snippet": UNRELATED_DOC},
    {"file_id": 3, "page_index": 4, "text_snippet": "العلم نور والعلم قوة وطلب العلم فريضة"},
]


class FakeCandidateSource:
    """In-memory candidate source recording every call."""

    def __init__(self, documents=None, error=None):
        self.documents = list(documents or [])
        self.error = error
        self.calls = []

    def fetch_candidates(self, important_terms, expanded_terms, fallback_terms, limit, query_word_count):
        self.calls.append({
            'important_terms': important_terms,
            'expanded_terms': expanded_terms,
            'fallback_terms': fallback_terms,
            'limit': limit,
            'query_word_count': query_word_count,
        })
        if self.error is not None:
            raise self.error
        return list(self.documents)


class FakeTermStatistics:
    """Term statistics with a fixed corpus size and no known terms."""

    def __init__(self, total=100, frequencies=None):
        self.total = total
        self.frequencies = frequencies or {}
        self.lookups = []
        self.stored = []

    def document_frequencies(self, terms):
        terms = list(terms)
        self.lookups.append(terms)
        return {t: self.frequencies[t] for t in terms if t in self.frequencies}

    def stored_total_documents(self):
        return self.total

    def count_documents(self):
        return self.total

    def store_total_documents(self, total):
        self.stored.append(total)


def make_candidate(doc_id, text, file_id="1", page_index=0):
    return CandidateDocument(id=doc_id, file_id=file_id, page_index=page_index, text_snippet=text)


@pytest.fixture
def candidates():
    return [
        make_candidate(1, DEFINITION_DOC, "1", 0),
        make_candidate(2, MENTION_DOC, "1", 1),
    ]


@pytest.fixture
def fake_source(candidates):
    return FakeCandidateSource(candidates)


@pytest.fixture
def fake_statistics():
    return FakeTermStatistics()


@pytest.fixture
def engine(fake_source, fake_statistics):
    search_engine = SearchEngine(fake_source, fake_statistics, scoring_workers=1)
    yield search_engine
    search_engine.close()


@pytest.fixture
def records_file(tmp_path):
    path = tmp_path / "documents.jsonl"
    with open(path, 'w', encoding='utf-8') as f:
        for record in SAMPLE_RECORDS:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
    return path


@pytest.fixture
def db_path(tmp_path, records_file):
    """SQLite database loaded with SAMPLE_RECORDS."""
    path = tmp_path / "documents.db"
    db = init_database(str(path))
    DocumentLoader(db.connect()).load_file(str(records_file))
    db.close()
    return str(path)

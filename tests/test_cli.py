import pytest
from click.testing import CliRunner

from arabic_search.cli.search_cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_init_db(runner, tmp_path):
    db_path = tmp_path / "cli.db"
    result = runner.invoke(cli, ['init-db', '-d', str(db_path)])

    assert result.exit_code == 0
    assert "Schema created successfully" in result.output
    assert db_path.exists()


def test_load(runner, tmp_path, records_file):
    db_path = tmp_path / "cli.db"
    result = runner.invoke(cli, ['load', str(records_file), '-d', str(db_path)])

    assert result.exit_code == 0
    assert "Documents Saved" in result.output


def test_load_invalid_file(runner, tmp_path):
    bad_file = tmp_path / "bad.jsonl"
    bad_file.write_text("not json\n", encoding='utf-8')

    result = runner.invoke(cli, ['load', str(bad_file), '-d', str(tmp_path / "cli.db")])

    assert result.exit_code == 1
    assert "Invalid input file" in result.output


def test_load_missing_file(runner, tmp_path):
    result = runner.invoke(cli, ['load', str(tmp_path / "missing.jsonl")])
    assert result.exit_code == 2


def test_search(runner, db_path):
    result = runner.invoke(cli, ['search', 'ما هو الصبر', '-d', db_path, '--scores'])

    assert result.exit_code == 0
    assert "file 1, page 0" in result.output
    assert "definition_score" in result.output


def test_search_stop_words_only(runner, db_path):
    result = runner.invoke(cli, ['search', 'في من', '-d', db_path])

    assert result.exit_code == 0
    assert "no meaningful terms" in result.output


def test_search_query_too_long(runner, db_path):
    result = runner.invoke(cli, ['search', 'ا' * 1001, '-d', db_path])

    assert result.exit_code == 1
    assert "Search error" in result.output


def test_stats(runner, db_path):
    result = runner.invoke(cli, ['stats', '-d', db_path])

    assert result.exit_code == 0
    assert "Corpus Statistics" in result.output
    assert "Documents for IDF" in result.output


def test_search_shows_intents(runner, db_path):
    result = runner.invoke(cli, ['search', 'الفرق بين الصبر والعلم', '-d', db_path])

    assert result.exit_code == 0
    assert "Looking for: comparison" in result.output

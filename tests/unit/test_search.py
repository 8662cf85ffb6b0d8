"""Tests for imagegen.core.search — ranking indexed images."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from imagegen.core.errors import IndexNotFoundError, ValidationError
from imagegen.core.index_store import INDEX_FILENAME, IndexStore
from imagegen.core.models import ImageRecord
from imagegen.core.search import SearchOrchestrator


@pytest.fixture
def searcher(index_store: IndexStore) -> SearchOrchestrator:
    return SearchOrchestrator(index_store)


def _index(index_store: IndexStore, directory: Path, *keyword_lists: list[str]) -> None:
    for i, keywords in enumerate(keyword_lists):
        index_store.append(directory, ImageRecord(filename=f"{i}.png", mime_type="image/png",
                                                  width=1024, height=1024, keywords=keywords))


class TestRanking:
    def test_matching_record_returned_and_unrelated_dropped(self, searcher, index_store, output_dir):
        _index(index_store, output_dir, ["mountain"], ["sunset", "beach"])

        results = searcher.search("sunset", output_dir)

        assert [r.filename for r in results] == ["1.png"]
        assert results[0].score == 0.8

    def test_sorted_by_score_descending(self, searcher, index_store, output_dir):
        _index(
            index_store,
            output_dir,
            ["red", "forest", "night", "owl"],  # 1 of 4 words -> 0.25
            ["red", "fox"],  # exact -> 1.0
            ["a", "red", "fox", "jumping"],  # substring -> 0.8
        )

        results = searcher.search("red fox", output_dir)

        assert [r.filename for r in results] == ["1.png", "2.png", "0.png"]
        assert [r.score for r in results] == [1.0, 0.8, 0.25]

    def test_ties_keep_index_order(self, searcher, index_store, output_dir):
        _index(index_store, output_dir, ["cat"], ["cat"], ["cat"])
        assert [r.filename for r in searcher.search("cat", output_dir)] == [
            "0.png", "1.png", "2.png"
        ]

    def test_limit_truncates(self, searcher, index_store, output_dir):
        _index(index_store, output_dir, *[["cat"]] * 15)

        assert len(searcher.search("cat", output_dir)) == 10
        assert len(searcher.search("cat", output_dir, limit=3)) == 3

    def test_result_fields(self, searcher, index_store, output_dir):
        _index(index_store, output_dir, ["sunset", "beach"])

        [result] = searcher.search("sunset beach", output_dir)

        assert result.filename == "0.png"
        assert result.path == f"{output_dir}/0.png"
        assert result.score == 1.0
        assert result.mime_type == "image/png"
        assert (result.width, result.height) == (1024, 1024)
        assert result.keywords == ["sunset", "beach"]


class TestErrors:
    def test_missing_index_raises(self, searcher, output_dir):
        with pytest.raises(IndexNotFoundError, match="reindex"):
            searcher.search("cat", output_dir)

    def test_malformed_lines_are_skipped(self, searcher, output_dir: Path, caplog):
        (output_dir / INDEX_FILENAME).write_text(
            '{"filename": "a.png", "keywords": ["cat"]}\n'
            "garbage\n"
            '{"filename": "b.png", "keywords": ["cat"]}\n'
        )

        with caplog.at_level(logging.WARNING):
            results = searcher.search("cat", output_dir)

        assert [r.filename for r in results] == ["a.png", "b.png"]
        assert any("garbage" in m for m in caplog.messages)

    def test_line_without_keywords_never_matches(self, searcher, output_dir: Path, caplog):
        (output_dir / INDEX_FILENAME).write_text(
            '{"filename": "nokw.png"}\n'
            '{"filename": "zebra.png", "keywords": ["zebra"]}\n'
        )

        with caplog.at_level(logging.WARNING):
            results = searcher.search("zebra", output_dir)

        assert [r.filename for r in results] == ["zebra.png"]
        assert any("nokw.png" in m for m in caplog.messages)

    @pytest.mark.parametrize("query", ["", "  "])
    def test_empty_query_rejected(self, searcher, query, output_dir):
        with pytest.raises(ValidationError):
            searcher.search(query, output_dir)

    def test_non_positive_limit_rejected(self, searcher, output_dir):
        with pytest.raises(ValidationError):
            searcher.search("cat", output_dir, limit=0)


class TestServiceSearch:
    def test_explicit_zero_limit_rejected(self, service, index_store, output_dir):
        _index(index_store, output_dir, ["lighthouse"])
        with pytest.raises(ValidationError):
            service.search("lighthouse", limit=0)

    def test_default_limit_used_when_unset(self, service, index_store, output_dir):
        _index(index_store, output_dir, *[["lighthouse"]] * 12)
        assert len(service.search("lighthouse")) == 10

    def test_searches_configured_directory(self, service, index_store, output_dir):
        _index(index_store, output_dir, ["lighthouse"])
        [result] = service.search("lighthouse")
        assert result.path == f"{output_dir}/0.png"

    def test_generated_images_are_searchable(self, service):
        service.generate("a lighthouse at dusk", keywords=["lighthouse", "dusk"])
        [result] = service.search("lighthouse")
        assert result.keywords == ["lighthouse", "dusk"]

"""Unit tests for query batch loading."""

from pathlib import Path

import pytest

from trisearch.queries import load_queries


class TestLoadQueries:
    def test_flat_and_groups(self, tmp_path: Path) -> None:
        path = tmp_path / "queries.yml"
        path.write_text(
            "queries:\n"
            "  - skincare routine\n"
            "  - '# disabled'\n"
            "  - ''\n"
            "groups:\n"
            "  food:\n"
            "    queries: [ramen tokyo, Skincare Routine]\n"
            "  empty:\n"
            "    queries: []\n",
            encoding="utf-8",
        )
        assert load_queries(path) == ["skincare routine", "ramen tokyo"]

    def test_numbers_become_strings(self, tmp_path: Path) -> None:
        path = tmp_path / "q.yml"
        path.write_text("queries: [2024, ' padded ']\n", encoding="utf-8")
        assert load_queries(path) == ["2024", "padded"]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "q.yml"
        path.write_text("", encoding="utf-8")
        assert load_queries(path) == []

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "q.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_queries(path)

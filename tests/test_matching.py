"""Tests for fuzzy office suggestions (shown next to "ХЗ", never used to pick a code)."""

import pytest

from officecode.matching import suggest_offices
from officecode.normalization import NormalizationCache
from officecode.reference import build_table


@pytest.fixture()
def table():
    return build_table(
        ["Гоголь", "Невский", "Гоголь"],
        ["ул. Гоголя, 18", "Невский проспект, 28", "ул. Гоголя, 20"],
        NormalizationCache(),
    )


class TestSuggestOffices:
    def test_closest_first(self, table):
        out = suggest_offices(table, "ул Гоголя 19", n=2)
        assert out[0].code == "Гоголь"
        assert 0.0 < out[0].score <= 1.0

    def test_codes_are_unique(self, table):
        out = suggest_offices(table, "ул Гоголя 19", n=5)
        codes = [m.code for m in out]
        assert len(codes) == len(set(codes))
        assert set(codes) <= {"Гоголь", "Невский"}

    def test_limit(self, table):
        assert len(suggest_offices(table, "ул Гоголя 19", n=1)) == 1

    def test_list_input(self, table):
        out = suggest_offices(table, ["", "Невский проспект 28"], n=1)
        assert out[0].code == "Невский"

    @pytest.mark.parametrize("raw", ["", None, []])
    def test_empty_input(self, table, raw):
        assert suggest_offices(table, raw) == []

    def test_empty_table(self):
        assert suggest_offices(build_table([], []), "ул Гоголя 19") == []

"""
Tests for address normalisation and its memo cache.

Notable patterns:
  - Exact expected outputs for the noise-stripping passes (order matters).
  - Idempotence over the same inputs.
  - An injected cache is isolated from the module default one.
  - Concurrent access to a shared cache never changes results.
"""

import threading

import pytest

from officecode.normalization import (
    NormalizationCache,
    default_cache,
    normalize_address,
    normalize_empty,
    normalize_words,
)

SAMPLES = [
    ("Санкт-Петербург, ул. Ленина, д. 5",          "улленина5"),
    ("Невский проспект, д. 28",                    "невскийпр28"),
    ("БЦ «Сенатор», коворкинг",                    "сенатор"),
    ("Петровский пр-кт, корпус 2, строение 1",     "петровскийпрк2стр1"),
    ("ул. Пушкина-Колотушкина",                    "улпушкинаколотушкина"),
    ("СПб, Садовая улица 10",                      "садоваяул10"),
]


# --------------------------------------------------------------------------- #
# 1. normalize_address                                                         #
# --------------------------------------------------------------------------- #


class TestNormalizeAddress:
    @pytest.mark.parametrize("raw, expected", SAMPLES)
    def test_normalisation(self, raw, expected):
        assert normalize_address(raw, NormalizationCache()) == expected

    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_input(self, raw):
        assert normalize_address(raw) == ""

    @pytest.mark.parametrize("raw, _", SAMPLES)
    def test_idempotent(self, raw, _):
        cache = NormalizationCache()
        once = normalize_address(raw, cache)
        assert normalize_address(once, cache) == once

    def test_case_folded(self):
        cache = NormalizationCache()
        assert normalize_address("МОСКОВСКИЙ", cache) == normalize_address("московский", cache)


class TestNormalizeWords:
    def test_keeps_word_breaks(self):
        assert normalize_words("офис на Петровского, 1", NormalizationCache()) == "офис на петровского 1"

    def test_same_noise_passes(self):
        assert normalize_words("СПб, ул. Ленина, д. 5", NormalizationCache()) == "ул ленина 5"

    def test_empty(self):
        assert normalize_words("") == ""


# --------------------------------------------------------------------------- #
# 2. Cache                                                                     #
# --------------------------------------------------------------------------- #


class TestNormalizationCache:
    def test_injected_cache_is_used(self):
        cache = NormalizationCache()
        raw = "ул. Кеша-Изолированная, 1"
        normalize_address(raw, cache)
        assert raw in cache
        assert len(cache) == 1
        assert raw not in default_cache()

    def test_cache_does_not_change_result(self):
        cache = NormalizationCache()
        cold = normalize_address("Невский проспект, д. 28", cache)
        warm = normalize_address("Невский проспект, д. 28", cache)
        assert cold == warm == normalize_address("Невский проспект, д. 28", NormalizationCache())

    def test_keyed_by_raw_input(self):
        cache = NormalizationCache()
        normalize_address("ул. Ленина 5", cache)
        normalize_address("улица Ленина 5", cache)
        # одинаковый результат, но два разных ключа
        assert len(cache) == 2

    def test_clear(self):
        cache = NormalizationCache()
        normalize_address("ул. Ленина 5", cache)
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_access(self):
        cache = NormalizationCache()
        expected = {raw: exp for raw, exp in SAMPLES}
        errors = []

        def worker():
            for _ in range(50):
                for raw, exp in expected.items():
                    if normalize_address(raw, cache) != exp:
                        errors.append(raw)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) == len(SAMPLES)


# --------------------------------------------------------------------------- #
# 3. normalize_empty                                                           #
# --------------------------------------------------------------------------- #


class TestNormalizeEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", "nan", "None", "-", float("nan")])
    def test_empty_like(self, value):
        assert normalize_empty(value) is None

    def test_strips(self):
        assert normalize_empty("  Гоголь ") == "Гоголь"

    def test_non_string(self):
        assert normalize_empty(42) == "42"

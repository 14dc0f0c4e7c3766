"""
Нормализация адресных строк для сравнения.

Принципы:
- стандартизируем пустоты в None (normalize_empty)
- нормализация адреса = упорядоченный список замен (порядок важен!)
- результат кешируется по исходной строке, кеш можно подменить (тесты, перезагрузка справочника)
"""

from __future__ import annotations

import re
import threading
from typing import Any, Dict, List, Optional, Tuple

EMPTY_VALUES = {"", " ", "na", "nan", "null", "none", "-", "—", "n/a"}


def normalize_empty(value: Any) -> Optional[str]:
    """Convert various empty-like inputs to None; otherwise return stripped string."""
    if value is None:
        return None
    # pandas NaN
    if isinstance(value, float) and value != value:
        return None

    v = str(value).strip()
    if v == "":
        return None
    if v.lower() in EMPTY_VALUES:
        return None
    return v


# Шумовые фрагменты и сокращения. Применяются строго по порядку:
# сначала город и "бизнес-центр", потом типы улиц/домов.
NOISE_PASSES: List[Tuple["re.Pattern[str]", str]] = [
    (re.compile(r"санкт-петербург|спб|с-пб", re.IGNORECASE), ""),
    (re.compile(r"бизнес-центр|бц", re.IGNORECASE), ""),
    (re.compile(r"коворкинг", re.IGNORECASE), ""),
    (re.compile(r"улица|ул\.", re.IGNORECASE), "ул"),
    (re.compile(r"проспект|пр-кт|пр\.", re.IGNORECASE), "пр"),
    (re.compile(r"дом|д\.", re.IGNORECASE), ""),
    (re.compile(r"корпус|к\.", re.IGNORECASE), "к"),
    (re.compile(r"строение|стр\.", re.IGNORECASE), "стр"),
]

SEPARATORS_RE = re.compile(r"[.,\s\"«»]+")


class NormalizationCache:
    """
    Memo table: raw input -> normalized string.

    Без вытеснения (строки короткие, уникальных мало). Потокобезопасна:
    гонка может привести только к повторному вычислению, не к порче значения.
    """

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def get(self, kind: str, text: str) -> Optional[str]:
        with self._lock:
            return self._data.get((kind, text))

    def set(self, kind: str, text: str, value: str) -> None:
        with self._lock:
            self._data.setdefault((kind, text), value)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return any(key[1] == text for key in self._data)


_default_cache = NormalizationCache()


def default_cache() -> NormalizationCache:
    return _default_cache


def clear_default_cache() -> None:
    """Drop everything memoized so far (call on reference reload)."""
    _default_cache.clear()


def _strip_noise(text: str) -> str:
    s = text.lower()
    for pattern, repl in NOISE_PASSES:
        s = pattern.sub(repl, s)
    return s


def _cached(kind: str, text: Optional[str], cache: Optional[NormalizationCache], compute) -> str:
    if not text:
        return ""
    c = cache if cache is not None else _default_cache
    hit = c.get(kind, text)
    if hit is not None:
        return hit
    result = compute(text)
    c.set(kind, text, result)
    return result


def _compact(text: str) -> str:
    s = _strip_noise(text)
    s = SEPARATORS_RE.sub("", s)
    return s.replace("-", "")


def _spaced(text: str) -> str:
    s = _strip_noise(text)
    s = SEPARATORS_RE.sub(" ", s)
    return s.replace("-", "").strip()


def normalize_address(text: Optional[str], cache: Optional[NormalizationCache] = None) -> str:
    """
    Normalize an address for substring comparison.

    "Санкт-Петербург, ул. Ленина, д. 5" -> "улленина5"
    Empty / None -> "".
    """
    return _cached("compact", text, cache, _compact)


def normalize_words(text: Optional[str], cache: Optional[NormalizationCache] = None) -> str:
    """Same passes as normalize_address, but word breaks survive as single spaces."""
    return _cached("words", text, cache, _spaced)

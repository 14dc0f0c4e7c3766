"""
Справочник офисов: code -> address.

Здесь НЕТ fuzzy.
Только подготовка данных для резолвера:
- нормализованный адрес
- морфологические варианты кода (родительный падеж и т.п.)
- токены адреса (длинные кириллические куски)

Справочник неизменяемый: перезагрузка = новый объект ReferenceTable.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable as IterableABC
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

import pandas as pd

from officecode.normalization import NormalizationCache, normalize_address, normalize_empty

logger = logging.getLogger(__name__)

MIN_TOKEN_LEN = 4

TOKEN_SPLIT_RE = re.compile(r"[,/\s]+")
CYRILLIC_RE = re.compile(r"[А-Яа-яЁё]")

# (окончания, замена). replace=None -> дописываем "а" к коду целиком.
SUFFIX_RULES: List[Tuple[Tuple[str, ...], Optional[str]]] = [
    (("ой", "ый", "ий"), "ого"),
    (("ев", "ёв", "ов", "ин"), None),
    (("ский",), "ского"),
    (("ая",), "ой"),
    (("кий",), "кого"),
]


class ReferenceDataError(ValueError):
    """Reference file is missing, unreadable or has the wrong shape."""


@dataclass(frozen=True)
class ReferenceEntry:
    code: str
    raw_address: str
    normalized_address: str
    code_patterns: FrozenSet[str]
    address_tokens: Tuple[str, ...]


def build_patterns_for_code(code: str) -> FrozenSet[str]:
    """Lower-cased code plus its inflected forms ("Петровский" -> "петровского")."""
    lc = code.lower()
    patterns = {lc}
    for suffixes, replacement in SUFFIX_RULES:
        for suffix in suffixes:
            if not lc.endswith(suffix):
                continue
            if replacement is None:
                patterns.add(lc + "а")
            else:
                patterns.add(lc[: -len(suffix)] + replacement)
            break
    return frozenset(patterns)


def tokenize_address(address: str) -> Tuple[str, ...]:
    """Split address into lower-cased Cyrillic pieces of length >= 4."""
    out: List[str] = []
    for piece in TOKEN_SPLIT_RE.split(address):
        piece = piece.strip()
        if len(piece) >= MIN_TOKEN_LEN and CYRILLIC_RE.search(piece):
            out.append(piece.lower())
    return tuple(out)


def make_entry(code: str, address: str, cache: Optional[NormalizationCache] = None) -> ReferenceEntry:
    code = code.strip()
    address = address.strip()
    return ReferenceEntry(
        code=code,
        raw_address=address,
        normalized_address=normalize_address(address, cache),
        code_patterns=build_patterns_for_code(code),
        address_tokens=tokenize_address(address),
    )


class ReferenceTable:
    """Ordered, immutable collection of ReferenceEntry (iteration order = tie-break order)."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ReferenceEntry] = ()):
        object.__setattr__(self, "_entries", tuple(entries))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ReferenceTable is immutable")

    @property
    def entries(self) -> Tuple[ReferenceEntry, ...]:
        return self._entries

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(e.code for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ReferenceEntry]:
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"ReferenceTable({len(self._entries)} entries)"

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[Any, Any]],
        cache: Optional[NormalizationCache] = None,
    ) -> "ReferenceTable":
        """Build from (code, address) records; malformed rows are skipped."""
        seen = set()
        entries: List[ReferenceEntry] = []
        dropped = 0
        duplicates = 0

        for pair in pairs:
            try:
                code, address = pair
            except (TypeError, ValueError):
                dropped += 1
                continue
            if not isinstance(code, str) or not code.strip():
                dropped += 1
                continue
            if not isinstance(address, str):
                address = ""

            entry = make_entry(code, address, cache)
            key = (entry.code, entry.normalized_address)
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            entries.append(entry)

        logger.info(
            "Reference table built: %d entries (%d rows dropped, %d duplicates)",
            len(entries),
            dropped,
            duplicates,
        )
        return cls(entries)


def _as_list(value: Any, name: str) -> List[Any]:
    """Materialize list/tuple/Series/ndarray/generator; None or a bare string -> []."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, IterableABC):
        logger.warning("Reference %s must be a sequence, got %s; ignored", name, type(value).__name__)
        return []
    return list(value)


def build_table(
    codes: Optional[Iterable[Any]],
    addresses: Optional[Iterable[Any]],
    cache: Optional[NormalizationCache] = None,
) -> ReferenceTable:
    """
    Build table from two parallel sequences (codes[i] <-> addresses[i]).

    Lengths may differ: missing address -> "", missing/empty/non-str code -> row skipped.
    Never raises.
    """
    codes = _as_list(codes, "codes")
    addresses = _as_list(addresses, "addresses")
    max_len = max(len(codes), len(addresses))

    pairs = []
    for i in range(max_len):
        code = codes[i] if i < len(codes) else None
        address = addresses[i] if i < len(addresses) else ""
        pairs.append((code, address or ""))
    return ReferenceTable.from_pairs(pairs, cache)


EMPTY_TABLE = ReferenceTable()


def _frame_pairs(df: pd.DataFrame) -> List[Tuple[Any, Any]]:
    cols = {str(c).strip().lower(): c for c in df.columns}
    code_col = cols.get("code")
    addr_col = cols.get("address") or cols.get("addresses")
    if code_col is None or addr_col is None:
        raise ReferenceDataError("reference table must contain columns 'code' and 'address'")

    pairs = []
    for _, row in df.iterrows():
        code = normalize_empty(row[code_col])
        address = normalize_empty(row[addr_col]) or ""
        pairs.append((code, address))
    return pairs


def load_reference(
    path: Union[str, Path],
    cache: Optional[NormalizationCache] = None,
) -> ReferenceTable:
    """
    Load reference data from disk.

    .json  -> {"code": [...], "addresses": [...]} (parallel arrays)
    .csv   -> columns code, address
    .xlsx  -> columns code, address
    """
    path = Path(path)
    if not path.exists():
        raise ReferenceDataError(f"reference file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ReferenceDataError("reference json must be an object with 'code' and 'addresses'")
            table = build_table(data.get("code"), data.get("addresses"), cache)
        elif suffix == ".csv":
            table = ReferenceTable.from_pairs(_frame_pairs(pd.read_csv(path, dtype=str)), cache)
        elif suffix == ".xlsx":
            table = ReferenceTable.from_pairs(_frame_pairs(pd.read_excel(path, dtype=str)), cache)
        else:
            raise ReferenceDataError(f"unsupported reference format: {suffix}")
    except ReferenceDataError:
        raise
    except (OSError, ValueError, ImportError) as exc:
        raise ReferenceDataError(f"cannot read reference file {path}: {exc}") from exc

    logger.info("Loaded reference %s: %d offices", path.name, len(table))
    return table


def load_reference_or_empty(
    path: Union[str, Path],
    cache: Optional[NormalizationCache] = None,
) -> ReferenceTable:
    """Like load_reference, but a broken file yields an empty table (resolver answers ХЗ)."""
    try:
        return load_reference(path, cache)
    except ReferenceDataError as exc:
        logger.error("Failed to load reference mapping: %s", exc)
        return EMPTY_TABLE

"""
Fuzzy-подсказки: какие офисы похожи на нераспознанный адрес.

Важное правило проекта:
matching НЕ принимает решений "какой код поставить".
Он только считает похожесть и показывает кандидатов оператору рядом с "ХЗ".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from rapidfuzz import fuzz, process

from officecode.normalization import NormalizationCache, normalize_address
from officecode.reference import ReferenceTable
from officecode.resolver import join_raw


@dataclass(frozen=True)
class MatchResult:
    code: str
    score: float               # 0..1
    normalized_address: str


def suggest_offices(
    table: ReferenceTable,
    raw_address: Any,
    n: int = 3,
    cutoff: float = 0.0,
    cache: Optional[NormalizationCache] = None,
) -> List[MatchResult]:
    """
    Top-N offices whose normalized address is closest to the input.
    cutoff: 0..1
    """
    if not table or n <= 0:
        return []
    query = normalize_address(join_raw(raw_address), cache)
    if not query:
        return []

    # индекс -> нормализованный адрес; индекс нужен для стабильного порядка при равных score
    choices: Dict[int, str] = {
        i: e.normalized_address for i, e in enumerate(table) if e.normalized_address
    }
    if not choices:
        return []

    matches = process.extract(
        query,
        choices,
        scorer=fuzz.WRatio,
        limit=None,
        score_cutoff=cutoff * 100,
    )
    matches = sorted(matches, key=lambda m: (-m[1], m[2]))

    entries = table.entries
    out: List[MatchResult] = []
    seen = set()
    for norm_addr, sc, idx in matches:
        code = entries[idx].code
        if code in seen:
            continue
        seen.add(code)
        out.append(MatchResult(code, round(sc / 100.0, 4), norm_addr))
        if len(out) >= n:
            break
    return out

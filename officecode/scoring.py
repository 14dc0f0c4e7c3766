"""
Скоринг кандидатов резолвера (без ML).

Идея:
- стадия паттернов: score = длина совпавшего паттерна (длиннее = надёжнее)
- стадия токенов: score = число совпавших токенов * 10 + длина первого токена
- при равенстве побеждает тот, кто встретился раньше (порядок справочника)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

TOKEN_MATCH_WEIGHT = 10


@dataclass(frozen=True)
class Scored:
    code: str
    score: int
    evidence: str  # pattern / tokens, for logs


def pattern_score(pattern: str) -> int:
    return len(pattern)


def token_score(matched_count: int, tokens: Sequence[str]) -> int:
    if matched_count <= 0 or not tokens:
        return 0
    return matched_count * TOKEN_MATCH_WEIGHT + len(tokens[0])


def keep_best(current: Optional[Scored], candidate: Scored) -> Scored:
    """Strictly greater score replaces; ties keep the earlier one."""
    if current is None or candidate.score > current.score:
        return candidate
    return current

"""
Определение кода офиса по свободному тексту адреса.

Стадии (строго по порядку, первая сработавшая побеждает):
1. code_mention       : код офиса упомянут в тексте как есть
2. code_pattern       : упомянута словоформа кода ("Петровского"), граница слова по кириллице
3. address_tokens     : совпали длинные слова адреса ("Садовая")
4. normalized_address : нормализованный адрес офиса целиком входит в нормализованный текст

Ничего не нашли -> "ХЗ".
Резолвер никогда не бросает исключений: внутренняя ошибка -> FAULT (наружу тоже "ХЗ").
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Optional

from officecode.normalization import NormalizationCache, normalize_address, normalize_words
from officecode.reference import MIN_TOKEN_LEN, ReferenceEntry
from officecode.scoring import Scored, keep_best, pattern_score, token_score

logger = logging.getLogger(__name__)

UNKNOWN = "ХЗ"
JOIN_SEPARATOR = " | "

MIN_PATTERN_LEN = 4
MIN_NORMALIZED_ADDRESS_LEN = 6

CYRILLIC_LETTER_RE = re.compile(r"[а-яё]", re.IGNORECASE)

STAGE_CODE_MENTION = "code_mention"
STAGE_CODE_PATTERN = "code_pattern"
STAGE_ADDRESS_TOKENS = "address_tokens"
STAGE_NORMALIZED_ADDRESS = "normalized_address"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    UNKNOWN = "unknown"
    FAULT = "fault"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    code: Optional[str] = None
    stage: Optional[str] = None
    reason: Optional[str] = None

    @property
    def office(self) -> str:
        """Code for display: the resolved code, otherwise "ХЗ" (unknown and fault alike)."""
        return self.code if self.code else UNKNOWN

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


NOT_FOUND = Resolution(ResolutionStatus.UNKNOWN)


def join_raw(raw_address: Any) -> str:
    """str as is; list/tuple -> non-empty parts joined with " | "; None -> ""."""
    if raw_address is None:
        return ""
    if isinstance(raw_address, str):
        return raw_address
    if isinstance(raw_address, (list, tuple)):
        return JOIN_SEPARATOR.join(str(part) for part in raw_address if part)
    raise TypeError(f"unsupported address type: {type(raw_address).__name__}")


def _is_boundary(text: str, idx: int) -> bool:
    if idx < 0 or idx >= len(text):
        return True
    return CYRILLIC_LETTER_RE.match(text[idx]) is None


@lru_cache(maxsize=4096)
def _token_regex(token: str) -> "re.Pattern[str]":
    return re.compile(rf"(?:^|[^а-яё]){re.escape(token)}(?:[^а-яё]|\Z)", re.IGNORECASE)


def match_code_mention(entries: Iterable[ReferenceEntry], joined: str) -> Optional[str]:
    lowered = joined.lower()
    for entry in entries:
        if entry.code.lower() in lowered:
            return entry.code
    return None


def match_code_pattern(entries: Iterable[ReferenceEntry], text: str) -> Optional[Scored]:
    """Longest inflected code form found as a whole Cyrillic word (first occurrence only)."""
    best: Optional[Scored] = None
    for entry in entries:
        for pattern in sorted(entry.code_patterns):
            if len(pattern) < MIN_PATTERN_LEN:
                continue
            idx = text.find(pattern)
            if idx == -1:
                continue
            if _is_boundary(text, idx - 1) and _is_boundary(text, idx + len(pattern)):
                best = keep_best(best, Scored(entry.code, pattern_score(pattern), pattern))
    return best


def match_address_tokens(entries: Iterable[ReferenceEntry], joined: str) -> Optional[Scored]:
    lowered = joined.lower()
    best: Optional[Scored] = None
    for entry in entries:
        if not entry.address_tokens:
            continue
        matched = [
            token
            for token in entry.address_tokens
            if len(token) >= MIN_TOKEN_LEN and _token_regex(token).search(lowered)
        ]
        if matched:
            score = token_score(len(matched), entry.address_tokens)
            best = keep_best(best, Scored(entry.code, score, ",".join(matched)))
    return best


def match_normalized_address(entries: Iterable[ReferenceEntry], normalized: str) -> Optional[str]:
    for entry in entries:
        addr = entry.normalized_address
        if not addr or len(addr) < MIN_NORMALIZED_ADDRESS_LEN:
            continue
        if addr in normalized:
            return entry.code
    return None


def _run_stages(table: Any, raw_address: Any, cache: Optional[NormalizationCache]) -> Resolution:
    if not raw_address or not table:
        return NOT_FOUND

    joined = join_raw(raw_address)
    if not joined:
        return NOT_FOUND
    entries = tuple(table)

    code = match_code_mention(entries, joined)
    if code:
        return Resolution(ResolutionStatus.RESOLVED, code, STAGE_CODE_MENTION)

    hit = match_code_pattern(entries, normalize_words(joined, cache))
    if hit:
        logger.debug("Pattern %r -> %s (score=%d)", hit.evidence, hit.code, hit.score)
        return Resolution(ResolutionStatus.RESOLVED, hit.code, STAGE_CODE_PATTERN)

    hit = match_address_tokens(entries, joined)
    if hit:
        logger.debug("Tokens %r -> %s (score=%d)", hit.evidence, hit.code, hit.score)
        return Resolution(ResolutionStatus.RESOLVED, hit.code, STAGE_ADDRESS_TOKENS)

    code = match_normalized_address(entries, normalize_address(joined, cache))
    if code:
        return Resolution(ResolutionStatus.RESOLVED, code, STAGE_NORMALIZED_ADDRESS)

    return NOT_FOUND


def resolve_detailed(
    table: Any,
    raw_address: Any,
    cache: Optional[NormalizationCache] = None,
) -> Resolution:
    """Run the staged matcher. Never raises: internal errors come back as FAULT."""
    try:
        return _run_stages(table, raw_address, cache)
    except Exception as exc:
        logger.exception("Office resolution failed for %r", raw_address)
        return Resolution(ResolutionStatus.FAULT, reason=f"{type(exc).__name__}: {exc}")


def resolve(
    table: Any,
    raw_address: Any,
    cache: Optional[NormalizationCache] = None,
) -> str:
    """Office code for raw address text (str or list of str), or "ХЗ"."""
    return resolve_detailed(table, raw_address, cache).office

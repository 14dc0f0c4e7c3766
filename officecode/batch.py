"""
Пакетная обработка заявок: таблица (Excel) -> код офиса + тип устройства на каждую строку.

Каждая строка обрабатывается так же, как одна карточка заявки:
- адресные колонки ("Офис или адрес", "Адрес офиса") склеиваются через " | " и идут в резолвер
- колонка оборудования идёт в классификатор устройства
- для "ХЗ" пишем fuzzy-кандидатов, чтобы оператор мог поправить руками
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from officecode.device import classify_device
from officecode.matching import suggest_offices
from officecode.normalization import NormalizationCache, normalize_empty
from officecode.reference import ReferenceTable
from officecode.resolver import UNKNOWN, resolve_detailed

logger = logging.getLogger(__name__)


def _clean_colname(name: Any) -> str:
    if name is None:
        return ""
    return str(name).strip()


def _candidates_payload(table: ReferenceTable, parts: List[str], n: int, cache: Optional[NormalizationCache]) -> List[Dict[str, Any]]:
    if n <= 0 or not parts:
        return []
    return [
        {"code": m.code, "score": m.score, "normalized_address": m.normalized_address}
        for m in suggest_offices(table, parts, n=n, cache=cache)
    ]


def process_frame(
    df: pd.DataFrame,
    table: ReferenceTable,
    address_cols: Sequence[str],
    equipment_col: Optional[str] = None,
    suggestions: int = 3,
    cache: Optional[NormalizationCache] = None,
) -> pd.DataFrame:
    """
    Resolve every row of df.

    Output keeps inputs as in_* and adds out_office_code, out_device_type,
    stage, candidates (JSON), log (JSON).
    """
    address_cols = [c for c in (_clean_colname(c) for c in address_cols) if c]
    equipment_col = _clean_colname(equipment_col)

    missing_cols = [c for c in address_cols if c not in df.columns]
    if equipment_col and equipment_col not in df.columns:
        missing_cols.append(equipment_col)
    if missing_cols:
        logger.warning("Input columns not found: %s", ", ".join(missing_cols))

    results: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        raw_row = row.to_dict()
        in_payload = {f"in_{k}": raw_row.get(k) for k in raw_row.keys()}

        parts = [normalize_empty(raw_row.get(c)) for c in address_cols]
        parts = [p for p in parts if p]

        res = resolve_detailed(table, parts, cache)

        device = "other"
        if equipment_col:
            device = classify_device({"value": normalize_empty(raw_row.get(equipment_col))})

        candidates: List[Dict[str, Any]] = []
        if not res.is_resolved:
            candidates = _candidates_payload(table, parts, suggestions, cache)

        log_obj = {
            "status": res.status.value,
            "stage": res.stage,
            "_meta": {
                "address_cols": address_cols,
                "equipment_col": equipment_col or None,
                "reference_size": len(table),
                **({"reason": res.reason} if res.reason else {}),
                **({"missing_input_columns": missing_cols} if missing_cols else {}),
            },
        }

        results.append(
            {
                **in_payload,
                "out_office_code": res.office,
                "out_device_type": device,
                "stage": res.stage,
                "candidates": json.dumps(candidates, ensure_ascii=False),
                "log": json.dumps(log_obj, ensure_ascii=False),
            }
        )

    out_df = pd.DataFrame(
        results,
        columns=None if results else ["out_office_code", "out_device_type", "stage", "candidates", "log"],
    )
    logger.info("Processed %d rows against %d offices", len(out_df), len(table))
    return out_df


def frame_stats(out_df: pd.DataFrame) -> Dict[str, Any]:
    """Summary numbers for the UI."""
    total = len(out_df)
    if total == 0:
        return {"строк": 0, "% распознанных офисов": 0.0, "по стадиям": {}, "устройства": {}}

    resolved = out_df["out_office_code"] != UNKNOWN
    stages = Counter(s for s in out_df["stage"] if isinstance(s, str))
    devices = Counter(out_df["out_device_type"])
    return {
        "строк": total,
        "% распознанных офисов": round(float(resolved.mean()) * 100, 1),
        "по стадиям": dict(stages),
        "устройства": dict(devices),
    }

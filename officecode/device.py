"""
Тип устройства по описанию оборудования в заявке: apple / windows / other.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

APPLE = "apple"
WINDOWS = "windows"
OTHER = "other"

# Поле "Оборудование" в заявке
EQUIPMENT_FIELD_ID = "customfield_11122"

APPLE_MARKERS = ("macbook", "mac", "apple")
WINDOWS_MARKERS = ("windows", "ноутбук", "laptop")


def _field_value(field: Any) -> Optional[str]:
    if field is None:
        return None
    if isinstance(field, Mapping):
        value = field.get("value")
    else:
        value = getattr(field, "value", None)
    if not value or not isinstance(value, str):
        return None
    return value


def classify_device(field: Any) -> str:
    """Map an equipment field (object with .value or {"value": ...}) to apple / windows / other."""
    value = _field_value(field)
    if value is None:
        return OTHER

    value = value.lower()
    # apple проверяем первым: "MacBook (не windows ноутбук)" -> apple
    if any(marker in value for marker in APPLE_MARKERS):
        return APPLE
    if any(marker in value for marker in WINDOWS_MARKERS):
        return WINDOWS
    return OTHER


def detect_device_type(fields: Optional[Mapping[str, Any]]) -> str:
    """Classify the equipment field of a task's field mapping."""
    if not fields:
        return OTHER
    return classify_device(fields.get(EQUIPMENT_FIELD_ID))

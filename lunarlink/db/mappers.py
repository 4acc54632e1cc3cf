"""
Mapping between stored column names and internal field names.

The tables keep the column names the hosted store has always used
(``code``, ``speed``, ``added_on``, ``yes_clicks`` ...). Everything above the
repository works with the internal names from ``lunarlink.schemas.code``.
"""

from typing import Any, Dict

from lunarlink.schemas.code import Batch, Code, Counters, HistoryEntry

CODE_FIELDS = {
    "id": "id",
    "code": "value",
    "speed": "speed_tier",
    "batch": "batch_name",
    "status": "status",
    "added_on": "created_at",
    "used_on": "used_at",
}

HISTORY_FIELDS = {
    "id": "id",
    "code": "code_value",
    "speed": "speed_tier",
    "batch": "batch_name",
    "used_on": "used_at",
}

BATCH_FIELDS = {
    "id": "id",
    "batch_name": "name",
    "speed": "speed_tier",
    "total_codes": "code_count",
    "uploaded_on": "uploaded_at",
}

COUNTER_FIELDS = {
    "total_codes_uploaded": "total_uploaded",
    "codes_used": "codes_used",
    "yes_clicks": "accept_count",
    "no_clicks": "reject_count",
    "batches_uploaded": "batches_uploaded",
    "last_updated": "last_updated",
}


def to_internal(row: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    return {internal: row[wire] for wire, internal in fields.items() if wire in row}


def to_wire(values: Dict[str, Any], fields: Dict[str, str]) -> Dict[str, Any]:
    reverse = {internal: wire for wire, internal in fields.items()}
    return {reverse[name]: value for name, value in values.items() if name in reverse}


def wire_name(internal_name: str, fields: Dict[str, str]) -> str:
    for wire, internal in fields.items():
        if internal == internal_name:
            return wire
    raise KeyError(internal_name)


def code_from_row(row: Dict[str, Any]) -> Code:
    return Code(**to_internal(row, CODE_FIELDS))


def history_from_row(row: Dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(**to_internal(row, HISTORY_FIELDS))


def batch_from_row(row: Dict[str, Any]) -> Batch:
    return Batch(**to_internal(row, BATCH_FIELDS))


def counters_from_row(row: Dict[str, Any]) -> Counters:
    values = to_internal(row, COUNTER_FIELDS)
    # Missing or NULL counters read as zero
    for name in ("total_uploaded", "codes_used", "accept_count", "reject_count", "batches_uploaded"):
        values[name] = values.get(name) or 0
    return Counters(**values)

"""
app/validators/header_validator.py

Structural check of CSV column names against the required report schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

# Logical field -> accepted header names. The first alias is the wire name
# used in error messages.
REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "entity_id": ("ngo_id", "entity_id"),
    "period": ("month", "period"),
    "people_helped": ("people_helped",),
    "events_conducted": ("events_conducted",),
    "funds_utilized": ("funds_utilized",),
}


@dataclass(frozen=True)
class HeaderValidationResult:
    """
    ``column_map`` maps each logical field to the observed header it reads from.
    """

    is_valid: bool
    column_map: dict[str, str] = field(default_factory=dict)
    missing_columns: list[str] = field(default_factory=list)
    error: str | None = None


def normalize_header(header: str | None) -> str:
    return (header or "").strip().lower()


def validate_headers(columns: Iterable[str | None]) -> HeaderValidationResult:
    """
    Check that every required column is present.

    Matching is case-insensitive and whitespace-trimmed; order and extra
    columns do not matter.
    """

    observed: dict[str, str] = {}
    for column in columns:
        if column is None:
            continue
        observed.setdefault(normalize_header(column), column)

    column_map: dict[str, str] = {}
    missing: list[str] = []
    for logical_name, aliases in REQUIRED_COLUMNS.items():
        source = next((observed[alias] for alias in aliases if alias in observed), None)
        if source is None:
            missing.append(aliases[0])
        else:
            column_map[logical_name] = source

    if missing:
        return HeaderValidationResult(
            is_valid=False,
            missing_columns=missing,
            error=f"Missing required columns: {', '.join(missing)}",
        )
    return HeaderValidationResult(is_valid=True, column_map=column_map)


def project_row(raw_row: dict[str | None, object], column_map: dict[str, str]) -> dict[str, object]:
    """
    Re-key one parsed CSV row by logical field name.
    """

    return {logical_name: raw_row.get(source) for logical_name, source in column_map.items()}

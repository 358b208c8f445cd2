"""
app/validators/report_validator.py

Field-level validation and type normalization for one impact report.

Used unchanged by single-report submission and by every CSV data row.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from app.domain.impact_report import ImpactReportInput, ReportValidationResult, RowValidationError

PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}$")

# Column limits: Integer counts and Numeric(14, 2) funds.
MAX_COUNT = 2_147_483_647
MAX_FUNDS = Decimal("999999999999.99")


class ReportValidator:
    """
    Validates one raw report and normalizes it when every field passes.

    All field rules run independently so a row reports every problem at once.
    """

    def validate(
        self,
        raw: Mapping[str, Any],
        row_number: int | None = None,
    ) -> ReportValidationResult:
        errors: list[RowValidationError] = []

        entity_id = self._parse_entity_id(raw.get("entity_id"), row_number, errors)
        period = self._parse_period(raw.get("period"), row_number, errors)
        people_helped = self._parse_count(raw.get("people_helped"), "people_helped", row_number, errors)
        events_conducted = self._parse_count(raw.get("events_conducted"), "events_conducted", row_number, errors)
        funds_utilized = self._parse_amount(raw.get("funds_utilized"), row_number, errors)

        if errors:
            return ReportValidationResult(report=None, errors=errors)

        return ReportValidationResult(
            report=ImpactReportInput(
                entity_id=entity_id,
                period=period,
                people_helped=people_helped if people_helped is not None else 0,
                events_conducted=events_conducted if events_conducted is not None else 0,
                funds_utilized=funds_utilized if funds_utilized is not None else Decimal("0"),
            ),
        )

    def _parse_entity_id(
        self,
        value: Any,
        row_number: int | None,
        errors: list[RowValidationError],
    ) -> str:
        if self._is_blank(value):
            errors.append(self._error("entity_id", "is required", row_number, value))
            return ""
        return str(value).strip()

    def _parse_period(
        self,
        value: Any,
        row_number: int | None,
        errors: list[RowValidationError],
    ) -> str:
        if self._is_blank(value):
            errors.append(self._error("period", "is required", row_number, value))
            return ""

        period = str(value).strip()
        if not PERIOD_PATTERN.match(period):
            errors.append(self._error("period", "must be in YYYY-MM format (e.g. 2024-01)", row_number, value))
        return period

    def _parse_count(
        self,
        value: Any,
        column: str,
        row_number: int | None,
        errors: list[RowValidationError],
    ) -> int | None:
        number = self._to_decimal(value)
        if number is None or number != number.to_integral_value():
            errors.append(self._error(column, "must be a whole number", row_number, value))
            return None
        if number < 0:
            errors.append(self._error(column, "must be a non-negative number", row_number, value))
            return None
        if number > MAX_COUNT:
            errors.append(self._error(column, f"must not exceed {MAX_COUNT}", row_number, value))
            return None
        return int(number)

    def _parse_amount(
        self,
        value: Any,
        row_number: int | None,
        errors: list[RowValidationError],
    ) -> Decimal | None:
        number = self._to_decimal(value)
        if number is None:
            errors.append(self._error("funds_utilized", "must be a number", row_number, value))
            return None
        if number < 0:
            errors.append(self._error("funds_utilized", "must be a non-negative number", row_number, value))
            return None
        if number > MAX_FUNDS:
            errors.append(self._error("funds_utilized", f"must not exceed {MAX_FUNDS}", row_number, value))
            return None
        return number

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """
        Parse ``value`` as a finite Decimal, or return None.
        """

        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, float):
            value = repr(value)
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite():
            return None
        return number

    @staticmethod
    def _is_blank(value: Any) -> bool:
        return value is None or str(value).strip() == ""

    @staticmethod
    def _error(
        column: str,
        message: str,
        row_number: int | None,
        value: Any,
    ) -> RowValidationError:
        return RowValidationError(
            column=column,
            message=message,
            row_number=row_number,
            value=None if value is None else str(value),
        )

"""Parameter normalization and validation.

Raw values arrive loosely typed (form fields, CLI ``name=value`` pairs, agent
tool arguments). Each is coerced to the canonical Python value for its
declared type, then required and pattern checks run over the whole set so a
caller can report every offending field at once.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from promptshelf.library.models import Record
from promptshelf.library.schema import ParameterSpec

logger = logging.getLogger(__name__)

FIELD_ID_PREFIX = "param-"
_PATTERN_TYPES = ("string", "text")


class ParameterError(ValueError):
    """Base class for parameter problems that block rendering."""


class MissingParametersError(ParameterError):
    def __init__(self, missing: list[ParameterSpec]):
        self.missing = list(missing)
        names = ", ".join(spec.display_name for spec in self.missing)
        super().__init__(f"Missing required parameter(s): {names}")


class InvalidParametersError(ParameterError):
    def __init__(self, invalid: list[ParameterIssue]):
        self.invalid = list(invalid)
        super().__init__("; ".join(issue.message for issue in self.invalid))


@dataclass(frozen=True)
class ParameterIssue:
    parameter: ParameterSpec
    message: str


@dataclass
class ParameterReport:
    """Outcome of normalize_and_validate_parameters."""

    values: dict[str, Any] = field(default_factory=dict)
    missing: list[ParameterSpec] = field(default_factory=list)
    invalid: list[ParameterIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.invalid

    def raise_for_errors(self) -> None:
        if self.missing:
            raise MissingParametersError(self.missing)
        if self.invalid:
            raise InvalidParametersError(self.invalid)


def field_id_for(spec: ParameterSpec) -> str:
    return f"{FIELD_ID_PREFIX}{spec.name}"


def _is_falsy(raw: Any) -> bool:
    if raw is None or raw is False or raw == "":
        return True
    if isinstance(raw, (int, float)):
        return raw == 0 or math.isnan(raw)
    return False


def _to_number(raw: Any) -> int | float | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw if math.isfinite(raw) else None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_datetime(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    else:
        text = str(raw).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_iso_utc(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def _to_array(raw: Any, delimiter: str) -> list:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, tuple):
        return list(raw)
    return [piece.strip() for piece in str(raw).split(delimiter) if piece.strip()]


def normalize_parameter_value(spec: ParameterSpec, raw: Any) -> Any:
    """Coerce one raw value to the canonical value for spec.type."""
    if spec.type == "boolean":
        return not _is_falsy(raw)
    if spec.type == "number":
        return _to_number(raw)
    if spec.type == "date":
        if _is_falsy(raw):
            return None
        parsed = _parse_datetime(raw)
        return format_iso_utc(parsed) if parsed else None
    if spec.type == "array":
        if _is_falsy(raw):
            return []
        return _to_array(raw, spec.array_delimiter)
    return "" if raw is None else raw


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _pattern_issue(spec: ParameterSpec, value: Any) -> ParameterIssue | None:
    if not spec.regex or spec.type not in _PATTERN_TYPES:
        return None
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        pattern = re.compile(spec.regex)
    except re.error as e:
        logger.warning("Invalid pattern for parameter %s: %s", spec.name, e)
        return None
    if pattern.search(value):
        return None
    return ParameterIssue(spec, f"{spec.display_name} does not match required pattern")


def normalize_and_validate_parameters(
    record: Record, raw_values: Mapping[str, Any] | None
) -> ParameterReport:
    """Normalize every declared parameter and collect missing/invalid ones."""
    raw_values = raw_values or {}
    report = ParameterReport()
    for spec in record.parameters:
        value = normalize_parameter_value(spec, raw_values.get(spec.name))
        report.values[spec.name] = value

        if spec.required and _is_missing(value):
            report.missing.append(spec)
            continue

        issue = _pattern_issue(spec, value)
        if issue is not None:
            report.invalid.append(issue)
    return report


def parameter_defaults(record: Record) -> dict[str, Any]:
    """Declared defaults keyed by parameter name (only where one is set)."""
    return {spec.name: spec.default for spec in record.parameters if spec.default is not None}


def collect_form_values(record: Record, form_values: Mapping[str, Any]) -> dict[str, Any]:
    """Map ``param-<name>`` form field ids back to parameter names."""
    values: dict[str, Any] = {}
    for spec in record.parameters:
        key = field_id_for(spec)
        if key in form_values:
            values[spec.name] = form_values[key]
    return values

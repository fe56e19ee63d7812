"""Scenario document validation.

A document holds either one scenario mapping or a `scenarios:` list of
them. Parsing and pydantic validation errors are both collected as
ValidationErrorDetail records carrying source positions, so a whole
file can be reported at once.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from voicebench.loader.yaml_parser import YAMLParseError, parse_yaml_file, parse_yaml_with_lines
from voicebench.models.scenario import Scenario

SCENARIO_FIELDS: list[str] = list(Scenario.model_fields)

LIST_KEY = "scenarios"


@dataclass
class ValidationErrorDetail:
    """One validation problem, located in the source where possible.

    Attributes:
        field: Dotted path of the offending field (e.g. "scenarios.1.type").
        message: Human-readable description.
        type: pydantic error type, or a loader type such as 'yaml_syntax_error'.
        line: 1-indexed source line, or None.
        col: 1-indexed source column, or None.
        suggestion: "Did you mean ...?" hint for unknown fields.
        input_value: The rejected value, when known.
    """

    field: str
    message: str
    type: str
    line: int | None = None
    col: int | None = None
    suggestion: str | None = None
    input_value: Any = field(default=None)


def _locate(path: str, line_map: dict[str, tuple[int, int]]) -> tuple[int | None, int | None]:
    """Position of path, falling back to its closest recorded ancestor."""
    parts = path.split(".")
    while parts:
        key = ".".join(parts)
        if key in line_map:
            return line_map[key]
        parts.pop()
    return None, None


def _suggest(name: str) -> str | None:
    matches = difflib.get_close_matches(name, SCENARIO_FIELDS, n=1, cutoff=0.6)
    return f"Did you mean '{matches[0]}'?" if matches else None


def _validate_one(
    raw: Any,
    prefix: str,
    line_map: dict[str, tuple[int, int]],
) -> tuple[Scenario | None, list[ValidationErrorDetail]]:
    try:
        return Scenario.model_validate(raw), []
    except ValidationError as exc:
        errors: list[ValidationErrorDetail] = []
        for err in exc.errors():
            loc = tuple(str(part) for part in err.get("loc", ()))
            path = ".".join(p for p in (prefix, *loc) if p)
            error_type = err.get("type", "unknown")
            line, col = _locate(path or prefix, line_map)
            suggestion = _suggest(loc[0]) if error_type == "extra_forbidden" and loc else None
            errors.append(
                ValidationErrorDetail(
                    field=path or "<root>",
                    message=err.get("msg", "Validation error"),
                    type=error_type,
                    line=line,
                    col=col,
                    suggestion=suggestion,
                    input_value=err.get("input"),
                )
            )
        return None, errors


def validate_scenario_document(
    raw_data: dict[str, Any],
    line_map: dict[str, tuple[int, int]],
) -> tuple[list[Scenario], list[ValidationErrorDetail]]:
    """Validate parsed YAML holding one scenario or a `scenarios:` list.

    Returns:
        (scenarios, []) on success, or ([], errors) if anything is invalid.
        Scenario ids must be unique within the document.
    """
    if LIST_KEY in raw_data:
        items = raw_data[LIST_KEY]
        extra = sorted(k for k in raw_data if k != LIST_KEY)
        errors: list[ValidationErrorDetail] = []
        for key in extra:
            line, col = _locate(key, line_map)
            errors.append(
                ValidationErrorDetail(
                    field=key,
                    message=f"Unexpected key next to '{LIST_KEY}'",
                    type="extra_forbidden",
                    line=line,
                    col=col,
                )
            )
        if not isinstance(items, list) or not items:
            line, col = _locate(LIST_KEY, line_map)
            errors.append(
                ValidationErrorDetail(
                    field=LIST_KEY,
                    message="Expected a non-empty list of scenarios",
                    type="list_type",
                    line=line,
                    col=col,
                )
            )
            return [], errors
        entries = [(f"{LIST_KEY}.{i}", item) for i, item in enumerate(items)]
    else:
        errors = []
        entries = [("", raw_data)]

    scenarios: list[Scenario] = []
    seen: set[str] = set()
    for prefix, raw in entries:
        scenario, item_errors = _validate_one(raw, prefix, line_map)
        errors.extend(item_errors)
        if scenario is None:
            continue
        if scenario.id in seen:
            id_path = f"{prefix}.id" if prefix else "id"
            line, col = _locate(id_path, line_map)
            errors.append(
                ValidationErrorDetail(
                    field=id_path,
                    message=f"Duplicate scenario id '{scenario.id}'",
                    type="duplicate_id",
                    line=line,
                    col=col,
                    input_value=scenario.id,
                )
            )
            continue
        seen.add(scenario.id)
        scenarios.append(scenario)

    if errors:
        return [], errors
    return scenarios, []


def _syntax_error(exc: YAMLParseError) -> ValidationErrorDetail:
    return ValidationErrorDetail(
        field="<yaml>",
        message=exc.message,
        type="yaml_syntax_error",
        line=exc.line,
        col=exc.column,
    )


def _empty(message: str, error_type: str) -> ValidationErrorDetail:
    return ValidationErrorDetail(field="<yaml>", message=message, type=error_type)


def validate_scenario_file(path: Path) -> tuple[list[Scenario], list[ValidationErrorDetail]]:
    """Parse and validate a scenario YAML file."""
    try:
        raw_data, line_map = parse_yaml_file(path)
    except YAMLParseError as exc:
        return [], [_syntax_error(exc)]
    if raw_data is None:
        return [], [_empty("File is empty or is not a YAML mapping", "empty_file")]
    return validate_scenario_document(raw_data, line_map)


def validate_scenario_string(
    source: str,
    filename: str = "<string>",
) -> tuple[list[Scenario], list[ValidationErrorDetail]]:
    """Parse and validate scenario YAML held in a string."""
    try:
        raw_data, line_map = parse_yaml_with_lines(source, filename=filename)
    except YAMLParseError as exc:
        return [], [_syntax_error(exc)]
    if raw_data is None:
        return [], [_empty("Input is empty or is not a YAML mapping", "empty_input")]
    return validate_scenario_document(raw_data, line_map)

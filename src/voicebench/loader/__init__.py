"""Scenario YAML loading: line-tracked parsing, validation, error rendering."""

from voicebench.loader.errors import ErrorFormatter
from voicebench.loader.validator import (
    ValidationErrorDetail,
    validate_scenario_document,
    validate_scenario_file,
    validate_scenario_string,
)
from voicebench.loader.yaml_parser import YAMLParseError, parse_yaml_file, parse_yaml_with_lines

__all__ = [
    "ErrorFormatter",
    "ValidationErrorDetail",
    "YAMLParseError",
    "parse_yaml_file",
    "parse_yaml_with_lines",
    "validate_scenario_document",
    "validate_scenario_file",
    "validate_scenario_string",
]

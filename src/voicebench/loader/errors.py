"""Rendering of scenario validation errors.

Human mode prints an annotated snippet of the offending source line;
CI mode prints one `file:line:col -- field: message` line per error.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voicebench.loader.validator import ValidationErrorDetail

ERROR_CODES: dict[str, str] = {
    "extra_forbidden": "E001",
    "missing": "E002",
    "string_too_short": "E003",
    "string_too_long": "E003",
    "string_pattern_mismatch": "E003",
    "value_error": "E003",
    "duplicate_id": "E003",
    "string_type": "E004",
    "list_type": "E004",
    "bool_type": "E004",
    "model_type": "E004",
    "dict_type": "E004",
    "enum": "E005",
    "yaml_syntax_error": "E006",
    "empty_file": "E007",
    "empty_input": "E007",
}

ERROR_DESCRIPTIONS: dict[str, str] = {
    "E001": "unknown field",
    "E002": "required field missing",
    "E003": "invalid value",
    "E004": "type mismatch",
    "E005": "invalid choice",
    "E006": "YAML syntax error",
    "E007": "empty input",
}


def _ci_from_env() -> bool:
    return os.environ.get("CI", "").lower() in ("true", "1", "yes")


class ErrorFormatter:
    """Formats ValidationErrorDetail lists for terminals or CI logs.

    Args:
        ci_mode: Force CI output on or off. None reads the CI env variable.
    """

    def __init__(self, ci_mode: bool | None = None) -> None:
        self.ci_mode = _ci_from_env() if ci_mode is None else ci_mode

    @staticmethod
    def error_code(error_type: str) -> str:
        return ERROR_CODES.get(error_type, "E999")

    def format_error(
        self,
        error: ValidationErrorDetail,
        source_lines: list[str],
        filename: str,
    ) -> str:
        if self.ci_mode:
            hint = f" ({error.suggestion})" if error.suggestion else ""
            return f"{filename}:{error.line or 0}:{error.col or 0} -- {error.field}: {error.message}{hint}"

        code = self.error_code(error.type)
        out = [f"error[{code}]: {ERROR_DESCRIPTIONS.get(code, 'validation error')}"]
        if error.line is None:
            out += [f"  --> {filename}", "   |", f"   | {error.field}: {error.message}", "   |"]
        else:
            out += [f"  --> {filename}:{error.line}:{error.col or 1}", "   |"]
            index = error.line - 1
            if 0 <= index < len(source_lines):
                text = source_lines[index].rstrip()
                number = str(error.line)
                gutter = " " * len(number)
                out.append(f" {number} | {text}")
                name = error.field.rsplit(".", 1)[-1]
                start = text.find(name)
                if start >= 0:
                    out.append(f" {gutter} | {' ' * start}{'^' * len(name)} {error.message}")
                else:
                    out.append(f" {gutter} | {error.message}")
            else:
                out.append(f"   | {error.message}")
            out.append("   |")
        if error.suggestion:
            out.append(f"   = help: {error.suggestion}")
        return "\n".join(out)

    def format_all(
        self,
        errors: list[ValidationErrorDetail],
        source: str,
        filename: str,
    ) -> str:
        """All errors, separated by blank lines."""
        lines = source.splitlines()
        return "\n\n".join(self.format_error(e, lines, filename) for e in errors)

"""Tests for voicebench.loader.errors - ErrorFormatter output."""

from voicebench.loader.errors import ErrorFormatter
from voicebench.loader.validator import ValidationErrorDetail

SOURCE = "id: weather\nnme: Weather\n"


def _unknown_field() -> ValidationErrorDetail:
    return ValidationErrorDetail(
        field="nme",
        message="Extra inputs are not permitted",
        type="extra_forbidden",
        line=2,
        col=1,
        suggestion="Did you mean 'name'?",
    )


class TestErrorCodes:
    def test_known_and_unknown(self):
        assert ErrorFormatter.error_code("extra_forbidden") == "E001"
        assert ErrorFormatter.error_code("missing") == "E002"
        assert ErrorFormatter.error_code("enum") == "E005"
        assert ErrorFormatter.error_code("something_new") == "E999"


class TestCIMode:
    def test_single_line(self):
        formatter = ErrorFormatter(ci_mode=True)
        line = formatter.format_error(_unknown_field(), SOURCE.splitlines(), "weather.yaml")
        assert line == (
            "weather.yaml:2:1 -- nme: Extra inputs are not permitted (Did you mean 'name'?)"
        )

    def test_unknown_position(self):
        formatter = ErrorFormatter(ci_mode=True)
        error = ValidationErrorDetail(field="<yaml>", message="Input is empty", type="empty_input")
        assert formatter.format_error(error, [], "x.yaml") == "x.yaml:0:0 -- <yaml>: Input is empty"

    def test_env_detection(self, monkeypatch):
        monkeypatch.setenv("CI", "true")
        assert ErrorFormatter().ci_mode is True
        monkeypatch.setenv("CI", "")
        assert ErrorFormatter().ci_mode is False


class TestHumanMode:
    def test_snippet_with_carets(self):
        formatter = ErrorFormatter(ci_mode=False)
        output = formatter.format_error(_unknown_field(), SOURCE.splitlines(), "weather.yaml")
        assert output.splitlines() == [
            "error[E001]: unknown field",
            "  --> weather.yaml:2:1",
            "   |",
            " 2 | nme: Weather",
            "   | ^^^ Extra inputs are not permitted",
            "   |",
            "   = help: Did you mean 'name'?",
        ]

    def test_without_position(self):
        formatter = ErrorFormatter(ci_mode=False)
        error = ValidationErrorDetail(field="<yaml>", message="File is empty", type="empty_file")
        output = formatter.format_error(error, [], "empty.yaml")
        assert "error[E007]: empty input" in output
        assert "  --> empty.yaml" in output
        assert "<yaml>: File is empty" in output

    def test_format_all_separates_errors(self):
        formatter = ErrorFormatter(ci_mode=True)
        second = ValidationErrorDetail(
            field="type", message="Input should be 'task-completion'", type="enum", line=3, col=1
        )
        output = formatter.format_all([_unknown_field(), second], SOURCE, "weather.yaml")
        assert output.split("\n\n")[1] == "weather.yaml:3:1 -- type: Input should be 'task-completion'"

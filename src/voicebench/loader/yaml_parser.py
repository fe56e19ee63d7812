"""Line-tracking YAML parsing for scenario documents.

Every mapping key is recorded with its 1-indexed (line, column) under a
dotted path (list items contribute their index, e.g. "scenarios.2.id"),
so validation errors can point back into the source file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class YAMLParseError(Exception):
    """YAML syntax error with its 1-indexed source position.

    Attributes:
        message: Parser message.
        line: Line of the problem, or None if PyYAML gave no mark.
        column: Column of the problem, or None.
        filename: File being parsed, or '<string>'.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        filename: str = "<string>",
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(message)


class LineTrackingLoader(yaml.SafeLoader):
    """SafeLoader that fills line_map while constructing nodes."""

    def __init__(self, stream: str) -> None:
        super().__init__(stream)
        self.line_map: dict[str, tuple[int, int]] = {}
        self._path: list[str] = []

    def _descend(self, segment: str, node: yaml.Node, deep: bool) -> Any:
        self._path.append(segment)
        try:
            return self.construct_object(node, deep=deep)
        finally:
            self._path.pop()

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        self.flatten_mapping(node)
        mapping: dict[Any, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, str):
                mapping[key] = self.construct_object(value_node, deep=deep)
                continue

            mark = key_node.start_mark
            self.line_map[".".join([*self._path, key])] = (mark.line + 1, mark.column + 1)
            if isinstance(value_node, (yaml.MappingNode, yaml.SequenceNode)):
                mapping[key] = self._descend(key, value_node, deep)
            else:
                mapping[key] = self.construct_object(value_node, deep=deep)
        return mapping

    def construct_sequence(self, node: yaml.SequenceNode, deep: bool = False) -> list[Any]:
        items: list[Any] = []
        for index, child in enumerate(node.value):
            if isinstance(child, (yaml.MappingNode, yaml.SequenceNode)):
                items.append(self._descend(str(index), child, deep))
            else:
                items.append(self.construct_object(child, deep=deep))
        return items

    def _construct_map(self, node: yaml.MappingNode) -> Any:
        yield self.construct_mapping(node, deep=True)

    def _construct_seq(self, node: yaml.SequenceNode) -> Any:
        yield self.construct_sequence(node, deep=True)


LineTrackingLoader.add_constructor("tag:yaml.org,2002:map", LineTrackingLoader._construct_map)
LineTrackingLoader.add_constructor("tag:yaml.org,2002:seq", LineTrackingLoader._construct_seq)


def parse_yaml_with_lines(
    source: str,
    filename: str = "<string>",
) -> tuple[dict[str, Any] | None, dict[str, tuple[int, int]]]:
    """Parse YAML text into (data, line_map).

    Returns:
        (None, {}) when the document is empty, comment-only, or not a mapping.

    Raises:
        YAMLParseError: On YAML syntax errors.
    """
    loader = LineTrackingLoader(source)
    try:
        data = loader.get_single_data()
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        raise YAMLParseError(
            str(exc),
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
            filename=filename,
        ) from exc
    finally:
        loader.dispose()

    if not isinstance(data, dict):
        return None, {}
    return data, loader.line_map


def parse_yaml_file(path: Path) -> tuple[dict[str, Any] | None, dict[str, tuple[int, int]]]:
    """Read and parse a YAML file. Raises FileNotFoundError if it is missing."""
    return parse_yaml_with_lines(path.read_text(encoding="utf-8"), filename=str(path))

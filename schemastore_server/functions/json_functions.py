"""
JSON functions made available to expressions.

Values are already-parsed JSON values: dict, list, str, int, float, bool or
None. The ``*_text`` variants and parse() accept raw JSON text.

Two styles live side by side:
- keys_to_lower() rebuilds a new tree and never mutates its input
- drop_fields() removes keys in place from the tree it is given

Invariants:
    - keys_to_lower(keys_to_lower(x)) == keys_to_lower(x)
    - drop_fields() visits objects at every depth, including inside arrays
    - Malformed text raises ParseError; bad or empty paths raise
      PathEvaluationError

Example:
    >>> select({"User": {"Name": "ada"}}, "$.user.name")
    'ada'
    >>> join(["x", "y", 3], ",")
    'x,y,3,'
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from jsonpath_ng import jsonpath
from jsonpath_ng.exceptions import JSONPathError
from jsonpath_ng.ext import parse as parse_path

from ..errors import ParseError, PathEvaluationError

logger = logging.getLogger(__name__)

JsonValue = Union[dict, list, str, int, float, bool, None]


def parse(text: str, to_lower: bool = False) -> JsonValue:
    """Parse JSON text, optionally lower-casing every key.

    Raises:
        ParseError: If ``text`` is not valid JSON
    """
    if text is None:
        raise ParseError("Cannot parse JSON from null input")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON: {e.msg}", position=e.pos) from e
    except TypeError as e:
        raise ParseError(f"Cannot parse JSON from {type(text).__name__}") from e
    if to_lower:
        value = keys_to_lower(value)
    return value


def keys_to_lower(value: JsonValue) -> JsonValue:
    """Return a new tree with every object key lower-cased, at every depth."""
    if isinstance(value, dict):
        return {str(key).lower(): keys_to_lower(child) for key, child in value.items()}
    if isinstance(value, list):
        return [keys_to_lower(element) for element in value]
    return value


def drop_fields(value: JsonValue, field: str, *fields: str) -> JsonValue:
    """Remove the named keys from every object in ``value``, in place.

    Arrays are walked element by element; their elements are never removed.

    Returns:
        The same ``value`` object, now without the dropped keys
    """
    names = {field, *fields}
    _drop(value, names)
    return value


def _drop(value: JsonValue, names: set[str]) -> None:
    if isinstance(value, dict):
        for child in value.values():
            _drop(child, names)
        for name in names:
            value.pop(name, None)
    elif isinstance(value, list):
        for element in value:
            _drop(element, names)


def drop_fields_text(text: str, field: str, *fields: str) -> JsonValue:
    return drop_fields(parse(text), field, *fields)


def _is_definite(expr: Any) -> bool:
    """Whether a compiled path addresses at most one location."""
    if isinstance(expr, (jsonpath.Root, jsonpath.This)):
        return True
    if isinstance(expr, jsonpath.Child):
        return _is_definite(expr.left) and _is_definite(expr.right)
    if isinstance(expr, jsonpath.Fields):
        return len(expr.fields) == 1 and expr.fields[0] != "*"
    if isinstance(expr, jsonpath.Index):
        indices = getattr(expr, "indices", None)
        return indices is None or len(indices) == 1
    return False


def _read(document: JsonValue, path: str) -> Any:
    if not isinstance(path, str):
        raise PathEvaluationError(f"Invalid JSON path {path!r}: expected a string", path=str(path))
    try:
        expr = parse_path(path)
    except JSONPathError as e:
        raise PathEvaluationError(f"Invalid JSON path '{path}': {e}", path=path) from e

    matches = [match.value for match in expr.find(document)]
    if not _is_definite(expr):
        return matches
    if not matches:
        raise PathEvaluationError(f"No results for path '{path}'", path=path)
    return matches[0]


def select(value: JsonValue, path: str, *paths: str, to_lower: bool = True) -> Any:
    """Evaluate one or more JSON paths against ``value``.

    Keys are lower-cased first unless ``to_lower`` is False. Paths that can
    match several locations (wildcards, slices, filters, recursive descent)
    return a list of matches.

    Returns:
        The matched value for a single path, or a list of matched values in
        path order when several paths are given

    Raises:
        PathEvaluationError: If a path is invalid or a definite path matches
            nothing
    """
    document = keys_to_lower(value) if to_lower else value
    if not paths:
        return _read(document, path)
    return [_read(document, p) for p in (path, *paths)]


def select_text(text: str, path: str, *paths: str, to_lower: bool = True) -> Any:
    return select(parse(text), path, *paths, to_lower=to_lower)


def _primitive_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def join(value: JsonValue, separator: str) -> str:
    """Concatenate each primitive array element followed by ``separator``.

    Objects, arrays and nulls inside the array contribute nothing. Input that
    is not an array yields an empty string.
    """
    if not isinstance(value, list):
        return ""
    parts = []
    for element in value:
        if element is None or isinstance(element, (dict, list)):
            continue
        parts.append(_primitive_str(element))
        parts.append(separator)
    return "".join(parts)


def stringify(value: JsonValue) -> str:
    """Compact JSON text of ``value``; ``"null"`` for None."""
    if value is None:
        return "null"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def array_length(value: Union[JsonValue, str]) -> int:
    """Number of elements of an array, parsing ``value`` first if it is text.

    Returns 0 when the (parsed) value is not an array.
    """
    if isinstance(value, str):
        value = parse(value)
    if isinstance(value, list):
        return len(value)
    return 0

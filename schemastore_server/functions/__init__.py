"""
Expression functions for SchemaStore.

This module provides the JSON tree transformer used by expression
evaluation: key normalization, recursive field removal, JSON path
selection, joining, stringifying, parsing and array length.

Invariants:
    - Functions hold no shared state and are safe to call concurrently
      on independent values
    - drop_fields() mutates its input; callers must not share that input
      across concurrent calls
"""

from .json_functions import (
    array_length,
    drop_fields,
    drop_fields_text,
    join,
    keys_to_lower,
    parse,
    select,
    select_text,
    stringify,
)

__all__ = [
    "array_length",
    "drop_fields",
    "drop_fields_text",
    "join",
    "keys_to_lower",
    "parse",
    "select",
    "select_text",
    "stringify",
]

"""Dotted path lookup over decoded JSON documents.

Paths look like ``data.items.0.title``: segments are separated by dots, a
segment made of digits indexes into a list, anything else is a field lookup.
Missing data never raises; it resolves to None and extracts as "".
"""

import math
from decimal import Decimal
from typing import Any


def resolve(root: Any, path: str | None) -> Any:
    """Walk ``path`` from ``root`` and return the node found there.

    An empty path returns ``root`` itself. Missing fields, wrong node types and
    out-of-range indexes resolve to None.
    """
    node = root
    if not path:
        return node

    for segment in path.split("."):
        if node is None:
            return None
        if segment.isdecimal() and isinstance(node, list):
            index = int(segment)
            if index >= len(node):
                return None
            node = node[index]
        elif isinstance(node, dict):
            node = node.get(segment)
        else:
            node = None
    return node


def coerce_scalar(value: Any) -> str:
    """Render a terminal JSON value as text; containers and null become ""."""
    if isinstance(value, str):
        return value
    # bool is checked first since it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_decimal(value)
    return ""


def format_decimal(value: float) -> str:
    """Render a float in plain decimal notation, never with an exponent."""
    text = repr(value)
    if not math.isfinite(value) or "e" not in text:
        return text
    text = format(Decimal(text), "f")
    return text if "." in text else text + ".0"


def extract(root: Any, path: str | None) -> str:
    """Extract the scalar at ``path`` as a string, or "" when absent."""
    if not path:
        return ""
    return coerce_scalar(resolve(root, path))

"""
Literal rendering for emitted source.
"""

import json

from .schema import DefaultValue

# Line terminators in JS source that json.dumps leaves unescaped
_LINE_SEPARATORS = {"\u2028": "\\u2028", "\u2029": "\\u2029"}


def ts_literal(value: DefaultValue) -> str:
    """
    Render a default value as a TypeScript literal.

    Strings are single-quoted, with control characters escaped the way
    JSON escapes them.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    body = json.dumps(str(value), ensure_ascii=False)[1:-1]
    body = body.replace('\\"', '"').replace("'", "\\'")
    for separator, escaped in _LINE_SEPARATORS.items():
        body = body.replace(separator, escaped)
    return f"'{body}'"


def prisma_literal(value: DefaultValue) -> str:
    """Render a default value as a Prisma literal (double-quoted strings)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(str(value))

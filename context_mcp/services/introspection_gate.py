"""
Introspection gate for the GraphQL bridge tools.

A textual classifier, not a GraphQL parser: string literals and comments are
blanked out, the document is tokenised, and the root selection set of every
operation is inspected. Fragment definitions are skipped so the standard
``IntrospectionQuery`` (root ``__schema`` plus ``fragment FullType on __Type``)
is accepted.

Rules for the schema tool (any failure raises ValidationError):
- the document is at most ``max_length`` characters
- it references ``__schema`` or ``__type``
- it contains no ``mutation { ... }`` / ``subscription { ... }`` operation
- every root field is a meta field (``__schema``, ``__type``, ``__typename``)
"""

import re
from enum import Enum

from context_mcp.errors import ValidationError

INTROSPECTION_FIELDS = frozenset({"__schema", "__type", "__typename"})
DEFAULT_MAX_QUERY_LENGTH = 5000

_IGNORED = re.compile(r'"""[\s\S]*?"""|"(?:\\.|[^"\\\n])*"|#[^\n]*')
_TOKEN = re.compile(r"\.\.\.|[A-Za-z_][A-Za-z0-9_]*|\S")
_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_MARKER = re.compile(r"__schema\b|__type\b")
_WRITE_BLOCK = re.compile(r"\b(?:mutation|subscription)\b[^{}]*\{")
_OPERATION_KEYWORDS = {"query", "mutation", "subscription", "fragment"}


class OperationKind(str, Enum):
    INTROSPECTION = "introspection"
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


def _strip_ignored(document: str) -> str:
    """Blank out string literals and comments so they cannot fake or hide syntax."""
    return _IGNORED.sub(lambda m: '""' if m.group(0).startswith('"') else " ", document)


def parse_operations(document: str) -> list[tuple[str, list[str]]]:
    """Return ``(kind, root_fields)`` for every operation in ``document``.

    Fragment spreads and inline fragments at the root are reported as ``...``.
    """
    tokens = _TOKEN.findall(_strip_ignored(document))
    operations: list[tuple[str, list[str]]] = []
    current: list[str] | None = None
    pending: str | None = None
    depth = 0
    parens = 0
    i = 0

    while i < len(tokens):
        token = tokens[i]
        if token == "(":
            parens += 1
        elif token == ")":
            parens = max(parens - 1, 0)
        elif parens:
            pass
        elif token == "{":
            if depth == 0:
                kind = pending or "query"
                current = None if kind == "fragment" else []
                if current is not None:
                    operations.append((kind, current))
                pending = None
            depth += 1
        elif token == "}":
            depth = max(depth - 1, 0)
            if depth == 0:
                current = None
        elif depth == 0:
            if pending is None and token in _OPERATION_KEYWORDS:
                pending = token
        elif depth == 1 and current is not None:
            if token == "...":
                current.append("...")
            elif token == "@":
                i += 1
            elif _NAME.match(token):
                if i + 1 < len(tokens) and tokens[i + 1] == ":":
                    i += 2
                    if i < len(tokens):
                        current.append(tokens[i])
                else:
                    current.append(token)
        i += 1

    return operations


def classify_operation(document: str) -> OperationKind:
    """Classify a GraphQL document by its most privileged operation."""
    operations = parse_operations(document)
    if not operations:
        raise ValidationError("No GraphQL operation found in the document")

    kinds = {kind for kind, _ in operations}
    if "mutation" in kinds:
        return OperationKind.MUTATION
    if "subscription" in kinds:
        return OperationKind.SUBSCRIPTION
    root_fields = {field for _, fields in operations for field in fields}
    if root_fields and root_fields <= INTROSPECTION_FIELDS:
        return OperationKind.INTROSPECTION
    return OperationKind.QUERY


def validate_introspection_query(query: str, max_length: int = DEFAULT_MAX_QUERY_LENGTH) -> str:
    """Reject anything that is not a pure schema introspection query."""
    if len(query) > max_length:
        raise ValidationError(
            f"Introspection query too long: {len(query)} characters (max {max_length})"
        )

    stripped = _strip_ignored(query)
    if not _MARKER.search(stripped):
        raise ValidationError("Only introspection queries using __schema or __type are allowed")

    if _WRITE_BLOCK.search(stripped):
        raise ValidationError("Mutations and subscriptions are not allowed in schema queries")

    for kind, fields in parse_operations(query):
        if kind != "query":
            raise ValidationError("Mutations and subscriptions are not allowed in schema queries")
        data_fields = [f for f in fields if f not in INTROSPECTION_FIELDS]
        if data_fields:
            raise ValidationError(
                f"Schema queries may only select __schema, __type or __typename; "
                f"found data field '{data_fields[0]}'"
            )

    return query

"""Placeholder substitution for provider request templates."""

from typing import Any, Iterable, Mapping, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .error import RequestSchemaError

PLACEHOLDER_START = "{{"
PLACEHOLDER_END = "}}"


def is_placeholder(value: str) -> bool:
    """Check whether a template token is a `{{namespace.field}}` placeholder."""
    return (
        isinstance(value, str)
        and value.startswith(PLACEHOLDER_START)
        and value.endswith(PLACEHOLDER_END)
    )


def find_placeholder_value(placeholder: str, values: Mapping[str, Any]) -> Any:
    """
    Look up the value a placeholder refers to.

    Only the field part of `namespace.field` is used for the lookup.

    Raises:
        RequestSchemaError: If the placeholder is malformed or the field is missing

    """
    body = placeholder.strip("{ }")
    pair = body.split(".")
    if len(pair) != 2:
        raise RequestSchemaError(f"invalid placeholder format: {body}")
    if pair[1] not in values:
        raise RequestSchemaError(f"not found value for placeholder: {body}")
    return values[pair[1]]


def format_value(value: Any) -> str:
    """Render a subject value in its natural string form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def resolve_token(token: Any, values: Mapping[str, Any]) -> str:
    """Substitute a single token if it is a placeholder."""
    if is_placeholder(token):
        return format_value(find_placeholder_value(token, values))
    return token if isinstance(token, str) else format_value(token)


def resolve_url(
    url: str,
    params: Iterable[Tuple[str, str]],
    values: Mapping[str, Any],
) -> str:
    """
    Build the final provider URL.

    Placeholder path segments and query parameter values are substituted from
    `values`. Parameters are appended to any query already present in `url`
    and the resulting query is sorted by key.
    """
    parts = urlsplit(url)
    path = "/".join(resolve_token(segment, values) for segment in parts.path.split("/"))

    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((key, resolve_token(value, values)) for key, value in params)
    query.sort(key=lambda item: item[0])

    return urlunsplit(
        (parts.scheme, parts.netloc, path, urlencode(query), parts.fragment)
    )

"""Extraction of typed fields from decoded provider responses."""

import re

from typing import Any, Mapping, Tuple

from .error import ResponseSchemaError

NO_INDEX = -1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

TYPE_STRING = "string"
TYPE_INTEGER = "integer"
TYPE_DOUBLE = "double"
TYPE_BOOLEAN = "boolean"

TYPE_ALIASES = {
    "string": TYPE_STRING,
    "integer": TYPE_INTEGER,
    "int": TYPE_INTEGER,
    "double": TYPE_DOUBLE,
    "number": TYPE_DOUBLE,
    "float": TYPE_DOUBLE,
    "boolean": TYPE_BOOLEAN,
    "bool": TYPE_BOOLEAN,
}

TRUE_STRINGS = ("1", "t", "T", "TRUE", "true", "True")
FALSE_STRINGS = ("0", "f", "F", "FALSE", "false", "False")
INTEGER_STRING = re.compile(r"[+-]?\d+")


def process_key(key: str) -> Tuple[str, int]:
    """
    Split a path component such as `eth[0]` into its name and index.

    Components without a well formed index suffix return `NO_INDEX`.

    Raises:
        ResponseSchemaError: If the index is negative

    """
    start = key.find("[")
    end = key.find("]")
    if start == -1 or end == -1:
        return key, NO_INDEX
    try:
        index = int(key[start + 1 : end])
    except ValueError:
        return key, NO_INDEX
    if index < 0:
        raise ResponseSchemaError(f"negative index for {key}")
    return key[:start], index


def parse_match(match: str, path: str) -> str:
    """Return the target subject field of an `<alias>.<field>` match descriptor."""
    pair = (match or "").split(".")
    if len(pair) != 2:
        raise ResponseSchemaError(f"invalid match field for {path}")
    return pair[1]


def find_value(document: Mapping[str, Any], path: str) -> Any:
    """
    Walk a dotted path like `wallet.eth[0].balance` and return the leaf value.

    Raises:
        ResponseSchemaError: If the path does not lead to a leaf value

    """
    parts = path.split(".")
    node: Any = document
    for position, part in enumerate(parts):
        name, index = process_key(part)
        if not name:
            raise ResponseSchemaError(f"invalid key {part}")
        if not isinstance(node, dict):
            raise ResponseSchemaError(
                f"field {'.'.join(parts[:position])} in response is not an object"
            )
        if name not in node:
            raise ResponseSchemaError(
                f"not found field {'.'.join(parts[: position + 1])} in response"
            )
        node = node[name]
        if isinstance(node, list):
            if index == NO_INDEX:
                raise ResponseSchemaError(f"not found index for {part}")
            if not 0 <= index < len(node):
                raise ResponseSchemaError(f"index out of range for {part}")
            node = node[index]

    if isinstance(node, dict):
        raise ResponseSchemaError(f"field {path} in response is an object, not a value")
    return node


def extract_fields(document: Mapping[str, Any], properties: Mapping[str, Any]) -> dict:
    """
    Produce the updated subject fields described by a response schema.

    Args:
        document: the decoded provider response
        properties: response paths mapped to objects with `type` and `match`

    Returns:
        A flat mapping from target subject field to the coerced value

    """
    updated = {}
    for path, field in properties.items():
        target = parse_match(field.match, path)
        updated[target] = cast_to_type(find_value(document, path), field.type)
    return updated


def cast_to_type(value: Any, type_name: str) -> Any:
    """
    Coerce a response value to a declared subject type.

    Raises:
        ResponseSchemaError: If the value cannot be represented as the target type

    """
    target = TYPE_ALIASES.get(type_name)
    if target is None:
        raise ResponseSchemaError(f"unsupported type {type_name}")

    if isinstance(value, bool):
        return _cast_bool(value, target)
    if isinstance(value, str):
        return _cast_string(value, target)
    if isinstance(value, (int, float)):
        return _cast_number(value, target)
    raise ResponseSchemaError(
        f"invalid type from response: {type(value).__name__}"
    )


def _cast_bool(value: bool, target: str) -> Any:
    if target == TYPE_STRING:
        return "true" if value else "false"
    if target == TYPE_INTEGER:
        return 1 if value else 0
    if target == TYPE_BOOLEAN:
        return value
    raise ResponseSchemaError(f"can not convert boolean to {target}")


def _cast_string(value: str, target: str) -> Any:
    if target == TYPE_STRING:
        return value
    if target == TYPE_INTEGER:
        if not INTEGER_STRING.fullmatch(value):
            raise ResponseSchemaError(f"can not convert '{value}' to {target}")
        return _checked_int(int(value))
    if target == TYPE_DOUBLE:
        try:
            return float(value)
        except ValueError as err:
            raise ResponseSchemaError(
                f"can not convert '{value}' to {target}"
            ) from err
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    raise ResponseSchemaError(f"can not convert '{value}' to {target}")


def _cast_number(value: Any, target: str) -> Any:
    if target == TYPE_STRING:
        if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value) if isinstance(value, float) else str(value)
    if target == TYPE_INTEGER:
        if isinstance(value, float) and not value.is_integer():
            raise ResponseSchemaError(f"can not convert {value} to {target}")
        return _checked_int(int(value))
    if target == TYPE_DOUBLE:
        return value if isinstance(value, float) else float(value)
    raise ResponseSchemaError(f"can not convert number to {target}")


def _checked_int(value: int) -> int:
    if value < INT64_MIN or value > INT64_MAX:
        raise ResponseSchemaError(f"integer value {value} is out of range")
    return value

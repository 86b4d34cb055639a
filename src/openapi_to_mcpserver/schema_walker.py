"""
Recursive traversal of dereferenced OpenAPI schema objects.

Two views of a schema are produced here:

- ``describe_fields`` renders markdown lines documenting every field, used for
  the response field guide.
- ``describe_properties`` builds the nested property mapping attached to tool
  arguments.

Properties are always visited in name order so that output does not depend on
declaration order. Recursion stops silently once ``MAX_DEPTH`` is exceeded.
"""

from typing import Any, Dict, Iterator, List, Tuple

from .dereferencer import CIRCULAR_REF_KEY

MAX_DEPTH = 10


def is_resolved(schema: Any) -> bool:
    """Return True for a schema object that is not an unresolved or circular $ref."""
    return (
        isinstance(schema, dict)
        and "$ref" not in schema
        and CIRCULAR_REF_KEY not in schema
    )


def schema_type(schema: Dict[str, Any]) -> str:
    """Return the declared type of a schema, or an empty string."""
    declared = schema.get("type")
    if isinstance(declared, list):
        # OpenAPI 3.1 type lists, e.g. ["string", "null"]
        declared = next((t for t in declared if t != "null"), "")
    return declared if isinstance(declared, str) else ""


def flatten_all_of(schema: Dict[str, Any], depth: int = 0) -> Dict[str, Any]:
    """Treat an untyped schema with a single ``allOf`` member as that member.

    The member's object properties are hoisted onto the schema, which becomes
    an object. Nested single-member compositions collapse the same way. Any
    other ``allOf`` (empty, or with several members) is returned unchanged.
    Collapsing stops after ``MAX_DEPTH`` levels so self-referencing
    compositions terminate.
    """
    all_of = schema.get("allOf")
    if (
        depth >= MAX_DEPTH
        or schema_type(schema)
        or not isinstance(all_of, list)
        or len(all_of) != 1
    ):
        return schema

    flattened = {key: value for key, value in schema.items() if key != "allOf"}
    flattened["type"] = "object"
    flattened["properties"] = {}

    member = all_of[0]
    if not is_resolved(member):
        return flattened
    member = flatten_all_of(member, depth + 1)
    if schema_type(member) == "object":
        flattened["properties"] = member.get("properties") or {}
        if "required" in member and "required" not in flattened:
            flattened["required"] = member["required"]
    if not flattened.get("description") and member.get("description"):
        flattened["description"] = member["description"]
    return flattened


def sorted_properties(schema: Dict[str, Any]) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """Yield (name, schema) for each resolvable property, sorted by name."""
    properties = schema.get("properties")
    if not isinstance(properties, dict):
        return
    # YAML may produce non-string keys such as integers
    for name in sorted(properties, key=str):
        prop = properties[name]
        if is_resolved(prop):
            yield str(name), flatten_all_of(prop)


def field_line(indent: str, path: str, schema: Dict[str, Any]) -> str:
    """Format the markdown documentation line for one field."""
    line = f"{indent}- **{path}**: {schema.get('description') or ''}"
    if schema_type(schema):
        line += f" (Type: {schema_type(schema)})"
    return line


def describe_fields(
    schema: Dict[str, Any], path: str, depth: int = 1, max_depth: int = MAX_DEPTH
) -> List[str]:
    """Document the fields nested under ``schema``.

    Args:
        schema: Schema of the field at ``path``
        path: Field path in dot/bracket notation, e.g. ``data.items[].id``
        depth: Current nesting depth, starting at 1
        max_depth: Deepest level that still produces lines

    Returns:
        One markdown line per nested field, indented two spaces per level
    """
    if depth > max_depth or not is_resolved(schema):
        return []

    schema = flatten_all_of(schema)
    indent = "  " * depth

    if schema_type(schema) == "array":
        item = schema.get("items")
        if not is_resolved(item):
            return []
        item = flatten_all_of(item)
        if schema_type(item) == "object" and item.get("properties"):
            return _property_lines(item, f"{path}[].", indent, depth, max_depth)
        if schema_type(item):
            return [f"{indent}- **{path}[]**: Items of type {schema_type(item)}"]
        return []

    if schema_type(schema) == "object":
        return _property_lines(schema, f"{path}.", indent, depth, max_depth)
    return []


def _property_lines(
    schema: Dict[str, Any], prefix: str, indent: str, depth: int, max_depth: int
) -> List[str]:
    lines = []
    for name, prop in sorted_properties(schema):
        prop_path = prefix + name
        lines.append(field_line(indent, prop_path, prop))
        lines.extend(describe_fields(prop, prop_path, depth + 1, max_depth))
    return lines


def describe_property(
    schema: Dict[str, Any], depth: int = 1, max_depth: int = MAX_DEPTH
) -> Dict[str, Any]:
    """Build the {type, description, enum, default, ...} entry for one property.

    Object properties and array items are described recursively while
    ``depth`` is below ``max_depth``.
    """
    schema = flatten_all_of(schema)
    entry: Dict[str, Any] = {}
    declared = schema_type(schema)
    if declared:
        entry["type"] = declared
    if schema.get("description"):
        entry["description"] = schema["description"]
    if schema.get("enum"):
        entry["enum"] = list(schema["enum"])
    if schema.get("default") is not None:
        entry["default"] = schema["default"]

    if depth < max_depth:
        if declared == "object" and schema.get("properties"):
            entry["properties"] = describe_properties(schema, depth + 1, max_depth)
        if declared == "array" and is_resolved(schema.get("items")):
            entry["items"] = describe_items(schema["items"], depth + 1, max_depth)
    return entry


def describe_properties(
    schema: Dict[str, Any], depth: int = 1, max_depth: int = MAX_DEPTH
) -> Dict[str, Any]:
    """Map each property name of ``schema`` to its description entry."""
    if depth > max_depth:
        return {}
    return {
        name: describe_property(prop, depth, max_depth)
        for name, prop in sorted_properties(schema)
    }


def describe_items(
    schema: Dict[str, Any], depth: int = 1, max_depth: int = MAX_DEPTH
) -> Dict[str, Any]:
    """Describe an array's item schema, including its ``minItems`` if set."""
    entry = describe_property(schema, depth, max_depth)
    if schema.get("minItems"):
        entry["minItems"] = schema["minItems"]
    return entry

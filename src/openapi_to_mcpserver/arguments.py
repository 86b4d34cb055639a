"""
Conversion of OpenAPI parameters and request bodies into tool arguments.
"""

import logging
from typing import Any, Dict, List, Optional

from .models import Arg
from .schema_walker import (
    describe_items,
    describe_properties,
    flatten_all_of,
    is_resolved,
    schema_type,
    sorted_properties,
)

logger = logging.getLogger(__name__)

BODY_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded")


def convert_parameters(parameters: Optional[List[Dict[str, Any]]]) -> List[Arg]:
    """
    Convert OpenAPI parameters to arguments.

    Each argument keeps the parameter location (path, query, header or cookie)
    as its position. Properties of object parameters carry only their type
    and description.

    Args:
        parameters: OpenAPI parameter objects of one operation

    Returns:
        List[Arg]: One argument per resolvable parameter, in declaration order
    """
    args = []
    for param in parameters or []:
        if not is_resolved(param) or not param.get("name"):
            continue

        fields: Dict[str, Any] = {
            "name": param["name"],
            "description": param.get("description") or "",
            "required": bool(param.get("required", False)),
            "position": param.get("in") or "",
        }

        schema = param.get("schema")
        if is_resolved(schema):
            fields["type"] = schema_type(schema)
            if schema.get("enum"):
                fields["enum"] = list(schema["enum"])
            if fields["type"] == "array" and is_resolved(schema.get("items")):
                fields["items"] = {"type": schema_type(schema["items"])}
            if fields["type"] == "object" and schema.get("properties"):
                fields["properties"] = _shallow_properties(schema)

        args.append(Arg(**fields))

    return args


def _shallow_properties(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Describe each property of an object parameter by type and description only."""
    properties = {}
    for name, prop in sorted_properties(schema):
        entry = {}
        if schema_type(prop):
            entry["type"] = schema_type(prop)
        if prop.get("description"):
            entry["description"] = prop["description"]
        properties[name] = entry
    return properties


def convert_request_body(request_body: Optional[Dict[str, Any]]) -> List[Arg]:
    """
    Convert a request body to arguments positioned in the body.

    Only JSON and form-urlencoded content is considered, and only object
    schemas decompose into arguments, one per top-level property. Content
    types are visited in sorted order.

    Args:
        request_body: OpenAPI request body object, or None

    Returns:
        List[Arg]: Body arguments, sorted by property name per content type
    """
    if not is_resolved(request_body):
        return []

    content = request_body.get("content")
    if not isinstance(content, dict):
        return []

    args = []
    for content_type in sorted(content, key=str):
        if not any(accepted in str(content_type) for accepted in BODY_CONTENT_TYPES):
            continue
        media_type = content[content_type]
        schema = media_type.get("schema") if isinstance(media_type, dict) else None
        if not is_resolved(schema):
            continue

        schema = flatten_all_of(schema)
        if schema_type(schema) != "object" or not schema.get("properties"):
            logger.debug("Skipping non-object %s request body", content_type)
            continue

        required = schema.get("required") or []
        for name, prop in sorted_properties(schema):
            args.append(_body_arg(name, prop, name in required))

    return args


def _body_arg(name: str, schema: Dict[str, Any], required: bool) -> Arg:
    declared = schema_type(schema)
    fields: Dict[str, Any] = {
        "name": name,
        "description": schema.get("description") or schema.get("title") or "",
        "type": declared,
        "required": required,
        "position": "body",
    }
    if schema.get("enum"):
        fields["enum"] = list(schema["enum"])
    if schema.get("default") is not None:
        fields["default"] = schema["default"]
    if declared == "array" and is_resolved(schema.get("items")):
        fields["items"] = describe_items(schema["items"])
    if declared == "object" and schema.get("properties"):
        fields["properties"] = describe_properties(schema)
    return Arg(**fields)


def build_args(
    parameters: Optional[List[Dict[str, Any]]], request_body: Optional[Dict[str, Any]]
) -> List[Arg]:
    """
    Build the full, name-sorted argument list of one operation.

    Duplicate names are kept; ``sorted`` is stable so their relative order
    (parameters before body) is reproducible.
    """
    args = convert_parameters(parameters) + convert_request_body(request_body)
    return sorted(args, key=lambda arg: arg.name)

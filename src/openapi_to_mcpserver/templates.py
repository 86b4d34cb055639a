"""
Request and response templates for a single OpenAPI operation.
"""

from typing import Any, Dict, List, Optional

from .models import Header, RequestTemplate, ResponseTemplate, ToolSecurityRequirement
from .schema_walker import (
    describe_fields,
    field_line,
    flatten_all_of,
    is_resolved,
    schema_type,
    sorted_properties,
)

RESPONSE_GUIDE_HEADER = (
    "# API Response Information\n\n"
    "Below is the response from an API call. To help you understand the data, I've provided:\n\n"
    "1. A detailed description of all fields in the response structure\n"
    "2. The complete API response\n\n"
    "## Response Structure\n\n"
)
RESPONSE_GUIDE_FOOTER = "\n## Original Response\n\n"


def first_security_scheme(security: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    """Return the first scheme name of the first non-empty security requirement.

    Scheme names within a requirement are compared in sorted order. Any further
    requirements (alternatives) are ignored.
    """
    for requirement in security or []:
        if isinstance(requirement, dict) and requirement:
            return str(sorted(requirement, key=str)[0])
    return None


def create_request_template(
    path: str,
    method: str,
    operation: Dict[str, Any],
    global_security: Optional[List[Dict[str, Any]]] = None,
) -> RequestTemplate:
    """
    Create the request template of an operation.

    Args:
        path: Path template, kept verbatim including ``{param}`` placeholders
        method: HTTP method
        operation: OpenAPI operation object
        global_security: Document-level security, used when the operation
            does not declare its own

    Returns:
        RequestTemplate: Template with the first security scheme referenced and
        a Content-Type header for the first (sorted) request body content type
    """
    template = RequestTemplate(url=path, method=method.upper())

    security = operation["security"] if "security" in operation else global_security
    scheme_id = first_security_scheme(security)
    if scheme_id:
        template.security = ToolSecurityRequirement(id=scheme_id)

    request_body = operation.get("requestBody")
    if is_resolved(request_body) and isinstance(request_body.get("content"), dict):
        content_types = sorted(request_body["content"], key=str)
        if content_types:
            template.headers.append(Header(key="Content-Type", value=str(content_types[0])))

    return template


def success_response(operation: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the response of the lowest 2xx status code, if any."""
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return None
    # YAML loads unquoted status codes as integers
    by_code = {str(code): response for code, response in responses.items()}
    for code in sorted(by_code):
        if code.startswith("2") and is_resolved(by_code[code]):
            return by_code[code]
    return None


def describe_response(response: Dict[str, Any]) -> str:
    """Render the markdown field guide for a success response."""
    parts = [RESPONSE_GUIDE_HEADER]

    for content_type in sorted(response["content"], key=str):
        media_type = response["content"][content_type]
        schema = media_type.get("schema") if isinstance(media_type, dict) else None
        if not is_resolved(schema):
            continue

        parts.append(f"> Content-Type: {content_type}\n\n")
        schema = flatten_all_of(schema)
        lines: List[str] = []
        if schema_type(schema) == "array" and is_resolved(schema.get("items")):
            lines.append("- **items**: Array of items (Type: array)")
            lines.extend(describe_fields(schema["items"], "items"))
        elif schema_type(schema) == "object" and schema.get("properties"):
            for name, prop in sorted_properties(schema):
                lines.append(field_line("", name, prop))
                lines.extend(describe_fields(prop, name))
        parts.extend(line + "\n" for line in lines)

    parts.append(RESPONSE_GUIDE_FOOTER)
    return "".join(parts)


def create_response_template(
    operation: Dict[str, Any], keep_field_guide: bool = False
) -> ResponseTemplate:
    """
    Create the response template of an operation.

    A markdown guide to the success response fields is generated whenever the
    operation has a 2xx response with content. It is only kept as the
    ``prepend_body`` when ``keep_field_guide`` is set; otherwise the template
    stays empty.

    Args:
        operation: OpenAPI operation object
        keep_field_guide: Whether to emit the generated field guide

    Returns:
        ResponseTemplate: The response template
    """
    response = success_response(operation)
    if response is None or not isinstance(response.get("content"), dict):
        return ResponseTemplate()
    if not response["content"]:
        return ResponseTemplate()

    template = ResponseTemplate(prepend_body=describe_response(response))
    if not keep_field_guide:
        template.prepend_body = ""
    return template

"""
Data models for the MCP server configuration produced from OpenAPI documents.
"""

from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel
from typing_extensions import TypeAliasType

# Open-ended schema values: defaults, enums, nested item/property descriptions.
Value = TypeAliasType(
    "Value",
    Union[str, int, float, bool, None, List["Value"], Dict[str, "Value"]],
)


def _is_empty(value: Any) -> bool:
    return value is None or value is False or value == "" or value == [] or value == {}


class _ConfigModel(BaseModel):
    """Base for configuration records.

    Fields are written with camelCase keys. Fields listed in ``omit_empty`` are
    left out of the serialized form when they hold an empty value, fields in
    ``omit_none`` only when they are ``None``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    omit_empty: ClassVar[Tuple[str, ...]] = ()
    omit_none: ClassVar[Tuple[str, ...]] = ()

    @model_serializer(mode="wrap")
    def _drop_empty(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> Dict[str, Any]:
        data = handler(self)
        fields = type(self).model_fields
        for name in self.omit_empty + self.omit_none:
            key = fields[name].alias if info.by_alias and fields[name].alias else name
            if key not in data:
                continue
            if data[key] is None or (name in self.omit_empty and _is_empty(data[key])):
                del data[key]
        return data


class Header(_ConfigModel):
    """An HTTP header sent with every request of a tool."""

    key: str = ""
    value: str = ""


class ToolSecurityRequirement(_ConfigModel):
    """Reference from a tool to a server-level security scheme."""

    id: str = ""
    passthrough: bool = False

    omit_empty: ClassVar[Tuple[str, ...]] = ("passthrough",)


class SecurityScheme(_ConfigModel):
    """A named authentication mechanism declared at the server level."""

    id: str = ""
    type: str = ""
    scheme: str = ""
    in_: str = Field(default="", alias="in")
    name: str = ""
    default_credential: str = ""

    omit_empty: ClassVar[Tuple[str, ...]] = ("scheme", "in_", "name", "default_credential")


class Arg(_ConfigModel):
    """A single tool argument and the request position its value goes to."""

    name: str
    description: str = ""
    type: str = ""
    required: bool = False
    default: Optional[Value] = None
    enum: List[Value] = Field(default_factory=list)
    items: Dict[str, Value] = Field(default_factory=dict)
    properties: Dict[str, Value] = Field(default_factory=dict)
    position: str = ""

    omit_empty: ClassVar[Tuple[str, ...]] = (
        "type",
        "required",
        "enum",
        "items",
        "properties",
        "position",
    )
    omit_none: ClassVar[Tuple[str, ...]] = ("default",)


class RequestTemplate(_ConfigModel):
    """How a tool call is turned into an HTTP request."""

    url: str = ""
    method: str = ""
    headers: List[Header] = Field(default_factory=list)
    body: str = ""
    args_to_json_body: bool = False
    args_to_url_param: bool = False
    args_to_form_body: bool = False
    security: Optional[ToolSecurityRequirement] = None

    omit_empty: ClassVar[Tuple[str, ...]] = (
        "headers",
        "body",
        "args_to_json_body",
        "args_to_url_param",
        "args_to_form_body",
        "security",
    )


class ResponseTemplate(_ConfigModel):
    """How an HTTP response is presented back to the caller."""

    body: str = ""
    prepend_body: str = ""
    append_body: str = ""

    omit_empty: ClassVar[Tuple[str, ...]] = ("body", "prepend_body", "append_body")


class Tool(_ConfigModel):
    """One callable tool, generated from one OpenAPI operation."""

    name: str
    description: str = ""
    args: List[Arg] = Field(default_factory=list)
    request_template: RequestTemplate = Field(default_factory=RequestTemplate)
    response_template: ResponseTemplate = Field(default_factory=ResponseTemplate)
    security: Optional[ToolSecurityRequirement] = None
    annotations: Dict[str, Value] = Field(default_factory=dict)

    omit_empty: ClassVar[Tuple[str, ...]] = ("security", "annotations")


class ServerConfig(_ConfigModel):
    """Server metadata shared by all tools."""

    name: str = ""
    base_url: str = ""
    config: Dict[str, Value] = Field(default_factory=dict)
    security_schemes: List[SecurityScheme] = Field(default_factory=list)

    omit_empty: ClassVar[Tuple[str, ...]] = ("base_url", "config", "security_schemes")


class MCPConfig(_ConfigModel):
    """Top-level MCP server configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    tools: List[Tool] = Field(default_factory=list)

    omit_empty: ClassVar[Tuple[str, ...]] = ("tools",)

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as plain data with camelCase keys."""
        return self.model_dump(by_alias=True)


class ToolTemplate(_ConfigModel):
    """Request/response/security fragments applied to every tool."""

    request_template: Optional[RequestTemplate] = None
    response_template: Optional[ResponseTemplate] = None
    security: Optional[ToolSecurityRequirement] = None

    omit_empty: ClassVar[Tuple[str, ...]] = (
        "request_template",
        "response_template",
        "security",
    )


class MCPConfigTemplate(_ConfigModel):
    """Override template used to patch a generated configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    tools: ToolTemplate = Field(default_factory=ToolTemplate)


class ConvertOptions(BaseModel):
    """Options for a single conversion run."""

    server_name: str = "openapi-server"
    server_config: Dict[str, Value] = Field(default_factory=dict)
    tool_name_prefix: str = ""
    template_path: Optional[Path] = None
    response_docs: bool = False
    # Apply document-level security to operations without a security key
    inherit_global_security: bool = False

"""
Core functionality for converting OpenAPI documents to MCP server configurations.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .arguments import build_args
from .exceptions import ConversionError, OpenAPIToMCPError, TemplateError
from .merger import apply_template, load_template
from .models import (
    ConvertOptions,
    MCPConfig,
    MCPConfigTemplate,
    SecurityScheme,
    ServerConfig,
    Tool,
)
from .parser import OpenAPIParser
from .schema_walker import is_resolved
from .templates import create_request_template, create_response_template

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "openapi-server"


class OpenAPIToMCPConverter:
    """Converts an OpenAPI document to an MCP server configuration."""

    def __init__(self, parser: OpenAPIParser, options: Optional[ConvertOptions] = None):
        """Initialize the converter.

        Args:
            parser: Parser holding the loaded OpenAPI document
            options: Conversion options, defaults are used if not provided
        """
        self.parser = parser
        self.options = options.model_copy(deep=True) if options else ConvertOptions()
        if not self.options.server_name:
            self.options.server_name = DEFAULT_SERVER_NAME

    @classmethod
    def from_file(
        cls, path: Union[str, Path], options: Optional[ConvertOptions] = None
    ) -> "OpenAPIToMCPConverter":
        """Create a converter for an OpenAPI JSON or YAML file.

        Args:
            path: Path to the OpenAPI document
            options: Conversion options

        Returns:
            An instance of OpenAPIToMCPConverter
        """
        return cls(OpenAPIParser.from_file(path), options)

    def convert(self, template: Optional[MCPConfigTemplate] = None) -> MCPConfig:
        """Convert the loaded document.

        Args:
            template: Override template to apply. If not given, the template
                at ``options.template_path`` is loaded when set.

        Returns:
            The MCP configuration, tools sorted by name

        Raises:
            ConversionError: If there is no document or an operation fails
            TemplateError: If the override template cannot be loaded
        """
        if self.parser.get_document() is None:
            raise ConversionError("no OpenAPI document loaded")

        config = MCPConfig(server=self._create_server())

        for path, method, operation in self.parser.get_paths():
            try:
                tool = self.convert_operation(path, method, operation)
            except (OpenAPIToMCPError, ValueError, TypeError) as e:
                raise ConversionError(
                    f"failed to convert operation {method.upper()} {path}: {e}"
                ) from e
            config.tools.append(tool)

        if template is None and self.options.template_path:
            try:
                template = load_template(self.options.template_path)
            except TemplateError as e:
                raise TemplateError(f"failed to apply template: {e}") from e
        if template is not None:
            apply_template(config, template)

        config.tools.sort(key=lambda tool: tool.name)

        logger.info(
            "Converted %d operations, %d security schemes",
            len(config.tools),
            len(config.server.security_schemes),
        )
        return config

    def _create_server(self) -> ServerConfig:
        servers = self.parser.get_servers()
        base_url = str(servers[0].get("url") or "") if servers else ""

        name = self.options.server_name
        info = self.parser.get_info()
        if info is not None:
            # The document title always takes precedence over the configured name
            name = f"{info.get('title') or ''} - {info.get('description') or ''}"

        return ServerConfig(
            name=name,
            base_url=base_url,
            config=dict(self.options.server_config),
            security_schemes=self._convert_security_schemes(),
        )

    def _convert_security_schemes(self) -> List[SecurityScheme]:
        """Convert components.securitySchemes, sorted by identifier."""
        schemes = []
        definitions = self.parser.get_security_schemes()
        for scheme_id in sorted(definitions):
            scheme = definitions[scheme_id]
            if not is_resolved(scheme):
                continue
            # defaultCredential can only be provided by an override template
            schemes.append(
                SecurityScheme(
                    id=scheme_id,
                    type=scheme.get("type") or "",
                    scheme=scheme.get("scheme") or "",
                    in_=scheme.get("in") or "",
                    name=scheme.get("name") or "",
                )
            )
        return schemes

    def convert_operation(self, path: str, method: str, operation: Dict[str, Any]) -> Tool:
        """Convert one OpenAPI operation to a tool.

        Args:
            path: Path template of the operation
            method: HTTP method
            operation: OpenAPI operation object

        Returns:
            The tool, with arguments sorted by name
        """
        name = self.options.tool_name_prefix + self.parser.get_operation_id(
            path, method, operation
        )
        logger.debug("Converting %s %s to tool %s", method.upper(), path, name)

        global_security = None
        if self.options.inherit_global_security:
            global_security = self.parser.get_global_security()

        return Tool(
            name=name,
            description=get_description(operation),
            args=build_args(operation.get("parameters"), operation.get("requestBody")),
            request_template=create_request_template(path, method, operation, global_security),
            response_template=create_response_template(
                operation, keep_field_guide=self.options.response_docs
            ),
            annotations=self.parser.get_annotations(path, method),
        )

    def save_mcp(self, output_path: Union[str, Path], fmt: Optional[str] = None) -> MCPConfig:
        """Convert and save the MCP configuration.

        Args:
            output_path: Path where to save the configuration
            fmt: "yaml" or "json"; derived from the file suffix if not provided

        Returns:
            The saved configuration
        """
        config = self.convert()
        save_config(config, output_path, fmt)
        return config


def get_description(operation: Dict[str, Any]) -> str:
    """Combine the summary and description of an operation."""
    summary = operation.get("summary") or ""
    description = operation.get("description") or ""
    if summary and description:
        return f"{summary} - {description}"
    return summary or description


def dump_config(config: MCPConfig, fmt: str = "yaml") -> str:
    """Render a configuration as YAML or JSON text."""
    data = config.to_dict()
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unsupported output format: {fmt}")


def save_config(
    config: MCPConfig, output_path: Union[str, Path], fmt: Optional[str] = None
) -> None:
    """Write a configuration to ``output_path``."""
    output_path = Path(output_path)
    if fmt is None:
        fmt = "json" if output_path.suffix == ".json" else "yaml"
    output_path.write_text(dump_config(config, fmt))

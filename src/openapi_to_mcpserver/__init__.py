"""OpenAPI to MCP server configuration converter."""

from .converter import OpenAPIToMCPConverter, dump_config, save_config
from .exceptions import ConversionError, DocumentError, OpenAPIToMCPError, TemplateError
from .merger import apply_template, load_template
from .models import Arg, ConvertOptions, MCPConfig, MCPConfigTemplate, Tool
from .parser import OpenAPIParser

__version__ = "0.1.0"
__all__ = [
    "OpenAPIToMCPConverter",
    "OpenAPIParser",
    "ConvertOptions",
    "MCPConfig",
    "MCPConfigTemplate",
    "Tool",
    "Arg",
    "apply_template",
    "load_template",
    "dump_config",
    "save_config",
    "OpenAPIToMCPError",
    "DocumentError",
    "ConversionError",
    "TemplateError",
]

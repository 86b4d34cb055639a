class OpenAPIToMCPError(Exception):
    """Base exception for OpenAPI to MCP server conversion errors."""
    pass

class DocumentError(OpenAPIToMCPError):
    """Raised when the OpenAPI document cannot be loaded or is invalid."""
    pass

class ConversionError(OpenAPIToMCPError):
    """Raised when there is an error during the conversion process."""
    pass

class TemplateError(OpenAPIToMCPError):
    """Raised when an override template cannot be read or parsed."""
    pass

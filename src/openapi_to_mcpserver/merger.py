"""
Loading and applying override templates to generated configurations.
"""

import logging
from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .dereferencer import load_structured
from .exceptions import TemplateError
from .models import MCPConfig, MCPConfigTemplate, Tool, ToolTemplate

logger = logging.getLogger(__name__)


def load_template(path: Union[str, Path]) -> MCPConfigTemplate:
    """Read an override template from a YAML (or JSON) file.

    Args:
        path: Path to the template file

    Returns:
        The parsed template

    Raises:
        TemplateError: If the file cannot be read, parsed or validated
    """
    try:
        content = Path(path).read_text()
    except OSError as e:
        raise TemplateError(f"failed to read template file: {e}") from e

    try:
        data = load_structured(content)
    except yaml.YAMLError as e:
        raise TemplateError(f"failed to parse template: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TemplateError("failed to parse template: expected a mapping at the top level")

    try:
        return MCPConfigTemplate.model_validate(data)
    except ValidationError as e:
        raise TemplateError(f"failed to parse template: {e}") from e


def apply_template(config: MCPConfig, template: MCPConfigTemplate) -> MCPConfig:
    """Patch ``config`` in place with an override template.

    Server config entries are merged key by key with the template winning.
    Template security schemes replace the generated list when there is at
    least one. The tool template is applied identically to every tool.

    Returns:
        The same configuration object
    """
    if template.server.config:
        config.server.config.update(template.server.config)

    if template.server.security_schemes:
        config.server.security_schemes = [
            scheme.model_copy(deep=True) for scheme in template.server.security_schemes
        ]

    tool_template = template.tools
    if (
        tool_template.request_template is None
        and tool_template.response_template is None
        and tool_template.security is None
    ):
        return config

    for tool in config.tools:
        _apply_tool_template(tool, tool_template)
    logger.debug("Applied tool template to %d tools", len(config.tools))

    return config


def _apply_tool_template(tool: Tool, template: ToolTemplate) -> None:
    request = template.request_template
    if request is not None:
        generated = tool.request_template
        # Template headers come after the generated ones, duplicates included
        generated.headers.extend(h.model_copy() for h in request.headers)
        if request.body:
            generated.body = request.body
        # The body-injection flags can only be switched on
        generated.args_to_json_body = generated.args_to_json_body or request.args_to_json_body
        generated.args_to_url_param = generated.args_to_url_param or request.args_to_url_param
        generated.args_to_form_body = generated.args_to_form_body or request.args_to_form_body
        if request.security is not None:
            generated.security = request.security.model_copy()

    response = template.response_template
    if response is not None:
        if response.body:
            tool.response_template.body = response.body
        if response.prepend_body:
            tool.response_template.prepend_body = response.prepend_body
        if response.append_body:
            tool.response_template.append_body = response.append_body

    if template.security is not None:
        tool.security = template.security.model_copy()

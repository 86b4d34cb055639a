"""
Loading, validation and lookups over an OpenAPI 3.x document.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from .dereferencer import DereferenceError, PathDereferencer, load_structured
from .exceptions import ConversionError, DocumentError

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class OpenAPIParser:
    """Gives the converter access to a parsed and dereferenced OpenAPI document."""

    def __init__(
        self,
        spec: Optional[Dict[str, Any]] = None,
        base_path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize with an already parsed OpenAPI document.

        Args:
            spec: OpenAPI document as a dictionary, or None for an empty parser
            base_path: Directory used to resolve relative file references

        Raises:
            DocumentError: If the document is invalid or has broken references
        """
        self.data: Optional[Dict[str, Any]] = None
        self.document: Optional[Dict[str, Any]] = None
        if spec is not None:
            self.load(spec, base_path)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "OpenAPIParser":
        """
        Create a parser from a JSON or YAML file.

        Raises:
            DocumentError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            content = path.read_text()
        except OSError as e:
            raise DocumentError(f"Failed to read specification file: {e}") from e
        return cls.from_string(content, base_path=path.parent)

    @classmethod
    def from_string(
        cls, content: str, base_path: Optional[Union[str, Path]] = None
    ) -> "OpenAPIParser":
        """
        Create a parser from JSON or YAML text.

        Raises:
            DocumentError: If the text cannot be parsed
        """
        try:
            # Try JSON first
            spec = load_structured(content, is_yaml=False)
        except json.JSONDecodeError:
            try:
                spec = load_structured(content)
            except yaml.YAMLError as e:
                raise DocumentError(f"Failed to parse specification: {e}") from e
        return cls(spec, base_path=base_path)

    def load(
        self, spec: Dict[str, Any], base_path: Optional[Union[str, Path]] = None
    ) -> None:
        """Validate ``spec`` and resolve its references."""
        self.validate_spec(spec)
        try:
            document = PathDereferencer(
                spec, base_path=base_path, keep_cycles=True
            ).dereference()
        except DereferenceError as e:
            raise DocumentError(f"Failed to resolve references: {e}") from e
        self.data = spec
        self.document = document
        logger.debug("Loaded OpenAPI %s document", spec["openapi"])

    @staticmethod
    def validate_spec(spec: Any) -> bool:
        """
        Validate the top-level structure of an OpenAPI document.

        Raises:
            DocumentError: If the document is invalid
        """
        if not isinstance(spec, dict):
            raise DocumentError("Specification must be a dictionary")

        for field in ("openapi", "info", "paths"):
            if field not in spec:
                raise DocumentError(f"Missing required field: {field}")

        version = str(spec["openapi"])
        if not (version.startswith("3.0") or version.startswith("3.1")):
            raise DocumentError(f"Unsupported OpenAPI version: {version}")

        if not isinstance(spec["paths"], dict):
            raise DocumentError("The paths field must be a mapping")

        return True

    def get_document(self) -> Optional[Dict[str, Any]]:
        return self.document

    def get_info(self) -> Optional[Dict[str, Any]]:
        info = (self.document or {}).get("info")
        return info if isinstance(info, dict) else None

    def get_servers(self) -> List[Dict[str, Any]]:
        return [s for s in (self.document or {}).get("servers") or [] if isinstance(s, dict)]

    def get_security_schemes(self) -> Dict[str, Any]:
        components = (self.document or {}).get("components") or {}
        return components.get("securitySchemes") or {}

    def get_global_security(self) -> Optional[List[Dict[str, Any]]]:
        return (self.document or {}).get("security")

    def get_paths(self) -> Iterator[Tuple[str, str, Dict[str, Any]]]:
        """
        Iterate over all operations in a stable order.

        Paths are visited in sorted order and methods in the order of
        ``HTTP_METHODS``. Path-level parameters are merged into each
        operation, operation-level parameters win on a (name, in) clash.

        Yields:
            Tuples of (path, method, operation)
        """
        paths = (self.document or {}).get("paths") or {}
        for path in sorted(paths):
            path_item = paths[path]
            if not isinstance(path_item, dict):
                continue
            shared = path_item.get("parameters") or []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                if shared:
                    operation = dict(operation)
                    operation["parameters"] = _merge_parameters(
                        shared, operation.get("parameters") or []
                    )
                yield path, method, operation

    def get_operation_id(self, path: str, method: str, operation: Dict[str, Any]) -> str:
        """
        Return the operationId, or a name generated from method and path.

        Args:
            path: API endpoint path
            method: HTTP method
            operation: OpenAPI operation object

        Returns:
            str: Operation identifier, e.g. ``get_pets_petId`` for ``GET /pets/{petId}``
        """
        operation_id = operation.get("operationId")
        if operation_id:
            return str(operation_id)

        # Remove leading and trailing slashes and path parameter braces
        path = path.strip("/").replace("{", "").replace("}", "")
        # Replace slashes and other separators with underscores
        path = re.sub(r"[^A-Za-z0-9_]+", "_", path).strip("_")
        return f"{method.lower()}_{path}" if path else method.lower()

    def get_annotations(self, path: str, method: str) -> Dict[str, Any]:
        """
        Return the out-of-band ``annotations`` mapping of an operation.

        The lookup runs against the raw document, before reference resolution.

        Raises:
            ConversionError: If the annotations are not a mapping
        """
        path_item = ((self.data or {}).get("paths") or {}).get(path)
        if not isinstance(path_item, dict):
            return {}
        operation = path_item.get(method.lower())
        if not isinstance(operation, dict) or operation.get("annotations") is None:
            return {}

        annotations = operation["annotations"]
        if not isinstance(annotations, dict):
            raise ConversionError(
                f"failed to parse annotations for {method.upper()} {path}: "
                f"expected a mapping, got {type(annotations).__name__}"
            )
        return annotations


def _merge_parameters(
    shared: List[Dict[str, Any]], own: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    overridden = {(p.get("name"), p.get("in")) for p in own if isinstance(p, dict)}
    merged = [
        p for p in shared
        if isinstance(p, dict) and (p.get("name"), p.get("in")) not in overridden
    ]
    return merged + list(own)

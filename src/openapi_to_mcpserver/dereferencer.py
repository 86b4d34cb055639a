"""
Reference resolver for OpenAPI documents.

This module replaces $ref objects with the values they point to, including:
- Local references (e.g. "#/components/schemas/Pet")
- File references (e.g. "./common.yaml#/components/schemas/Error")
- URL references (e.g. "https://example.com/schemas.json#/Pet")

Circular references are either cut with a marker object, giving a finite
tree, or kept as links back to the enclosing object, giving a cyclic graph
that consumers must walk with a depth bound.
"""

from typing import Any, Dict, List, Optional, Tuple, Union
from pathlib import Path
import copy
import json
import logging
import urllib.request

import yaml

logger = logging.getLogger(__name__)

CIRCULAR_REF_KEY = "$$circular_ref"


class SpecLoader(yaml.SafeLoader):
    """Safe YAML loader that keeps timestamps and mapping keys as plain strings."""

    def construct_mapping(self, node, deep=False):
        # Keys keep their source text, so "on", "no" and "200" stay strings
        for key_node, _ in node.value:
            if isinstance(key_node, yaml.ScalarNode) and key_node.tag != "tag:yaml.org,2002:merge":
                key_node.tag = "tag:yaml.org,2002:str"
        return super().construct_mapping(node, deep=deep)


SpecLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_structured(content: Union[str, bytes], is_yaml: bool = True) -> Any:
    """Parse JSON or YAML content into plain Python data."""
    if is_yaml:
        return yaml.load(content, Loader=SpecLoader)
    return json.loads(content)


class DereferenceError(Exception):
    """Raised when a reference cannot be resolved."""

    pass


class PathDereferencer:
    """Resolves references in an OpenAPI document."""

    def __init__(
        self,
        spec: Dict[str, Any],
        base_path: Optional[Union[str, Path]] = None,
        keep_cycles: bool = False,
    ):
        """Initialize the dereferencer.

        Args:
            spec: The OpenAPI specification dictionary
            base_path: Base path for resolving relative file references. If not provided,
                      uses the current working directory.
            keep_cycles: Link circular references back to the object being
                      resolved instead of cutting them with a marker.
        """
        self.spec = copy.deepcopy(spec)
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self._cache: Dict[str, Any] = {}
        self.keep_cycles = keep_cycles
        # Objects under construction, keyed by (id of owning document, ref)
        self._resolving: Dict[Tuple[int, str], Dict[str, Any]] = {}

    def _resolve_json_pointer(self, obj: Any, pointer: str) -> Any:
        """Resolve a JSON pointer within an object.

        Args:
            obj: The object to traverse
            pointer: JSON pointer (e.g. "/components/schemas/Pet")

        Returns:
            The referenced value

        Raises:
            DereferenceError: If the pointer cannot be resolved
        """
        if not pointer.startswith("/"):
            raise DereferenceError(f"Invalid JSON pointer: {pointer}")

        current = obj
        for part in pointer[1:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if isinstance(current, list) and part.isdigit():
                part = int(part)
            try:
                current = current[part]
            except (KeyError, TypeError, IndexError):
                raise DereferenceError(f"Could not resolve pointer {pointer}")

        return current

    def _load_external_ref(self, ref_path: str) -> Any:
        """Load an external document from a file or URL.

        Args:
            ref_path: Path or URL of the external document

        Returns:
            The loaded document

        Raises:
            DereferenceError: If the document cannot be loaded
        """
        if ref_path in self._cache:
            return self._cache[ref_path]

        is_yaml = ref_path.endswith((".yaml", ".yml"))
        try:
            if ref_path.startswith(("http://", "https://")):
                with urllib.request.urlopen(ref_path) as response:
                    data = load_structured(response.read(), is_yaml)
            else:
                file_path = self.base_path / ref_path
                data = load_structured(file_path.read_text(), is_yaml)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise DereferenceError(
                f"Failed to load external reference {ref_path}: {str(e)}"
            ) from e

        logger.debug("Loaded external reference %s", ref_path)
        self._cache[ref_path] = data
        return data

    def _resolve_ref(self, ref: str, document: Any) -> Tuple[Any, Any]:
        """Resolve a $ref string.

        Args:
            ref: The reference string (e.g. "#/components/schemas/Pet")
            document: The document local references are resolved against

        Returns:
            Tuple of (referenced value, document the value lives in)

        Raises:
            DereferenceError: If the reference cannot be resolved
        """
        file_path, _, pointer = ref.partition("#")
        if file_path:
            document = self._load_external_ref(file_path)

        if pointer:
            return self._resolve_json_pointer(document, pointer), document
        return document, document

    def _dereference(self, obj: Any, document: Any) -> Any:
        """Recursively replace references in ``obj``."""
        if isinstance(obj, list):
            return [self._dereference(item, document) for item in obj]
        if not isinstance(obj, dict):
            return obj

        ref = obj.get("$ref")
        if isinstance(ref, str):
            key = (id(document), ref)
            if key not in self._resolving:
                value = self._follow(ref, document, key)
            elif self.keep_cycles:
                value = self._resolving[key]
            else:
                return {CIRCULAR_REF_KEY: ref}

            if not isinstance(value, dict):
                return value
            siblings = {
                k: self._dereference(v, document) for k, v in obj.items() if k != "$ref"
            }
            if not siblings:
                return value
            # Sibling keys of $ref are kept, the referenced value wins on conflict
            siblings.update(value)
            return siblings

        return {key: self._dereference(value, document) for key, value in obj.items()}

    def _follow(self, ref: str, document: Any, key: Tuple[int, str]) -> Any:
        """Resolve and dereference the target of ``ref``.

        While the target is being built, references back to it receive the
        placeholder that is filled in once the target is complete.
        """
        placeholder: Dict[str, Any] = {}
        self._resolving[key] = placeholder
        try:
            value, owner = self._resolve_ref(ref, document)
            value = self._dereference(value, owner)
        finally:
            del self._resolving[key]

        if not isinstance(value, dict):
            return value
        placeholder.update(value)
        return placeholder

    def dereference(self) -> Dict[str, Any]:
        """Dereference all references in the paths and components sections.

        Returns:
            A copy of the specification with references replaced

        Raises:
            DereferenceError: If any reference cannot be resolved
        """
        self._resolving.clear()
        result = copy.deepcopy(self.spec)

        for section in ("paths", "components"):
            if section in result:
                result[section] = self._dereference(result[section], self.spec)

        return result

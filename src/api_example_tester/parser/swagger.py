"""Swagger 2.0 document loader and read-only index.

Every accessor preserves document order: later examples may depend on
credentials or parameters produced by earlier ones.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from api_example_tester.errors import SpecLoadError
from .base import HTTP_METHODS, Operation, Parameter, ResponseSpec, SecurityDefinition

logger = logging.getLogger(__name__)


def load_spec(file_path: Path) -> dict:
    """Load a Swagger document from a YAML or JSON file."""
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError(f"Cannot read specification {file_path}: {e}") from e

    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as yaml_error:
        # Not every JSON document is valid YAML (tabs, duplicate keys)
        try:
            doc = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            raise SpecLoadError(f"Cannot parse specification {file_path}: {yaml_error}") from yaml_error

    if not isinstance(doc, dict):
        raise SpecLoadError(f"Specification {file_path} is not a mapping")
    if "swagger" not in doc and "openapi" not in doc:
        raise SpecLoadError(f"Specification {file_path} has no swagger/openapi version field")
    if not isinstance(doc.get("paths"), dict):
        raise SpecLoadError(f"Specification {file_path} has no paths")
    return doc


class SpecIndex:
    """Structured access to paths, operations, security schemes and examples."""

    def __init__(self, document: dict):
        self.document = document

    @property
    def base_path(self) -> str:
        return (self.document.get("basePath") or "").rstrip("/")

    @property
    def title(self) -> str:
        return (self.document.get("info") or {}).get("title", "")

    def paths(self) -> list[str]:
        return [p for p in self.document.get("paths", {}) if p.startswith("/")]

    def methods(self, path: str) -> list[str]:
        path_item = self.document["paths"].get(path) or {}
        return [m for m in path_item if m in HTTP_METHODS]

    def responses(self, path: str, method: str, success_first: bool = False) -> list[str]:
        """Response codes of an operation, in document order.

        With success_first the first 2xx code is listed first, the way
        client libraries expose the primary success response.
        """
        codes = [str(code) for code in self._raw_operation(path, method).get("responses") or {}]
        if success_first:
            success = next((c for c in codes if c.startswith("2")), None)
            if success is not None:
                codes.remove(success)
                codes.insert(0, success)
        return codes

    def examples_for(self, path: str, method: str, code: str) -> list[dict]:
        response = self._raw_response(path, method, code)
        return list(response.get("x-amples") or [])

    def operation(self, path: str, method: str) -> Operation:
        raw = self._raw_operation(path, method)
        path_item = self.document["paths"][path]

        merged: dict[tuple[str, str], Parameter] = {}
        for raw_param in list(path_item.get("parameters") or []) + list(raw.get("parameters") or []):
            param = self._parse_parameter(raw_param)
            if param is not None:
                merged[(param.name, param.location)] = param

        security = raw.get("security")
        if security is None:
            security = self.document.get("security") or []

        responses = {}
        for code in self.responses(path, method):
            raw_response = self._raw_response(path, method, code)
            schema = raw_response.get("schema") or {}
            responses[code] = ResponseSpec(
                code=code,
                schema_ref=schema.get("$ref") if isinstance(schema, dict) else None,
                examples=self.examples_for(path, method, code),
            )

        return Operation(
            path=path,
            method=method,
            parameters=list(merged.values()),
            security=security,
            responses=responses,
        )

    def security_definitions(self) -> dict[str, SecurityDefinition]:
        result = {}
        for name, raw in (self.document.get("securityDefinitions") or {}).items():
            raw = raw or {}
            result[name] = SecurityDefinition(
                name=name,
                type=raw.get("type", ""),
                location=raw.get("in"),
                key_name=raw.get("name"),
                example=raw.get("x-ample"),
            )
        return result

    def global_parameters(self) -> dict[str, Parameter]:
        """Root-level parameters block, keyed by its map key."""
        result = {}
        for key, raw in (self.document.get("parameters") or {}).items():
            param = _to_parameter(raw, fallback_name=key)
            if param is not None:
                result[key] = param
        return result

    def _raw_operation(self, path: str, method: str) -> dict:
        return self.document["paths"][path].get(method) or {}

    def _raw_response(self, path: str, method: str, code: str) -> dict:
        responses = self._raw_operation(path, method).get("responses") or {}
        # YAML turns unquoted codes into ints
        response = responses.get(code)
        if response is None and str(code).isdigit():
            response = responses.get(int(code))
        return response or {}

    def _parse_parameter(self, raw: dict) -> Parameter | None:
        if isinstance(raw, dict) and "$ref" in raw:
            ref = raw["$ref"]
            prefix = "#/parameters/"
            if not ref.startswith(prefix):
                logger.debug("Skipping unsupported parameter reference %s", ref)
                return None
            key = ref[len(prefix):]
            raw = (self.document.get("parameters") or {}).get(key)
            param = _to_parameter(raw, fallback_name=key)
            if param is not None:
                param.ref = key
            return param
        return _to_parameter(raw)


def _to_parameter(raw: Any, fallback_name: str | None = None) -> Parameter | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name", fallback_name)
    if name is None:
        return None
    return Parameter(
        name=name,
        location=raw.get("in", "query"),
        required=raw.get("required", False),
        default=raw.get("default"),
        example=raw.get("x-ample"),
    )

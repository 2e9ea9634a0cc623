"""Data models for a loaded Swagger document and the requests built from it.

The parser converts the raw document into these models; the runner
builds RequestDescriptor and ResponseView values per example.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

HTTP_METHODS = ("get", "head", "post", "put", "delete", "connect", "options", "trace", "patch")

SYNTHETIC_DESCRIPTION = "should return expected HTTP status code"


class Parameter(BaseModel):
    """A single operation parameter (path, query, header, formData or body)."""

    name: str
    location: str  # path / query / header / formData / body
    required: bool = False
    default: Any = None
    example: Any = None  # x-ample
    ref: str | None = None  # key in the root parameters block

    def default_value(self) -> Any:
        """Value used by the defaults layer: x-ample first, then default."""
        if self.example is not None:
            return self.example
        return self.default


class SecurityDefinition(BaseModel):
    """A securityDefinitions entry with its optional x-ample credential."""

    name: str
    type: str = ""
    location: str | None = None  # in
    key_name: str | None = None  # name of the header / query key
    example: Any = None  # x-ample


class ResponseSpec(BaseModel):
    """One declared response of an operation."""

    code: str
    schema_ref: str | None = None
    examples: list[dict] = []


class Operation(BaseModel):
    """One HTTP method under one path."""

    path: str
    method: str
    parameters: list[Parameter] = []
    security: list[dict[str, list]] = []
    responses: dict[str, ResponseSpec] = {}

    def find_parameter(self, name: str) -> Parameter | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def security_names(self) -> list[str]:
        """Flattened scheme names of every security requirement, in order."""
        names: list[str] = []
        for requirement in self.security:
            for name in requirement:
                if name not in names:
                    names.append(name)
        return names


class ExampleRequest(BaseModel):
    parameters: dict[str, Any] = {}
    headers: dict[str, Any] = {}
    body: Any = {}


class Example(BaseModel):
    """A normalized x-amples entry."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    description: str = SYNTHETIC_DESCRIPTION
    request: ExampleRequest = Field(default_factory=ExampleRequest)
    response: dict[str, Any] = {}
    auth: bool | dict[str, Any] = False
    auth_provider_for: dict[str, Any] = Field(default={}, alias="authProviderFor")
    param_provider_for: dict[str, Any] = Field(default={}, alias="paramProviderFor")


class RequestDescriptor(BaseModel):
    """A fully resolved request, ready for the transport."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str
    uri: str
    headers: dict[str, Any] = {}
    parameters: dict[str, Any] = {}
    form: dict[str, Any] = {}
    body: Any = {}
    authorizations: dict[str, Any] = {}


class ResponseView(BaseModel):
    """What the validator sees of an HTTP exchange, including transport errors."""

    status: int | None = None
    headers: dict[str, str] = {}
    body: Any = None
    obj: Any = None
    error: str | None = None

    def has_body(self) -> bool:
        return self.body not in (None, "", b"")

    def as_dict(self) -> dict[str, Any]:
        """Plain view used for subset matching; error only when present."""
        data = self.model_dump(exclude={"error"})
        if self.error is not None:
            data["error"] = self.error
        return data

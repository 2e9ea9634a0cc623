"""Turns an operation and one of its examples into a RequestDescriptor."""

import copy
import logging
from typing import Any
from urllib.parse import quote

from api_example_tester.parser.base import Example, Operation, RequestDescriptor
from api_example_tester.parser.swagger import SpecIndex

from . import auth
from .state import ChainState

logger = logging.getLogger(__name__)

AUTH_MODES = ("client", "header")


def normalize_example(response_code: str, raw: dict) -> Example:
    """Deep-copy a raw x-amples entry and fill in empty request/response fields."""
    raw = copy.deepcopy(raw or {})
    request = raw.get("request") or {}
    request.setdefault("parameters", {})
    request.setdefault("headers", {})
    if request.get("body") is None:
        request["body"] = {}
    raw["request"] = request

    response = raw.get("response") or {}
    if not response.get("status") and str(response_code).isdigit():
        response["status"] = int(response_code)
    raw["response"] = response
    return Example.model_validate(raw)


class RequestBuilder:
    """Layers defaults, headers, parameters and body into a request.

    Later layers overwrite earlier ones on the same name. Headers and
    parameters share one namespace, so a parameter named like a header
    replaces it.
    """

    def __init__(self, index: SpecIndex, state: ChainState, base_url: str, auth_mode: str = "client"):
        if auth_mode not in AUTH_MODES:
            raise ValueError(f"Unknown auth mode {auth_mode!r}, expected one of {AUTH_MODES}")
        self.index = index
        self.state = state
        self.base_url = base_url.rstrip("/")
        self.auth_mode = auth_mode

    def build(self, operation: Operation, example: Example) -> RequestDescriptor:
        values: dict[str, Any] = self.state.defaults_for(operation)
        values.update(example.request.headers)
        values.update(example.request.parameters)

        uri = self.substitute_path(self.base_url + operation.path, operation, values)
        headers, query, form = self._route(operation, values, set(example.request.headers))
        descriptor = RequestDescriptor(
            method=operation.method.upper(),
            uri=uri,
            headers=headers,
            parameters=query,
            form=form,
            body=copy.deepcopy(example.request.body),
        )
        self.add_auth(descriptor, operation, example)
        return descriptor

    @staticmethod
    def substitute_path(uri: str, operation: Operation, values: dict[str, Any]) -> str:
        """Replace {name} with the percent-encoded value of each path parameter present in values.

        Substituted values are dropped from values.
        """
        for param in operation.parameters:
            if param.location != "path" or param.name not in values:
                continue
            uri = uri.replace("{" + param.name + "}", quote(str(values.pop(param.name)), safe=""))
        return uri

    def _route(
        self,
        operation: Operation,
        values: dict[str, Any],
        header_names: set[str],
    ) -> tuple[dict, dict, dict]:
        headers, query, form = {}, {}, {}
        locations = {p.name: p.location for p in operation.parameters}
        for name, value in values.items():
            location = locations.get(name)
            if location is None and name in header_names:
                location = "header"
            if location == "header":
                headers[name] = value
            elif location == "formData":
                form[name] = value
            elif location == "body":
                # the example body owns the request body
                continue
            else:
                query[name] = value
        return headers, query, form

    def add_auth(self, descriptor: RequestDescriptor, operation: Operation, example: Example) -> None:
        if not example.auth:
            return
        if self.auth_mode == "header":
            credentials = dict(self.state.credentials)
            if isinstance(example.auth, dict):
                credentials.update(example.auth)
            descriptor.headers.update(
                auth.header_authorizations(operation, self.state.definitions, credentials)
            )
            return

        authorizations = self.state.authorizations()
        if isinstance(example.auth, dict):
            # local override, never written back to the shared state
            authorizations = dict(authorizations)
            for scheme, credential in example.auth.items():
                applier = auth.resolve_applier(self.state.definitions.get(scheme), credential)
                if applier is not None:
                    authorizations[scheme] = applier
        descriptor.authorizations = authorizations

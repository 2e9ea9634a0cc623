"""Authorization appliers built from security definitions and example credentials.

Appliers are requests auth handlers: each one attaches a credential to a
prepared request.
"""

import logging
from typing import Any

from requests.auth import AuthBase, HTTPBasicAuth

from api_example_tester.parser.base import Operation, SecurityDefinition

logger = logging.getLogger(__name__)


class _Applier(AuthBase):
    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class PasswordAuthorization(HTTPBasicAuth):
    """HTTP basic auth from a username/password credential."""

    def __repr__(self):
        return f"PasswordAuthorization(username={self.username!r})"


class ApiKeyAuthorization(_Applier):
    """A raw credential sent as a named header or query parameter."""

    def __init__(self, name: str, value: Any, location: str = "header"):
        self.name = name
        self.value = value
        self.location = location

    def __call__(self, r):
        if self.location == "query":
            r.prepare_url(r.url, {self.name: self.value})
        else:
            r.headers[self.name] = str(self.value)
        return r


class CookieAuthorization(_Applier):
    """A token sent as a cookie string, e.g. ``session=abc``."""

    def __init__(self, cookie: Any):
        self.cookie = cookie

    def __call__(self, r):
        existing = r.headers.get("Cookie")
        r.headers["Cookie"] = f"{existing}; {self.cookie}" if existing else str(self.cookie)
        return r


class ChainedAuthorization(AuthBase):
    """Apply several appliers in order; later ones win on the same header."""

    def __init__(self, appliers: list[AuthBase]):
        self.appliers = appliers

    def __call__(self, r):
        for applier in self.appliers:
            r = applier(r)
        return r


Applier = AuthBase


def resolve_applier(definition: SecurityDefinition | None, credential: Any) -> Applier | None:
    """Build an applier for a scheme and credential, or None when unsupported."""
    if definition is None or credential is None:
        return None
    if definition.type == "basic":
        if isinstance(credential, dict) and credential.get("username") and credential.get("password"):
            return PasswordAuthorization(credential["username"], credential["password"])
        return ApiKeyAuthorization("Authorization", credential, "header")
    if definition.type == "apiKey":
        return ApiKeyAuthorization(definition.key_name, credential, definition.location or "header")
    if definition.type == "oauth2":
        return CookieAuthorization(credential)
    logger.debug("No applier for scheme %s of type %r", definition.name, definition.type)
    return None


def parse_all(definitions: dict[str, SecurityDefinition], credentials: dict[str, Any]) -> dict[str, Applier]:
    """Resolve an applier for every scheme that has a credential."""
    result = {}
    for name, definition in definitions.items():
        applier = resolve_applier(definition, credentials.get(name))
        if applier is not None:
            result[name] = applier
    return result


def header_authorizations(
    operation: Operation,
    definitions: dict[str, SecurityDefinition],
    credentials: dict[str, Any],
) -> dict[str, str]:
    """Plain headers for the operation's security requirements.

    Only basic schemes and schemes delivered in a header are supported;
    other types are skipped. Schemes sharing a header name overwrite each
    other in requirement order.
    """
    headers = {}
    for name in operation.security_names():
        definition = definitions.get(name)
        credential = credentials.get(name)
        if definition is None or credential is None:
            continue
        if definition.type == "basic":
            headers["Authorization"] = str(credential)
        elif definition.location == "header" and definition.key_name:
            headers[definition.key_name] = str(credential)
        else:
            logger.debug("Header auth mode skips scheme %s of type %r", name, definition.type)
    return headers

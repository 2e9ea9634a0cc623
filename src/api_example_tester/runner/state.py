"""Mutable state shared between examples: credentials and parameter defaults.

Examples run one after another in document order, so the store has a
single writer at any time. A value installed by one example is visible to
every later example and never to earlier ones.
"""

import logging
from typing import Any

from api_example_tester.parser.base import Operation, SecurityDefinition
from api_example_tester.parser.swagger import SpecIndex

from . import auth

logger = logging.getLogger(__name__)


class ChainState:
    """Credentials per security scheme plus operation and global parameter defaults."""

    def __init__(
        self,
        definitions: dict[str, SecurityDefinition],
        global_defaults: dict[str, Any] | None = None,
    ):
        self.definitions = definitions
        self.credentials: dict[str, Any] = {
            name: d.example for name, d in definitions.items() if d.example is not None
        }
        self.global_defaults: dict[str, Any] = dict(global_defaults or {})
        self.operation_defaults: dict[tuple[str, str, str], Any] = {}

    @classmethod
    def from_index(cls, index: SpecIndex) -> "ChainState":
        global_defaults = {
            key: param.default_value()
            for key, param in index.global_parameters().items()
            if param.default_value() is not None
        }
        return cls(index.security_definitions(), global_defaults)

    # -- credentials ----------------------------------------------------------

    def set_credential(self, scheme: str, value: Any) -> None:
        logger.debug("Installing credential for scheme %s", scheme)
        self.credentials[scheme] = value

    def authorizations(self) -> dict[str, auth.Applier]:
        """Appliers for every scheme that currently has a credential."""
        return auth.parse_all(self.definitions, self.credentials)

    # -- parameter defaults ---------------------------------------------------

    def set_operation_default(self, operation: Operation, name: str, value: Any) -> None:
        logger.debug("Installing default for %s %s parameter %s", operation.method, operation.path, name)
        self.operation_defaults[(operation.path, operation.method, name)] = value

    def set_global_default(self, name: str, value: Any) -> None:
        logger.debug("Installing default for global parameter %s", name)
        self.global_defaults[name] = value

    def defaults_for(self, operation: Operation) -> dict[str, Any]:
        """Defaults layer for the parameters the operation declares.

        A chained operation default wins over a referenced global default,
        which wins over the declared x-ample or default. Global parameters
        the operation does not reference are never sent.
        """
        values: dict[str, Any] = {}
        for param in operation.parameters:
            key = (operation.path, operation.method, param.name)
            if key in self.operation_defaults:
                values[param.name] = self.operation_defaults[key]
            elif param.ref is not None and param.ref in self.global_defaults:
                values[param.name] = self.global_defaults[param.ref]
            elif param.default_value() is not None:
                values[param.name] = param.default_value()
        return values

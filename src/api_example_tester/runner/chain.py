"""Provider chaining: feed values from one response into later examples.

Templates are plain strings with ``${...}`` placeholders. A placeholder
may only reference ``headers.<name>``, ``body.<field>`` or ``obj.<field>``
(fields may be dotted to reach nested values).
"""

import logging
import re
from typing import Any

from api_example_tester.errors import TemplateError
from api_example_tester.parser.base import Example, Operation, ResponseView
from api_example_tester.parser.swagger import SpecIndex

from .state import ChainState

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{([^}]*)\}")
EXPRESSION = re.compile(r"^(headers|body|obj)((?:\.[A-Za-z0-9_\-]+)+)$")


def render_template(template: str, response: ResponseView) -> str:
    """Substitute every placeholder in template with values from the response."""

    def substitute(match: re.Match) -> str:
        expression = match.group(1).strip()
        parsed = EXPRESSION.match(expression)
        if not parsed:
            raise TemplateError(f"Unsupported template expression: ${{{expression}}}")
        root, path = parsed.group(1), parsed.group(2).lstrip(".").split(".")
        return _stringify(_lookup(response, root, path))

    return PLACEHOLDER.sub(substitute, str(template))


def _lookup(response: ResponseView, root: str, path: list[str]) -> Any:
    if root == "headers":
        headers = {k.lower(): v for k, v in response.headers.items()}
        value: Any = headers.get(path[0].lower())
        path = path[1:]
    else:
        value = getattr(response, root)
        if value is None and root == "obj":
            value = response.body
    for key in path:
        if isinstance(value, dict):
            value = value.get(key)
        elif isinstance(value, list) and key.isdigit() and int(key) < len(value):
            value = value[int(key)]
        else:
            return None
    return value


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _template_of(entry: Any) -> str | None:
    """Provider entries are either a template or a mapping holding it under x-ample."""
    if isinstance(entry, dict):
        return entry.get("x-ample")
    return entry


class ChainDispatcher:
    """Installs provider results into the shared ChainState."""

    def __init__(self, index: SpecIndex, state: ChainState):
        self.index = index
        self.state = state

    def dispatch_auth(self, example: Example, response: ResponseView) -> None:
        for scheme, entry in example.auth_provider_for.items():
            template = _template_of(entry)
            if scheme not in self.state.definitions or template is None:
                logger.debug("Ignoring auth provider for undeclared scheme %s", scheme)
                continue
            self.state.set_credential(scheme, render_template(template, response))

    def dispatch_params(self, operation: Operation, example: Example, response: ResponseView) -> None:
        global_names = self.index.global_parameters()
        for name, entry in example.param_provider_for.items():
            template = _template_of(entry)
            if template is None:
                continue
            value = render_template(template, response)
            if operation.find_parameter(name) is not None:
                self.state.set_operation_default(operation, name, value)
            if name in global_names:
                self.state.set_global_default(name, value)

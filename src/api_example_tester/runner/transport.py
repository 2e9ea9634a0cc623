"""HTTP transport on top of requests.Session."""

import logging

import requests

from api_example_tester.parser.base import Operation, RequestDescriptor, ResponseView

from .auth import ChainedAuthorization

logger = logging.getLogger(__name__)


class Transport:
    """Sends RequestDescriptors and converts every outcome into a ResponseView.

    Transport failures (connection refused, timeouts) become a view with
    ``status=None`` and ``error`` set, so examples can assert on them.
    """

    def __init__(self, timeout: float | None = None, session: requests.Session | None = None):
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, descriptor: RequestDescriptor, operation: Operation | None = None) -> ResponseView:
        kwargs = {
            "headers": {k: str(v) for k, v in descriptor.headers.items()},
            "params": descriptor.parameters or None,
            "timeout": self.timeout,
        }
        if descriptor.form:
            kwargs["data"] = descriptor.form
        elif descriptor.body not in (None, {}, "", []):
            kwargs["json"] = descriptor.body

        appliers = self._select_authorizations(descriptor, operation)
        if appliers:
            kwargs["auth"] = ChainedAuthorization(appliers)

        logger.debug("%s %s", descriptor.method, descriptor.uri)
        try:
            resp = self.session.request(descriptor.method, descriptor.uri, **kwargs)
        except requests.RequestException as e:
            logger.debug("Transport error for %s %s: %s", descriptor.method, descriptor.uri, e)
            return ResponseView(error=str(e))
        return to_view(resp)

    def close(self) -> None:
        self.session.close()

    @staticmethod
    def _select_authorizations(descriptor: RequestDescriptor, operation: Operation | None) -> list:
        """Appliers for the operation's security requirements, or all of them when it declares none."""
        if not descriptor.authorizations:
            return []
        required = operation.security_names() if operation is not None else []
        if not required:
            return list(descriptor.authorizations.values())
        return [descriptor.authorizations[name] for name in required if name in descriptor.authorizations]


def to_view(resp: requests.Response) -> ResponseView:
    headers = {k.lower(): v for k, v in resp.headers.items()}
    body = resp.text or None
    obj = None
    if body is not None:
        try:
            obj = resp.json()
            body = obj
        except ValueError:
            obj = None
    return ResponseView(status=resp.status_code, headers=headers, body=body, obj=obj)

"""Runs one example end to end: normalize, build, send, validate."""

import logging

from api_example_tester.parser.base import Operation
from api_example_tester.parser.swagger import SpecIndex

from .chain import ChainDispatcher
from .request import RequestBuilder, normalize_example
from .state import ChainState
from .transport import Transport
from .validator import ResponseValidator

logger = logging.getLogger(__name__)


class ExampleHandler:
    """Owns the shared chain state and the collaborators every example needs."""

    def __init__(
        self,
        index: SpecIndex,
        base_url: str,
        transport: Transport | None = None,
        auth_mode: str = "client",
        state: ChainState | None = None,
    ):
        self.index = index
        self.state = state or ChainState.from_index(index)
        self.transport = transport or Transport()
        self.builder = RequestBuilder(index, self.state, base_url, auth_mode=auth_mode)
        self.validator = ResponseValidator(index.document, ChainDispatcher(index, self.state))

    def handle(self, operation: Operation, response_code: str, raw_example: dict) -> None:
        example = normalize_example(response_code, raw_example)
        request = self.builder.build(operation, example)
        response = self.transport.send(request, operation)
        logger.debug("%s %s -> %s", request.method, request.uri, response.status)
        self.validator.validate(operation, response_code, example, response)

"""Response validation: literal subset match, provider dispatch, schema check."""

import logging
from typing import Any

from jsonschema import Draft4Validator
from pydantic import BaseModel

from api_example_tester.errors import ExampleMismatchError, SchemaValidationError
from api_example_tester.parser.base import Example, Operation, ResponseView

from .chain import ChainDispatcher

logger = logging.getLogger(__name__)


class SchemaViolation(BaseModel):
    path: list[str]
    message: str


def contains_subset(actual: Any, expected: Any) -> bool:
    """True when actual contains everything expected declares.

    Mappings must carry every expected key with a contained value, lists
    must hold a containing item for every expected item, scalars compare
    equal. Extra actual keys and items are tolerated.
    """
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return False
        return all(k in actual and contains_subset(actual[k], v) for k, v in expected.items())
    if isinstance(expected, list):
        if not isinstance(actual, list):
            return False
        return all(any(contains_subset(a, e) for a in actual) for e in expected)
    return actual == expected


def check_subset(response: ResponseView, expected: dict) -> None:
    """Raise ExampleMismatchError unless the response contains expected."""
    expected = dict(expected)
    if isinstance(expected.get("headers"), dict):
        expected["headers"] = {k.lower(): v for k, v in expected["headers"].items()}
    actual = response.as_dict()
    if not contains_subset(actual, expected):
        raise ExampleMismatchError(expected, actual)


def validate_instance(document: dict, schema_ref: str, instance: Any) -> list[SchemaViolation]:
    """Validate instance against a #/definitions/... reference of the document."""
    schema = {"$ref": schema_ref, "definitions": document.get("definitions") or {}}
    validator = Draft4Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path])
    return [
        SchemaViolation(path=[str(p) for p in error.absolute_path], message=error.message)
        for error in errors
    ]


def format_violations(violations: list[SchemaViolation]) -> str:
    messages = ["#/" + "/".join(v.path) + ": " + v.message for v in violations]
    return "Validation failed:\n" + "\n".join(messages)


class ResponseValidator:
    """Checks one response against its example and the declared schema."""

    def __init__(self, document: dict, dispatcher: ChainDispatcher, schema_validator=validate_instance):
        self.document = document
        self.dispatcher = dispatcher
        self.schema_validator = schema_validator

    def validate(self, operation: Operation, response_code: str, example: Example, response: ResponseView) -> None:
        check_subset(response, example.response)
        if example.auth_provider_for:
            self.dispatcher.dispatch_auth(example, response)
        if example.param_provider_for:
            self.dispatcher.dispatch_params(operation, example, response)
        self.validate_schema(operation, response_code, response)

    def validate_schema(self, operation: Operation, response_code: str, response: ResponseView) -> None:
        spec_response = operation.responses.get(str(response_code))
        if spec_response is None or not spec_response.schema_ref or response.obj is None:
            return
        violations = self.schema_validator(self.document, spec_response.schema_ref, response.obj)
        if violations:
            raise SchemaValidationError(format_violations(violations))

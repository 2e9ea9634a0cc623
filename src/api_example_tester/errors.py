"""Exception types raised by api-example-tester."""


class ApiExampleTesterError(Exception):
    """Base error for the tester."""


class SpecLoadError(ApiExampleTesterError):
    """The document could not be read or is not a Swagger document."""


class TemplateError(ApiExampleTesterError, ValueError):
    """A provider template uses an expression other than headers/body/obj lookups."""


class ExampleMismatchError(AssertionError):
    """The actual response does not contain the example's expected response."""

    def __init__(self, expected: dict, actual: dict):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Response does not contain expected subset.\n"
            f"Expected: {expected!r}\n"
            f"Actual:   {actual!r}"
        )


class SchemaValidationError(AssertionError):
    """The response body violates the schema declared for the response code."""

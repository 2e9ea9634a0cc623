"""Builds the suite tree: server -> path -> method -> response code -> example.

Each level keeps the order of the document. Examples are looked up on the
document by response code, and a response without examples gets one
synthetic status-code example.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from api_example_tester.parser.base import SYNTHETIC_DESCRIPTION, Operation
from api_example_tester.parser.swagger import SpecIndex


@dataclass
class Case:
    name: str
    operation: Operation
    response_code: str
    example: dict
    run: Callable[[], None]


@dataclass
class Suite:
    name: str
    suites: list["Suite"] = field(default_factory=list)
    cases: list[Case] = field(default_factory=list)

    def add_suite(self, name: str) -> "Suite":
        child = Suite(name)
        self.suites.append(child)
        return child

    def add_case(self, case: Case) -> Case:
        self.cases.append(case)
        return case

    def iter_cases(self) -> Iterator[Case]:
        yield from self.cases
        for child in self.suites:
            yield from child.iter_cases()


class SuiteBuilder:
    """Registers one named case per (path, method, code, example)."""

    def __init__(self, index: SpecIndex, handler, server_url: str, success_first: bool = False):
        self.index = index
        self.handler = handler
        self.server_url = server_url
        self.success_first = success_first

    def build(self) -> Suite:
        root = Suite(f"{self.server_url}: {self.index.title}" if self.index.title else self.server_url)
        for path in self.index.paths():
            path_suite = root.add_suite(path)
            for method in self.index.methods(path):
                self._build_method(path_suite.add_suite(method.upper()), path, method)
        return root

    def _build_method(self, suite: Suite, path: str, method: str) -> None:
        operation = self.index.operation(path, method)
        for code in self.index.responses(path, method, success_first=self.success_first):
            code_suite = suite.add_suite(code)
            examples = self.index.examples_for(path, method, code)
            if not examples:
                examples = [{"description": SYNTHETIC_DESCRIPTION}]
            seen: dict[str, int] = {}
            for example in examples:
                name = f"{code}: {(example or {}).get('description', SYNTHETIC_DESCRIPTION)}"
                seen[name] = seen.get(name, 0) + 1
                if seen[name] > 1:
                    name = f"{name} [{seen[name]}]"
                code_suite.add_case(self._make_case(name, operation, code, example))

    def _make_case(self, name: str, operation: Operation, code: str, example: dict) -> Case:
        def run():
            self.handler.handle(operation, code, example)

        return Case(name=name, operation=operation, response_code=code, example=example, run=run)

"""Runs a suite tree through pytest, one item per example, in tree order."""

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from .builder import Case, Suite

logger = logging.getLogger(__name__)


class CaseItem(pytest.Item):
    def __init__(self, *, case: Case, **kwargs):
        super().__init__(**kwargs)
        self.case = case

    def runtest(self):
        self.case.run()

    def repr_failure(self, excinfo, style=None):
        if isinstance(excinfo.value, AssertionError):
            return str(excinfo.value)
        return super().repr_failure(excinfo, style=style)

    def reportinfo(self):
        operation = self.case.operation
        return self.path, None, f"{operation.method.upper()} {operation.path} {self.name}"


class SuiteNode(pytest.Collector):
    def __init__(self, *, suite: Suite, **kwargs):
        super().__init__(**kwargs)
        self.suite = suite

    def collect(self):
        for child in self.suite.suites:
            yield SuiteNode.from_parent(self, name=child.name, suite=child)
        for case in self.suite.cases:
            yield CaseItem.from_parent(self, name=case.name, case=case)


class SpecFile(pytest.File):
    def __init__(self, *, suite: Suite, **kwargs):
        super().__init__(**kwargs)
        self.suite = suite

    def collect(self):
        yield SuiteNode.from_parent(self, name=self.suite.name, suite=self.suite)


class ExamplePlugin:
    """Collects the Swagger document into the suite tree and tallies failures."""

    def __init__(self, root: Suite, spec_path: Path):
        self.root = root
        self.spec_path = Path(spec_path).resolve()
        self.failed: list[str] = []

    @property
    def failures(self) -> int:
        return len(self.failed)

    def pytest_collect_file(self, parent, file_path):
        if Path(file_path).resolve() == self.spec_path:
            return SpecFile.from_parent(parent, path=file_path, suite=self.root)
        return None

    def pytest_runtest_logreport(self, report):
        if report.failed and report.nodeid not in self.failed:
            self.failed.append(report.nodeid)


def pytest_args(spec_path: Path, extra_args: Sequence[str] = ()) -> list[str]:
    """Command line for an isolated run: no ini files, conftests, cache or reordering."""
    return [
        str(spec_path),
        "-c", os.devnull,
        "--noconftest",
        "-p", "no:cacheprovider",
        "-p", "no:randomly",
        *extra_args,
    ]


def run_suite(
    root: Suite,
    spec_path: Path,
    extra_args: Sequence[str] = (),
    callback: Callable[[int], None] | None = None,
) -> int:
    """Run every case and return the number of failures, or -1 if pytest could not run them."""
    plugin = ExamplePlugin(root, spec_path)
    exit_code = pytest.main(pytest_args(spec_path, extra_args), plugins=[plugin])
    if exit_code in (pytest.ExitCode.INTERNAL_ERROR, pytest.ExitCode.USAGE_ERROR, pytest.ExitCode.INTERRUPTED):
        logger.error("pytest exited with %s", exit_code)
        failures = -1
    else:
        failures = plugin.failures
    if callback is not None:
        callback(failures)
    return failures

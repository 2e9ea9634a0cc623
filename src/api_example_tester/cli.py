"""CLI entry point for api-example-tester."""

import logging
from pathlib import Path

import click

from api_example_tester.config import RunConfig
from api_example_tester.errors import SpecLoadError
from api_example_tester.parser.swagger import SpecIndex, load_spec
from api_example_tester.runner.handler import ExampleHandler
from api_example_tester.runner.transport import Transport
from api_example_tester.suite.builder import Suite, SuiteBuilder
from api_example_tester.suite.runner import run_suite

SETUP_FAILURE = -1


def _server_options(f):
    options = [
        click.option("--protocol", default="http", envvar="API_EXAMPLE_PROTOCOL", show_default=True, help="API protocol."),
        click.option("--host", default="localhost", envvar="API_EXAMPLE_HOST", show_default=True, help="API host."),
        click.option("--port", default=8081, type=int, envvar="API_EXAMPLE_PORT", show_default=True, help="API port."),
        click.option(
            "-s", "--spec", default="./swagger.yml", envvar="API_EXAMPLE_SPEC", show_default=True,
            type=click.Path(path_type=Path), help="JSON/YAML Swagger file path.",
        ),
        click.option("--success-first", is_flag=True, envvar="API_EXAMPLE_SUCCESS_FIRST", help="Run the primary 2xx response of each operation first."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _build_suite(config: RunConfig, transport: Transport) -> Suite:
    index = SpecIndex(load_spec(config.spec))
    handler = ExampleHandler(
        index,
        config.base_url(index.base_path),
        transport=transport,
        auth_mode=config.auth_mode,
    )
    root = SuiteBuilder(index, handler, config.base_url(index.base_path), success_first=config.success_first).build()
    return root


@click.group()
def main():
    """API Example Tester: run the x-amples of a Swagger document against a live server."""
    pass


@main.command(context_settings={"ignore_unknown_options": True})
@_server_options
@click.option("--auth-mode", default="client", envvar="API_EXAMPLE_AUTH_MODE", type=click.Choice(["client", "header"]), help="How credentials are attached.")
@click.option("--timeout", default=None, type=float, envvar="API_EXAMPLE_TIMEOUT", help="Request timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, envvar="API_EXAMPLE_VERBOSE", help="Log every request and chained value.")
@click.argument("pytest_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, pytest_args: tuple[str, ...], **options):
    """Run every example and exit with the number of failures."""
    config = RunConfig(**options)
    if config.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    transport = Transport(timeout=config.timeout)
    try:
        root = _build_suite(config, transport)
        click.echo(f"Running {sum(1 for _ in root.iter_cases())} examples against {root.name}")
        failures = run_suite(root, config.spec, pytest_args)
    except SpecLoadError as e:
        click.echo(f"Setup failed: {e}", err=True)
        ctx.exit(SETUP_FAILURE)
    finally:
        transport.close()
    if failures == SETUP_FAILURE:
        click.echo("Setup failed: test run did not complete", err=True)
    ctx.exit(failures)


@main.command("list")
@_server_options
@click.pass_context
def list_cases(ctx, **options):
    """Print the suite tree without sending any request."""
    config = RunConfig(**options)
    transport = Transport()
    try:
        root = _build_suite(config, transport)
    except SpecLoadError as e:
        click.echo(f"Setup failed: {e}", err=True)
        ctx.exit(SETUP_FAILURE)
    finally:
        transport.close()
    _echo_suite(root, 0)


def _echo_suite(suite: Suite, depth: int) -> None:
    click.echo("  " * depth + suite.name)
    for case in suite.cases:
        click.echo("  " * (depth + 1) + case.name)
    for child in suite.suites:
        _echo_suite(child, depth + 1)

"""CLI entrypoint for lintpilot."""
import asyncio
import json
import logging
import os
from typing import Annotated, Optional

import click
import typer
import uvicorn

from lintpilot.agents.drivers import AutomatedDriver, InteractiveDriver
from lintpilot.agents.orchestrator import build_orchestrator, scan
from lintpilot.core import output_formatter as fmt
from lintpilot.core.config import API_HOST, API_PORT, LINTPILOT_MODEL, LINTPILOT_PROVIDER
from lintpilot.core.constants import VERSION
from lintpilot.core.errors import ConfigMissing, LintPilotError
from lintpilot.llm.client import OracleError, create_oracle
from lintpilot.llm.router import PROVIDERS, get_provider_config, is_valid_provider
from lintpilot.parser.aggregator import get_parse_errors, has_parse_errors
from lintpilot.services.config_finder import find_lint_config
from lintpilot.services.eslint_runner import ESLintRunner
from lintpilot.services.results_writer import ResultsWriter
from lintpilot.utils.logging_config import setup_logging
from lintpilot.utils.path_utils import resolve_target

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="lintpilot",
    no_args_is_help=True,
    help="AI-assisted ESLint remediation, one rule at a time.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(VERSION)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


def _fail(message: str, hint: str = "") -> None:
    typer.echo(click.style(message, fg="red"), err=True)
    if hint:
        typer.echo(click.style(hint, dim=True), err=True)
    raise typer.Exit(code=1)


def _check_provider(provider: str) -> None:
    if not is_valid_provider(provider):
        _fail(f"Unknown provider: {provider}", f"Available providers: {', '.join(PROVIDERS)}")


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------
@app.command("analyze")
def analyze_command(
    path: Annotated[str, typer.Argument(help="File or directory to lint.")] = ".",
    provider: Annotated[
        str, typer.Option("--provider", "-p", help="Oracle provider.")
    ] = LINTPILOT_PROVIDER,
    model: Annotated[Optional[str], typer.Option("--model", "-m", help="Model name.")] = None,
    output: Annotated[
        Optional[str], typer.Option("--output", "-o", help="Save results to a JSON file.")
    ] = None,
    raw: Annotated[bool, typer.Option("--raw", "-r", help="Print raw ESLint JSON.")] = False,
    non_interactive: Annotated[
        bool, typer.Option("--non-interactive", "-n", help="Scan once, print the summary and exit.")
    ] = False,
    auto_fix: Annotated[
        bool, typer.Option("--auto-fix", help="Fix everything unattended, file by file.")
    ] = False,
    debug: Annotated[bool, typer.Option("--debug", "-d", help="Enable debug logging.")] = False,
    config: Annotated[
        Optional[str], typer.Option("--config", "-c", help="Path to the ESLint config file.")
    ] = None,
) -> None:
    """Analyze ESLint findings and remediate them with AI assistance."""
    setup_logging(level=logging.DEBUG if debug else logging.WARNING)
    _check_provider(provider)

    project_root = os.getcwd()
    target = resolve_target(project_root, path)

    try:
        find_lint_config(project_root, config)
    except ConfigMissing as exc:
        _fail(str(exc), "Use --config <path> to specify the config file path")

    runner = ESLintRunner(project_root)

    if raw:
        try:
            payload = runner.run_raw(target)
        except LintPilotError as exc:
            _fail(str(exc))
        typer.echo(json.dumps(payload, indent=2))
        return

    if non_interactive:
        _analyze_once(runner, target, output)
        return

    driver = AutomatedDriver() if auto_fix else InteractiveDriver()
    if auto_fix:
        typer.echo(click.style("\nAuto-fix mode enabled\n", fg="cyan", bold=True))

    orchestrator = build_orchestrator(
        project_root, target, provider, driver,
        model=model or LINTPILOT_MODEL or None,
        config=config,
    )
    oracle = orchestrator.fix_agent.oracle
    if not asyncio.run(oracle.is_available()):
        _fail(f"Provider not available: {provider}", f"Run `lintpilot status -p {provider}` for details")

    report = asyncio.run(orchestrator.run())
    if output:
        ResultsWriter.write_report(report, output)
    if report.is_failure:
        _fail(report.message or f"Run ended with status {report.status}")


def _analyze_once(runner: ESLintRunner, target: str, output: Optional[str]) -> None:
    """Single scan: summary, optional JSON dump, exit 1 on parse errors."""
    try:
        result = scan(runner, target)
    except LintPilotError as exc:
        _fail(str(exc))

    if has_parse_errors(result):
        typer.echo(fmt.render_parse_errors(get_parse_errors(result)), err=True)
        raise typer.Exit(code=1)

    typer.echo(fmt.render_summary(result))
    if output:
        if ResultsWriter.write_analysis(result, output):
            typer.echo(click.style(f"Results saved to: {output}", fg="green"))
        else:
            _fail(f"Could not write {output}")


# ---------------------------------------------------------------------------
# fix
# ---------------------------------------------------------------------------
@app.command("fix")
def fix_command(
    path: Annotated[str, typer.Argument(help="File or directory to fix.")] = ".",
    debug: Annotated[bool, typer.Option("--debug", "-d", help="Enable debug logging.")] = False,
) -> None:
    """Run eslint --fix (no AI)."""
    setup_logging(level=logging.DEBUG if debug else logging.WARNING)
    project_root = os.getcwd()
    runner = ESLintRunner(project_root)
    try:
        runner.run_autofix(resolve_target(project_root, path))
    except LintPilotError as exc:
        _fail(f"ESLint --fix failed: {exc}")
    typer.echo(click.style("ESLint --fix completed", fg="green"))


# ---------------------------------------------------------------------------
# Provider management
# ---------------------------------------------------------------------------
@app.command("login")
def login_command(
    provider: Annotated[str, typer.Argument(help="Provider to log in to.")] = LINTPILOT_PROVIDER,
) -> None:
    """Run the provider's login flow."""
    _check_provider(provider)
    oracle = create_oracle(provider)
    try:
        asyncio.run(oracle.login())
    except (OracleError, OSError) as exc:
        _fail(str(exc))
    typer.echo(click.style(f"Logged in to {provider}", fg="green"))


@app.command("status")
def status_command(
    provider: Annotated[
        Optional[str], typer.Option("--provider", "-p", help="Check a single provider.")
    ] = None,
) -> None:
    """Show ESLint config and provider availability."""
    typer.echo(click.style("\nlintpilot status\n", fg="cyan", bold=True))

    try:
        config_path = find_lint_config(os.getcwd())
        typer.echo(f"{click.style('✓', fg='green')} ESLint config: {click.style(config_path, dim=True)}")
    except ConfigMissing:
        typer.echo(f"{click.style('✗', fg='red')} ESLint config: not found")

    if provider is not None:
        _check_provider(provider)
        names = [provider]
    else:
        names = list(PROVIDERS)

    for name in names:
        status = asyncio.run(create_oracle(name).status())
        if status.available:
            typer.echo(f"{click.style('✓', fg='green')} {name}: available")
            if status.version:
                typer.echo(click.style(f"   Version: {status.version}", dim=True))
        else:
            typer.echo(f"{click.style('○', fg='yellow')} {name}: not available")
        typer.echo(click.style(f"   {status.details}", dim=True))
    typer.echo("")


@app.command("models")
def models_command(
    provider: Annotated[str, typer.Argument(help="Provider to list models for.")] = LINTPILOT_PROVIDER,
) -> None:
    """List the models a provider supports."""
    _check_provider(provider)
    config = get_provider_config(provider)
    typer.echo(click.style(f"\nModels for {provider}:\n", fg="cyan", bold=True))
    for name, description in config.models:
        marker = click.style(" (default)", fg="green") if name == config.default_model else ""
        typer.echo(f"  {click.style(name, fg='yellow')}{marker}  {click.style(description, dim=True)}")
    typer.echo("")


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve_command(
    host: Annotated[str, typer.Option(help="Bind address.")] = API_HOST,
    port: Annotated[int, typer.Option(help="Bind port.")] = API_PORT,
    reload: Annotated[bool, typer.Option(help="Reload on code changes.")] = False,
) -> None:
    """Start the HTTP service."""
    uvicorn.run("main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()

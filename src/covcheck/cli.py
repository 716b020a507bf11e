"""covcheck CLI: top-level command group."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any, NoReturn

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covcheck import __version__
from covcheck.analyzers.aggregate import parse_coverages, sum_coverages
from covcheck.config import MODE_CHECK, MODE_UPDATE, load_config, parse_files_json, validate_config
from covcheck.errors import CoverageCheckError
from covcheck.pipelines import CheckPipeline, UpdatePipeline
from covcheck.reporters import GitHubCommentReporter, reporter
from covcheck.store import GitBranchStore
from covcheck.utils.git import GitHubAPI, get_pr_info_from_env

if TYPE_CHECKING:
    from collections.abc import Callable

    from covcheck.config import CheckerConfig

logger = logging.getLogger(__name__)
console = Console()

_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = {"token"}


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config_to_dict(config: CheckerConfig) -> dict[str, Any]:
    """Convert CheckerConfig to a dictionary for display."""
    result = asdict(config)
    result["root"] = str(config.root)
    result["files"] = [asdict(entry) for entry in config.files]
    return result


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in a configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


def _project_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options every command shares."""
    func = click.option(
        "--config",
        "config_file",
        default=None,
        type=click.Path(exists=True, dir_okay=False, resolve_path=True),
        help="Configuration file (default: <path>/.covcheck.yml).",
    )(func)
    return click.option(
        "--path",
        default=".",
        type=click.Path(exists=True, file_okay=False, resolve_path=True),
        help="Project root directory.",
    )(func)


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the overrides accepted by commands that talk to GitHub."""
    func = click.option(
        "--token",
        default=None,
        envvar="INPUT_TOKEN",
        help="GitHub token (default: GITHUB_TOKEN).",
    )(func)
    return click.option(
        "--files",
        "files_json",
        default=None,
        help='Reports as a JSON list, e.g. \'[{"coverage": "clover.xml", ...}]\'.',
    )(func)


def _load(
    path: str,
    config_file: str | None,
    files_json: str | None = None,
    token: str | None = None,
) -> CheckerConfig:
    files = None
    if files_json:
        try:
            files = parse_files_json(files_json)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--files") from exc
    return load_config(path, config_file=config_file, files=files, token=token)


def _require_valid(config: CheckerConfig, mode: str | None = None) -> None:
    errors = validate_config(config, mode)
    if not errors:
        return
    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    raise SystemExit(1)


def _fail(exc: CoverageCheckError) -> NoReturn:
    reporter.print_error(str(exc))
    raise SystemExit(1) from exc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covcheck")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """covcheck: fail CI when code coverage decreases."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose=verbose)


@cli.command("check")
@_project_options
@_run_options
def check(path: str, config_file: str | None, files_json: str | None, token: str | None) -> None:
    """Compare coverage against the stored baselines and report on the PR.

    Exits with code 1 when any report, or the global sum, has decreased.

    Example:
      covcheck check --files '[{"coverage": "clover.xml", "summary": "unit.json", "label": "Unit"}]'
    """
    config = _load(path, config_file, files_json, token)
    _require_valid(config, MODE_CHECK)

    pr_info = get_pr_info_from_env()
    try:
        api = GitHubAPI(
            config.github.token, api_url=config.github.api_url, raw_url=config.github.raw_url
        )
        notifier = GitHubCommentReporter.from_config(config, api) if pr_info else None
        with GitBranchStore.from_config(config, api) as store:
            result = CheckPipeline(config, store, notifier, pr_info).run()
    except CoverageCheckError as exc:
        _fail(exc)

    reporter.print_report(result.message)
    if result.posted:
        reporter.print_info(f"Comment: {result.comment_url}")
    if result.failed:
        reporter.print_error("Code coverage has been degraded")
        raise SystemExit(1)
    reporter.print_success("Code coverage has not been degraded")


@cli.command("update")
@_project_options
@_run_options
def update(path: str, config_file: str | None, files_json: str | None, token: str | None) -> None:
    """Store the current coverage as the new baseline and append to the history."""
    config = _load(path, config_file, files_json, token)
    _require_valid(config, MODE_UPDATE)

    try:
        api = GitHubAPI(
            config.github.token, api_url=config.github.api_url, raw_url=config.github.raw_url
        )
        with GitBranchStore.from_config(config, api) as store:
            result = UpdatePipeline(config, store).run()
    except CoverageCheckError as exc:
        _fail(exc)

    reporter.print_success(
        f"Updated {len(result.coverages)} baseline(s) on branch {config.store.branch}"
    )


@cli.command("parse")
@_project_options
@click.option("--files", "files_json", default=None, help="Reports as a JSON list.")
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON instead of a table.")
def parse(path: str, config_file: str | None, files_json: str | None, *, as_json: bool) -> None:
    """Parse the configured reports and print their coverage without touching the store."""
    config = _load(path, config_file, files_json)
    _require_valid(config)

    try:
        coverages = parse_coverages(config.files, config.root)
    except CoverageCheckError as exc:
        _fail(exc)
    overall = sum_coverages(coverages)

    if as_json:
        payload = {
            "coverages": {summary: snapshot.to_dict() for summary, snapshot in coverages.items()},
            "global": overall.to_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    labels = {entry.summary: entry.label for entry in config.files}
    reporter.print_snapshots(coverages, labels, overall)


@cli.group("config")
def config_group() -> None:
    """Inspect `.covcheck.yml` configuration."""


@config_group.command("show")
@_project_options
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
@click.option("--no-mask", is_flag=True, help="Show the token unmasked (use with caution).")
def config_show(path: str, config_file: str | None, *, as_json: bool, no_mask: bool) -> None:
    """Display the resolved configuration with the token masked.

    Example:
      covcheck config show --json-output
    """
    config = _load(path, config_file)
    config_dict = _config_to_dict(config)
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
        return
    reporter.print_header("Configuration:")
    click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_project_options
@click.option(
    "--mode",
    type=click.Choice([MODE_CHECK, MODE_UPDATE]),
    default=None,
    help="Also check the settings this mode needs.",
)
def config_validate(path: str, config_file: str | None, mode: str | None) -> None:
    """Validate `.covcheck.yml` and report every problem found."""
    config = _load(path, config_file)
    _require_valid(config, mode)
    reporter.print_success("Configuration is valid!")

"""Configuration parsing from ``.covcheck.yml``."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covcheck.adapters.registry import DEFAULT_FORMAT, available_formats

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covcheck.yml"

MODE_CHECK = "check"
MODE_UPDATE = "update"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_value(value: Any) -> Any:
    if isinstance(value, str):
        return _resolve_env_vars(value)
    if isinstance(value, dict):
        return _resolve_dict(value)
    if isinstance(value, list):
        return [_resolve_value(item) for item in value]
    return value


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    return {key: _resolve_value(value) for key, value in data.items()}


@dataclass(frozen=True)
class CoverageFileConfig:
    """One tracked coverage report."""

    coverage: str
    """Report path or glob, relative to the project root."""

    summary: str
    """Storage label: file name of the JSON baseline in the storage branch."""

    label: str
    """Display label, also the key of this report's history series."""

    badge: str = ""
    """Badge file name in the storage branch (empty = no badge)."""

    format: str = DEFAULT_FORMAT
    """Report format (clover or cobertura)."""


@dataclass(frozen=True)
class StoreConfig:
    """Storage branch settings."""

    branch: str = "coverage"
    """Branch used as the baseline datastore."""

    history_file: str = "coverage-history.json"
    """File holding the full history ledger."""

    commit_name: str = "Coverage Checker"
    """Author name of storage branch commits."""

    commit_email: str = "coverage-checker@users.noreply.github.com"
    """Author email of storage branch commits."""

    commit_message: str = "Update coverage info"
    """Message of storage branch commits."""


@dataclass(frozen=True)
class GitHubConfig:
    """Code-hosting settings, mostly taken from the GitHub Actions environment."""

    token: str = ""
    """Token used for raw reads, comments and pushes (supports ${ENV_VAR} expansion)."""

    repository: str = ""
    """Repository in ``owner/name`` form."""

    actor: str = ""
    """User name embedded in the authenticated remote URL."""

    ref: str = ""
    """Ref under test, shown as the column header of the delta table."""

    bot_login: str = "github-actions[bot]"
    """Login that authors the managed comment."""

    api_url: str = "https://api.github.com"
    """REST API base URL."""

    raw_url: str = "https://raw.githubusercontent.com"
    """Raw content base URL."""

    server_url: str = "https://github.com"
    """Git server base URL."""


@dataclass(frozen=True)
class BadgeConfig:
    """Badge rendering settings."""

    endpoint: str = "https://img.shields.io/static/v1"
    """Static badge endpoint."""

    style: str = "for-the-badge"
    """Badge style."""


@dataclass(frozen=True)
class NotifyConfig:
    """Managed comment settings."""

    header: str = "Issued by Coverage Checker:"
    """Marker every managed comment body starts with."""


@dataclass(frozen=True)
class CheckerConfig:
    """Complete, immutable covcheck configuration."""

    root: Path
    """Project root that report paths are resolved against."""

    files: tuple[CoverageFileConfig, ...] = ()
    """Tracked reports, in processing order."""

    store: StoreConfig = field(default_factory=StoreConfig)
    """Storage branch settings."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    """Code-hosting settings."""

    badge: BadgeConfig = field(default_factory=BadgeConfig)
    """Badge settings."""

    notify: NotifyConfig = field(default_factory=NotifyConfig)
    """Comment settings."""

    def file_for_summary(self, summary: str) -> CoverageFileConfig:
        """Return the file entry with storage label ``summary``.

        Raises:
            KeyError: If no entry has that storage label.
        """
        for entry in self.files:
            if entry.summary == summary:
                return entry
        raise KeyError(summary)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _parse_file_config(raw: dict[str, Any]) -> CoverageFileConfig:
    """Parse one ``files`` entry."""
    return CoverageFileConfig(
        coverage=str(raw.get("coverage", "")),
        summary=str(raw.get("summary", "")),
        label=str(raw.get("label", "")),
        badge=str(raw.get("badge") or ""),
        format=str(raw.get("format", DEFAULT_FORMAT)),
    )


def parse_files(raw_files: Any) -> tuple[CoverageFileConfig, ...]:
    """Parse the ``files`` list, dropping entries that are not mappings."""
    if not isinstance(raw_files, list):
        return ()
    entries: list[CoverageFileConfig] = []
    for item in raw_files:
        if not isinstance(item, dict):
            logger.warning("Ignoring non-mapping entry in files: %r", item)
            continue
        entries.append(_parse_file_config(item))
    return tuple(entries)


def parse_files_json(text: str) -> tuple[CoverageFileConfig, ...]:
    """Parse a JSON-encoded ``files`` list (the ``--files`` CLI option).

    Raises:
        ValueError: If the text is not a JSON list.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"files is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError("files must be a JSON list")
    return parse_files(data)


def _parse_store_config(raw: dict[str, Any]) -> StoreConfig:
    store_raw = _section(raw, "store")
    default = StoreConfig()
    return StoreConfig(
        branch=str(store_raw.get("branch", default.branch)),
        history_file=str(store_raw.get("history_file", default.history_file)),
        commit_name=str(store_raw.get("commit_name", default.commit_name)),
        commit_email=str(store_raw.get("commit_email", default.commit_email)),
        commit_message=str(store_raw.get("commit_message", default.commit_message)),
    )


def _parse_github_config(raw: dict[str, Any], token_override: str | None) -> GitHubConfig:
    github_raw = _section(raw, "github")
    default = GitHubConfig()
    token = token_override or str(github_raw.get("token", os.environ.get("GITHUB_TOKEN", "")))
    return GitHubConfig(
        token=token,
        repository=str(github_raw.get("repository", os.environ.get("GITHUB_REPOSITORY", ""))),
        actor=str(github_raw.get("actor", os.environ.get("GITHUB_ACTOR", ""))),
        ref=str(github_raw.get("ref", os.environ.get("GITHUB_REF", ""))),
        bot_login=str(github_raw.get("bot_login", default.bot_login)),
        api_url=str(github_raw.get("api_url", default.api_url)).rstrip("/"),
        raw_url=str(github_raw.get("raw_url", default.raw_url)).rstrip("/"),
        server_url=str(github_raw.get("server_url", default.server_url)).rstrip("/"),
    )


def _parse_badge_config(raw: dict[str, Any]) -> BadgeConfig:
    badge_raw = _section(raw, "badge")
    default = BadgeConfig()
    return BadgeConfig(
        endpoint=str(badge_raw.get("endpoint", default.endpoint)),
        style=str(badge_raw.get("style", default.style)),
    )


def _parse_notify_config(raw: dict[str, Any]) -> NotifyConfig:
    notify_raw = _section(raw, "notify")
    return NotifyConfig(header=str(notify_raw.get("header", NotifyConfig().header)))


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return _resolve_dict(parsed)
    return {}


def load_config(
    root: str | Path,
    *,
    config_file: str | Path | None = None,
    files: tuple[CoverageFileConfig, ...] | None = None,
    token: str | None = None,
) -> CheckerConfig:
    """Load the complete configuration.

    Reads ``config_file`` (default ``<root>/.covcheck.yml``) when present and
    falls back to GitHub Actions environment variables. ``files`` and
    ``token`` override the file contents, which is how the CLI passes its
    ``--files``/``--token`` options.
    """
    root_path = Path(root).resolve()
    config_path = Path(config_file) if config_file else root_path / CONFIG_FILENAME
    raw = _read_yaml(config_path)
    if raw:
        logger.debug("Loaded configuration from %s", config_path)

    return CheckerConfig(
        root=root_path,
        files=files if files is not None else parse_files(raw.get("files", [])),
        store=_parse_store_config(raw),
        github=_parse_github_config(raw, token),
        badge=_parse_badge_config(raw),
        notify=_parse_notify_config(raw),
    )


def _validate_files(files: tuple[CoverageFileConfig, ...]) -> list[str]:
    errors: list[str] = []
    if not files:
        errors.append("files must list at least one coverage report")

    formats = available_formats()
    seen_summaries: set[str] = set()
    seen_labels: set[str] = set()
    for index, entry in enumerate(files):
        prefix = f"files[{index}]"
        if not entry.coverage:
            errors.append(f"{prefix}.coverage is required")
        if not entry.summary:
            errors.append(f"{prefix}.summary is required")
        elif entry.summary in seen_summaries:
            errors.append(f"{prefix}.summary {entry.summary!r} is used more than once")
        if not entry.label:
            errors.append(f"{prefix}.label is required")
        elif entry.label in seen_labels:
            errors.append(f"{prefix}.label {entry.label!r} is used more than once")
        if entry.format.strip().lower() not in formats:
            errors.append(
                f"{prefix}.format must be one of {', '.join(formats)} (got: {entry.format})"
            )
        seen_summaries.add(entry.summary)
        seen_labels.add(entry.label)
    return errors


def validate_config(config: CheckerConfig, mode: str | None = None) -> list[str]:
    """Validate the configuration and return a list of error messages.

    ``mode`` adds the requirements of the ``check`` or ``update`` run.
    Returns an empty list if the configuration is valid.
    """
    errors = _validate_files(config.files)

    if not config.store.branch:
        errors.append("store.branch is required")
    if not config.store.history_file:
        errors.append("store.history_file is required")

    if mode in {MODE_CHECK, MODE_UPDATE}:
        if not config.github.repository:
            errors.append("github.repository is required (or set GITHUB_REPOSITORY)")
        elif config.github.repository.count("/") != 1:
            errors.append(
                f"github.repository must be in owner/name form (got: {config.github.repository})"
            )
        if not config.github.token:
            errors.append("github.token is required (or set GITHUB_TOKEN)")

    if mode == MODE_UPDATE and not config.github.actor:
        errors.append("github.actor is required for update (or set GITHUB_ACTOR)")

    return errors

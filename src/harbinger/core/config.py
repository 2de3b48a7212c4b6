"""Configuration management for Harbinger (harbinger.toml parsing + defaults)."""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from harbinger.core.errors import ConfigError

CONFIG_FILENAME = "harbinger.toml"

TRUTHY = ("1", "true", "yes", "y", "on")


@dataclass
class BuildStep:
    """A single build/compile command run during verification."""

    command: list[str]
    timeout: float = 120.0
    cwd: str = "."


def _default_build() -> list[BuildStep]:
    return [BuildStep(command=[sys.executable, "-m", "compileall", "-q", "."], timeout=120.0)]


@dataclass
class ProbeConfig:
    any_type_pattern: str = r"(:|->)\s*Any\b"
    source_globs: list[str] = field(default_factory=lambda: ["*.py"])
    convention_pattern: str = r"#[0-9a-fA-F]{6}\b"
    convention_globs: list[str] = field(
        default_factory=lambda: ["*.py", "*.html", "*.jinja", "*.jinja2"]
    )
    outdated_command: list[str] = field(
        default_factory=lambda: [sys.executable, "-m", "pip", "list", "--outdated", "--format=json"]
    )
    outdated_timeout: float = 60.0
    coverage_files: list[str] = field(
        default_factory=lambda: ["coverage.json", "coverage/coverage-summary.json"]
    )


@dataclass
class MaintainerConfig:
    api_base: str = "http://localhost:8080"
    api_token: str = ""
    dry_run: bool = False
    channels: list[str] = field(default_factory=list)
    agent_name: str = "MAINTAINER"
    base_branch: str = "main"
    remote: str = "origin"
    branch_prefix: str = "maintainer"
    http_timeout: float = 10.0
    build: list[BuildStep] = field(default_factory=_default_build)
    probes: ProbeConfig = field(default_factory=ProbeConfig)


@dataclass
class RouteOverride:
    """Route table entry override for one tier, as read from harbinger.toml."""

    provider: str | None = None
    model: str | None = None
    fallback_provider: str | None = None
    fallback_model: str | None = None


@dataclass
class RouterSettings:
    local_only: bool = False
    probe_timeout: float = 3.0
    agent_overrides: dict[str, dict[str, str]] = field(default_factory=dict)
    routes: dict[str, RouteOverride] = field(default_factory=dict)


@dataclass
class HarbingerConfig:
    """Complete Harbinger configuration."""

    exclude: list[str] = field(
        default_factory=lambda: [
            ".git",
            "node_modules",
            "dist",
            "build",
            ".venv",
            "venv",
            "__pycache__",
            ".harbinger",
            ".tox",
            ".mypy_cache",
            ".pytest_cache",
        ]
    )
    maintainer: MaintainerConfig = field(default_factory=MaintainerConfig)
    router: RouterSettings = field(default_factory=RouterSettings)


def _env_bool(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip().lower() in TRUTHY


def load_config(project_path: Path | None = None) -> HarbingerConfig:
    """Load harbinger.toml if present, then apply environment overrides."""
    config = HarbingerConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / CONFIG_FILENAME
    if config_file.exists():
        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid {CONFIG_FILENAME}: {e}") from e
        _apply_file(config, data)

    _apply_env(config)
    return config


def _apply_file(config: HarbingerConfig, data: dict) -> None:
    if "general" in data:
        gen = data["general"]
        if "exclude" in gen:
            config.exclude = list(gen["exclude"])

    if "maintainer" in data:
        m = data["maintainer"]
        for attr in (
            "api_base",
            "api_token",
            "dry_run",
            "agent_name",
            "base_branch",
            "remote",
            "branch_prefix",
            "http_timeout",
        ):
            if attr in m:
                setattr(config.maintainer, attr, m[attr])
        if "channels" in m:
            config.maintainer.channels = list(m["channels"])
        if "build" in m:
            config.maintainer.build = [_parse_build_step(step) for step in m["build"]]

        probes = m.get("probes", {})
        for attr in (
            "any_type_pattern",
            "source_globs",
            "convention_pattern",
            "convention_globs",
            "outdated_command",
            "outdated_timeout",
            "coverage_files",
        ):
            if attr in probes:
                setattr(config.maintainer.probes, attr, probes[attr])

    if "router" in data:
        r = data["router"]
        if "local_only" in r:
            config.router.local_only = bool(r["local_only"])
        if "probe_timeout" in r:
            config.router.probe_timeout = float(r["probe_timeout"])
        for agent_id, override in r.get("agent_overrides", {}).items():
            if "provider" not in override or "model" not in override:
                raise ConfigError(
                    f"Agent override '{agent_id}' needs both 'provider' and 'model'"
                )
            config.router.agent_overrides[agent_id] = {
                "provider": override["provider"],
                "model": override["model"],
            }
        for tier, route in r.get("routes", {}).items():
            config.router.routes[tier] = RouteOverride(
                provider=route.get("provider"),
                model=route.get("model"),
                fallback_provider=route.get("fallback_provider"),
                fallback_model=route.get("fallback_model"),
            )


def _parse_build_step(step) -> BuildStep:
    if isinstance(step, list):
        return BuildStep(command=[str(part) for part in step])
    if isinstance(step, dict) and "command" in step:
        command = step["command"]
        if isinstance(command, str):
            command = command.split()
        return BuildStep(
            command=[str(part) for part in command],
            timeout=float(step.get("timeout", 120.0)),
            cwd=step.get("cwd", "."),
        )
    raise ConfigError(f"Invalid build step: {step!r}")


def _apply_env(config: HarbingerConfig) -> None:
    api = os.environ.get("HARBINGER_API")
    if api:
        config.maintainer.api_base = api

    token = os.environ.get("HARBINGER_TOKEN")
    if token:
        config.maintainer.api_token = token

    dry_run = _env_bool("HARBINGER_DRY_RUN")
    if dry_run is not None:
        config.maintainer.dry_run = dry_run

    channels = os.environ.get("HARBINGER_CHANNELS")
    if channels:
        config.maintainer.channels = [c.strip() for c in channels.split(",") if c.strip()]

    local_only = _env_bool("HARBINGER_LOCAL_ONLY")
    if local_only is not None:
        config.router.local_only = local_only


def get_harbinger_dir(project_path: Path | None = None) -> Path:
    """Get or create the .harbinger directory."""
    if project_path is None:
        project_path = Path.cwd()
    harbinger_dir = project_path / ".harbinger"
    harbinger_dir.mkdir(exist_ok=True)
    return harbinger_dir

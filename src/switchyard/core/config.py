"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from switchyard.core.base import BaseConfig, BaseState
from switchyard.core.log import Logger
from switchyard.core.yaml_settings import (
    CONFIG_FILENAME,
    YamlWithIncludesSettingsSource,
)

# Modules reachable from templates, e.g. {platformdirs.user_state_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}
TEMPLATE_PATTERN = re.compile(r'\{([a-z._]+)\}')


# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitConfig(BaseConfig):
    """Repository location and commit identity."""

    workdir: Path = Field(
        default=Path("."),
        description="Working directory of the repository",
    )
    author_name: str | None = Field(
        default=None,
        description=(
            "Author and committer name for new commits. "
            "Falls back to git's user.name when unset."
        ),
    )
    author_email: str | None = Field(
        default=None,
        description=(
            "Author and committer email for new commits. "
            "Falls back to git's user.email when unset."
        ),
    )

    def identity(self) -> dict[str, str]:
        """Environment variables git reads for commit identity."""
        env = {}
        if self.author_name:
            env["GIT_AUTHOR_NAME"] = self.author_name
            env["GIT_COMMITTER_NAME"] = self.author_name
        if self.author_email:
            env["GIT_AUTHOR_EMAIL"] = self.author_email
            env["GIT_COMMITTER_EMAIL"] = self.author_email
        return env


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Repository settings"
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "switchyard"
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> Config:
        """Install the global logger from the loaded configuration."""
        from switchyard.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name=self.git.workdir.resolve().name or "repo",
            console=self.logger.console,
            otlp=self.logger.otlp,
            file=self.logger.file,
            logfire=self.logger.logfire,
            level=self.logger.level,
        )
        return self

    def close(self):
        """Close the global logger as well as our own children."""
        from switchyard.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class Runtime(BaseState):
    """Results recorded by the command workflows."""

    command: str | None = Field(
        default=None,
        description="Subcommand currently running",
    )
    head: str | None = Field(
        default=None,
        description="Head commit id after the last operation",
    )
    has_conflicts: bool = Field(
        default=False,
        description="Whether the last absorb stopped on conflicts",
    )
    status: Any = Field(
        default=None,
        description="RepoStatus produced by the status command",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state; flows through every workflow.

    Loads from (highest priority first) init arguments, YAML files,
    .env, environment variables (SWITCHYARD_CONFIG__GIT__WORKDIR=...)
    and, through CliApp, command-line arguments.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)"
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state filled in by workflows",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=CONFIG_FILENAME,
        env_file=".env",
        env_prefix="SWITCHYARD_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Expand {dotted.path} templates in string and Path settings.

        Examples:
            "{config.git.workdir}/logs" → "/home/me/repo/logs"
            "{platformdirs.user_state_dir}" → "~/.local/state/switchyard"

        Templates that name nothing, like the file sink's {run_name},
        are left for their consumer.
        """
        self._expand(self.config)
        return self

    def _expand(self, value: Any) -> Any:
        if isinstance(value, BaseModel):
            for name in type(value).model_fields:
                current = getattr(value, name)
                expanded = self._expand(current)
                if expanded is not current:
                    setattr(value, name, expanded)
        elif isinstance(value, dict):
            for key, item in value.items():
                value[key] = self._expand(item)
        elif isinstance(value, list):
            value[:] = [self._expand(item) for item in value]
        elif isinstance(value, Path):
            text = self._expand_string(str(value))
            if text != str(value):
                return Path(text)
        elif isinstance(value, str):
            text = self._expand_string(value)
            if text != value:
                return text
        return value

    def _expand_string(self, text: str) -> str:
        def lookup(match: re.Match) -> str:
            head, *rest = match.group(1).split(".")
            if head in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[head]
            else:
                obj, rest = self, [head, *rest]
            try:
                for part in rest:
                    obj = getattr(obj, part)
                # platformdirs functions take the application name
                if callable(obj):
                    obj = obj("switchyard", appauthor=False)
            except (AttributeError, TypeError):
                return match.group(0)
            return str(obj)

        return TEMPLATE_PATTERN.sub(lookup, text)


__all__ = ["State", "Config", "GitConfig", "Runtime"]

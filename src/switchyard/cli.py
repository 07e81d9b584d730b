#!/usr/bin/env python3
"""Switchyard CLI - branch switching with per-branch work in progress."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from switchyard.command.absorb import AbsorbCommand, ResolveCommand
from switchyard.command.branch import BranchCommand, StatusCommand, SwitchCommand
from switchyard.command.history import (
    CommitCommand,
    CreateCommand,
    DeleteCommand,
    PatchCommand,
)
from switchyard.core.config import State
from switchyard.core.errors import SwitchyardError
from switchyard.core.log import logger


class CliState(State):
    """Branch switching and merging on top of git.

    Switching branches never loses work: uncommitted changes, and an
    absorb paused on conflicts, are stashed per branch and restored
    when you come back.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.git.workdir PATH)
    2. --include files, ./switchyard.yaml, user config, defaults
    3. .env file
    4. Environment variables (SWITCHYARD_CONFIG__GIT__WORKDIR=PATH)
    """

    create: CliSubCommand[CreateCommand]
    commit: CliSubCommand[CommitCommand]
    patch: CliSubCommand[PatchCommand]
    delete: CliSubCommand[DeleteCommand]
    absorb: CliSubCommand[AbsorbCommand]
    resolve: CliSubCommand[ResolveCommand]
    switch: CliSubCommand[SwitchCommand]
    branch: CliSubCommand[BranchCommand]
    status: CliSubCommand[StatusCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closes file sinks on the way out, even on errors
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except SwitchyardError as e:
                logger.error(f"{e}", error=type(e).__name__)
                exit_code = 1
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()

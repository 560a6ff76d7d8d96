"""CLI command modules for the drsync agent."""

from drsync.cli_commands.agent import run_command, status_command
from drsync.cli_commands.config import config_app
from drsync.cli_commands.locations import locations_app
from drsync.cli_commands.remote import remote_app
from drsync.cli_commands.submissions import (
    delete_command,
    list_command,
    submit_command,
    sync_command,
)

__all__ = [
    "config_app",
    "delete_command",
    "list_command",
    "locations_app",
    "remote_app",
    "run_command",
    "status_command",
    "submit_command",
    "sync_command",
]

"""CLI package for roster_sync."""

from roster_sync.cli.main import cli, get_config_dir, run_sync

__all__ = ["cli", "get_config_dir", "run_sync"]

"""
Entry point for running roster_sync as a module.

Usage:
    python -m roster_sync --help
    python -m roster_sync auth
    python -m roster_sync sync --force
"""

from roster_sync.cli import cli

if __name__ == "__main__":
    cli()

"""
Configuration file generator for roster synchronization.

Generates a default config.yaml with every available option documented.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments
    """
    return """# Roster Sync Configuration
# =========================
#
# Default options for roster-sync. CLI arguments override these values.
#
# Per-run state (destination spreadsheet id, contact group resource names,
# the connections sync token) lives in the properties store instead; see
# `roster-sync properties --help`.

# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: true

# Directory for daily log files
# Default: <config dir>/logs
# log_dir: ~/.roster-sync/logs

# Number of daily log files to keep (0 disables cleanup)
# Default: 10
# log_retention_count: 10


# Destination
# -----------

# Spreadsheet used when the CONTACTS_SPREADSHEET_ID property is not set
# spreadsheet_id: 1AbCdEfGhIjKlMnOpQrStUvWxYz

# Worksheet that receives the roster rows (row 1 is left for the header)
# Default: Contact List
# sheet_name: Contact List

# The spreadsheet is renamed to "<prefix> <current year>" after each update
# Default: Contacts
# spreadsheet_title_prefix: Contacts


# Directory Options
# -----------------

# Maximum members fetched per contact group (1 to 1000)
# Default: 1000
# max_members: 1000

# Timeout in seconds for auth-related network requests
# Default: 10
# auth_timeout: 10


# Daemon Options
# --------------

# Interval between scheduled syncs ('30s', '5m', '1h', '1d')
# Default: 1h
# daemon_interval: 1h

# PID file for the daemon
# Default: ~/.roster-sync/daemon.pid
# daemon_pid_file: ~/.roster-sync/daemon.pid
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message). error_message is None on success.
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)

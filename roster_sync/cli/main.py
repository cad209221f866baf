"""
Command-line interface for roster_sync.

Provides CLI commands for authentication, roster synchronization, the
property store and the periodic sync daemon.

Usage:
    # Show help
    roster-sync --help

    # Authenticate the sync account
    roster-sync auth

    # Point at the destination spreadsheet
    roster-sync properties set CONTACTS_SPREADSHEET_ID <spreadsheet-id>

    # Run synchronization
    roster-sync sync
    roster-sync sync --force
"""

import sys
from pathlib import Path
from typing import Any

import click

from roster_sync import __version__
from roster_sync.api.people_api import PeopleAPI, PeopleAPIError
from roster_sync.api.sheets_api import SheetsAPI, SheetsAPIError
from roster_sync.auth.google_auth import (
    DEFAULT_AUTH_TIMEOUT,
    AuthenticationError,
    GoogleAuth,
)
from roster_sync.config.generator import save_config_file
from roster_sync.config.loader import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_MEMBERS,
    DEFAULT_SHEET_NAME,
    DEFAULT_TITLE_PREFIX,
    ConfigError,
    ConfigLoader,
)
from roster_sync.storage.properties import (
    CONNECTIONS_SYNC_TOKEN,
    CONTACTS_SPREADSHEET_ID,
    KNOWN_PROPERTIES,
    PropertyStore,
    PropertyStoreError,
)
from roster_sync.sync.engine import RosterSyncEngine, RosterSyncError, SyncResult
from roster_sync.sync.lock import RunLock, RunLockError
from roster_sync.sync.reader import configured_identifiers
from roster_sync.utils import resolve_config_dir
from roster_sync.utils.logging import (
    LOG_DIR_NAME,
    cleanup_old_logs,
    get_logger,
    setup_logging,
)

# Property store database file inside the config directory
PROPERTIES_DB = "properties.db"

# Run lock directory inside the config directory
LOCKS_DIR = "locks"

# Errors a sync run reports without a traceback
SYNC_ERRORS = (
    AuthenticationError,
    RosterSyncError,
    RunLockError,
    PeopleAPIError,
    SheetsAPIError,
    PropertyStoreError,
)


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: str | None, config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def open_property_store(config_dir: Path) -> PropertyStore:
    """Open (and create if needed) the property store in the config dir."""
    config_dir.mkdir(parents=True, exist_ok=True)
    store = PropertyStore(str(config_dir / PROPERTIES_DB))
    store.initialize()
    return store


def build_engine(
    config_dir: Path, config: dict[str, Any], store: PropertyStore
) -> RosterSyncEngine:
    """
    Wire the API clients, property store and settings into an engine.

    Raises:
        AuthenticationError: If the sync account is not authenticated
    """
    auth = GoogleAuth(
        config_dir=config_dir,
        auth_timeout=config.get("auth_timeout", DEFAULT_AUTH_TIMEOUT),
    )
    creds = auth.get_credentials()
    if creds is None:
        raise AuthenticationError(
            "Not authenticated. Run 'roster-sync auth' first."
        )

    return RosterSyncEngine(
        directory=PeopleAPI(credentials=creds, quota_user=auth.get_account_email()),
        sink=SheetsAPI(credentials=creds),
        store=store,
        default_spreadsheet_id=config.get("spreadsheet_id"),
        sheet_name=config.get("sheet_name", DEFAULT_SHEET_NAME),
        title_prefix=config.get("spreadsheet_title_prefix", DEFAULT_TITLE_PREFIX),
        max_members=config.get("max_members", DEFAULT_MAX_MEMBERS),
    )


def run_sync(config_dir: Path, config: dict[str, Any], force: bool) -> SyncResult:
    """
    Run one sync while holding the destination's run lock.

    Raises:
        Any of SYNC_ERRORS
    """
    store = open_property_store(config_dir)
    engine = build_engine(config_dir, config, store)
    spreadsheet_id = engine.resolve_spreadsheet_id()
    with RunLock(config_dir / LOCKS_DIR, spreadsheet_id):
        return engine.sync(force=force)


def _daemon_pid_file(config: dict[str, Any]) -> Path | None:
    if config.get("daemon_pid_file"):
        return Path(config["daemon_pid_file"]).expanduser()
    return None


@click.group()
@click.version_option(version=__version__, prog_name="roster-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="ROSTER_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.roster-sync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="ROSTER_SYNC_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Contact group roster to Google Sheets sync.

    Copies the Active, Guest, Student and Inactive contact groups into the
    roster spreadsheet whenever the contacts changed since the sheet was
    last modified.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # The CLI still works without a usable config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    if config.get("log_dir"):
        log_dir = Path(config["log_dir"]).expanduser()
    else:
        log_dir = resolved_config_dir / LOG_DIR_NAME
    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Auth Command
# =============================================================================


@cli.command("auth")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-authentication even if already authenticated.",
)
@click.pass_context
def auth_command(ctx: click.Context, force: bool) -> None:
    """
    Authenticate the Google account used for syncing.

    Opens a browser window to complete the OAuth flow and stores the
    credentials for future use. The account needs read access to the
    contact groups and edit access to the roster spreadsheet.

    Examples:

        roster-sync auth
        roster-sync auth --force
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj["config"]

    click.echo("Authenticating...")

    try:
        auth = GoogleAuth(
            config_dir=config_dir,
            auth_timeout=config.get("auth_timeout", DEFAULT_AUTH_TIMEOUT),
        )

        if not force and auth.is_authenticated():
            click.echo(click.style("Already authenticated.", fg="green"))
            click.echo("Use --force to re-authenticate.")
            return

        auth.authenticate(force_reauth=force)

        email = auth.get_account_email()
        if email:
            click.echo(click.style(f"Successfully authenticated {email}!", fg="green"))
        else:
            click.echo(click.style("Successfully authenticated!", fg="green"))

        logger.info("Authentication completed")

    except FileNotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        click.echo("\nTo get started:", err=True)
        click.echo("1. Go to https://console.cloud.google.com/", err=True)
        click.echo(
            "2. Create a project and enable the People, Sheets and Drive APIs",
            err=True,
        )
        click.echo("3. Create OAuth 2.0 credentials (Desktop application)", err=True)
        click.echo(
            f"4. Download and save as: {config_dir / 'credentials.json'}", err=True
        )
        sys.exit(1)

    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        click.echo(click.style(f"Authentication failed: {e}", fg="red"), err=True)
        sys.exit(1)

    except Exception as e:
        logger.exception(f"Unexpected error during authentication: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show authentication and sync status.

    Displays the authentication state, the destination spreadsheet, the
    contact group used for each roster label and whether a connections
    sync token is stored.

    Example:

        roster-sync status
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj["config"]

    try:
        auth = GoogleAuth(config_dir=config_dir)
        auth_status = auth.get_auth_status()

        click.echo("=== Roster Sync Status ===\n")

        click.echo(f"Configuration directory: {auth_status['config_dir']}")
        creds_status = (
            "Found"
            if auth_status["credentials_exist"]
            else click.style("Not found", fg="red")
        )
        click.echo(f"OAuth credentials: {creds_status}")

        if auth_status["authenticated"]:
            account_label = auth_status["email"] or "account"
            click.echo(f"{account_label}: {click.style('Authenticated', fg='green')}")
        elif auth_status["token_exists"]:
            click.echo(
                f"Account: {click.style('Token expired or invalid', fg='yellow')}"
            )
        else:
            click.echo(f"Account: {click.style('Not authenticated', fg='red')}")

        click.echo()

        store = open_property_store(config_dir)
        destination = store.get_property(CONTACTS_SPREADSHEET_ID) or config.get(
            "spreadsheet_id"
        )

        click.echo("=== Sync Status ===\n")
        if destination:
            click.echo(f"Destination spreadsheet: {destination}")
        else:
            click.echo(
                f"Destination spreadsheet: {click.style('Not configured', fg='red')}"
            )
        click.echo(f"Worksheet: {config.get('sheet_name', DEFAULT_SHEET_NAME)}")

        click.echo("Groups:")
        for label, identifier in configured_identifiers(store).items():
            click.echo(f"  {label}: {identifier}")

        has_token = bool(store.get_property(CONNECTIONS_SYNC_TOKEN))
        click.echo(f"Sync token: {'Yes' if has_token else 'No'}")

        click.echo()

        if auth_status["authenticated"] and destination:
            click.echo(click.style("Ready to sync!", fg="green"))
            click.echo("Run 'roster-sync sync' to update the roster.")
        elif not auth_status["credentials_exist"]:
            click.echo(
                click.style("Setup required: OAuth credentials not found.", fg="yellow")
            )
            click.echo("Please download credentials from Google Cloud Console")
            click.echo(f"and save to: {auth_status['credentials_path']}")
        elif not auth_status["authenticated"]:
            click.echo(click.style("Authentication required.", fg="yellow"))
            click.echo("  Run: roster-sync auth")
        else:
            click.echo(click.style("Destination spreadsheet required.", fg="yellow"))
            click.echo(
                f"  Run: roster-sync properties set {CONTACTS_SPREADSHEET_ID} <id>"
            )

    except Exception as e:
        logger.exception(f"Error getting status: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


# =============================================================================
# Init-Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.

    Examples:

        roster-sync init-config
        roster-sync init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        click.echo("\nNext steps:")
        click.echo("1. Edit the file to uncomment and configure desired options")
        click.echo("2. Run 'roster-sync auth' to authenticate")
        logger.info(f"Created configuration file: {config_file}")
    else:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        logger.error(f"Failed to create configuration file: {error}")
        sys.exit(1)


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--force",
    is_flag=True,
    help="Rewrite the sheet even if no contact changed.",
)
@click.pass_context
def sync_command(ctx: click.Context, force: bool) -> None:
    """
    Update the roster spreadsheet from the contact groups.

    Checks the contacts for changes since the spreadsheet was last
    modified. If anything changed, the data rows are cleared and rewritten
    one block per group, and the spreadsheet is renamed for the current
    year.

    Examples:

        roster-sync sync
        roster-sync sync --force
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj["config"]

    try:
        result = run_sync(config_dir, config, force=force)
    except SYNC_ERRORS as e:
        logger.error(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(result.summary())

    if result.absent_groups:
        click.echo(
            click.style(
                f"\nWarning: groups not available: {', '.join(result.absent_groups)}",
                fg="yellow",
            )
        )

    if result.has_changes():
        click.echo(click.style("\nRoster updated.", fg="green"))
    else:
        click.echo(click.style("\nRoster already up to date.", fg="green"))


# =============================================================================
# Reset Command
# =============================================================================


@cli.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def reset_command(ctx: click.Context, yes: bool) -> None:
    """
    Drop the stored connections sync token.

    The next sync lists every connection again, which counts as a change
    and rewrites the sheet. Destination and group settings are kept.

    Example:

        roster-sync reset
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]

    if not (config_dir / PROPERTIES_DB).exists():
        click.echo("No property store found. Nothing to reset.")
        return

    if not yes:
        click.confirm(
            "This will drop the sync token and rewrite the roster on next run.\n"
            "Continue?",
            abort=True,
        )

    try:
        store = open_property_store(config_dir)
        if store.delete_property(CONNECTIONS_SYNC_TOKEN):
            click.echo(click.style("Sync token has been reset.", fg="green"))
        else:
            click.echo("No sync token stored.")
        logger.info("Sync state reset completed")

    except PropertyStoreError as e:
        logger.error(f"Reset failed: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


# =============================================================================
# Properties Commands
# =============================================================================


@cli.group("properties")
def properties_group() -> None:
    """
    Inspect and edit the stored properties.

    Known keys: CONTACTS_SPREADSHEET_ID, RESOURCE_NAME_ACTIVE,
    RESOURCE_NAME_GUEST, RESOURCE_NAME_STUDENT, RESOURCE_NAME_INACTIVE and
    CONNECTIONS_SYNC_TOKEN.

    Examples:

        roster-sync properties list
        roster-sync properties set RESOURCE_NAME_GUEST contactGroups/abc123
    """
    pass


PROPERTY_KEY = click.Choice(KNOWN_PROPERTIES, case_sensitive=False)


@properties_group.command("list")
@click.pass_context
def properties_list_command(ctx: click.Context) -> None:
    """List all stored properties."""
    try:
        properties = open_property_store(ctx.obj["config_dir"]).get_properties()
    except PropertyStoreError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if not properties:
        click.echo("No properties set.")
        return

    for key in sorted(properties):
        click.echo(f"{key}={properties[key]}")


@properties_group.command("get")
@click.argument("key", type=PROPERTY_KEY)
@click.pass_context
def properties_get_command(ctx: click.Context, key: str) -> None:
    """Print the value of KEY."""
    try:
        value = open_property_store(ctx.obj["config_dir"]).get_property(key)
    except PropertyStoreError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if value is None:
        click.echo(click.style(f"{key} is not set.", fg="yellow"), err=True)
        sys.exit(1)
    click.echo(value)


@properties_group.command("set")
@click.argument("key", type=PROPERTY_KEY)
@click.argument("value")
@click.pass_context
def properties_set_command(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY to VALUE."""
    logger = get_logger(__name__)
    if not value.strip():
        click.echo(click.style("Error: value must not be empty", fg="red"), err=True)
        sys.exit(1)

    try:
        open_property_store(ctx.obj["config_dir"]).set_property(key, value.strip())
    except PropertyStoreError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    logger.info(f"Set property {key}")
    click.echo(click.style(f"{key} set.", fg="green"))


@properties_group.command("unset")
@click.argument("key", type=PROPERTY_KEY)
@click.pass_context
def properties_unset_command(ctx: click.Context, key: str) -> None:
    """Remove KEY so its default applies."""
    try:
        removed = open_property_store(ctx.obj["config_dir"]).delete_property(key)
    except PropertyStoreError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if removed:
        click.echo(click.style(f"{key} removed.", fg="green"))
    else:
        click.echo(f"{key} was not set.")


# =============================================================================
# Daemon Commands
# =============================================================================


@cli.group("daemon")
def daemon_group() -> None:
    """
    Run the roster sync periodically.

    Examples:

        # Sync every 30 minutes
        roster-sync daemon start --interval 30m

        # Check daemon status
        roster-sync daemon status

        # Stop running daemon
        roster-sync daemon stop
    """
    pass


@daemon_group.command("start")
@click.option(
    "--interval",
    "-i",
    default=None,
    help=(
        "Sync interval (e.g., '30s', '5m', '1h', '1d'). "
        "Defaults to config value or '1h'."
    ),
)
@click.option(
    "--no-initial-sync",
    is_flag=True,
    help="Skip the initial sync on daemon startup.",
)
@click.pass_context
def daemon_start_command(
    ctx: click.Context, interval: str | None, no_initial_sync: bool
) -> None:
    """
    Start the synchronization daemon in the foreground.

    Syncs on startup (unless --no-initial-sync) and then at every interval
    until SIGTERM or Ctrl+C. A failed sync is logged and retried at the
    next interval.

    Examples:

        roster-sync -v daemon start --interval 30m
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj["config"]
    verbose = ctx.obj["verbose"]

    from roster_sync.daemon import (
        DaemonAlreadyRunningError,
        DaemonError,
        DaemonScheduler,
        parse_interval,
    )

    effective_interval = interval or config.get("daemon_interval", "1h")
    try:
        interval_seconds = parse_interval(effective_interval)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Starting daemon with {effective_interval} sync interval...")
    click.echo("Press Ctrl+C to stop")

    if verbose:
        click.echo(f"  Config directory: {config_dir}")
        click.echo(f"  Interval: {interval_seconds} seconds")
        click.echo(f"  Initial sync: {'No' if no_initial_sync else 'Yes'}")

    def sync_callback() -> bool:
        result = run_sync(config_dir, config, force=False)
        logger.info(f"Sync cycle finished: {result.rows_written} rows written")
        return result.has_changes()

    try:
        scheduler = DaemonScheduler(
            interval=interval_seconds,
            pid_file=_daemon_pid_file(config),
            run_immediately=not no_initial_sync,
        )
        scheduler.set_sync_callback(sync_callback)
        scheduler.run()

        click.echo(click.style("\nDaemon stopped gracefully.", fg="green"))

    except DaemonAlreadyRunningError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        click.echo("Use 'roster-sync daemon stop' to stop the running daemon.")
        sys.exit(1)

    except DaemonError as e:
        logger.error(f"Daemon error: {e}")
        click.echo(click.style(f"Daemon error: {e}", fg="red"), err=True)
        sys.exit(1)


@daemon_group.command("stop")
@click.pass_context
def daemon_stop_command(ctx: click.Context) -> None:
    """
    Stop the running synchronization daemon.

    Sends SIGTERM; the daemon exits after any in-progress sync.
    """
    logger = get_logger(__name__)

    from roster_sync.daemon import DaemonScheduler

    pid_file = _daemon_pid_file(ctx.obj["config"])
    pid = DaemonScheduler.get_running_pid(pid_file)

    if pid is None:
        click.echo("No daemon is currently running.")
        return

    click.echo(f"Stopping daemon (PID: {pid})...")

    if DaemonScheduler.stop_running_daemon(pid_file):
        click.echo(click.style("Stop signal sent successfully.", fg="green"))
        logger.info(f"Sent stop signal to daemon (PID: {pid})")
    else:
        click.echo(
            click.style("Failed to send stop signal to daemon.", fg="red"), err=True
        )
        sys.exit(1)


@daemon_group.command("status")
@click.pass_context
def daemon_status_command(ctx: click.Context) -> None:
    """Show whether the synchronization daemon is running."""
    from roster_sync.daemon import DEFAULT_PID_FILE, DaemonScheduler
    from roster_sync.utils.pidfile import PIDFile, PIDFileError

    pid_file = _daemon_pid_file(ctx.obj["config"]) or DEFAULT_PID_FILE

    click.echo("=== Daemon Status ===\n")

    try:
        pid = DaemonScheduler.get_running_pid(pid_file)
        stale_pid = None if pid is not None else PIDFile(pid_file).read()
    except PIDFileError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if pid is not None:
        click.echo(f"Status: {click.style('Running', fg='green')}")
        click.echo(f"Process ID: {pid}")
    else:
        click.echo(f"Status: {click.style('Stopped', fg='yellow')}")
        if stale_pid is not None:
            click.echo(f"Stale PID file exists (PID: {stale_pid})")
            click.echo("It will be cleaned up on next daemon start.")

    if ctx.obj.get("verbose"):
        click.echo(f"\nPID file: {pid_file}")

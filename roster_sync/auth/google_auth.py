"""
OAuth2 authentication for the roster sync account.

One Google account owns both the contact groups and the destination
spreadsheet. Its token is stored next to the OAuth client credentials in the
configuration directory and refreshed automatically when it expires.
"""

import json
import logging
from pathlib import Path
from typing import Any

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from roster_sync.utils.paths import resolve_config_dir

SCOPES = [
    "https://www.googleapis.com/auth/contacts.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
    "https://www.googleapis.com/auth/userinfo.email",
    "openid",
]

TOKEN_FILE = "token.json"
CREDENTIALS_FILE = "credentials.json"

# Default auth timeout for network requests (in seconds)
DEFAULT_AUTH_TIMEOUT = 10

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


class GoogleAuth:
    """
    OAuth2 credential manager for the sync account.

    Attributes:
        config_dir: Directory holding credentials.json and token.json
        credentials_path: OAuth client credentials file
        token_path: Stored user token

    Usage:
        auth = GoogleAuth()
        creds = auth.get_credentials()
        if creds is None:
            creds = auth.authenticate()
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        auth_timeout: int = DEFAULT_AUTH_TIMEOUT,
    ):
        """
        Args:
            config_dir: Configuration directory. Defaults to ~/.roster-sync/
                or $ROSTER_SYNC_CONFIG_DIR
            auth_timeout: Timeout in seconds for the OAuth local server flow
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.credentials_path = self.config_dir / CREDENTIALS_FILE
        self.token_path = self.config_dir / TOKEN_FILE
        self.auth_timeout = auth_timeout

    def _ensure_config_dir(self) -> None:
        if not self.config_dir.exists():
            self.config_dir.mkdir(parents=True, mode=0o700)
            logger.debug(f"Created config directory: {self.config_dir}")

    def _read_token_data(self) -> dict[str, Any] | None:
        if not self.token_path.exists():
            return None
        try:
            data: dict[str, Any] = json.loads(self.token_path.read_text())
            return data
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Unreadable token file {self.token_path}: {e}")
            return None

    def _load_credentials(self) -> Credentials | None:
        if not self.token_path.exists():
            logger.debug("No token file found")
            return None

        try:
            creds: Credentials = Credentials.from_authorized_user_file(
                str(self.token_path), SCOPES
            )
            return creds
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid token file: {e}")
            return None

    def _save_credentials(self, creds: Credentials, email: str | None = None) -> None:
        """Write the token with owner-only permissions, keeping a known email."""
        self._ensure_config_dir()

        token_data = json.loads(creds.to_json())
        if email is None:
            previous = self._read_token_data() or {}
            email = previous.get("email")
        if email:
            token_data["email"] = email

        self.token_path.write_text(json.dumps(token_data))
        self.token_path.chmod(0o600)
        logger.debug(f"Saved credentials to {self.token_path}")

    def _refresh_credentials(self, creds: Credentials) -> bool:
        if not creds.refresh_token:
            logger.debug("No refresh token available")
            return False

        try:
            creds.refresh(Request())
            logger.debug("Successfully refreshed credentials")
            return True
        except RefreshError as e:
            logger.warning(f"Failed to refresh credentials: {e}")
            return False

    def _fetch_user_email(self, creds: Credentials) -> str | None:
        """
        Look up the account's email via the OAuth2 userinfo endpoint.

        Returns:
            Email address, or None if it cannot be determined
        """
        try:
            service = build("oauth2", "v2", credentials=creds, cache_discovery=False)
            info: dict[str, Any] = service.userinfo().get().execute()
            return info.get("email")
        except HttpError as e:
            logger.debug(f"Failed to fetch user email: {e}")
            return None

    def get_credentials(self) -> Credentials | None:
        """
        Get valid credentials without user interaction.

        Returns:
            Valid Credentials, or None if missing or not refreshable
        """
        creds = self._load_credentials()
        if creds is None:
            return None

        if creds.valid:
            return creds

        if creds.expired and creds.refresh_token and self._refresh_credentials(creds):
            self._save_credentials(creds)
            return creds

        return None

    def authenticate(self, force_reauth: bool = False) -> Credentials:
        """
        Authenticate the sync account, running the browser flow if needed.

        Args:
            force_reauth: Ignore stored credentials and run the OAuth flow

        Returns:
            Valid Credentials

        Raises:
            FileNotFoundError: If credentials.json is missing
            AuthenticationError: If the OAuth flow fails
        """
        if not force_reauth:
            creds = self.get_credentials()
            if creds is not None:
                logger.info("Using existing credentials")
                return creds

        if not self.credentials_path.exists():
            raise FileNotFoundError(
                f"OAuth credentials file not found: {self.credentials_path}\n"
                "Please download your OAuth client credentials from "
                "Google Cloud Console and save them to this location."
            )

        logger.info("Starting OAuth flow")

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path), SCOPES
            )
            new_creds: Credentials = flow.run_local_server(
                port=0, timeout_seconds=self.auth_timeout * 30
            )
        except Exception as e:
            logger.error(f"Authentication failed: {e}")
            raise AuthenticationError(f"Failed to authenticate: {e}") from e

        email = self._fetch_user_email(new_creds)
        self._save_credentials(new_creds, email=email)
        logger.info(f"Successfully authenticated {email or 'account'}")
        return new_creds

    def is_authenticated(self) -> bool:
        return self.get_credentials() is not None

    def clear_credentials(self) -> bool:
        """
        Remove the stored token.

        Returns:
            True if a token was removed
        """
        if self.token_path.exists():
            self.token_path.unlink()
            logger.info("Cleared stored credentials")
            return True
        return False

    def get_account_email(self) -> str | None:
        """
        Email of the authenticated account.

        Read from the token file, fetched and stored there on first use.
        """
        token_data = self._read_token_data()
        if token_data is None:
            return None

        email: str | None = token_data.get("email")
        if email:
            return email

        creds = self.get_credentials()
        if creds is None:
            return None
        email = self._fetch_user_email(creds)
        if email:
            self._save_credentials(creds, email=email)
        return email

    def get_auth_status(self) -> dict[str, object]:
        """
        Summarize the authentication state for display.

        Returns:
            Dictionary with 'authenticated', 'email', 'token_path',
            'token_exists', 'credentials_path', 'credentials_exist' and
            'config_dir'
        """
        authenticated = self.is_authenticated()
        return {
            "authenticated": authenticated,
            "email": self.get_account_email() if authenticated else None,
            "token_path": str(self.token_path),
            "token_exists": self.token_path.exists(),
            "credentials_path": str(self.credentials_path),
            "credentials_exist": self.credentials_path.exists(),
            "config_dir": str(self.config_dir),
        }

"""
roster_sync.auth - OAuth2 authentication module

Handles credential storage and token refresh for the sync account.
"""

from roster_sync.auth.google_auth import SCOPES, AuthenticationError, GoogleAuth

__all__ = ["GoogleAuth", "AuthenticationError", "SCOPES"]

"""Credential loading and Drive service construction for drivemirror."""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from drivemirror.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo

logger = logging.getLogger(__name__)


class DriveAuthClient:
    """Create credentials and Drive API service objects from an AuthInfo."""

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)

    def __init__(self, auth_info: AuthInfo, *, http_timeout: float = 60.0) -> None:
        self._auth_info = auth_info
        self._http_timeout = http_timeout
        self._credentials: Any = None

    def get_credentials(self, scopes: Sequence[str] = DEFAULT_SCOPES, ensure_valid: bool = True):
        """
        Return credentials for the given scopes.

        Service account credentials are loaded from the key file. OAuth
        credentials are loaded from the token file, refreshed when possible,
        and otherwise obtained through the installed-app flow.

        Raises:
            AuthError: on load/refresh/flow failures.
            InvalidArgumentError: if scopes is invalid.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        if self._credentials is not None:
            return self._credentials

        if self._auth_info.kind == "service_account":
            creds = self._service_account_credentials(scopes)
        else:
            creds = self._oauth_credentials(scopes, ensure_valid)
        self._credentials = creds
        return creds

    def service_identity(self) -> str:
        """Email of the account the run acts as."""
        if self._auth_info.kind == "oauth":
            return self._auth_info.identity_email
        creds = self.get_credentials()
        email = getattr(creds, "service_account_email", None)
        if not isinstance(email, str) or not email:
            raise AuthError(
                "Service account key has no client_email",
                details={"credentials_file": self._auth_info.credentials_file},
            )
        return email

    def build_drive_service(self, scopes: Sequence[str] = DEFAULT_SCOPES, ensure_valid: bool = True):
        """
        Build a Drive API service resource with its own HTTP transport.

        Every call returns a new service object; callers that share one
        across threads must not do so.

        Returns:
            googleapiclient.discovery.Resource
        """
        try:
            import google_auth_httplib2
            import httplib2
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client and google-auth-httplib2"},
                cause=exc,
            ) from exc

        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        try:
            http = google_auth_httplib2.AuthorizedHttp(
                creds,
                http=httplib2.Http(timeout=self._http_timeout),
            )
            return build("drive", "v3", http=http, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Drive service", cause=exc) from exc

    # ----------------------------
    # Internals
    # ----------------------------
    def _service_account_credentials(self, scopes: Sequence[str]):
        try:
            from google.oauth2 import service_account
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth"},
                cause=exc,
            ) from exc

        key_file = self._auth_info.credentials_file
        try:
            creds = service_account.Credentials.from_service_account_file(
                key_file,
                scopes=list(scopes),
            )
        except Exception as exc:
            raise AuthError(
                "Failed to load service account credentials",
                details={"credentials_file": key_file},
                cause=exc,
            ) from exc
        logger.debug("Loaded service account credentials for %s", creds.service_account_email)
        return creds

    def _oauth_credentials(self, scopes: Sequence[str], ensure_valid: bool):
        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
            from google_auth_oauthlib.flow import InstalledAppFlow
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth and google-auth-oauthlib"},
                cause=exc,
            ) from exc

        token_file = self._auth_info.token_file
        creds = None

        if os.path.exists(token_file):
            try:
                creds = Credentials.from_authorized_user_file(token_file, scopes=list(scopes))
            except Exception as exc:
                raise AuthError(
                    "Failed to load token_file",
                    details={"token_file": token_file},
                    cause=exc,
                ) from exc

            if not ensure_valid:
                return creds

            if not creds.valid and creds.refresh_token:
                try:
                    creds.refresh(Request())
                    self._save_credentials(creds)
                except Exception as exc:
                    raise AuthError(
                        "Failed to refresh OAuth credentials",
                        details={"token_file": token_file},
                        cause=exc,
                    ) from exc

            if creds.valid:
                return creds

        client_secrets = self._auth_info.client_secrets_file
        logger.info("No usable token in %s; starting OAuth authorization flow", token_file)
        try:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=list(scopes))
            creds = flow.run_local_server(port=0)
            self._save_credentials(creds)
            return creds
        except AuthError:
            raise
        except Exception as exc:
            raise AuthError(
                "OAuth authorization flow failed",
                details={"client_secrets_file": client_secrets, "token_file": token_file},
                cause=exc,
            ) from exc

    def _save_credentials(self, creds) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        if token_dir:
            os.makedirs(token_dir, exist_ok=True)

        try:
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except Exception as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

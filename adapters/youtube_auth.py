"""OAuth2 credentials for YouTube accounts."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ports.adapter_error import AuthError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube.readonly",
    "https://www.googleapis.com/auth/youtube",
]

UNKNOWN_ACCOUNT = "unknown"


class YouTubeAuthorizer:
    """
    Obtains authorized credentials per YouTube account.

    Tokens are stored as JSON, one file per account. The file name comes from
    a template with a `{user}` placeholder.
    """

    def __init__(self, client_secrets_file: str, token_file_template: str):
        """
        Initialize authorizer.

        Args:
            client_secrets_file: Path to OAuth2 client secrets JSON.
            token_file_template: Token path template, e.g. ".data/tokens/{user}.json".
        """
        self.client_secrets_file = client_secrets_file
        self.token_file_template = token_file_template

    def token_path(self, account: Optional[str]) -> Path:
        """
        Resolve and prepare the token file path of an account.

        Raises:
            AuthError: If the template is invalid or the parent isn't a directory.
        """
        user = account or UNKNOWN_ACCOUNT
        try:
            token_path = Path(self.token_file_template.format(user=user))
        except (KeyError, IndexError, ValueError) as e:
            raise AuthError(
                code=ErrorCode.AUTH_FAILED,
                message=f"Invalid token file template: {self.token_file_template!r}",
                details={"error": str(e)},
            ) from e

        logger.info(f"Persistent auth path for user:{user} => {token_path}")
        if token_path.is_dir():
            logger.warning(f"Persistent auth path is a dir: {token_path}")

        parent = token_path.parent
        if not parent.exists():
            logger.debug(f"Token folder does not exist, creating it: {parent}")
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise AuthError(
                    code=ErrorCode.AUTH_FAILED,
                    message=f"Cannot create token folder: {parent}",
                    details={"error": str(e)},
                ) from e
        elif not parent.is_dir():
            raise AuthError(
                code=ErrorCode.AUTH_FAILED,
                message=f"Token folder is not a directory: {parent}",
            )
        return token_path

    def get_credentials(self, account: Optional[str], scopes: List[str]) -> Credentials:
        """
        Get valid credentials for an account.

        Uses the stored token if available, refreshes it when expired,
        otherwise runs the interactive consent flow.

        Raises:
            AuthError: If authorization fails.
        """
        token_path = self.token_path(account)
        creds = None

        if token_path.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(token_path), scopes)
                logger.debug(f"Loaded existing credentials from {token_path}")
            except (ValueError, OSError) as e:
                logger.warning(f"Failed to load token file {token_path}: {e}")

        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            try:
                logger.info(f"Refreshing expired credentials for {account or UNKNOWN_ACCOUNT}")
                creds.refresh(Request())
            except GoogleAuthError as e:
                logger.warning(f"Token refresh failed: {e}")
                creds = None
        else:
            creds = None

        if creds is None:
            creds = self._run_consent_flow(account, scopes)

        try:
            token_path.write_text(creds.to_json())
            logger.debug(f"Saved credentials to {token_path}")
        except OSError as e:
            logger.warning(f"Failed to save credentials: {e}")

        return creds

    def _run_consent_flow(self, account: Optional[str], scopes: List[str]) -> Credentials:
        if not Path(self.client_secrets_file).exists():
            raise AuthError(
                code=ErrorCode.AUTH_FAILED,
                message=(
                    f"Client secrets file not found: {self.client_secrets_file}. "
                    f"Please download OAuth2 credentials from Google Cloud Console."
                ),
            )

        logger.info(f"Starting OAuth2 authentication flow for {account or UNKNOWN_ACCOUNT}")
        try:
            flow = InstalledAppFlow.from_client_secrets_file(self.client_secrets_file, scopes)
            creds = flow.run_local_server(port=0)
        except Exception as e:
            raise AuthError(
                code=ErrorCode.AUTH_FAILED,
                message=f"OAuth2 authentication failed: {e}",
            ) from e
        logger.info("OAuth2 authentication successful")
        return creds

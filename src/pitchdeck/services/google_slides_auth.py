"""OAuth2 credentials for the Google Slides API, kept on disk.

``credentials.json`` is the installed-app OAuth client downloaded from the
Google Cloud console; ``token.json`` is the authorized user token written
after consent. Expired tokens are refreshed in place.
"""

import logging
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

# Create and edit presentations only
SCOPES = ["https://www.googleapis.com/auth/presentations"]


class GoogleSlidesAuthError(Exception):
    """Raised when no usable Google credentials can be obtained."""

    pass


class GoogleSlidesAuth:
    """Loads, refreshes and (interactively) creates the Slides OAuth token."""

    def __init__(
        self,
        *,
        credentials_path: str = "credentials.json",
        token_path: str = "token.json",
        interactive: bool = True,
    ):
        self._credentials_path = Path(credentials_path)
        self._token_path = Path(token_path)
        # When False, a missing token is an error instead of opening a browser
        self._interactive = interactive

        if not self._credentials_path.exists():
            logger.warning(
                "OAuth client file missing; consent flow will fail",
                extra={"path": str(self._credentials_path)},
            )

    def get_credentials(self) -> Credentials:
        """
        Return usable credentials.

        Refreshes an expired token, or runs the consent flow when no token
        exists and the instance is interactive.

        Raises:
            GoogleSlidesAuthError: If no usable credentials can be obtained
        """
        creds = self._load_token()
        if creds is None:
            if not self._interactive:
                raise GoogleSlidesAuthError(
                    f"No Google token at {self._token_path}. Run the consent flow first."
                )
            return self.authorize()

        self._refresh(creds)
        if not creds.valid:
            raise GoogleSlidesAuthError(
                f"Google token at {self._token_path} is invalid. Delete it and re-authorize."
            )
        return creds

    def authorize(self) -> Credentials:
        """Run the local-browser consent flow and store the token."""
        if not self._credentials_path.exists():
            raise GoogleSlidesAuthError(
                f"OAuth credentials file not found: {self._credentials_path}"
            )
        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self._credentials_path), scopes=SCOPES
            )
            logger.info("Opening browser for Google OAuth consent")
            # The prompt would be printed to stdout, which carries the tool channel
            creds = flow.run_local_server(port=0, authorization_prompt_message="")
        except Exception as exc:
            raise GoogleSlidesAuthError(f"OAuth authorization failed: {exc}") from exc

        self._save_token(creds)
        logger.info("Google OAuth consent completed", extra={"path": str(self._token_path)})
        return creds

    def build_slides_service(self):
        """Build a Slides v1 service object with valid credentials."""
        return build("slides", "v1", credentials=self.get_credentials())

    def _refresh(self, creds: Credentials) -> None:
        """Refresh an expired token in place and store it."""
        if not (creds.expired and creds.refresh_token):
            return
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise GoogleSlidesAuthError(f"Token refresh failed: {exc}") from exc
        self._save_token(creds)

    def _load_token(self) -> Optional[Credentials]:
        if not self._token_path.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self._token_path), SCOPES)
        except Exception:
            logger.warning(
                "Ignoring unreadable token file",
                extra={"path": str(self._token_path)},
                exc_info=True,
            )
            return None

    def _save_token(self, creds: Credentials) -> None:
        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())

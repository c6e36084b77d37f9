"""Credential and token lifecycle for one Google Reader account."""

import logging
import re
from collections.abc import Callable
from enum import Enum
from typing import Protocol
from urllib.parse import quote

import httpx

from .config import Config
from .errors import AuthError, NetworkError
from .providers import Operation
from .transport import FORM_CONTENT_TYPE, form_body, perform_request

logger = logging.getLogger(__name__)

_ABSENT_VALUE = re.compile(r"^(NA|unused|none|null)$")


class AuthState(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


class OAuthTokenSource(Protocol):
    """Token lifecycle service used by OAuth providers (Inoreader)."""

    def bearer(self) -> str:
        """Current access token, empty when none is held."""
        ...

    def login(self) -> None:
        """Start the interactive consent flow."""
        ...


Notifier = Callable[[str, str, Callable[[], None]], None]
TokenStore = Callable[[int, str], None]


class AuthSession:
    """Holds the tokens of one account and builds authorization headers.

    Credential-based providers log in with ClientLogin on demand. OAuth
    providers only report whether a bearer token is available; refreshing
    it belongs to the token source.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        config: Config,
        token_source: OAuthTokenSource | None = None,
        notifier: Notifier | None = None,
        token_store: TokenStore | None = None,
    ):
        self._http = http
        self._config = config
        self._profile = config.profile
        self._token_source = token_source
        self._notifier = notifier
        self._token_store = token_store
        self._sid = ""
        self._auth = ""
        self._edit_token = ""
        self.state = AuthState.LOGGED_OUT

    @property
    def edit_token(self) -> str:
        return self._edit_token

    def _bearer(self) -> str:
        if self._token_source is None:
            return ""
        return self._token_source.bearer() or ""

    async def ensure_login(self) -> bool:
        """Make sure the session can authorize requests.

        Returns:
            True when a usable token is held after the call.
        """
        if self._profile.uses_oauth:
            logged_in = bool(self._bearer())
            self.state = AuthState.LOGGED_IN if logged_in else AuthState.LOGGED_OUT
            return logged_in

        if self._sid or self._auth:
            return True

        try:
            await self.client_login()
        except AuthError as e:
            logger.error("Login failed with error: %s", e)
            return False

        logger.debug("Login successful")
        return True

    async def client_login(self) -> None:
        """Perform ClientLogin and, for providers that need it, fetch the edit token.

        Raises:
            AuthError: If the server refuses the credentials or cannot be reached.
        """
        self.state = AuthState.LOGGING_IN
        url = self._profile.url(Operation.CLIENT_LOGIN, self._config.greader_url)
        body = form_body(
            [
                ("Email", quote(self._config.username, safe="")),
                ("Passwd", quote(self._config.password.get_secret_value(), safe="")),
            ]
        )

        try:
            response = await perform_request(
                self._http,
                "POST",
                url,
                self._config.timeout,
                content=body,
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
        except NetworkError as e:
            self.clear_credentials()
            raise AuthError(f"Authentication failed: {e}") from e

        self._sid, self._auth = self._parse_login_response(response.text)

        if not self._auth:
            self.clear_credentials()
            raise AuthError("No Auth token found in authentication response")

        if self._profile.needs_edit_token:
            try:
                token_response = await perform_request(
                    self._http,
                    "GET",
                    self._profile.url(Operation.TOKEN, self._config.greader_url),
                    self._config.timeout,
                    headers=self.headers(),
                )
            except NetworkError as e:
                self.clear_credentials()
                raise AuthError(f"Cannot obtain edit token: {e}") from e
            self._edit_token = token_response.text

        self.state = AuthState.LOGGED_IN

    @staticmethod
    def _parse_login_response(text: str) -> tuple[str, str]:
        """Extract ``SID`` and ``Auth`` from a ``KEY=VALUE`` line body."""
        sid = auth = ""
        for line in text.replace("\r", "").split("\n"):
            key, sep, value = line.partition("=")
            if not key or not sep:
                continue
            if key == "SID":
                sid = value
            elif key == "Auth":
                auth = value

        if _ABSENT_VALUE.match(sid):
            sid = ""
        if _ABSENT_VALUE.match(auth):
            auth = ""
        return sid, auth

    def auth_header(self) -> tuple[str, str]:
        if self._profile.uses_oauth:
            return "Authorization", f"Bearer {self._bearer()}"
        return "Authorization", f"GoogleLogin auth={self._auth}"

    def headers(self) -> dict[str, str]:
        name, value = self.auth_header()
        return {name: value}

    def clear_credentials(self) -> None:
        self._sid = self._auth = self._edit_token = ""
        self.state = AuthState.LOGGED_OUT

    def handle_unauthorized(self, description: str = "") -> None:
        """React to a 401 answer from the server."""
        if self._profile.uses_oauth:
            self.report_auth_failure(description or "authorization denied")
        else:
            logger.warning("Session rejected by server, credentials cleared")
            self.clear_credentials()

    def report_auth_failure(self, description: str) -> None:
        """Offer the user a relogin action through the notifier."""
        self.state = AuthState.LOGGED_OUT
        if self._notifier is None or self._token_source is None:
            logger.error("Authentication error: %s", description)
            return
        self._notifier(
            f"{self._profile.variant.value}: authentication error",
            f"Click this to login again. Error is: '{description}'",
            self._token_source.login,
        )

    def tokens_retrieved(self, refresh_token: str) -> None:
        """Persist a freshly issued refresh token for this account."""
        if self._token_store is not None and self._config.account_id > 0 and refresh_token:
            self._token_store(self._config.account_id, refresh_token)

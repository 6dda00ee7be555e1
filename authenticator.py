#!/usr/bin/env python3
"""
Authenticator Module
Logs into Wikipedia through Special:UserLogin and leaves the session cookies in a CookieStore.

The flow is a fixed sequence of four exchanges. Every step except the first
expects a 302: a redirect is the only success signal, a 200 means the login
form was shown again (bad credentials, captcha, ...).
"""

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urljoin

from cookie_store import CookieStore
from errors import AuthenticationError, ProtocolError, TransportError
from http_transport import HttpTransport
from models import HttpResponse
from rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

LOGIN_TOKEN_MARKER = 'name="wpLoginToken" type="hidden" value="'
LOGIN_TOKEN_END = '">'


class AuthState(enum.Enum):
    PENDING = "pending"
    TOKEN_FETCHED = "token_fetched"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    FIRST_REDIRECT_FOLLOWED = "first_redirect_followed"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class UrlSource(enum.Enum):
    LOGIN_PAGE = "login_page"
    PREVIOUS_LOCATION = "previous_location"


@dataclass(frozen=True)
class AuthStep:
    name: str
    from_state: AuthState
    to_state: AuthState
    method: str
    url_source: UrlSource
    expected_status: int
    sends_credentials: bool = False
    sends_cookies: bool = True


# state -> expected status -> next state
LOGIN_STEPS: Tuple[AuthStep, ...] = (
    AuthStep(
        name="token_fetch",
        from_state=AuthState.PENDING,
        to_state=AuthState.TOKEN_FETCHED,
        method="GET",
        url_source=UrlSource.LOGIN_PAGE,
        expected_status=200,
        sends_cookies=False,
    ),
    AuthStep(
        name="credential_submit",
        from_state=AuthState.TOKEN_FETCHED,
        to_state=AuthState.CREDENTIALS_SUBMITTED,
        method="POST",
        url_source=UrlSource.LOGIN_PAGE,
        expected_status=302,
        sends_credentials=True,
    ),
    AuthStep(
        name="redirect_hop_1",
        from_state=AuthState.CREDENTIALS_SUBMITTED,
        to_state=AuthState.FIRST_REDIRECT_FOLLOWED,
        method="GET",
        url_source=UrlSource.PREVIOUS_LOCATION,
        expected_status=302,
    ),
    AuthStep(
        name="redirect_hop_2",
        from_state=AuthState.FIRST_REDIRECT_FOLLOWED,
        to_state=AuthState.AUTHENTICATED,
        method="GET",
        url_source=UrlSource.PREVIOUS_LOCATION,
        expected_status=302,
    ),
)


def extract_login_token(html: str) -> str:
    """
    Read the hidden wpLoginToken value out of the login page markup.

    Raises:
        ProtocolError: If the marker is not present exactly once or the token is empty
    """
    parts = html.split(LOGIN_TOKEN_MARKER)
    if len(parts) != 2:
        raise ProtocolError("Login token wasn't found.")
    token = parts[1].split(LOGIN_TOKEN_END, 1)[0]
    if not token:
        raise ProtocolError("Login token is empty.")
    return token


def build_login_form(username: str, password: str, login_token: str) -> Dict[str, str]:
    return {
        "title": "Special:UserLogin",
        "wpName": username,
        "wpPassword": password,
        "wpRemember": "1",
        "wpEditToken": "+\\",
        "authAction": "login",
        "wpLoginToken": login_token,
        "geEnabled": "-1",
    }


class WikipediaAuthenticator:
    """Drives the login state machine for one pipeline run."""

    def __init__(
        self,
        transport: HttpTransport,
        cookie_store: CookieStore,
        rate_limiter: RateLimiter,
        login_url: str,
    ):
        self.transport = transport
        self.cookie_store = cookie_store
        self.rate_limiter = rate_limiter
        self.login_url = login_url
        self.state = AuthState.PENDING
        self._login_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def authenticate(self, username: str, password: str) -> CookieStore:
        """
        Run every login step in order.

        Args:
            username: Wikipedia account name
            password: Wikipedia account password

        Returns:
            The CookieStore, now holding the authenticated session

        Raises:
            TransportError: Login page did not return 200
            ProtocolError: Login token or a redirect Location was missing
            AuthenticationError: A redirect-expecting step got another status
        """
        if self.state is not AuthState.PENDING:
            raise AuthenticationError(
                f"Authenticator already used (state: {self.state.value})"
            )

        logger.info("Starting login flow")
        previous: Optional[HttpResponse] = None
        try:
            for step in LOGIN_STEPS:
                previous = self._run_step(step, previous, username, password)
        except Exception:
            self.state = AuthState.FAILED
            raise
        finally:
            self._login_token = None

        logger.info(f"Authenticated ({len(self.cookie_store)} session cookies)")
        return self.cookie_store

    def _run_step(
        self,
        step: AuthStep,
        previous: Optional[HttpResponse],
        username: str,
        password: str,
    ) -> HttpResponse:
        if self.state is not step.from_state:
            raise AuthenticationError(
                f"Step {step.name} cannot run from state {self.state.value}",
                step=step.name,
            )

        url = self._resolve_url(step, previous)
        headers = {}
        if step.sends_cookies:
            headers["Cookie"] = self.cookie_store.render()
        data = None
        if step.sends_credentials:
            data = build_login_form(username, password, self._login_token)

        self.rate_limiter.wait()
        logger.debug(f"Login step {step.name}: {step.method} {url.split('?', 1)[0]}")
        response = self.transport.request(
            step.method,
            url,
            headers=headers,
            data=data,
            follow_redirects=False,
        )
        self._check_status(step, response)

        if step.to_state is AuthState.TOKEN_FETCHED:
            self._login_token = extract_login_token(response.text)

        self.cookie_store.merge(response.set_cookies)
        self.state = step.to_state
        return response

    def _resolve_url(self, step: AuthStep, previous: Optional[HttpResponse]) -> str:
        if step.url_source is UrlSource.LOGIN_PAGE:
            return self.login_url

        location = previous.headers.get("Location") if previous is not None else None
        if not location:
            raise ProtocolError(f"Redirect Location missing before step {step.name}")
        return urljoin(previous.url or self.login_url, location)

    @staticmethod
    def _check_status(step: AuthStep, response: HttpResponse) -> None:
        if response.status_code == step.expected_status:
            return

        message = (
            f"HTTP code {response.status_code} received instead of "
            f"{step.expected_status} during {step.name}."
        )
        if step.expected_status == 200:
            raise TransportError(message, status_code=response.status_code, url=response.url)
        raise AuthenticationError(message, step=step.name, status_code=response.status_code)

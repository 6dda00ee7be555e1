#!/usr/bin/env python3
"""
HTTP Transport Module
Thin wrapper over requests that exposes every Set-Cookie header and keeps no cookie state.
"""

import logging
from typing import Dict, List, Mapping, Optional

import requests
from requests import Session
from requests.structures import CaseInsensitiveDict

from errors import TransportError
from models import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "wiki-reading-list/0.1 (reading list exporter)"
DEFAULT_TIMEOUT = 30


def _set_cookie_headers(response: requests.Response) -> List[str]:
    """
    Collect every Set-Cookie occurrence from a response.

    requests folds repeated headers into one comma-joined value, which breaks on
    Expires dates, so the urllib3 header list is read instead when available.
    """
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        return list(raw_headers.getlist("Set-Cookie"))

    value = response.headers.get("Set-Cookie")
    return [value] if value else []


class HttpTransport:
    """Performs a single request and returns status, headers and body."""

    def __init__(
        self,
        session: Optional[Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
        follow_redirects: bool = True,
    ) -> HttpResponse:
        """
        Perform one HTTP request.

        Args:
            method: HTTP method ("GET", "POST")
            url: Absolute URL
            headers: Extra request headers (e.g. Cookie)
            data: Form fields for a POST body
            follow_redirects: Whether 3xx responses are followed

        Returns:
            HttpResponse with every Set-Cookie occurrence

        Raises:
            TransportError: On timeouts and network failures
        """
        request_headers = {"User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url.split('?', 1)[0]} (redirects={'on' if follow_redirects else 'off'})")

        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                data=data,
                allow_redirects=follow_redirects,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timeout: {method} {url}", url=url) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Network error during {method} {url}: {e}", url=url) from e
        finally:
            # The CookieStore is the only cookie carrier between requests
            self.session.cookies.clear()

        return HttpResponse(
            status_code=response.status_code,
            headers=CaseInsensitiveDict(response.headers),
            set_cookies=_set_cookie_headers(response),
            text=response.text,
            url=url,
        )

    def close(self) -> None:
        self.session.close()

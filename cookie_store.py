"""
Cookie Store for the Wikipedia login session.
Accumulates Set-Cookie values across HTTP exchanges and renders a Cookie header.
"""

import logging
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class CookieStore:
    """Name -> value mapping owned by a single pipeline run."""

    def __init__(self):
        self._cookies: Dict[str, str] = {}

    def merge(self, set_cookie_headers: Optional[Iterable[str]]) -> int:
        """
        Merge raw Set-Cookie header values into the store.

        Attributes after the first ';' (Path, Expires, HttpOnly...) are dropped.
        Fragments that do not split into a non-empty name and value are skipped.

        Args:
            set_cookie_headers: Every Set-Cookie occurrence from one response

        Returns:
            Number of cookies stored or overwritten
        """
        if not set_cookie_headers:
            return 0

        merged = 0
        for raw in set_cookie_headers:
            pair = raw.split(";", 1)[0]
            if "=" not in pair:
                continue
            name, value = pair.split("=", 1)
            name = name.strip()
            value = value.strip()
            if not name or not value:
                continue
            self._cookies[name] = value
            merged += 1

        if merged:
            logger.debug(f"Merged cookies: {', '.join(sorted(self._cookies))}")
        return merged

    def render(self) -> str:
        """Return the store as a Cookie request header value."""
        return ";".join(f"{name}={value}" for name, value in self._cookies.items())

    def get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def names(self) -> List[str]:
        return list(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: str) -> bool:
        return name in self._cookies

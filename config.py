import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from errors import ConfigurationError
from http_transport import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from list_fetcher import entries_url_for
from rate_limiter import DEFAULT_REQUEST_INTERVAL

DEFAULT_AUTH_URL = "https://en.wikipedia.org/wiki/Special:UserLogin"
DEFAULT_LISTS_URL = "https://en.wikipedia.org/api/rest_v1/data/lists/"
DEFAULT_EXTRACTS_URL = (
    "https://en.wikipedia.org/w/api.php?format=json&action=query"
    "&prop=extracts&exintro&explaintext&redirects=0&titles="
)
DEFAULT_CACHE_TTL = 60 * 60 * 24 - 60  # just under a day
CACHE_BACKENDS = ("file", "memory")


@dataclass(frozen=True)
class Settings:
    username: str
    password: str = field(repr=False)
    auth_url: str = DEFAULT_AUTH_URL
    lists_url: str = DEFAULT_LISTS_URL
    list_id: Optional[str] = None
    extracts_url: str = DEFAULT_EXTRACTS_URL
    request_interval: float = DEFAULT_REQUEST_INTERVAL
    request_timeout: float = DEFAULT_TIMEOUT
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_backend: str = "file"
    cache_dir: str = ".cache"
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def entries_url(self) -> Optional[str]:
        """Entries endpoint of the configured list, or None when the default list must be discovered."""
        if self.list_id is None:
            return None
        return entries_url_for(self.lists_url, self.list_id)


def _getenv_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _getenv_number(name: str, default, cast):
    value = _getenv_str(name)
    if value is None:
        return default
    try:
        number = cast(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if number < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value!r}")
    return number


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment, reading a .env file first if present.

    Raises:
        ConfigurationError: Credentials missing or a numeric setting is invalid
    """
    load_dotenv(env_file)

    username = _getenv_str("WIKIPEDIA_USERNAME")
    # Passwords are taken verbatim, surrounding whitespace included
    password = os.getenv("WIKIPEDIA_PASSWORD")
    if not username or not password:
        raise ConfigurationError(
            "WIKIPEDIA_USERNAME and WIKIPEDIA_PASSWORD must be set (environment or .env file)"
        )

    cache_backend = _getenv_str("CACHE_BACKEND", "file").lower()
    if cache_backend not in CACHE_BACKENDS:
        raise ConfigurationError(
            f"CACHE_BACKEND must be one of {', '.join(CACHE_BACKENDS)}, got {cache_backend!r}"
        )

    return Settings(
        username=username,
        password=password,
        auth_url=_getenv_str("WIKIPEDIA_AUTH_URL", DEFAULT_AUTH_URL),
        lists_url=_getenv_str("WIKIPEDIA_LISTS_URL", DEFAULT_LISTS_URL),
        list_id=_getenv_str("WIKIPEDIA_LIST_ID"),
        extracts_url=_getenv_str("WIKIPEDIA_EXTRACTS_URL", DEFAULT_EXTRACTS_URL),
        request_interval=_getenv_number("REQUEST_INTERVAL", DEFAULT_REQUEST_INTERVAL, float),
        request_timeout=_getenv_number("REQUEST_TIMEOUT", DEFAULT_TIMEOUT, float),
        cache_ttl=_getenv_number("CACHE_TTL", DEFAULT_CACHE_TTL, int),
        cache_backend=cache_backend,
        cache_dir=_getenv_str("CACHE_DIR", ".cache"),
        user_agent=_getenv_str("USER_AGENT", DEFAULT_USER_AGENT),
    )

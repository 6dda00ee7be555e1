#!/usr/bin/env python3
"""
Reading List Service
Serves the Wikipedia reading list through a read-through cache.

On a miss the full pipeline runs: login, paginated list fetch, extract
enrichment. Only a complete result is cached.
"""

import hashlib
import logging
from typing import Callable, Optional

from authenticator import WikipediaAuthenticator
from config import Settings
from cookie_store import CookieStore
from extract_enricher import ExtractEnricher
from http_transport import HttpTransport
from list_fetcher import create_list_fetcher
from models import ReadingList, deserialize_reading_list, serialize_reading_list
from rate_limiter import RateLimiter
from storage import create_cache

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "wikipedia#defaultList#"


def make_cache_key(username: str) -> str:
    """Derive the cache key from the account name without exposing it."""
    digest = hashlib.sha256(username.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


class ReadingListService:
    """Cache-fronted orchestrator for the reading list pipeline."""

    def __init__(
        self,
        settings: Settings,
        cache,
        transport_factory: Optional[Callable[[], HttpTransport]] = None,
    ):
        self.settings = settings
        self.cache = cache
        self.transport_factory = transport_factory or self._default_transport

    def _default_transport(self) -> HttpTransport:
        return HttpTransport(
            user_agent=self.settings.user_agent,
            timeout=self.settings.request_timeout,
        )

    def get_reading_list(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        refresh: bool = False,
    ) -> ReadingList:
        """
        Return the reading list, from cache when possible.

        Args:
            username: Account name (defaults to the configured one)
            password: Account password (defaults to the configured one)
            refresh: Skip the cache read and rebuild the list

        Returns:
            Title -> ListEntry mapping

        Raises:
            ReadingListError: Any pipeline stage failed; nothing is cached
        """
        username = username or self.settings.username
        password = password or self.settings.password
        cache_key = make_cache_key(username)

        if not refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("Reading list served from cache")
                return deserialize_reading_list(cached)
            logger.info("Cache miss, fetching reading list")
        else:
            logger.info("Cache bypassed, fetching reading list")

        reading_list = self._run_pipeline(username, password)

        self.cache.put(cache_key, serialize_reading_list(reading_list), self.settings.cache_ttl)
        logger.info(f"Cached {len(reading_list)} entries for {self.settings.cache_ttl}s")
        return reading_list

    def _run_pipeline(self, username: str, password: str) -> ReadingList:
        logger.info("🚀 Starting reading list pipeline")
        # Cookie and throttle state belong to this run only
        cookie_store = CookieStore()
        rate_limiter = RateLimiter(self.settings.request_interval)
        transport = self.transport_factory()

        try:
            WikipediaAuthenticator(
                transport=transport,
                cookie_store=cookie_store,
                rate_limiter=rate_limiter,
                login_url=self.settings.auth_url,
            ).authenticate(username, password)

            fetcher = create_list_fetcher(
                transport=transport,
                cookie_store=cookie_store,
                rate_limiter=rate_limiter,
                lists_url=self.settings.lists_url,
                entries_url=self.settings.entries_url,
            )
            reading_list = fetcher.fetch_entries()

            ExtractEnricher(
                transport=transport,
                rate_limiter=rate_limiter,
                extracts_url=self.settings.extracts_url,
            ).enrich(reading_list)
        finally:
            transport.close()

        logger.info(
            f"🎉 Pipeline complete: {len(reading_list)} entries, {rate_limiter.wait_count} requests"
        )
        return reading_list


def create_service(settings: Settings) -> ReadingListService:
    return ReadingListService(settings=settings, cache=create_cache(settings))

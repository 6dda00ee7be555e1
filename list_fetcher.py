#!/usr/bin/env python3
"""
List Fetcher Module
Fetches reading list entries from the Wikipedia lists API with cursor pagination and rate limiting.
"""

import logging
from typing import Dict, Any, Generator, List, Optional
from urllib.parse import quote

from cookie_store import CookieStore
from data_parser import parse_json_body, parse_list_page, parse_lists_page
from errors import ProtocolError, TransportError
from http_transport import HttpTransport
from models import ReadingList
from rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_page_url(base_url: str, cursor: Optional[str]) -> str:
    """
    Build the URL for the next page.

    The cursor is opaque and may contain reserved characters. Its first
    backslash is an escaping artifact of the API and is dropped before
    percent-encoding.
    """
    if cursor is None:
        return base_url
    cleaned = cursor.replace("\\", "", 1)
    return f"{base_url}?next={quote(cleaned, safe='')}"


def entries_url_for(lists_url: str, list_id: Any) -> str:
    return f"{lists_url.rstrip('/')}/{list_id}/entries/"


class ReadingListFetcher:
    """Handles fetching entries of one reading list for an authenticated session."""

    def __init__(
        self,
        transport: HttpTransport,
        cookie_store: CookieStore,
        rate_limiter: RateLimiter,
        entries_url: str,
    ):
        self.transport = transport
        self.cookie_store = cookie_store
        self.rate_limiter = rate_limiter
        self.entries_url = entries_url
        self.pages_fetched = 0

    def iter_pages(self, base_url: Optional[str] = None) -> Generator[Dict[str, Any], None, None]:
        """
        Yield decoded JSON pages until a page arrives without a "next" cursor.

        There is no page limit: termination relies on the server dropping the cursor.

        Args:
            base_url: Paginated endpoint (defaults to the entries endpoint)

        Yields:
            Decoded JSON object of each page
        """
        base_url = base_url or self.entries_url
        cursor: Optional[str] = None

        while True:
            url = build_page_url(base_url, cursor)
            payload = self._fetch_page(url)
            self.pages_fetched += 1
            yield payload

            if "next" not in payload or payload["next"] is None:
                break
            cursor = str(payload["next"])

    def _fetch_page(self, url: str) -> Dict[str, Any]:
        """
        Fetch a single page.

        Raises:
            TransportError: Status other than 200
            ProtocolError: Body is not a JSON object
        """
        self.rate_limiter.wait()
        response = self.transport.request(
            "GET",
            url,
            headers={"Cookie": self.cookie_store.render()},
        )
        if response.status_code != 200:
            raise TransportError(
                f"HTTP error {response.status_code}",
                status_code=response.status_code,
                url=url,
            )
        return parse_json_body(response)

    def fetch_entries(self) -> ReadingList:
        """
        Fetch every entry of the list.

        Returns:
            Title -> ListEntry mapping; a repeated title keeps the last entry seen
        """
        logger.info(f"Starting reading list fetch: {self.entries_url}")
        self.pages_fetched = 0
        reading_list: ReadingList = {}

        for page in self.iter_pages():
            entries, _ = parse_list_page(page)
            for entry in entries:
                if entry.title in reading_list:
                    logger.warning(f"Duplicate title across pages: {entry.title}")
                reading_list[entry.title] = entry
            logger.debug(f"Page {self.pages_fetched}: {len(entries)} entries")

        logger.info(
            f"Reading list fetch completed. Pages: {self.pages_fetched}, entries: {len(reading_list)}"
        )
        return reading_list

    def fetch_lists(self, lists_url: str) -> List[Dict[str, Any]]:
        """Fetch the metadata of every reading list on the account."""
        lists: List[Dict[str, Any]] = []
        for page in self.iter_pages(lists_url):
            page_lists, _ = parse_lists_page(page)
            lists.extend(page_lists)
        logger.info(f"Found {len(lists)} reading lists")
        return lists


def find_default_list_id(fetcher: ReadingListFetcher, lists_url: str) -> Any:
    """
    Return the id of the account's default reading list.

    Raises:
        ProtocolError: No list is flagged as default
    """
    for reading_list in fetcher.fetch_lists(lists_url):
        if reading_list.get("default") and reading_list.get("id") is not None:
            logger.info(f"Default reading list id: {reading_list['id']}")
            return reading_list["id"]
    raise ProtocolError("No default reading list found on the account")


def create_list_fetcher(
    transport: HttpTransport,
    cookie_store: CookieStore,
    rate_limiter: RateLimiter,
    lists_url: str,
    entries_url: Optional[str] = None,
) -> ReadingListFetcher:
    """
    Create a fetcher bound to the configured entries URL, discovering the default list when none is set.
    """
    fetcher = ReadingListFetcher(
        transport=transport,
        cookie_store=cookie_store,
        rate_limiter=rate_limiter,
        entries_url=entries_url or "",
    )
    if entries_url is None:
        list_id = find_default_list_id(fetcher, lists_url)
        fetcher.entries_url = entries_url_for(lists_url, list_id)
    return fetcher

#!/usr/bin/env python3
"""
Extract Enricher Module
Adds a short plain-text summary to every reading list entry using the batch extracts API.
"""

import logging
from dataclasses import replace
from typing import Generator, Iterable, List
from urllib.parse import quote

from data_parser import normalize_extract, parse_extract_pages, parse_json_body
from errors import TransportError
from http_transport import HttpTransport
from models import ReadingList
from rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

MAX_TITLES_PER_BATCH = 10
TITLE_SEPARATOR = "|"


def batch_titles(titles: Iterable[str], batch_size: int = MAX_TITLES_PER_BATCH) -> Generator[List[str], None, None]:
    """Split titles into consecutive batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"Batch size must be positive: {batch_size}")
    batch: List[str] = []
    for title in titles:
        batch.append(title)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def build_titles_param(titles: List[str]) -> str:
    return TITLE_SEPARATOR.join(titles)


class ExtractEnricher:
    """Looks up extracts in batches and merges them onto matching entries."""

    def __init__(
        self,
        transport: HttpTransport,
        rate_limiter: RateLimiter,
        extracts_url: str,
        batch_size: int = MAX_TITLES_PER_BATCH,
    ):
        self.transport = transport
        self.rate_limiter = rate_limiter
        self.extracts_url = extracts_url
        self.batch_size = min(batch_size, MAX_TITLES_PER_BATCH)
        self.batches_sent = 0

    def enrich(self, reading_list: ReadingList) -> ReadingList:
        """
        Set the extract of every entry whose title comes back from the extracts API.

        Titles renamed or deleted since they were saved get no page back and keep
        no extract. Returned pages for titles not on the list are ignored.

        Args:
            reading_list: Title -> ListEntry mapping, updated in place

        Returns:
            The same mapping
        """
        logger.info(f"Fetching extracts for {len(reading_list)} entries")
        matched = 0

        for batch in batch_titles(list(reading_list), self.batch_size):
            for title, extract in self._fetch_batch(batch):
                entry = reading_list.get(title)
                if entry is None:
                    logger.debug(f"Ignoring extract for unlisted title: {title}")
                    continue
                reading_list[title] = replace(entry, extract=normalize_extract(extract))
                matched += 1

        logger.info(
            f"Extracts merged: {matched}/{len(reading_list)} entries in {self.batches_sent} batches"
        )
        return reading_list

    def _fetch_batch(self, titles: List[str]):
        """
        Request extracts for one batch of titles.

        Raises:
            TransportError: Status other than 200
            ProtocolError: Body lacks query.pages
        """
        url = self.extracts_url + quote(build_titles_param(titles), safe="")
        self.rate_limiter.wait()
        response = self.transport.request("GET", url)
        self.batches_sent += 1
        if response.status_code != 200:
            raise TransportError(
                f"HTTP error {response.status_code}",
                status_code=response.status_code,
                url=url,
            )
        logger.debug(f"Batch {self.batches_sent}: {len(titles)} titles")
        return parse_extract_pages(parse_json_body(response))

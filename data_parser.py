import re
import json
import logging
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import unquote

from errors import ProtocolError
from models import HttpResponse, ListEntry

logger = logging.getLogger(__name__)

EXTRACT_TRUNCATE_THRESHOLD = 500
EXTRACT_TRUNCATED_LENGTH = 200

_LINE_BREAKS = re.compile(r"\r\n|\n|\r")


def parse_json_body(response: HttpResponse) -> Dict[str, Any]:
    """Decode a JSON object body, raising ProtocolError on anything else."""
    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise ProtocolError(f"Invalid JSON response from {response.url}: {e}") from e
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected a JSON object from {response.url}, got {type(payload).__name__}")
    return payload


def parse_list_entry(raw: Dict[str, Any]) -> Optional[ListEntry]:
    """
    Parse one element of a list page's "entries" array.
    Entries without a usable title are skipped (returns None).
    """
    title = raw.get("title")
    if not isinstance(title, str) or not title:
        return None
    created = raw.get("created")
    return ListEntry(title=title, created=str(created) if created is not None else None)


def parse_list_page(payload: Dict[str, Any]) -> Tuple[List[ListEntry], Optional[str]]:
    """
    Parse a page of the list entries endpoint.

    Wire format: {"entries": [{"title": ..., "created": ...}], "next": "..."}

    Returns:
        (entries, next cursor or None on the final page)
    """
    entries = payload.get("entries")
    if not isinstance(entries, list):
        raise ProtocolError("List page is missing the 'entries' array")

    parsed = []
    for raw in entries:
        entry = parse_list_entry(raw) if isinstance(raw, dict) else None
        if entry is None:
            logger.warning(f"Skipping list entry without a title: {raw!r}")
            continue
        parsed.append(entry)

    return parsed, _next_cursor(payload)


def parse_lists_page(payload: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Parse a page of the reading lists endpoint: {"lists": [...], "next": "..."}."""
    lists = payload.get("lists")
    if not isinstance(lists, list):
        raise ProtocolError("Lists page is missing the 'lists' array")
    return [item for item in lists if isinstance(item, dict)], _next_cursor(payload)


def _next_cursor(payload: Dict[str, Any]) -> Optional[str]:
    # Presence of the field, not its truthiness, signals another page
    if "next" not in payload or payload["next"] is None:
        return None
    return str(payload["next"])


def parse_extract_pages(payload: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Parse an extracts batch response.

    Wire format: {"query": {"pages": {"<page id>": {"title": ..., "extract": ...}}}}

    Returns:
        (decoded title, raw extract) pairs; pages without an extract are omitted
    """
    query = payload.get("query")
    pages = query.get("pages") if isinstance(query, dict) else None
    if not isinstance(pages, dict):
        raise ProtocolError("Extract response is missing 'query.pages'")

    results = []
    for page_id, page in pages.items():
        if not isinstance(page, dict):
            continue
        title = page.get("title")
        extract = page.get("extract")
        if not isinstance(title, str) or not isinstance(extract, str):
            logger.debug(f"No extract for page {page_id}")
            continue
        results.append((unquote(title), extract))
    return results


def normalize_extract(text: str) -> str:
    """
    Shorten and flatten an extract for storage.

    Extracts longer than 500 characters are cut to their first 200 characters;
    shorter ones keep their length. Line breaks are removed in both cases.
    """
    if len(text) > EXTRACT_TRUNCATE_THRESHOLD:
        text = text[:EXTRACT_TRUNCATED_LENGTH]
    return _LINE_BREAKS.sub("", text)

import json
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping

from requests.structures import CaseInsensitiveDict


@dataclass(frozen=True)
class ListEntry:
    title: str
    created: Optional[str] = None  # ISO 8601 string as sent by the lists API
    extract: Optional[str] = None  # only set when the extract lookup matched

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"created": self.created}
        if self.extract is not None:
            data["extract"] = self.extract
        return data


# Title -> entry, in the order the lists API returned them
ReadingList = Dict[str, ListEntry]


@dataclass
class HttpResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    set_cookies: List[str] = field(default_factory=list)
    text: str = ""
    url: Optional[str] = None

    def json(self) -> Any:
        return json.loads(self.text)


def reading_list_to_dict(reading_list: Mapping[str, ListEntry]) -> Dict[str, Dict[str, Any]]:
    return {title: entry.to_dict() for title, entry in reading_list.items()}


def reading_list_from_dict(data: Mapping[str, Mapping[str, Any]]) -> ReadingList:
    return {
        title: ListEntry(
            title=title,
            created=values.get("created"),
            extract=values.get("extract"),
        )
        for title, values in data.items()
    }


def serialize_reading_list(reading_list: Mapping[str, ListEntry]) -> str:
    """Render a reading list as the JSON document stored in the cache and served to clients."""
    return json.dumps(reading_list_to_dict(reading_list), ensure_ascii=False)


def deserialize_reading_list(payload: str) -> ReadingList:
    return reading_list_from_dict(json.loads(payload))

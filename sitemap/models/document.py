import enum
import json
from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Any, Dict, List, Mapping, Optional

# Fixed page fields, in hash order
PAGE_FIELDS = ("category", "path", "title", "description", "keywords", "image", "content")


class UpsertResult(str, enum.Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    REVIVED = "revived"
    UNCHANGED = "unchanged"


def encode_info(info: Mapping[str, Any]) -> str:
    """Serialize the extra field bag as a JSON object."""
    if not info:
        return ""
    return json.dumps(dict(info), sort_keys=True, ensure_ascii=False, default=str)


def decode_info(blob: Optional[str]) -> Dict[str, Any]:
    if not blob:
        return {}
    value = json.loads(blob)
    return value if isinstance(value, dict) else {}


@dataclass
class Document:
    doc_id: int
    category_id: int
    path: str
    info: Dict[str, Any] = field(default_factory=dict)
    image: Optional[str] = None
    content: str = ""
    hash: str = ""
    updated: int = 0
    deleted: bool = False
    category: Optional[str] = None


@dataclass
class SearchResult:
    doc_id: int
    path: str
    title: str
    description: str
    keywords: str
    category: str
    url: str
    image: Optional[str]
    updated: int
    content: str
    snippet: str = ""
    rank: float = 0.0
    words: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fixed_fields(cls) -> List[str]:
        return [f.name for f in dataclass_fields(cls) if f.name != "extra"]

    def to_dict(self) -> Dict[str, Any]:
        """Fixed fields merged with the extra ones; fixed fields always win."""
        merged = {name: getattr(self, name) for name in self.fixed_fields()}
        for key, value in self.extra.items():
            merged.setdefault(key, value)
        return merged

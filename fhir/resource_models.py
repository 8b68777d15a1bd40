from dataclasses import dataclass
from typing import Any, Dict

CQL_CONTENT_TYPE = "text/cql"
ELM_CONTENT_TYPE = "application/elm+json"


@dataclass
class ContentEntry:
    content_type: str  # "text/cql" | "application/elm+json" | ...
    data: str  # base64 payload

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ContentEntry":
        return cls(content_type=raw.get("contentType", ""), data=raw.get("data", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"contentType": self.content_type, "data": self.data}

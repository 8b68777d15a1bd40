from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional

import orjson
import pytest
from requests.structures import CaseInsensitiveDict

BOUNDARY = "Boundary_1_1622581234_1622581234567"


def make_elm(library_id: str, version: Optional[str] = "1.0.0") -> Dict[str, Any]:
    identifier: Dict[str, Any] = {"id": library_id}
    if version is not None:
        identifier["version"] = version
    return {
        "library": {
            "annotation": [],
            "identifier": identifier,
            "schemaIdentifier": {"id": "urn:hl7-org:elm", "version": "r1"},
            "statements": {"def": [{"name": "Patient", "context": "Patient"}]},
        }
    }


def elm_text(library_id: str, version: Optional[str] = "1.0.0") -> str:
    return orjson.dumps(make_elm(library_id, version), option=orjson.OPT_INDENT_2).decode()


def build_multipart(parts, boundary: str = BOUNDARY, newline: str = "\r\n") -> str:
    """parts: iterable of (name, body) or raw part strings."""
    nl = newline
    out = f"preamble text{nl}"
    for part in parts:
        if isinstance(part, str):
            out += f"--{boundary}{part}"
            continue
        name, body = part
        out += (
            f"--{boundary}{nl}"
            f"Content-Type: application/json{nl}"
            f'Content-Disposition: form-data; name="{name}"{nl}'
            f"{nl}"
            f"{body}{nl}"
        )
    out += f"--{boundary}--{nl}"
    return out


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", content_type: str = ""):
        self.status_code = status_code
        self.content = text.encode("utf-8")
        self.headers = CaseInsensitiveDict()
        if content_type:
            self.headers["Content-Type"] = content_type

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FakeSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self.response


@pytest.fixture
def multipart_response():
    def _make(parts, boundary: str = BOUNDARY, newline: str = "\r\n") -> FakeResponse:
        return FakeResponse(
            text=build_multipart(parts, boundary, newline),
            content_type=f'multipart/form-data; boundary="{boundary}"',
        )

    return _make

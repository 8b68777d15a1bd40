from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import orjson

from common.logger import get_logger
from fhir.resource_models import ELM_CONTENT_TYPE
from pipeline.storage import write_resource
from translation.errors import TranslationError

log = get_logger(__name__)


class NoElmContentError(TranslationError):
    pass


@dataclass(frozen=True)
class UpdateSummary:
    library_path: Path
    elm_id: Optional[str]
    elm_version: Optional[str]
    elm_size: int
    base64_size: int
    old_base64_length: int
    new_base64_length: int

    @property
    def size_change(self) -> int:
        return self.new_base64_length - self.old_base64_length


def update_elm_in_library(elm_path: Path, library_path: Path) -> UpdateSummary:
    """
    Overwrite the existing application/elm+json attachment of a Library file
    with the base64 of an ELM file, byte for byte, and rewrite the library.
    """
    log.info("Reading ELM file from: %s", elm_path)
    elm_text = Path(elm_path).read_text(encoding="utf-8")
    log.info("Reading library file from: %s", library_path)
    library = orjson.loads(Path(library_path).read_bytes())

    # Parsed only to fail fast on broken JSON and to report the identity.
    elm = orjson.loads(elm_text)
    identifier = (elm.get("library") or {}).get("identifier") or {}
    log.info(
        "ELM file loaded: %s version %s",
        identifier.get("id"),
        identifier.get("version"),
    )

    entry = next(
        (
            c
            for c in library.get("content") or []
            if isinstance(c, dict) and c.get("contentType") == ELM_CONTENT_TYPE
        ),
        None,
    )
    if entry is None:
        raise NoElmContentError(
            f"No {ELM_CONTENT_TYPE} content entry found in library file"
        )

    new_b64 = base64.b64encode(elm_text.encode("utf-8")).decode("ascii")
    old_b64 = entry.get("data") or ""
    entry["data"] = new_b64

    write_resource(library, Path(library_path))

    summary = UpdateSummary(
        library_path=Path(library_path),
        elm_id=identifier.get("id"),
        elm_version=identifier.get("version"),
        elm_size=len(elm_text),
        base64_size=len(new_b64),
        old_base64_length=len(old_b64),
        new_base64_length=len(new_b64),
    )
    log.info(
        "ELM JSON size: %.1f KB, base64 size: %.1f KB, size change: %+d chars",
        summary.elm_size / 1024,
        summary.base64_size / 1024,
        summary.size_change,
    )
    return summary

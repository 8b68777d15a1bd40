from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

import orjson

from common.logger import get_logger
from fhir.resource_models import CQL_CONTENT_TYPE, ELM_CONTENT_TYPE, ContentEntry
from translation.errors import MainArtifactNotFoundError, NoSourceContentError

log = get_logger(__name__)

FALLBACK_LIBRARY_NAME = "main"

_LIBRARY_DIRECTIVE_RE = re.compile(r"^\s*library\s+([^\s]+)", re.MULTILINE)


def _content_list(resource: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
    """
    Library resources carry `content` directly; container resources (e.g. a
    Measure bundling its library) carry it on the first nested library.
    """
    content = resource.get("content")
    if content:
        return content
    nested = resource.get("library")
    if isinstance(nested, list) and nested and isinstance(nested[0], dict):
        return nested[0].get("content")
    return None


def extract_cql_content(resource: Dict[str, Any]) -> str:
    """Decode the base64 `text/cql` attachment of a FHIR resource."""
    content = _content_list(resource)
    if not content or not isinstance(content, list):
        raise NoSourceContentError("No content array found in resource")

    entries = [
        ContentEntry.from_dict(c)
        for c in content
        if isinstance(c, dict) and c.get("contentType") == CQL_CONTENT_TYPE
    ]
    entries = [e for e in entries if e.data]
    if not entries:
        raise NoSourceContentError(f"No {CQL_CONTENT_TYPE} content element found")
    if len(entries) > 1:
        log.warning(
            "Found %d %s content elements, using the first",
            len(entries),
            CQL_CONTENT_TYPE,
        )

    try:
        cql = base64.b64decode(entries[0].data).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise NoSourceContentError(
            f"Undecodable {CQL_CONTENT_TYPE} content: {e}"
        ) from e

    log.info("Extracted CQL content (%d characters)", len(cql))
    return cql


def library_directive_name(cql: str) -> Optional[str]:
    match = _LIBRARY_DIRECTIVE_RE.search(cql)
    if not match:
        return None
    # CQL allows quoted identifiers: library "Foo" version '1.0.0'
    return match.group(1).strip('"') or None


def resolve_library_name(resource: Mapping[str, Any], cql: str) -> str:
    """
    Name of the main library: the CQL `library` declaration, then the
    resource name, then its id, then "main".
    """
    return (
        library_directive_name(cql)
        or resource.get("name")
        or resource.get("id")
        or FALLBACK_LIBRARY_NAME
    )


def select_main_library(
    libraries: Mapping[str, Any], library_name: str
) -> Tuple[str, Any]:
    """Pick the ELM matching `library_name`, else the first decoded one."""
    if not libraries:
        raise MainArtifactNotFoundError(
            f"No ELM content found for main library: {library_name}"
        )
    if library_name in libraries:
        return library_name, libraries[library_name]
    first_name = next(iter(libraries))
    log.warning(
        "Main library %s not in response, falling back to %s",
        library_name,
        first_name,
    )
    return first_name, libraries[first_name]


def canonical_elm_json(elm: Any) -> bytes:
    return orjson.dumps(elm, option=orjson.OPT_INDENT_2)


def encode_elm(elm: Any) -> str:
    return base64.b64encode(canonical_elm_json(elm)).decode("ascii")


def merge_elm_content(resource: Dict[str, Any], elm: Any) -> Dict[str, Any]:
    """
    Replace the resource's `application/elm+json` attachment with `elm`.

    Every existing ELM entry is removed before the new one is appended, so
    merging the same library twice leaves the content list unchanged.
    """
    content = resource.get("content") or []
    content = [
        c
        for c in content
        if not (isinstance(c, dict) and c.get("contentType") == ELM_CONTENT_TYPE)
    ]
    content.append(ContentEntry(ELM_CONTENT_TYPE, encode_elm(elm)).to_dict())
    resource["content"] = content
    log.info("Added ELM content to resource")
    return resource

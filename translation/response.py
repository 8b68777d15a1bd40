from __future__ import annotations

from typing import Any, Dict

import orjson

from common.logger import get_logger
from translation.elm_validation import (
    describe_shape,
    is_elm_library,
    is_plain_library_name,
    library_identity,
    validate_library,
)
from translation.errors import (
    InvalidArtifactShapeError,
    NoArtifactsDecodedError,
    UnsupportedResponseFormatError,
)
from translation.multipart import decode_part, resolve_boundary, split_parts

log = get_logger(__name__)

MULTIPART_INDICATOR = "multipart/"
JSON_INDICATOR = "application/json"


def parse_multipart_elm_response(body: str, content_type: str) -> Dict[str, Any]:
    """
    Decode every well-formed, ELM-shaped part of a multipart translator
    response into {part name: ELM library}. Malformed parts are skipped.
    """
    boundary = resolve_boundary(content_type)
    log.debug("Using boundary: %s", boundary)

    libraries: Dict[str, Any] = {}
    for i, part in enumerate(split_parts(body, boundary)):
        decoded = decode_part(part, index=i)
        if decoded is None:
            continue
        identity = validate_library(decoded.payload, decoded.name)
        if identity is None:
            continue
        if decoded.name in libraries:
            # Later part wins; duplicates usually point at the producer.
            log.warning(
                "Duplicate library part %s; keeping the last one", decoded.name
            )
        libraries[decoded.name] = decoded.payload
        log.info("Parsed ELM library: %s (v%s)", decoded.name, identity.version)

    log.info("Total libraries parsed: %d", len(libraries))
    return libraries


def _parse_single_library(
    body: str, content_type: str, strict: bool
) -> Dict[str, Any]:
    try:
        elm = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise UnsupportedResponseFormatError(content_type, e) from e

    if not is_elm_library(elm):
        if strict:
            raise InvalidArtifactShapeError(
                f"Invalid ELM structure in JSON response (keys: {describe_shape(elm)})"
            )
        log.warning(
            "JSON response without ELM structure (keys: %s)", describe_shape(elm)
        )
        return {}

    identity = library_identity(elm)
    if not identity.id:
        raise InvalidArtifactShapeError("ELM library identifier has no id")
    if not is_plain_library_name(identity.id):
        raise InvalidArtifactShapeError(
            f"ELM library id {identity.id!r} is not a plain library name"
        )
    log.info("Parsed single ELM library: %s (v%s)", identity.id, identity.version)
    return {identity.id: elm}


def decode_translation_response(body: str, content_type: str | None) -> Dict[str, Any]:
    """
    Route a translator response to the multipart or single-JSON decoder based
    on its Content-Type, falling back to plain JSON when the type is unknown.

    Raises NoArtifactsDecodedError when nothing usable came back.
    """
    content_type = content_type or ""
    lowered = content_type.lower()

    if MULTIPART_INDICATOR in lowered:
        libraries = parse_multipart_elm_response(body, content_type)
    elif JSON_INDICATOR in lowered:
        libraries = _parse_single_library(body, content_type, strict=True)
    else:
        log.info("Unrecognised Content-Type %r, trying JSON", content_type)
        libraries = _parse_single_library(body, content_type, strict=False)

    if not libraries:
        raise NoArtifactsDecodedError("No valid ELM libraries found in response")
    return libraries

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, NamedTuple, Optional

import orjson

from common.logger import get_logger
from translation.elm_validation import is_plain_library_name
from translation.errors import MissingBoundaryError

log = get_logger(__name__)

DELIMITER_PREFIX = "--"
TERMINAL_MARKER = "--"
MIN_JSON_LENGTH = 10
PREVIEW_HEAD_CHARS = 200
PREVIEW_TAIL_CHARS = 100

_BOUNDARY_RE = re.compile(
    r"""boundary=(?:"([^"]*)"|'([^']*)'|([^;,\s]+))""", re.IGNORECASE
)
_PART_NAME_RE = re.compile(r'\bname="([^"]+)"', re.IGNORECASE)
# A delimiter line left at the end of a body. Raw JSON never has "--" right
# after a newline, so everything from there on is residue.
_BOUNDARY_RESIDUE_RE = re.compile(r"(?:\r\n|\n|\r)--\S.*\Z", re.DOTALL)


class HeaderTerminator(Enum):
    """Accepted header/body separators, in priority order."""

    CRLF_CRLF = "\r\n\r\n"
    LF_LF = "\n\n"
    CR_CR = "\r\r"


class DecodedPart(NamedTuple):
    name: str
    payload: Any


def resolve_boundary(content_type: str) -> str:
    """Extract the boundary token from a multipart Content-Type header."""
    match = _BOUNDARY_RE.search(content_type or "")
    if not match:
        raise MissingBoundaryError(
            f"No boundary found in content-type header: {content_type!r}"
        )
    boundary = next(g for g in match.groups() if g is not None)
    boundary = boundary.strip("'\"")
    if not boundary:
        raise MissingBoundaryError(
            f"Empty boundary in content-type header: {content_type!r}"
        )
    return boundary


def split_parts(body: str, boundary: str) -> List[str]:
    """
    Split a multipart body on `--<boundary>` and keep only candidate parts:
    the preamble, the closing `--` marker, epilogue and anything without a
    Content-Disposition header are dropped.
    """
    raw_parts = body.split(f"{DELIMITER_PREFIX}{boundary}")
    log.debug("Found %d parts after boundary split", len(raw_parts))

    parts: List[str] = []
    for i, part in enumerate(raw_parts):
        stripped = part.strip()
        if (
            not stripped
            or stripped == TERMINAL_MARKER
            or "content-disposition" not in part.lower()
        ):
            log.debug("Skipping part %d (empty or no Content-Disposition)", i)
            continue
        parts.append(part)
    return parts


def find_header_end(part: str) -> Optional[int]:
    """
    Index of the first body character, or None when no separator is present.
    The earliest separator in the text wins; ties go to the enum order.
    """
    best: Optional[int] = None
    best_terminator: Optional[HeaderTerminator] = None
    for terminator in HeaderTerminator:
        pos = part.find(terminator.value)
        if pos == -1:
            continue
        if best is None or pos < best:
            best = pos
            best_terminator = terminator
    if best is None or best_terminator is None:
        return None
    log.debug("Found header end using pattern: %r", best_terminator.value)
    return best + len(best_terminator.value)


def strip_boundary_residue(text: str) -> str:
    match = _BOUNDARY_RESIDUE_RE.search(text)
    if match:
        text = text[: match.start()]
    return text.strip()


def _preview(text: str) -> str:
    head = text[:PREVIEW_HEAD_CHARS]
    if len(text) <= PREVIEW_HEAD_CHARS:
        return head
    return f"{head} ... {text[-PREVIEW_TAIL_CHARS:]}"


def decode_part(part: str, index: int = 0) -> Optional[DecodedPart]:
    """
    Decode one multipart candidate into (name, parsed JSON).

    Every problem with a single part is logged and answered with None so the
    remaining parts still get decoded.
    """
    name_match = _PART_NAME_RE.search(part)
    if not name_match:
        log.warning("No name found in part %d", index)
        return None
    name = name_match.group(1)
    if not is_plain_library_name(name):
        log.warning("Part %d: %r is not a plain library name", index, name)
        return None

    header_end = find_header_end(part)
    if header_end is None:
        log.warning("No header end found in part %d for %s", index, name)
        log.warning("Part preview: %s", part[:PREVIEW_HEAD_CHARS])
        return None

    body = strip_boundary_residue(part[header_end:])
    if len(body) < MIN_JSON_LENGTH:
        log.warning("Content too short for %s: %d characters", name, len(body))
        return None

    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        log.warning("Failed to parse JSON for library %s: %s", name, e)
        log.warning("Content preview: %s", _preview(body))
        return None

    log.debug("Parsed JSON for %s (%d characters)", name, len(body))
    return DecodedPart(name=name, payload=payload)

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Optional

from common.logger import get_logger

log = get_logger(__name__)

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class LibraryIdentity:
    id: Optional[str]
    version: str


def is_elm_library(value: Any) -> bool:
    """True when `value` has the `library.identifier` shape of an ELM document."""
    if not isinstance(value, dict):
        return False
    library = value.get("library")
    if not isinstance(library, dict):
        return False
    return isinstance(library.get("identifier"), dict)


def library_identity(value: dict) -> LibraryIdentity:
    identifier = value["library"]["identifier"]
    return LibraryIdentity(
        id=identifier.get("id"),
        version=identifier.get("version") or UNKNOWN_VERSION,
    )


def describe_shape(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(sorted(value.keys())) or "<empty object>"
    return type(value).__name__


def validate_library(value: Any, name: str) -> Optional[LibraryIdentity]:
    """
    Shape check for a decoded payload.
    Returns the library identity, or None (logged) when the payload is not ELM.
    """
    if not is_elm_library(value):
        log.warning("Invalid ELM structure for library: %s", name)
        log.warning("Structure: %s", describe_shape(value))
        return None
    return library_identity(value)


def is_plain_library_name(name: Any) -> bool:
    """
    Library names become `<name>.json` files, so they must be a bare file
    name: no separators, no `..`, nothing a path would reinterpret.
    """
    if not isinstance(name, str) or not name.strip():
        return False
    if "/" in name or "\\" in name or ".." in name or "\x00" in name:
        return False
    return PurePath(name).name == name

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

import orjson

from common.logger import get_logger
from translation.elm_validation import is_plain_library_name
from translation.errors import InvalidArtifactShapeError

log = get_logger(__name__)


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(obj, option=orjson.OPT_INDENT_2))


def load_resource(path: Path) -> Dict[str, Any]:
    return orjson.loads(Path(path).read_bytes())


def resolve_resource_path(resource_name: str, resources_dir: Path) -> Path:
    """
    Absolute or path-like names are used as given; bare names are looked up
    in `resources_dir`, with a `.json` suffix added when needed.
    """
    candidate = Path(resource_name)
    if candidate.is_absolute() or "/" in resource_name:
        path = candidate
    else:
        path = Path(resources_dir) / resource_name
        if not path.exists() and not resource_name.endswith(".json"):
            path = Path(resources_dir) / f"{resource_name}.json"

    if not path.exists():
        raise FileNotFoundError(f"Resource file not found: {path}")
    return path


def output_path_for(resource_path: Path, output_dir: Path, suffix: str) -> Path:
    return Path(output_dir) / f"{Path(resource_path).stem}{suffix}.json"


def save_elm_libraries(libraries: Mapping[str, Any], out_dir: Path) -> List[Path]:
    """Write each ELM library to `<out_dir>/<name>.json`."""
    log.info("Saving %d ELM libraries to %s", len(libraries), out_dir)
    written: List[Path] = []
    for name, elm in libraries.items():
        if not is_plain_library_name(name):
            raise InvalidArtifactShapeError(
                f"Refusing to write ELM library named {name!r}"
            )
        path = Path(out_dir) / f"{name}.json"
        _write_json(path, elm)
        version = (elm.get("library") or {}).get("identifier", {}).get("version")
        log.info("Saved: %s (v%s)", path.name, version or "unknown")
        written.append(path)
    return written


def write_resource(resource: Mapping[str, Any], path: Path) -> Path:
    _write_json(Path(path), resource)
    log.info("Wrote resource to %s", path)
    return Path(path)

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping

from common.logger import get_logger

log = get_logger(__name__)

CQL_SUFFIX = ".cql"


def discover_cql_files(root: Path) -> List[Path]:
    """All *.cql files directly under `root`, sorted by file name."""
    return sorted(
        (p for p in root.iterdir() if p.is_file() and p.suffix.lower() == CQL_SUFFIX),
        key=lambda p: p.name,
    )


def load_dependency_set(source_dir: Path) -> Dict[str, str]:
    """
    Read every CQL library in `source_dir` as {file stem: source text}.
    A missing directory is not an error; the translator just gets fewer files.
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        log.warning("CQL directory not found: %s", source_dir)
        return {}

    files = discover_cql_files(source_dir)
    log.info("Found %d CQL files in %s", len(files), source_dir)

    deps: Dict[str, str] = {}
    for f in files:
        deps[f.stem] = f.read_text(encoding="utf-8")
        log.debug("Added: %s -> field: %s", f.name, f.stem)
    return deps


def build_submission_fields(
    dependencies: Mapping[str, str], library_name: str, cql: str
) -> Dict[str, str]:
    """
    Form fields for the translator, ordered by field name. The embedded CQL
    is only added when the dependency directory has no file of that name.
    """
    fields = dict(dependencies)
    if library_name not in fields:
        log.info("Submitting embedded CQL as field: %s", library_name)
        fields[library_name] = cql
    return {name: fields[name] for name in sorted(fields)}

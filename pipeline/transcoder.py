from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.config import GlobalYAMLConfig
from common.logger import get_logger
from fhir.resource_content import (
    extract_cql_content,
    merge_elm_content,
    resolve_library_name,
    select_main_library,
)
from pipeline.dependencies import build_submission_fields, load_dependency_set
from pipeline.storage import (
    load_resource,
    output_path_for,
    resolve_resource_path,
    save_elm_libraries,
    write_resource,
)
from translation.client import TranslatorClient

log = get_logger(__name__)


@dataclass(frozen=True)
class TranscodeResult:
    resource: Dict[str, Any]  # updated in place, returned for convenience
    library_name: str  # name resolved from the resource / CQL
    main_library_name: str  # key of the ELM that was merged
    main_elm: Dict[str, Any]
    libraries: Dict[str, Any]  # every ELM library the translator returned


@dataclass(frozen=True)
class ProcessResult:
    resource_path: Path
    output_path: Path
    elm_paths: List[Path]
    transcode: TranscodeResult


class ElmTranscoder:
    """
    CQL -> ELM round trip for one FHIR Library/Measure resource:
      1) Extract the base64 text/cql attachment
      2) Resolve the main library name
      3) Submit it with every CQL dependency to the translation service
      4) Pick the main ELM library from the response
      5) Merge it back as the application/elm+json attachment

    `process_resource` adds file I/O around `transcode`; outputs are only
    written once every step above has succeeded.
    """

    def __init__(
        self,
        config: Optional[GlobalYAMLConfig] = None,
        client: Optional[TranslatorClient] = None,
    ):
        self.config = config or GlobalYAMLConfig()
        self.client = client or TranslatorClient(self.config.translator)

    def transcode(self, resource: Dict[str, Any]) -> TranscodeResult:
        # 1) Extract
        cql = extract_cql_content(resource)

        # 2) Identity
        library_name = resolve_library_name(resource, cql)
        log.info("Main CQL library expected: %s (%s.cql)", library_name, library_name)

        # 3) Submit
        deps = load_dependency_set(self.config.paths.source_dir)
        fields = build_submission_fields(deps, library_name, cql)
        libraries = self.client.translate(fields)

        # 4) Select
        main_name, main_elm = select_main_library(libraries, library_name)

        # 5) Merge
        merge_elm_content(resource, main_elm)

        return TranscodeResult(
            resource=resource,
            library_name=library_name,
            main_library_name=main_name,
            main_elm=main_elm,
            libraries=libraries,
        )

    def process_resource(self, resource_name: str) -> ProcessResult:
        """Load a resource by name or path, transcode it and write the outputs."""
        paths = self.config.paths
        resource_path = resolve_resource_path(resource_name, paths.resources_dir)
        log.info("Processing FHIR resource: %s", resource_path)

        resource = load_resource(resource_path)
        result = self.transcode(resource)

        elm_paths = save_elm_libraries(result.libraries, paths.elm_output_dir)
        output_path = write_resource(
            result.resource,
            output_path_for(resource_path, paths.output_dir, paths.output_suffix),
        )
        log.info("Successfully processed and saved to: %s", output_path)

        return ProcessResult(
            resource_path=resource_path,
            output_path=output_path,
            elm_paths=elm_paths,
            transcode=result,
        )

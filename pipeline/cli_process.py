from __future__ import annotations

import argparse
from pathlib import Path

import orjson
import requests
from tqdm import tqdm

from common.config import DEFAULT_CONFIG_PATH, load_yaml_config
from common.logger import get_logger, set_log_level
from pipeline.transcoder import ElmTranscoder
from translation.errors import TranslationError

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Translate the CQL of FHIR Library/Measure resources to ELM "
        "and attach it as application/elm+json content."
    )
    parser.add_argument(
        "resources", nargs="+", help="Resource names (in --resources-dir) or paths"
    )
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG_PATH))
    parser.add_argument("--translator-url", type=str, default=None)
    parser.add_argument("--cql-dir", type=str, default=None)
    parser.add_argument("--resources-dir", type=str, default=None)
    parser.add_argument("--output-dir", type=str, default=None)
    parser.add_argument("--elm-output-dir", type=str, default=None)
    parser.add_argument(
        "--no-locators", action="store_true", help="Disable locator annotations"
    )
    parser.add_argument(
        "--no-result-types",
        action="store_true",
        help="Disable result type annotations",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log every multipart part decoded"
    )
    args = parser.parse_args()

    if args.verbose:
        set_log_level("DEBUG")

    cfg = load_yaml_config(Path(args.config))
    if args.translator_url:
        cfg.translator.endpoint = args.translator_url
    if args.cql_dir:
        cfg.paths.source_dir = Path(args.cql_dir)
    if args.resources_dir:
        cfg.paths.resources_dir = Path(args.resources_dir)
    if args.output_dir:
        cfg.paths.output_dir = Path(args.output_dir)
    if args.elm_output_dir:
        cfg.paths.elm_output_dir = Path(args.elm_output_dir)
    if args.no_locators:
        cfg.translator.flags["locators"] = False
    if args.no_result_types:
        cfg.translator.flags["result-types"] = False

    transcoder = ElmTranscoder(cfg)

    failed = 0
    resources = args.resources
    for name in tqdm(
        resources, desc="Processing resources", disable=len(resources) < 2
    ):
        try:
            transcoder.process_resource(name)
        except (
            TranslationError,
            FileNotFoundError,
            orjson.JSONDecodeError,
            requests.RequestException,
        ) as e:
            failed += 1
            log.error("Error processing %s: %s", name, e)

    if failed:
        log.error("Processing failed for %d of %d resources", failed, len(resources))
        raise SystemExit(1)


if __name__ == "__main__":
    main()

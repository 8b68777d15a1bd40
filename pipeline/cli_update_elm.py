from __future__ import annotations

import argparse
from pathlib import Path

import orjson

from common.logger import get_logger
from pipeline.elm_updater import update_elm_in_library
from translation.errors import TranslationError

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Replace the application/elm+json content of a FHIR Library "
        "file with an ELM JSON file."
    )
    parser.add_argument("elm_path", type=str, help="ELM JSON file")
    parser.add_argument("library_path", type=str, help="FHIR Library JSON file")
    args = parser.parse_args()

    try:
        summary = update_elm_in_library(Path(args.elm_path), Path(args.library_path))
    except FileNotFoundError as e:
        log.error("File not found: %s", e.filename)
        raise SystemExit(1)
    except orjson.JSONDecodeError as e:
        log.error("JSON parsing error: %s", e)
        raise SystemExit(1)
    except TranslationError as e:
        log.error("Error updating ELM in library: %s", e)
        raise SystemExit(1)

    log.info("Successfully updated library file: %s", summary.library_path)


if __name__ == "__main__":
    main()

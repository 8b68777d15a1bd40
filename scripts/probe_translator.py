import argparse
from pathlib import Path

from common.config import load_yaml_config
from pipeline.probe import probe_translator
from translation.client import TranslatorClient


def main():
    parser = argparse.ArgumentParser(
        description="Send CQL files to the translation service and show the raw reply."
    )
    parser.add_argument("files", nargs="+", help="CQL files to submit")
    args = parser.parse_args()

    cfg = load_yaml_config()
    client = TranslatorClient(cfg.translator)

    print(f"Probing {cfg.translator.endpoint} with {len(args.files)} file(s)...")
    result = probe_translator(client, [Path(f) for f in args.files])
    print(f"Response status: {result['status_code']}")
    print(f"Content-Type: {result['content_type'] or '(none)'}")
    print(f"Response length: {result['length']}")
    print(f"Response preview: {result['preview']}")


if __name__ == "__main__":
    main()

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable

from common.logger import get_logger
from translation.client import TranslatorClient
from translation.errors import TranslatorHTTPError

log = get_logger(__name__)

PREVIEW_CHARS = 200


def probe_translator(client: TranslatorClient, files: Iterable[Path]) -> Dict[str, Any]:
    """
    Post a handful of CQL files to the translator and summarise what comes
    back, without decoding it. Useful when the service rejects a request.
    """
    fields = {Path(f).stem: Path(f).read_text(encoding="utf-8") for f in files}
    try:
        resp = client.post(fields)
    except TranslatorHTTPError as e:
        log.error("Translator rejected the request: %s", e.status_code)
        return {
            "ok": False,
            "status_code": e.status_code,
            "content_type": "",
            "length": len(e.body),
            "preview": e.body[:PREVIEW_CHARS] or "(empty response)",
        }
    return {
        "ok": True,
        "status_code": resp.status_code,
        "content_type": resp.content_type,
        "length": len(resp.text),
        "preview": resp.text[:PREVIEW_CHARS],
    }

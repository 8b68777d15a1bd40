from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import requests

from common.config import TranslatorConfig
from common.logger import get_logger
from translation.errors import TranslatorHTTPError, UnsupportedResponseFormatError
from translation.response import decode_translation_response

log = get_logger(__name__)


@dataclass(frozen=True)
class TranslatorResponse:
    status_code: int
    content_type: str
    text: str


def build_query_params(flags: Mapping[str, Union[bool, str]]) -> List[Tuple[str, str]]:
    """Render translator options as query parameters (booleans as true/false)."""
    params: List[Tuple[str, str]] = []
    for key, value in flags.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        params.append((key, str(value)))
    return params


def build_form_fields(fields: Mapping[str, str]) -> List[Tuple[str, Tuple[None, str]]]:
    # (None, text) makes requests send a plain form field, not a file upload.
    return [(name, (None, text)) for name, text in fields.items()]


class TranslatorClient:
    """
    Thin wrapper around the CQL translation service.

    `session` only needs a requests-compatible `post`; tests pass a fake.
    """

    def __init__(
        self,
        config: Optional[TranslatorConfig] = None,
        session: Optional[Any] = None,
    ):
        self.config = config or TranslatorConfig()
        self.session = session or requests.Session()

    def post(self, fields: Mapping[str, str]) -> TranslatorResponse:
        params = build_query_params(self.config.flags)
        log.info("POST %s (%d CQL fields)", self.config.endpoint, len(fields))
        resp = self.session.post(
            self.config.endpoint,
            params=params,
            files=build_form_fields(fields),
            timeout=self.config.timeout,
            headers={"User-Agent": self.config.user_agent},
        )
        content_type = resp.headers.get("Content-Type", "") or ""
        log.info(
            "Response status: %s, Content-Type: %s", resp.status_code, content_type
        )

        if not resp.ok:
            body = resp.content.decode("utf-8", errors="replace")
            raise TranslatorHTTPError(resp.status_code, body)

        # Translator output is UTF-8; requests would guess for multipart bodies.
        try:
            text = resp.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnsupportedResponseFormatError(content_type, e) from e

        log.info("Response length: %d characters", len(text))
        return TranslatorResponse(
            status_code=resp.status_code, content_type=content_type, text=text
        )

    def translate(self, fields: Mapping[str, str]) -> Dict[str, Any]:
        """Submit CQL sources and return {library name: ELM library}."""
        response = self.post(fields)
        libraries = decode_translation_response(response.text, response.content_type)
        log.info("Successfully processed %d ELM libraries", len(libraries))
        for name, elm in libraries.items():
            version = elm["library"]["identifier"].get("version", "unknown")
            log.info("   - %s (v%s)", name, version)
        return libraries

from __future__ import annotations


class TranslationError(Exception):
    """Base class for every failure of a CQL -> ELM round trip."""


class MissingBoundaryError(TranslationError):
    pass


class NoSourceContentError(TranslationError):
    pass


class InvalidArtifactShapeError(TranslationError):
    pass


class UnsupportedResponseFormatError(TranslationError):
    def __init__(self, content_type: str, error: Exception | str):
        self.content_type = content_type
        self.error = error
        super().__init__(
            f"Unsupported response format. Content-Type: {content_type or '<none>'}, "
            f"Error: {error}"
        )


class NoArtifactsDecodedError(TranslationError):
    pass


class MainArtifactNotFoundError(TranslationError):
    pass


class TranslatorHTTPError(TranslationError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Translation service returned {status_code}: {body}")

"""
Error taxonomy for bundle generation and packaging.

Every error knows the HTTP status it maps to and how to render itself as a
JSON body, so routers raise and the app-level handler answers.
"""
from typing import Any, Dict, List, Optional

PREVIEW_LIMIT = 2000


def truncate(text: str, limit: int = PREVIEW_LIMIT) -> str:
    """Bound diagnostic text so error bodies and logs stay small"""
    return text[:limit]


class BundleServiceError(Exception):
    """Base class for all caller-facing failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ConfigurationError(BundleServiceError):
    """Raised when the completion endpoint or key is missing."""


class InvalidInput(BundleServiceError):
    """Raised for a missing or malformed prompt or files payload."""

    status_code = 400


class UpstreamUnavailable(BundleServiceError):
    """Raised when the completion API cannot be reached or times out."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Upstream or server error", "detail": self.message}


class UpstreamError(BundleServiceError):
    """Raised when the completion API answers with a non-success status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Upstream returned HTTP {status}")
        self.status = status
        self.body = truncate(body)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "Upstream or server error",
            "detail": {"status": self.status, "body": self.body},
        }


class NormalizationError(BundleServiceError):
    """Raised when a completion cannot become a bundle."""

    status_code = 502


class InvalidModelOutput(NormalizationError):
    """The model text holds no parseable JSON object."""

    def __init__(self, text: str):
        super().__init__("Model response not valid JSON")
        self.preview = truncate(text)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "model_text_preview": self.preview}


class MissingMarkup(NormalizationError):
    """The parsed object has no usable index.html entry."""

    def __init__(self, keys: List[str]):
        super().__init__("Generated bundle missing index.html")
        self.keys = list(keys)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "keys": self.keys}


class ArchiveError(BundleServiceError):
    """Raised when the ZIP stream cannot be built."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body

"""Error taxonomy for the drafting pipeline.

Every error a caller can see maps to one class here so the HTTP layer can tell
"nothing to work with" apart from "backend failed" and "misconfigured".
Per-source extraction failures never appear here: the extractor absorbs them.
"""

from typing import Any, Optional


class DraftingError(Exception):
    """Base class for errors that abort a generation request."""

    code = "drafting_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DraftingError):
    """Model credential or endpoint missing."""

    code = "configuration_error"
    status_code = 500


class NotFoundError(DraftingError):
    """Template, stored file or other record is absent."""

    code = "not_found"
    status_code = 404


class NoSourceDataError(DraftingError):
    """No candidate files, or none of them produced readable text."""

    code = "no_source_data"
    status_code = 422


class BackendError(DraftingError):
    """The language-model backend answered with a non-success status."""

    code = "backend_error"
    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message, details={"status": status, "body": body})
        self.status = status
        self.body = body

"""Workflow error taxonomy.

Every failure aborts the current workflow instance. Nothing here is retried;
vendor status codes and bodies are carried verbatim so the CLI and the web
layer can surface them unchanged.
"""

from __future__ import annotations

import json
from typing import Any


class TourGenError(Exception):
    """Base class for all tour generation failures."""

    code: str = "tour_error"
    http_status: int = 500

    def details(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self), "details": self.details()}


def _body_text(body: Any) -> str:
    if isinstance(body, (dict, list)):
        return json.dumps(body, ensure_ascii=False)
    return str(body)


class MissingCredentials(TourGenError):
    code = "missing_credentials"

    def __init__(self, location: str | None = None) -> None:
        self.location = location
        msg = "World Labs API key not configured"
        if location:
            msg += (
                f": set WORLDLABS_API_KEY or create {location} "
                'with {"api_key": "your-key-here"}'
            )
        super().__init__(msg)

    def details(self) -> dict[str, Any]:
        return {"location": self.location}


class UploadFailed(TourGenError):
    code = "upload_failed"
    http_status = 502

    def __init__(self, filename: str, vendor_status: int, vendor_body: Any) -> None:
        self.filename = filename
        self.vendor_status = vendor_status
        self.vendor_body = vendor_body
        super().__init__(
            f"Upload failed for {filename} ({vendor_status}): {_body_text(vendor_body)}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "vendor_status": self.vendor_status,
            "vendor_body": self.vendor_body,
        }


class SubmissionFailed(TourGenError):
    code = "submission_failed"
    http_status = 502

    def __init__(self, vendor_status: int, vendor_body: Any) -> None:
        self.vendor_status = vendor_status
        self.vendor_body = vendor_body
        super().__init__(f"API error {vendor_status}: {_body_text(vendor_body)}")

    def details(self) -> dict[str, Any]:
        return {"vendor_status": self.vendor_status, "vendor_body": self.vendor_body}


class GenerationFailed(TourGenError):
    """The vendor finished the operation but reported an error."""

    code = "generation_failed"
    http_status = 502

    def __init__(self, vendor_error: Any, operation_id: str | None = None) -> None:
        self.vendor_error = vendor_error
        self.operation_id = operation_id
        super().__init__(f"Generation failed: {_body_text(vendor_error)}")

    def details(self) -> dict[str, Any]:
        return {"operation_id": self.operation_id, "vendor_error": self.vendor_error}


class GenerationTimedOut(TourGenError):
    code = "generation_timed_out"
    http_status = 504

    def __init__(self, operation_id: str, timeout: float) -> None:
        self.operation_id = operation_id
        self.timeout = timeout
        super().__init__(f"Generation timed out after {timeout:g}s (operation {operation_id})")

    def details(self) -> dict[str, Any]:
        return {"operation_id": self.operation_id, "timeout": self.timeout}


class MalformedVendorResponse(TourGenError):
    """A vendor response was missing every accepted field for a value."""

    code = "malformed_vendor_response"
    http_status = 502

    def __init__(self, what: str, expected: tuple[str, ...], payload: Any) -> None:
        self.what = what
        self.expected = expected
        self.payload = payload
        super().__init__(
            f"Vendor response has no {what} (expected one of {', '.join(expected)}): "
            f"{_body_text(payload)[:300]}"
        )

    def details(self) -> dict[str, Any]:
        return {"what": self.what, "expected": list(self.expected), "payload": self.payload}


class Cancelled(TourGenError):
    code = "cancelled"
    http_status = 499

    def __init__(self, operation_id: str | None = None) -> None:
        self.operation_id = operation_id
        super().__init__(f"Generation cancelled (operation {operation_id})")

    def details(self) -> dict[str, Any]:
        return {"operation_id": self.operation_id}

"""Request-level entry point: validate input, run the pipeline, build the envelope.

Authentication and routing belong to the hosting application; this module
only turns a ``{fileUrl, fileType}`` payload into a status code and a
JSON-ready body.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as SchemaError

from medextract.errors import ExtractionError, ValidationError
from medextract.models import DocumentReference
from medextract.pipeline.graph import ExtractionPipeline

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Failed to extract report data"


def parse_request(payload: Mapping[str, Any]) -> DocumentReference:
    """Build a ``DocumentReference`` from a request body or raise ``ValidationError``."""
    file_url = payload.get("fileUrl")
    if not isinstance(file_url, str) or not file_url.strip():
        raise ValidationError("fileUrl is required")

    file_type = payload.get("fileType") or "image"
    try:
        return DocumentReference(url=file_url.strip(), type_hint=file_type)
    except SchemaError as exc:
        raise ValidationError("fileType must be 'image' or 'pdf'") from exc


def error_body(exc: ExtractionError) -> dict[str, Any]:
    return {"error": exc.public_message, "category": exc.category}


def handle_extract_request(
    payload: Mapping[str, Any], pipeline: ExtractionPipeline
) -> tuple[int, dict[str, Any]]:
    """Run one extraction request and return ``(status_code, body)``.

    Never raises: pipeline failures map to their category's status code,
    anything unexpected is logged and reported as a 500.
    """
    try:
        reference = parse_request(payload)
        result = pipeline.run(reference)
    except ExtractionError as exc:
        return exc.status_code, error_body(exc)
    except Exception:
        logger.exception("Error extracting report data")
        return 500, {"error": INTERNAL_ERROR_MESSAGE, "category": "internal"}

    return 200, result.to_response()

"""Error taxonomy for the extraction pipeline.

Every failure carries the pipeline ``stage`` it came from, so logs and
callers can tell an unreachable file from an unreachable model from a
model that answered with something unusable.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for all terminal pipeline failures."""

    stage = "pipeline"
    category = "internal"
    status_code = 500
    public_message = "Failed to extract report data"


class ValidationError(ExtractionError):
    """The request is missing required input; the pipeline is not run."""

    stage = "request"
    category = "validation"
    status_code = 400

    @property
    def public_message(self) -> str:  # type: ignore[override]
        return str(self)


class RetrievalError(ExtractionError):
    """The document could not be read, even after the signed retry."""

    stage = "retrieval"
    category = "retrieval"
    status_code = 400
    public_message = "Failed to fetch file for processing"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class ModelInvocationError(ExtractionError):
    """The extraction model call itself failed (network, quota, ...)."""

    stage = "model"
    category = "model_invocation"
    public_message = "Failed to process document with AI"


class ParseError(ExtractionError):
    """The model answered, but with no usable JSON object."""

    stage = "parse"
    category = "parse"
    public_message = "Failed to extract structured data from document"


class SigningError(Exception):
    """A signer could not produce an authorized URL.

    Never leaves the resolver: a signing failure falls back to the
    original failed read, which then surfaces as ``RetrievalError``.
    """

"""Pipeline state schema — the typed dictionary that flows through the graph."""

from __future__ import annotations

from typing import Optional, TypedDict

from medextract.models import ExtractedReport, NormalizedFormRecord, RetrievedDocument


class PipelineState(TypedDict, total=False):
    """State that flows through every node of one extraction run.

    Fields use ``total=False`` so nodes can return partial updates
    (only the keys they modify).
    """

    # Input
    file_url: str
    file_type: str

    # After fetch_document
    document: Optional[RetrievedDocument]

    # After invoke_model (the document is released here)
    raw_answer: str

    # After parse_answer
    extraction: ExtractedReport

    # After normalize_extraction
    form_data: NormalizedFormRecord

"""Processing nodes for the extraction graph.

Each node receives the current ``PipelineState`` (plus the collaborator
it needs) and returns a dict with the keys it wants to update. Failures
are raised as ``ExtractionError`` subclasses and end the run.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

from medextract.llm import ModelClient, invoke_extraction
from medextract.normalizer import normalize_report
from medextract.parser import parse_answer
from medextract.pipeline.state import PipelineState
from medextract.resolver import AccessResolver


def fetch_document(state: PipelineState, resolver: AccessResolver) -> dict[str, Any]:
    """Read the document (with the single signed-URL recovery) and classify its mime type."""
    document = resolver.resolve(state["file_url"], state.get("file_type", "image"))
    return {"document": document}


def invoke_model(state: PipelineState, client: ModelClient) -> dict[str, Any]:
    """Send the document to the extraction model; drop the bytes afterwards."""
    document = state["document"]
    answer = invoke_extraction(client, document.content, document.mime_type)
    return {"raw_answer": answer, "document": None}


def parse_model_answer(state: PipelineState) -> dict[str, Any]:
    return {"extraction": parse_answer(state.get("raw_answer", ""))}


def normalize_extraction(
    state: PipelineState, today: Callable[[], date] = date.today
) -> dict[str, Any]:
    return {"form_data": normalize_report(state["extraction"], today=today)}

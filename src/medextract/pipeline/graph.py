"""LangGraph state graph for document extraction.

Flow: fetch (read + classify) → invoke model → parse → normalize

The graph is linear; the only branching (the signed-URL retry) lives
inside the fetch node so a run never issues more than two reads.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable

from langgraph.graph import END, StateGraph

from medextract.errors import ExtractionError
from medextract.llm import ModelClient, OllamaModelClient
from medextract.models import DocumentReference, ExtractionResult
from medextract.pipeline.nodes import (
    fetch_document,
    invoke_model,
    normalize_extraction,
    parse_model_answer,
)
from medextract.pipeline.state import PipelineState
from medextract.resolver import AccessResolver

logger = logging.getLogger(__name__)


def build_graph(
    resolver: AccessResolver,
    model_client: ModelClient,
    today: Callable[[], date] = date.today,
) -> Any:
    """Build and return the compiled extraction graph bound to its collaborators."""

    def _fetch(state: PipelineState) -> dict[str, Any]:
        return fetch_document(state, resolver)

    def _invoke(state: PipelineState) -> dict[str, Any]:
        return invoke_model(state, model_client)

    def _normalize(state: PipelineState) -> dict[str, Any]:
        return normalize_extraction(state, today=today)

    graph = StateGraph(PipelineState)

    # Add nodes
    graph.add_node("fetch_document", _fetch)
    graph.add_node("invoke_model", _invoke)
    graph.add_node("parse_answer", parse_model_answer)
    graph.add_node("normalize_extraction", _normalize)

    # Set entry point
    graph.set_entry_point("fetch_document")

    # Wire edges
    graph.add_edge("fetch_document", "invoke_model")
    graph.add_edge("invoke_model", "parse_answer")
    graph.add_edge("parse_answer", "normalize_extraction")
    graph.add_edge("normalize_extraction", END)

    return graph.compile()


class ExtractionPipeline:
    """One compiled graph plus the long-lived collaborators it runs with.

    Runs share no mutable state, so a single pipeline can serve
    concurrent requests as long as its collaborators can.
    """

    def __init__(
        self,
        resolver: AccessResolver,
        model_client: ModelClient,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.resolver = resolver
        self.model_client = model_client
        self._graph = build_graph(resolver, model_client, today=today)

    @classmethod
    def from_settings(cls) -> "ExtractionPipeline":
        return cls(
            resolver=AccessResolver.from_settings(),
            model_client=OllamaModelClient.from_settings(),
        )

    def run(self, reference: DocumentReference) -> ExtractionResult:
        """Run the whole chain for one document; raises ``ExtractionError``."""
        try:
            state = self._graph.invoke(
                {"file_url": reference.url, "file_type": reference.type_hint}
            )
        except ExtractionError as exc:
            logger.error(
                "Extraction failed at stage %s for %s: %s",
                exc.stage,
                reference.url,
                exc,
            )
            raise

        return ExtractionResult(
            form_data=state["form_data"],
            raw_extraction=state["extraction"],
        )

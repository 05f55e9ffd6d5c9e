"""MCP server exposing clinical report extraction as a tool."""

from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP

from medextract.config import configure_logging
from medextract.pipeline.graph import ExtractionPipeline
from medextract.service import handle_extract_request

mcp = FastMCP("Clinical Report Extraction Server")

# Built once on first use; the HTTP client, signer and model client it
# holds are shared by every tool call.
_pipeline: ExtractionPipeline | None = None


def _get_pipeline() -> ExtractionPipeline:
    """Return the process-wide pipeline, building it from settings if needed."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ExtractionPipeline.from_settings()
    return _pipeline


# ------------------------------------------------------------------
# MCP Tools
# ------------------------------------------------------------------


@mcp.tool()
def extract_report(file_url: str, file_type: str = "image") -> str:
    """Extract structured data from a medical report stored at a URL.

    Accepts a scanned image or PDF (set file_type to "pdf" for PDFs).
    Returns a JSON object with "formData" (flat fields for the report
    form: type, title, reportDate, provider, findings, conclusion) and
    "rawExtraction" (lab values, diagnoses, recommendations, medications),
    or an "error" with its "category".
    """
    status, body = handle_extract_request(
        {"fileUrl": file_url, "fileType": file_type},
        _get_pipeline(),
    )
    return json.dumps({"status": status, **body}, ensure_ascii=False)


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

if __name__ == "__main__":
    configure_logging()
    mcp.run()

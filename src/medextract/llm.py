"""Extraction model client and the fixed instruction prompt it is driven with."""

from __future__ import annotations

import io
import logging
from typing import Protocol

import ollama
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from medextract.config import settings
from medextract.errors import ExtractionError, ModelInvocationError, RetrievalError
from medextract.mime import PDF

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

EXTRACTION_PROMPT_VERSION = "2025-01"

SYSTEM_EXTRACTION = (
    "You are a medical document extraction AI. You read clinical reports "
    "(lab results, pathology, radiology, cardiology) and return their "
    "contents as structured JSON. Never invent values that are not in the "
    "document."
)

EXTRACTION_PROMPT = """\
Analyze this medical report and extract structured data.

Extract the following information from this medical report. If a field is \
not found, use null.

Respond with ONLY valid JSON in this exact format:
{
    "reportType": "lab | pathology | radiology | cardiology | other",
    "title": "Report title or test name",
    "reportDate": "YYYY-MM-DD format if found, or null",

    "provider": {
        "name": "Healthcare provider/facility name",
        "address": "Provider address if found",
        "phone": "Provider phone if found"
    },

    "patient": {
        "name": "Patient name if visible",
        "dob": "Patient DOB if found",
        "mrn": "Medical record number if found"
    },

    "findings": "Key findings from the report (summarized)",
    "conclusion": "Conclusion or impression from the report",

    "labValues": [
        {
            "testName": "Name of test",
            "value": "Result value",
            "unit": "Unit of measurement",
            "referenceRange": "Normal range if provided",
            "flag": "H (high), L (low), or null if normal"
        }
    ],

    "diagnoses": ["List of diagnoses mentioned"],

    "recommendations": ["List of recommendations or follow-ups"],

    "medications": ["Any medications mentioned in the report"],

    "loincCode": "LOINC code if identifiable from the report type"
}

Be thorough but accurate. Only extract information that is clearly present \
in the document.
"""

DOCUMENT_TEXT_SECTION = """
## Document text
{text}
"""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ModelClient(Protocol):
    """An extraction model: prompt plus one document in, free text out."""

    def generate(self, prompt: str, mime_type: str, data: bytes) -> str: ...


def pdf_content(data: bytes) -> tuple[str, list[bytes]]:
    """Split a PDF into its text layer and, when it has none, its page images.

    Raises ``RetrievalError`` when the bytes are not a readable PDF; the
    model is never called for such a document.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        text = "\n\n".join(page.extract_text() or "" for page in reader.pages).strip()
        if text:
            return text, []

        # Scanned PDF: no text layer, send the embedded scans instead
        images = [image.data for page in reader.pages for image in page.images]
    except PyPdfError as exc:
        logger.error("Unreadable PDF document: %s", exc)
        raise RetrievalError(f"Document is not a readable PDF: {exc}") from exc
    return "", images


class OllamaModelClient:
    """Vision model served by Ollama.

    Ollama takes images but not PDF bytes, so PDFs are sent as their text
    layer plus any embedded scans.
    """

    def __init__(
        self,
        model: str,
        client: ollama.Client | None = None,
        temperature: float = 0.2,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._client = client or ollama.Client()

    @classmethod
    def from_settings(cls) -> "OllamaModelClient":
        return cls(
            model=settings.ollama_model,
            client=ollama.Client(host=settings.ollama_base_url),
        )

    def generate(self, prompt: str, mime_type: str, data: bytes) -> str:
        """Send *prompt* with the document attached and return the raw answer."""
        if mime_type == PDF:
            text, images = pdf_content(data)
            prompt += DOCUMENT_TEXT_SECTION.format(text=text or "(no text layer)")
        else:
            images = [data]

        message: dict = {"role": "user", "content": prompt}
        if images:
            message["images"] = images

        response = self._client.chat(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_EXTRACTION},
                message,
            ],
            options={"temperature": self.temperature},
        )
        return response["message"]["content"]


# ---------------------------------------------------------------------------
# Extraction invoker
# ---------------------------------------------------------------------------


def invoke_extraction(client: ModelClient, content: bytes, mime_type: str) -> str:
    """Run the extraction prompt against *content* and return the raw answer.

    No retries: any failure of the model call is wrapped in
    ``ModelInvocationError`` and ends the run. Document-level failures
    raised while preparing the request keep their own type.
    """
    try:
        return client.generate(EXTRACTION_PROMPT, mime_type, content)
    except ExtractionError:
        raise
    except Exception as exc:
        logger.error("AI extraction error: %s", exc)
        raise ModelInvocationError(f"Extraction model call failed: {exc}") from exc

"""Shared fixtures, fakes and markers for the test suite."""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from medextract.errors import SigningError
from medextract.resolver import AccessResolver

PDF_BYTES = b"%PDF-1.4 fake report"
JPEG_BYTES = b"\xff\xd8\xff\xe0 fake scan"


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: marks tests that require live services (Ollama, S3, etc.)",
    )


def is_ollama_available() -> bool:
    """Check if the Ollama server is reachable and has a model."""
    try:
        import ollama

        models = ollama.list().get("models", [])
        return len(models) > 0
    except Exception:
        return False


# ------------------------------------------------------------------
# Fakes
# ------------------------------------------------------------------


class FakeSigner:
    """Signer double that records every call it receives."""

    def __init__(
        self,
        key: str | None = "reports/doc1.pdf",
        signed_url: str = "https://store/signed/doc1?sig=abc",
        fail: bool = False,
    ) -> None:
        self.key = key
        self.signed_url = signed_url
        self.fail = fail
        self.extract_calls: list[str] = []
        self.sign_calls: list[str] = []

    def extract_key(self, url: str) -> str | None:
        self.extract_calls.append(url)
        return self.key

    def sign(self, key: str) -> str:
        self.sign_calls.append(key)
        if self.fail:
            raise SigningError("no credentials")
        return self.signed_url


class FakeModelClient:
    """Model client double returning a canned answer (or raising)."""

    def __init__(self, answer: str = "", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[dict] = []

    def generate(self, prompt: str, mime_type: str, data: bytes) -> str:
        self.calls.append({"prompt": prompt, "mime_type": mime_type, "data": data})
        if self.error is not None:
            raise self.error
        return self.answer


class RecordingTransport:
    """Routes requests to a handler and remembers which URLs were read."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.urls.append(str(request.url))
        return self.handler(request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def make_resolver(
    handler: Callable[[httpx.Request], httpx.Response],
    signer: FakeSigner | None = None,
    max_bytes: int | None = None,
) -> tuple[AccessResolver, RecordingTransport]:
    transport = RecordingTransport(handler)
    resolver = AccessResolver(transport.client(), signer=signer, max_bytes=max_bytes)
    return resolver, transport


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def radiology_payload() -> dict:
    return {
        "reportType": "radiology",
        "title": "Chest X-Ray, PA and Lateral",
        "reportDate": "2024-03-05",
        "provider": {
            "name": "City Imaging Center",
            "address": "12 Main St, Springfield",
            "phone": "555-0100",
        },
        "patient": {"name": "Jane Roe", "dob": "1970-01-02", "mrn": "MRN-88"},
        "findings": "No focal consolidation. Heart size normal.",
        "conclusion": "No acute cardiopulmonary process.",
        "labValues": [],
        "diagnoses": [],
        "recommendations": ["Routine follow-up"],
        "medications": None,
        "loincCode": "36643-5",
    }


@pytest.fixture
def radiology_answer(radiology_payload) -> str:
    return "Here is the extracted data:\n```json\n" + json.dumps(radiology_payload) + "\n```"

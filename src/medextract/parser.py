"""Response parser: pull the JSON object out of a free-form model answer."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError as SchemaError

from medextract.errors import ParseError
from medextract.models import ExtractedReport

logger = logging.getLogger(__name__)


def find_json_object(text: str) -> str:
    """Return the span from the first ``{`` to the last ``}`` in *text*.

    Models like to wrap their JSON in prose or code fences; everything
    outside that span is ignored.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ParseError("no JSON found")
    return text[start : end + 1]


def parse_answer(text: str) -> ExtractedReport:
    """Parse a raw model answer into an ``ExtractedReport``.

    Only the JSON syntax is checked; missing or unexpected keys are left
    to the model's coercion rules and the normalizer.
    """
    try:
        payload = json.loads(find_json_object(text or ""))
    except ParseError:
        logger.error("No JSON object in model answer: %s", (text or "")[:200])
        raise
    except json.JSONDecodeError as exc:
        logger.error("Malformed JSON in model answer: %s", exc)
        raise ParseError("malformed JSON") from exc

    try:
        return ExtractedReport.model_validate(payload)
    except SchemaError as exc:
        logger.error("Model answer has an unusable structure: %s", exc)
        raise ParseError("malformed JSON") from exc

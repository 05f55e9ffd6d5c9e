"""Pydantic models for the documents and records that flow through a run.

The extraction model answers in a loose, best-effort shape, so the
``ExtractedReport`` family coerces rather than rejects: blank strings
become ``None``, unknown enum values fall back, and wrongly-typed fields
are dropped to ``None``. Validation of these models never raises for
JSON-decoded input.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TITLE = "Uploaded Report"

DocumentType = Literal["image", "pdf"]


class ReportType(str, Enum):
    """Clinical report categories the extraction prompt asks for."""

    LAB = "lab"
    PATHOLOGY = "pathology"
    RADIOLOGY = "radiology"
    CARDIOLOGY = "cardiology"
    OTHER = "other"


class LabFlag(str, Enum):
    HIGH = "H"
    LOW = "L"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _text(value: Any) -> Optional[str]:
    """Coerce a scalar to a stripped string; blanks and containers become None."""
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


def _text_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    items = [_text(item) for item in value]
    return [item for item in items if item is not None]


def _object(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else None


def _iso_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string; anything else becomes None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if text is None:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Pipeline input / intermediate documents
# ---------------------------------------------------------------------------


class DocumentReference(BaseModel):
    """Immutable pipeline input: where the document lives and what it probably is."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)
    type_hint: DocumentType = "image"


class RetrievedDocument(BaseModel):
    """Document bytes plus the concrete mime type they will be sent as."""

    content: bytes
    mime_type: str


# ---------------------------------------------------------------------------
# Extraction schema
# ---------------------------------------------------------------------------


class Provider(_CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", "address", "phone", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text(value)


class PatientHint(_CamelModel):
    """Patient identifiers as printed on the document; never matched to a record."""

    name: Optional[str] = None
    dob: Optional[str] = None
    mrn: Optional[str] = None

    @field_validator("name", "dob", "mrn", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text(value)


class LabValue(_CamelModel):
    test_name: Optional[str] = None
    value: Optional[str] = None
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    flag: Optional[LabFlag] = None

    @field_validator("test_name", "value", "unit", "reference_range", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text(value)

    @field_validator("flag", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Optional[str]:
        text = _text(value)
        if text is None:
            return None
        text = text.upper()
        if text in ("H", "HIGH"):
            return LabFlag.HIGH.value
        if text in ("L", "LOW"):
            return LabFlag.LOW.value
        return None


class ExtractedReport(_CamelModel):
    """Structured report as the extraction model described it.

    Every field is nullable except ``report_type`` and ``title``, which
    default when the model leaves them out.
    """

    report_type: ReportType = ReportType.OTHER
    title: str = DEFAULT_TITLE
    report_date: Optional[date] = None
    provider: Optional[Provider] = None
    patient_hint: Optional[PatientHint] = Field(
        default=None,
        validation_alias=AliasChoices("patient", "patientHint", "patient_hint"),
        serialization_alias="patient",
    )
    findings: Optional[str] = None
    conclusion: Optional[str] = None
    lab_values: Optional[list[LabValue]] = None
    diagnoses: Optional[list[str]] = None
    recommendations: Optional[list[str]] = None
    medications: Optional[list[str]] = None
    loinc_code: Optional[str] = None

    @field_validator("report_type", mode="before")
    @classmethod
    def _coerce_report_type(cls, value: Any) -> str:
        text = (_text(value) or "").lower()
        if text in {member.value for member in ReportType}:
            return text
        return ReportType.OTHER.value

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> str:
        return _text(value) or DEFAULT_TITLE

    @field_validator("report_date", mode="before")
    @classmethod
    def _coerce_report_date(cls, value: Any) -> Optional[date]:
        return _iso_date(value)

    @field_validator("provider", "patient_hint", mode="before")
    @classmethod
    def _coerce_object(cls, value: Any) -> Any:
        return _object(value)

    @field_validator("findings", "conclusion", "loinc_code", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _text(value)

    @field_validator("lab_values", mode="before")
    @classmethod
    def _coerce_lab_values(cls, value: Any) -> Optional[list[Any]]:
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, (dict, LabValue))]

    @field_validator("diagnoses", "recommendations", "medications", mode="before")
    @classmethod
    def _coerce_text_list(cls, value: Any) -> Optional[list[str]]:
        return _text_list(value)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class NormalizedFormRecord(_CamelModel):
    """Flat projection of an ``ExtractedReport`` used to auto-fill the report form."""

    type: ReportType
    title: str
    report_date: date
    provider_name: Optional[str] = None
    provider_address: Optional[str] = None
    provider_phone: Optional[str] = None
    findings: Optional[str] = None
    conclusion: Optional[str] = None
    extracted_data: ExtractedReport


class ExtractionResult(_CamelModel):
    """What a successful pipeline run hands back to its caller."""

    form_data: NormalizedFormRecord
    raw_extraction: ExtractedReport

    def to_response(self) -> dict[str, Any]:
        """Render the success envelope returned by the entry point."""
        return {
            "success": True,
            **self.model_dump(mode="json", by_alias=True),
        }

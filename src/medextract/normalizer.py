"""Schema normalizer: project an extracted report onto the auto-fill form."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, Callable

from medextract.models import DEFAULT_TITLE, ExtractedReport, NormalizedFormRecord, ReportType


def normalize_report(
    report: ExtractedReport | Mapping[str, Any],
    today: Callable[[], date] = date.today,
) -> NormalizedFormRecord:
    """Build the form record for *report*; total, never raises for decoded JSON.

    Absent values become ``None``, except the report type (``other``), the
    title (``Uploaded Report``) and the report date (``today()``).
    """
    if not isinstance(report, ExtractedReport):
        report = ExtractedReport.model_validate(dict(report))

    provider = report.provider
    return NormalizedFormRecord(
        type=report.report_type or ReportType.OTHER,
        title=report.title or DEFAULT_TITLE,
        report_date=report.report_date or today(),
        provider_name=provider.name if provider else None,
        provider_address=provider.address if provider else None,
        provider_phone=provider.phone if provider else None,
        findings=report.findings,
        conclusion=report.conclusion,
        extracted_data=report,
    )

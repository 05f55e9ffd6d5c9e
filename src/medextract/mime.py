"""Mime classification for downloaded documents."""

from __future__ import annotations

from collections.abc import Mapping

PDF = "application/pdf"
PNG = "image/png"
JPEG = "image/jpeg"


def classify_mime(headers: Mapping[str, str], type_hint: str = "image") -> str:
    """Pick the mime type a document is sent to the model as.

    The response ``content-type`` header wins when it names a PDF, PNG or
    JPEG; otherwise the caller's hint decides (``"pdf"`` or anything
    else, which is treated as a JPEG image).
    """
    content_type = ""
    for name, value in headers.items():
        if name.lower() == "content-type":
            content_type = (value or "").lower()
            break

    if "pdf" in content_type:
        return PDF
    if "png" in content_type:
        return PNG
    if "jpeg" in content_type or "jpg" in content_type:
        return JPEG
    return PDF if type_hint == "pdf" else JPEG

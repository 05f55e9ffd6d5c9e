"""Access resolver: read a document URL, recovering once through a signed URL.

The recovery is a fixed sequence rather than a retry loop:

    direct read  →  (non-success) sign the storage key  →  one signed read

so a single resolution never issues more than two reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from medextract.config import settings
from medextract.errors import RetrievalError, SigningError
from medextract.mime import classify_mime
from medextract.models import RetrievedDocument
from medextract.signing import S3UrlSigner, UrlSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Download:
    """Outcome of a single read: status, headers and (on success) the body."""

    status_code: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class AccessResolver:
    """Turns a document URL into bytes.

    *client* is the byte transport and *signer* the storage signing
    collaborator; both are shared across runs and must be safe for
    concurrent use (``httpx.Client`` and boto3 clients are).
    """

    def __init__(
        self,
        client: httpx.Client,
        signer: UrlSigner | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self._client = client
        self._signer = signer
        self._max_bytes = max_bytes

    @classmethod
    def from_settings(cls) -> "AccessResolver":
        client = httpx.Client(timeout=settings.http_timeout, follow_redirects=True)
        return cls(
            client=client,
            signer=S3UrlSigner.from_settings(),
            max_bytes=settings.max_document_bytes,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def download(self, url: str) -> Download:
        """Read *url*, retrying once through a freshly signed URL on failure.

        Raises ``RetrievalError`` when the final read is not successful or
        the transport fails outright.
        """
        result = self._read(url)

        if not result.ok:
            logger.warning(
                "Initial fetch failed with status %s. Attempting to sign URL...",
                result.status_code,
            )
            signed_url = self._recover(url)
            if signed_url is not None:
                logger.info("Generated signed URL, retrying fetch...")
                result = self._read(signed_url)

        if not result.ok:
            raise RetrievalError(
                f"Failed to fetch file: {result.status_code} {result.reason}".strip(),
                upstream_status=result.status_code,
            )
        return result

    def resolve(self, url: str, type_hint: str = "image") -> RetrievedDocument:
        """Download *url* and classify its mime type."""
        result = self.download(url)
        return RetrievedDocument(
            content=result.content,
            mime_type=classify_mime(result.headers, type_hint),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _recover(self, url: str) -> Optional[str]:
        """Ask the signer for an authorized URL; ``None`` if it cannot help."""
        if self._signer is None:
            return None

        key = self._signer.extract_key(url)
        if not key:
            logger.warning("Could not derive a storage key from %s", url)
            return None

        try:
            return self._signer.sign(key)
        except SigningError as exc:
            logger.error("Failed to sign URL: %s", exc)
            return None

    def _read(self, url: str) -> Download:
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    return Download(
                        status_code=response.status_code,
                        reason=response.reason_phrase,
                        headers=dict(response.headers),
                    )
                content = self._read_body(response)
                return Download(
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                    headers=dict(response.headers),
                    content=content,
                )
        except httpx.HTTPError as exc:
            raise RetrievalError(f"Failed to fetch file: {exc}") from exc

    def _read_body(self, response: httpx.Response) -> bytes:
        chunks: list[bytes] = []
        total = 0
        for chunk in response.iter_bytes():
            total += len(chunk)
            if self._max_bytes is not None and total > self._max_bytes:
                raise RetrievalError(
                    f"File exceeds the {self._max_bytes} byte limit",
                    upstream_status=response.status_code,
                )
            chunks.append(chunk)
        return b"".join(chunks)

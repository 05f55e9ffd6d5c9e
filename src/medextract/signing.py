"""Storage signing collaborator: turn an expired or private object URL into a fresh one."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from medextract.config import settings
from medextract.errors import SigningError

logger = logging.getLogger(__name__)


class UrlSigner(Protocol):
    """Anything that can map a storage URL to a key and sign that key."""

    def extract_key(self, url: str) -> Optional[str]: ...

    def sign(self, key: str) -> str: ...


def extract_key(url: str, bucket: str | None = None) -> Optional[str]:
    """Derive the storage object key from a URL.

    The key is the URL path without its leading slash. For path-style
    S3 URLs (``s3.<region>.amazonaws.com/<bucket>/<key>``) the bucket
    segment is stripped. Returns ``None`` when no key can be derived.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    key = unquote(parsed.path).lstrip("/")
    if bucket and parsed.netloc.startswith("s3.") and key.startswith(f"{bucket}/"):
        key = key[len(bucket) + 1 :]
    return key or None


class S3UrlSigner:
    """Presigns ``get_object`` URLs for a single S3 bucket.

    boto3 clients are thread-safe, so one signer can serve concurrent
    pipeline runs.
    """

    def __init__(
        self,
        bucket: str,
        client: Any | None = None,
        region: str | None = None,
        expires_in: int = 3600,
    ) -> None:
        self.bucket = bucket
        self.expires_in = expires_in
        self._client = client or boto3.client("s3", region_name=region)

    @classmethod
    def from_settings(cls) -> "S3UrlSigner":
        return cls(
            bucket=settings.s3_bucket_name,
            region=settings.aws_region,
            expires_in=settings.signed_url_expires_in,
        )

    def extract_key(self, url: str) -> Optional[str]:
        return extract_key(url, bucket=self.bucket)

    def sign(self, key: str) -> str:
        """Return a time-limited GET URL for *key*, or raise ``SigningError``."""
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SigningError(f"Could not sign key {key!r}: {exc}") from exc

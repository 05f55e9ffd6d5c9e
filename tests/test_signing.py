"""Unit tests for medextract.signing — key derivation and S3 presigning."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import NoCredentialsError

from medextract.errors import SigningError
from medextract.signing import S3UrlSigner, extract_key


class TestExtractKey:
    """Verify storage keys are derived from object URLs."""

    def test_virtual_hosted_url(self):
        url = "https://med-agent-scans.s3.ap-south-1.amazonaws.com/reports/123-cbc.pdf"
        assert extract_key(url) == "reports/123-cbc.pdf"

    def test_ignores_query_string(self):
        url = "https://bucket.s3.amazonaws.com/scans/a.png?X-Amz-Expires=3600"
        assert extract_key(url) == "scans/a.png"

    def test_decodes_percent_escapes(self):
        url = "https://bucket.s3.amazonaws.com/scans/my%20scan.jpg"
        assert extract_key(url) == "scans/my scan.jpg"

    def test_strips_bucket_from_path_style_url(self):
        url = "https://s3.ap-south-1.amazonaws.com/med-agent-scans/reports/x.pdf"
        assert extract_key(url, bucket="med-agent-scans") == "reports/x.pdf"

    def test_keeps_bucket_segment_without_bucket_name(self):
        url = "https://s3.ap-south-1.amazonaws.com/med-agent-scans/reports/x.pdf"
        assert extract_key(url) == "med-agent-scans/reports/x.pdf"

    @pytest.mark.parametrize(
        "url",
        ["not a url", "https://store.example.com/", "https://store.example.com", ""],
    )
    def test_returns_none_when_no_key(self, url):
        assert extract_key(url) is None


class TestS3UrlSigner:
    """Verify presigned GET URLs are requested with the right parameters."""

    def test_sign_requests_presigned_get(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://signed.example/x?sig=1"
        signer = S3UrlSigner(bucket="med-agent-scans", client=client, expires_in=600)

        assert signer.sign("reports/x.pdf") == "https://signed.example/x?sig=1"
        client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "med-agent-scans", "Key": "reports/x.pdf"},
            ExpiresIn=600,
        )

    def test_sign_wraps_botocore_errors(self):
        client = MagicMock()
        client.generate_presigned_url.side_effect = NoCredentialsError()
        signer = S3UrlSigner(bucket="b", client=client)

        with pytest.raises(SigningError, match="reports/x.pdf"):
            signer.sign("reports/x.pdf")

    def test_extract_key_uses_own_bucket(self):
        signer = S3UrlSigner(bucket="med-agent-scans", client=MagicMock())
        url = "https://s3.ap-south-1.amazonaws.com/med-agent-scans/a/b.png"
        assert signer.extract_key(url) == "a/b.png"

    def test_real_boto3_client_signs_offline(self):
        import boto3

        client = boto3.client(
            "s3",
            region_name="ap-south-1",
            aws_access_key_id="AKIDEXAMPLE",
            aws_secret_access_key="secret",
        )
        signer = S3UrlSigner(bucket="med-agent-scans", client=client)
        url = signer.sign("reports/x.pdf")
        assert "reports/x.pdf" in url
        assert "Expires" in url or "X-Amz-Expires" in url

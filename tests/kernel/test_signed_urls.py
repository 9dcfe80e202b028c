"""Tests for signed object-storage URLs (hris_kernel/utils/signing.py)."""

from datetime import timedelta

import pytest

from hris_kernel.exceptions import InvalidSignatureError, SignedUrlExpiredError
from hris_kernel.utils.signing import (
    DEFAULT_TTL_SECONDS,
    sign_storage_url,
    storage_path_from_url,
    verify_signed_url,
)

SECRET = "test-secret"
BASE = "https://storage.example.invalid/object/sign"


@pytest.fixture
def now(deterministic_clock):
    return deterministic_clock.now()


def _sign(path, now, **kwargs):
    return sign_storage_url(
        "documents", path, secret=SECRET, base_url=BASE, now=now, **kwargs,
    )


class TestSignStorageUrl:

    def test_url_shape(self, now):
        url = _sign("pan/123/signature.png", now)
        expires = int(now.timestamp()) + DEFAULT_TTL_SECONDS
        assert url.startswith(f"{BASE}/documents/pan/123/signature.png?expires={expires}&signature=")

    def test_leading_slash_stripped(self, now):
        assert _sign("/a/b.pdf", now) == _sign("a/b.pdf", now)

    def test_blank_path_rejected(self, now):
        with pytest.raises(ValueError):
            _sign("/", now)

    def test_non_positive_ttl_rejected(self, now):
        with pytest.raises(ValueError):
            _sign("a.pdf", now, ttl_seconds=0)


class TestVerifySignedUrl:

    def test_round_trip_returns_path(self, now):
        url = _sign("returns/proof 1.jpg", now)
        assert verify_signed_url(url, bucket="documents", secret=SECRET, now=now) == "returns/proof 1.jpg"

    def test_expired(self, now):
        url = _sign("a.pdf", now, ttl_seconds=60)
        with pytest.raises(SignedUrlExpiredError):
            verify_signed_url(
                url, bucket="documents", secret=SECRET, now=now + timedelta(seconds=60),
            )

    def test_wrong_secret(self, now):
        url = _sign("a.pdf", now)
        with pytest.raises(InvalidSignatureError) as exc_info:
            verify_signed_url(url, bucket="documents", secret="other", now=now)
        assert exc_info.value.reason == "signature mismatch"

    def test_path_swap_detected(self, now):
        url = _sign("a.pdf", now).replace("/a.pdf", "/b.pdf")
        with pytest.raises(InvalidSignatureError):
            verify_signed_url(url, bucket="documents", secret=SECRET, now=now)

    def test_wrong_bucket(self, now):
        url = _sign("a.pdf", now)
        with pytest.raises(InvalidSignatureError):
            verify_signed_url(url, bucket="announcements_attachments", secret=SECRET, now=now)

    def test_missing_query(self, now):
        with pytest.raises(InvalidSignatureError):
            verify_signed_url(f"{BASE}/documents/a.pdf", bucket="documents", secret=SECRET, now=now)


class TestStoragePathFromUrl:

    def test_public_url(self):
        url = "https://storage.example.invalid/object/public/documents/coe/1.pdf"
        assert storage_path_from_url(url, "documents") == "coe/1.pdf"

    def test_signed_url(self, now):
        assert storage_path_from_url(_sign("coe/1.pdf", now), "documents") == "coe/1.pdf"

    def test_other_bucket(self):
        assert storage_path_from_url("https://cdn.example.invalid/img/logo.png", "documents") is None

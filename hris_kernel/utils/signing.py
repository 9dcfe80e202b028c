"""
Signed object-storage URLs.

Private attachments (announcement files, signed PAN documents, return proofs)
are stored as bucket paths.  Readers receive a time-limited URL whose
signature is HMAC-SHA256 over ``bucket|path|expires``.  Default lifetime is
24 hours.
"""

import hashlib
import hmac
from datetime import datetime
from urllib.parse import parse_qs, quote, unquote, urlsplit

from hris_kernel.exceptions import InvalidSignatureError, SignedUrlExpiredError

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def _signature(secret: str, bucket: str, path: str, expires: int) -> str:
    message = f"{bucket}|{path}|{expires}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def sign_storage_url(
    bucket: str,
    path: str,
    *,
    secret: str,
    base_url: str,
    now: datetime,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> str:
    """
    Build a signed URL for ``bucket/path`` valid until ``now + ttl_seconds``.

    Raises:
        ValueError: If ttl_seconds is not positive or path is blank.
    """
    if ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")
    if not path or not path.strip("/"):
        raise ValueError("path is required")

    path = path.lstrip("/")
    expires = int(now.timestamp()) + ttl_seconds
    sig = _signature(secret, bucket, path, expires)
    return (
        f"{base_url.rstrip('/')}/{quote(bucket)}/{quote(path)}"
        f"?expires={expires}&signature={sig}"
    )


def _parse(url: str) -> tuple[str, str, int]:
    parts = urlsplit(url)
    query = parse_qs(parts.query)
    try:
        expires = int(query["expires"][0])
        sig = query["signature"][0]
    except (KeyError, IndexError, ValueError):
        raise InvalidSignatureError(url, "missing expires or signature") from None
    return parts.path, sig, expires


def verify_signed_url(url: str, *, bucket: str, secret: str, now: datetime) -> str:
    """
    Check a signed URL and return the object path it grants access to.

    Raises:
        InvalidSignatureError: Malformed URL, wrong bucket or bad signature.
        SignedUrlExpiredError: Signature valid but past expiry.
    """
    url_path, sig, expires = _parse(url)
    marker = f"/{quote(bucket)}/"
    if marker not in url_path:
        raise InvalidSignatureError(url, f"not a {bucket} URL")
    path = unquote(url_path.split(marker, 1)[1])

    expected = _signature(secret, bucket, path, expires)
    if not hmac.compare_digest(expected, sig):
        raise InvalidSignatureError(url, "signature mismatch")
    if int(now.timestamp()) >= expires:
        raise SignedUrlExpiredError(url, expires)
    return path


def storage_path_from_url(url: str, bucket: str) -> str | None:
    """
    Extract the object path from a public or signed storage URL.

    Returns None when the URL does not point into ``bucket``.
    """
    marker = f"/{quote(bucket)}/"
    url_path = urlsplit(url).path
    if marker not in url_path:
        return None
    return unquote(url_path.split(marker, 1)[1]) or None

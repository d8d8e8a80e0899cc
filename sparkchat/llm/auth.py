"""
Signed connection URLs for the Spark websocket endpoint.

The server authenticates a connection from three query parameters: the
host, an RFC 1123 date and an authorization value carrying an HMAC-SHA256
signature over the request line. Signatures are time-bound, so a URL is
only usable for a short while after it is generated.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from datetime import UTC, datetime
from email.utils import format_datetime
from urllib.parse import urlencode, urlparse

from .models import Credentials

SIGNATURE_ALGORITHM = "hmac-sha256"
SIGNED_HEADERS = "host date request-line"


def hmac_sha256(key: str, data: str) -> bytes:
    """Raw HMAC-SHA256 digest of data keyed by key."""
    return hmac.new(key.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).digest()


def rfc1123_date(moment: datetime | None = None) -> str:
    """Format a moment as an HTTP date, e.g. 'Tue, 28 May 2019 09:10:42 GMT'."""
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return format_datetime(moment.astimezone(UTC), usegmt=True)


class Authenticator:
    """Builds signed websocket URLs from static credentials."""

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    @staticmethod
    def signing_string(host: str, date: str, path: str) -> str:
        return f"host: {host}\ndate: {date}\nGET {path} HTTP/1.1"

    def sign(self, host: str, date: str, path: str) -> str:
        """Base64 HMAC signature of the canonical string."""
        digest = hmac_sha256(
            self.credentials.api_secret, self.signing_string(host, date, path)
        )
        return base64.b64encode(digest).decode("ascii")

    def authorization(self, host: str, date: str, path: str) -> str:
        """Base64 encoded authorization value for the query string."""
        signature = self.sign(host, date, path)
        header = (
            f'hmac username="{self.credentials.api_key}", '
            f'algorithm="{SIGNATURE_ALGORITHM}", '
            f'headers="{SIGNED_HEADERS}", '
            f'signature="{signature}"'
        )
        return base64.b64encode(header.encode("utf-8")).decode("ascii")

    def signed_url(self, base_url: str, now: datetime | None = None) -> str:
        """
        Return base_url with host, date and authorization query parameters.

        Args:
            base_url: Endpoint such as wss://spark-api.xf-yun.com/v1.1/chat
            now: Moment to sign for; defaults to the current UTC time

        Returns:
            Fully qualified URL, valid only briefly
        """
        parsed = urlparse(base_url)
        host = parsed.netloc
        date = rfc1123_date(now)
        query = {
            "authorization": self.authorization(host, date, parsed.path),
            "date": date,
            "host": host,
        }
        return f"{base_url}?{urlencode(sorted(query.items()))}"

#!/usr/bin/env python3
"""
Tests for signed connection URL generation.
"""

import base64
import hashlib
import hmac
import re
from datetime import UTC, datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

from sparkchat.llm.auth import Authenticator, hmac_sha256, rfc1123_date
from sparkchat.llm.models import Credentials

CREDENTIALS = Credentials(
    app_id="d425ad11",
    api_key="5a575e9b00486a23ae2d9fbcfe93dd01",
    api_secret="ZjYyMzFiN2M1NWMxNjYzZjQ4NGIzNDEz",
)
BASE_URL = "wss://spark-api.xf-yun.com/v1.1/chat"
FIXED_NOW = datetime(2019, 5, 28, 9, 10, 42, tzinfo=UTC)


def _query(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(url).query).items()}


class TestRfc1123Date:
    """Test HTTP date formatting."""

    def test_format(self):
        assert rfc1123_date(FIXED_NOW) == "Tue, 28 May 2019 09:10:42 GMT"

    def test_converts_to_utc(self):
        local = FIXED_NOW.astimezone(timezone(timedelta(hours=8)))
        assert rfc1123_date(local) == "Tue, 28 May 2019 09:10:42 GMT"

    def test_naive_treated_as_utc(self):
        assert rfc1123_date(FIXED_NOW.replace(tzinfo=None)) == "Tue, 28 May 2019 09:10:42 GMT"

    def test_defaults_to_now(self):
        assert rfc1123_date().endswith(" GMT")


class TestAuthenticator:
    """Test the signing scheme."""

    def test_hmac_sha256_matches_stdlib(self):
        expected = hmac.new(b"secret", b"data", hashlib.sha256).digest()
        assert hmac_sha256("secret", "data") == expected

    def test_signing_string(self):
        text = Authenticator.signing_string("spark-api.xf-yun.com", "DATE", "/v1.1/chat")
        assert text == "host: spark-api.xf-yun.com\ndate: DATE\nGET /v1.1/chat HTTP/1.1"

    def test_url_carries_host_and_date(self):
        url = Authenticator(CREDENTIALS).signed_url(BASE_URL, now=FIXED_NOW)

        assert url.startswith(BASE_URL + "?")
        params = _query(url)
        assert params["host"] == "spark-api.xf-yun.com"
        assert params["date"] == "Tue, 28 May 2019 09:10:42 GMT"

    def test_query_keys_sorted(self):
        url = Authenticator(CREDENTIALS).signed_url(BASE_URL, now=FIXED_NOW)
        keys = [pair.split("=", 1)[0] for pair in urlparse(url).query.split("&")]
        assert keys == ["authorization", "date", "host"]

    def test_signature_verifiable(self):
        """Recompute HMAC over the canonical string and compare."""
        url = Authenticator(CREDENTIALS).signed_url(BASE_URL, now=FIXED_NOW)
        authorization = base64.b64decode(_query(url)["authorization"]).decode()

        match = re.fullmatch(
            r'hmac username="(.+)", algorithm="hmac-sha256", '
            r'headers="host date request-line", signature="(.+)"',
            authorization,
        )
        assert match is not None
        assert match.group(1) == CREDENTIALS.api_key

        canonical = (
            "host: spark-api.xf-yun.com\n"
            "date: Tue, 28 May 2019 09:10:42 GMT\n"
            "GET /v1.1/chat HTTP/1.1"
        )
        expected = base64.b64encode(
            hmac.new(CREDENTIALS.api_secret.encode(), canonical.encode(), hashlib.sha256).digest()
        ).decode()
        assert match.group(2) == expected

    def test_deterministic_for_fixed_time(self):
        auth = Authenticator(CREDENTIALS)
        assert auth.signed_url(BASE_URL, now=FIXED_NOW) == auth.signed_url(BASE_URL, now=FIXED_NOW)

    def test_signature_changes_with_time(self):
        auth = Authenticator(CREDENTIALS)
        later = FIXED_NOW + timedelta(seconds=1)
        assert auth.signed_url(BASE_URL, now=FIXED_NOW) != auth.signed_url(BASE_URL, now=later)

    def test_signature_depends_on_path(self):
        auth = Authenticator(CREDENTIALS)
        date = rfc1123_date(FIXED_NOW)
        host = "spark-api.xf-yun.com"
        assert auth.sign(host, date, "/v1.1/chat") != auth.sign(host, date, "/v2.1/chat")

    def test_credentials_repr_hides_secrets(self):
        text = repr(CREDENTIALS)
        assert CREDENTIALS.api_secret not in text
        assert CREDENTIALS.api_key not in text

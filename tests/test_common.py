"""Tests for common utilities."""

import json
import logging

import pytest
from shortlinks.lib.common.validators import MAX_URL_LENGTH, is_valid_url, is_valid_short_code
from shortlinks.lib.common.logging_config import JsonFormatter, setup_logging
from shortlinks.lib.common.urls import PublicOrigin


class TestValidators:
    """Test validation utilities."""

    def test_valid_urls(self):
        """Test valid URL validation."""
        valid, _ = is_valid_url("https://example.com")
        assert valid

        valid, _ = is_valid_url("http://example.com/path")
        assert valid

        valid, _ = is_valid_url("https://sub.example.com:8080/path?query=value")
        assert valid

    def test_invalid_urls(self):
        """Test invalid URL validation."""
        valid, error = is_valid_url("")
        assert not valid
        assert "required" in error.lower()

        valid, error = is_valid_url("not-a-url")
        assert not valid

        valid, error = is_valid_url("ftp://example.com")
        assert not valid
        assert "http" in error.lower()

        valid, error = is_valid_url("https://")
        assert not valid
        assert "domain" in error.lower()

    def test_url_too_long(self):
        valid, error = is_valid_url("https://example.com/" + "a" * MAX_URL_LENGTH)
        assert not valid
        assert "too long" in error.lower()

    @pytest.mark.parametrize("code", ["abc", "test-code", "test_code", "valid-alias_1", "a" * 30])
    def test_valid_short_codes(self, code):
        """Test valid short code validation."""
        valid, _ = is_valid_short_code(code)
        assert valid

    def test_invalid_short_codes(self):
        """Test invalid short code validation."""
        valid, error = is_valid_short_code("ab")
        assert not valid
        assert "at least" in error.lower()

        valid, error = is_valid_short_code("a" * 31)
        assert not valid
        assert "at most" in error.lower()

        valid, error = is_valid_short_code("a!b")
        assert not valid
        assert "letters" in error.lower()

        valid, error = is_valid_short_code("abc 123")
        assert not valid

        valid, error = is_valid_short_code("api")
        assert not valid
        assert "reserved" in error.lower()

    def test_short_code_custom_bounds(self):
        valid, _ = is_valid_short_code("abcd", min_length=5)
        assert not valid

        valid, _ = is_valid_short_code("abcdef", max_length=5)
        assert not valid


class TestPublicOrigin:
    """Test short URL construction."""

    def test_forwarded_headers_win(self):
        headers = {
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "sho.rt",
            "X-Forwarded-Prefix": "/s/",
        }

        origin = PublicOrigin.from_headers(headers, "http://fallback", "http", "internal:9200")

        assert origin == PublicOrigin("https", "sho.rt", "/s")
        assert origin.short_url("abc1234") == "https://sho.rt/s/abc1234"

    def test_forwarded_chain_uses_first_hop(self):
        headers = {"x-forwarded-proto": "https, http", "x-forwarded-host": "sho.rt, lb.internal"}

        origin = PublicOrigin.from_headers(headers, "http://fallback")

        assert origin.base_url == "https://sho.rt"

    def test_request_host(self):
        origin = PublicOrigin.from_headers({}, "http://fallback", "http", "localhost:9200", default_prefix="links")

        assert origin.short_url("abc1234") == "http://localhost:9200/links/abc1234"

    def test_fallback_base_url(self):
        origin = PublicOrigin.from_headers({}, "https://sho.rt/s/")

        assert origin.short_url("abc1234") == "https://sho.rt/s/abc1234"

    def test_from_base_url_prefix_override(self):
        origin = PublicOrigin.from_base_url("https://sho.rt/ignored", prefix="/x")

        assert origin.base_url == "https://sho.rt/x"


class TestLogging:

    def test_setup_logging_replaces_handlers(self):
        setup_logging(level="DEBUG")
        logger = setup_logging(level="WARNING", json_format=True)

        assert logger.name == "shortlinks"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_json_formatter(self):
        record = logging.LogRecord("shortlinks", logging.INFO, __file__, 1, 'quote " ok', None, None)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "shortlinks"
        assert entry["message"] == 'quote " ok'

"""Tests for fetching the offers page."""

from unittest.mock import MagicMock

import pytest
import requests  # type: ignore[import-untyped]

from offers.errors import SourceUnavailable
from offers.scraper import HtmlFileSource, OffersPageSource, fetch_html
from offers.url_validation import URLValidationError, is_safe_url, validate_url

OFFERS = "https://www.liquorland.com.au/offers"


def _response(status_code=200, text="<html></html>"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return resp


class TestFetchHtml:
    """Tests for retry and error behaviour."""

    def test_success(self):
        """Return the page body on a 200 response."""
        session = MagicMock()
        session.get.return_value = _response(text="<html>ok</html>")

        assert fetch_html(OFFERS, session=session) == "<html>ok</html>"
        session.get.assert_called_once()

    def test_retries_on_throttling(self):
        """Retry 429 and 5xx responses with backoff."""
        session = MagicMock()
        session.get.side_effect = [_response(429), _response(503), _response(text="done")]
        sleep = MagicMock()

        assert fetch_html(OFFERS, session=session, sleep=sleep) == "done"
        assert session.get.call_count == 3
        assert sleep.call_count == 2

    def test_retries_exhausted(self):
        """Raise SourceUnavailable once retries run out."""
        session = MagicMock()
        session.get.return_value = _response(503)

        with pytest.raises(SourceUnavailable):
            fetch_html(OFFERS, session=session, max_retries=2, sleep=MagicMock())
        assert session.get.call_count == 3

    def test_not_found_is_not_retried(self):
        """Client errors other than 429 are not retried."""
        session = MagicMock()
        session.get.return_value = _response(404)

        with pytest.raises(SourceUnavailable):
            fetch_html(OFFERS, session=session, sleep=MagicMock())
        session.get.assert_called_once()

    def test_connection_errors_retried(self):
        """Retry after a dropped connection."""
        session = MagicMock()
        session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            _response(text="back"),
        ]
        assert fetch_html(OFFERS, session=session, sleep=MagicMock()) == "back"

    def test_timeout_gives_up(self):
        """Raise SourceUnavailable after repeated timeouts."""
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(SourceUnavailable):
            fetch_html(OFFERS, session=session, max_retries=1, sleep=MagicMock())
        assert session.get.call_count == 2

    def test_foreign_domain_rejected(self):
        """URLs outside the allowed domains are never requested."""
        session = MagicMock()
        with pytest.raises(SourceUnavailable):
            fetch_html("https://example.com/offers", session=session)
        session.get.assert_not_called()


class TestUrlValidation:
    """Tests for URL checks."""

    def test_valid_url(self):
        """Accept and trim an offers page URL."""
        assert validate_url(f" {OFFERS}?page=3 ") == f"{OFFERS}?page=3"

    @pytest.mark.parametrize("url", [
        "",
        "javascript:alert(1)",
        "ftp://www.liquorland.com.au/offers",
        "https://evil.example/offers",
        "https://www.liquorland.com.au/../etc/passwd",
    ])
    def test_rejected(self, url):
        """Reject empty, dangerous, foreign and traversal URLs."""
        with pytest.raises(URLValidationError):
            validate_url(url)
        assert not is_safe_url(url)

    def test_empty_allow_list_accepts_any_host(self):
        """An empty allow-list accepts any host."""
        assert validate_url("https://example.com/offers", allowed_domains=set())

    def test_https_required(self):
        """Reject plain http when https is required."""
        with pytest.raises(URLValidationError):
            validate_url("http://www.liquorland.com.au/offers", require_https=True)


class TestSources:
    """Tests for the source collaborators."""

    def test_offers_page_source(self, offers_html):
        """Fetch the page and extract its tiles."""
        session = MagicMock()
        session.get.return_value = _response(text=offers_html)

        items = OffersPageSource(OFFERS, session=session).fetch()

        assert len(items) == 6

    def test_html_file_source(self, tmp_path, offers_html):
        """Read tiles from a saved page."""
        path = tmp_path / "offers.html"
        path.write_text(offers_html, encoding="utf-8")

        assert len(HtmlFileSource(str(path)).fetch()) == 6

    def test_missing_html_file(self, tmp_path):
        """A missing saved page raises SourceUnavailable."""
        with pytest.raises(SourceUnavailable):
            HtmlFileSource(str(tmp_path / "missing.html")).fetch()

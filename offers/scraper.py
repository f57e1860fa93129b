"""Fetching the offers page and turning it into raw tiles."""

import logging
import random
import time
from typing import List, Optional

import requests  # type: ignore[import-untyped]

from offers.config import (
    HEADERS,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    OFFERS_URL,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
)
from offers.errors import SourceUnavailable
from offers.html_utils import extract_raw_items
from offers.logging_config import get_logger, log_offers_event
from offers.models import RawItem
from offers.url_validation import URLValidationError, validate_url

__all__ = [
    "create_session",
    "fetch_html",
    "OffersPageSource",
    "HtmlFileSource",
]

logger = get_logger("scraper")


def create_session() -> requests.Session:
    """Create a requests Session with connection pooling and proper headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def _backoff(attempt: int) -> float:
    return min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)


def fetch_html(
    url: str,
    session: Optional[requests.Session] = None,
    max_retries: int = MAX_RETRIES,
    sleep=time.sleep,
) -> str:
    """HTTP GET with exponential backoff on throttling and transient errors.

    Args:
        url: Page URL (must be on an allowed domain)
        session: Optional requests.Session for connection reuse
        max_retries: Retries after the first attempt
        sleep: Sleep function used between retries

    Returns:
        HTML content as string

    Raises:
        SourceUnavailable: If the URL is invalid or the page cannot be fetched
    """
    try:
        url = validate_url(url)
    except URLValidationError as e:
        logger.error(f"URL validation failed: {e}")
        raise SourceUnavailable(f"Invalid URL: {e}") from e

    sess = session or create_session()
    last_error = "unknown error"

    for attempt in range(max_retries + 1):
        try:
            resp = sess.get(url, timeout=REQUEST_TIMEOUT)

            if resp.status_code in RETRY_STATUS_CODES and attempt < max_retries:
                backoff = _backoff(attempt)
                logger.warning(
                    f"Received {resp.status_code}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                sleep(backoff)
                continue

            resp.raise_for_status()
            return str(resp.text)

        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error fetching {url}: {e}")
            raise SourceUnavailable(f"HTTP error fetching {url}: {e}") from e

        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            last_error = str(e)
            if attempt < max_retries:
                backoff = _backoff(attempt)
                logger.warning(
                    f"{e.__class__.__name__}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                sleep(backoff)
                continue
            logger.error(f"Giving up on {url}: {e}")
            raise SourceUnavailable(f"Failed to fetch {url}: {e}") from e

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error fetching {url}: {e}")
            raise SourceUnavailable(f"Failed to fetch {url}: {e}") from e

    raise SourceUnavailable(f"Failed to fetch {url} after {max_retries} retries: {last_error}")


class OffersPageSource:
    """Source collaborator that downloads the offers page and extracts its tiles."""

    def __init__(self, url: str = OFFERS_URL, session: Optional[requests.Session] = None):
        self.url = url
        self.session = session

    def fetch(self) -> List[RawItem]:
        html = fetch_html(self.url, session=self.session)
        items = extract_raw_items(html)
        logger.info(f"Found {len(items)} product tiles on {self.url}")
        log_offers_event("fetch_complete", {
            "url": self.url,
            "tiles": len(items),
        }, level=logging.DEBUG, logger_name="scraper")
        return items


class HtmlFileSource:
    """Source collaborator reading a saved copy of the offers page."""

    def __init__(self, path: str):
        self.path = path

    def fetch(self) -> List[RawItem]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                html = f.read()
        except OSError as e:
            raise SourceUnavailable(f"Cannot read {self.path}: {e}") from e
        items = extract_raw_items(html)
        logger.info(f"Found {len(items)} product tiles in {self.path}")
        return items

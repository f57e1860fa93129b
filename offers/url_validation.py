"""URL validation for the pages the scraper is allowed to fetch."""

import re
from typing import AbstractSet, Optional
from urllib.parse import urlparse

from offers.config import ALLOWED_DOMAINS

__all__ = [
    "URLValidationError",
    "sanitize_url",
    "validate_url",
    "is_safe_url",
]


class URLValidationError(ValueError):
    """Raised when URL validation fails."""
    pass


DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

SUSPICIOUS_PATTERNS = [
    r"\.\./",      # path traversal
    r"%2e%2e",     # encoded path traversal
    r"<script",
    r"javascript:",
]


def sanitize_url(url: str) -> str:
    """Strip whitespace, control characters and null bytes from a URL."""
    if not url:
        return ""
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url.strip())
    return url.replace("%00", "")


def validate_url(
    url: str,
    allowed_domains: Optional[AbstractSet[str]] = None,
    require_https: bool = False,
) -> str:
    """Validate a URL before fetching it.

    Args:
        url: URL to validate
        allowed_domains: Allowed hostnames (default: ALLOWED_DOMAINS); an
            empty set allows any host
        require_https: Whether to require the https scheme

    Returns:
        The sanitized URL

    Raises:
        URLValidationError: If the URL is malformed, unsafe or off-domain
    """
    url = sanitize_url(url)
    if not url:
        raise URLValidationError("URL is empty")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")
    if require_https and scheme != "https":
        raise URLValidationError(f"URL must use HTTPS, got: {scheme}")

    host = (parsed.hostname or "").lower()
    if not host:
        raise URLValidationError("URL has no domain")

    domains = ALLOWED_DOMAINS if allowed_domains is None else allowed_domains
    if domains and host not in domains:
        raise URLValidationError(f"URL domain '{host}' not in allowed domains: {sorted(domains)}")

    url_lower = url.lower()
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, url_lower):
            raise URLValidationError(f"URL contains suspicious pattern: {pattern}")

    return url


def is_safe_url(url: str) -> bool:
    """Check a URL without raising."""
    try:
        validate_url(url)
        return True
    except URLValidationError:
        return False

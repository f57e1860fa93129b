"""Configuration and constants for the offers scraper.

Values can be overridden through environment variables (a ``.env`` file at the
project root is loaded by the CLI).
"""

import os
from pathlib import Path
from typing import Dict, FrozenSet, Optional

__all__ = [
    "BASE_URL",
    "OFFERS_URL",
    "ALLOWED_DOMAINS",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "DB_PATH",
    "OUTPUT_PATH",
    "LOG_DIR",
    "LLM_MODEL",
    "LLM_BASE_URL",
    "LLM_TEMPERATURE",
    "LLM_MAX_OUTPUT_TOKENS",
    "TILE_SELECTORS",
]

BASE_URL = "https://www.liquorland.com.au"

# Promotions page to scrape
OFFERS_URL = os.getenv("OFFERS_URL", f"{BASE_URL}/offers")

ALLOWED_DOMAINS: FrozenSet[str] = frozenset({
    "www.liquorland.com.au",
    "liquorland.com.au",
})

HEADERS = {
    "User-Agent": "offers educational scraper (price comparison)",
    "Accept-Language": "en-AU,en;q=0.9",
}

REQUEST_TIMEOUT = int(os.getenv("OFFERS_REQUEST_TIMEOUT", "15"))

# Retry settings with exponential backoff
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

DB_PATH = os.getenv("OFFERS_DB_PATH", "data/offers.db")
OUTPUT_PATH = "data/offers_export.csv"

# JSONL event logs, relative to the working directory unless set
LOG_DIR = Path(os.getenv("OFFERS_LOG_DIR", "logs"))

# LLM advisory ranking. LLM_BASE_URL points the OpenAI client at a compatible
# provider (e.g. https://api.groq.com/openai/v1) when set.
LLM_MODEL = os.getenv("OFFERS_LLM_MODEL", "gpt-5.2")
LLM_BASE_URL = os.getenv("OFFERS_LLM_BASE_URL") or None
# Only sent when set; reasoning models reject a temperature
_temperature = os.getenv("OFFERS_LLM_TEMPERATURE")
LLM_TEMPERATURE: Optional[float] = float(_temperature) if _temperature else None
LLM_MAX_OUTPUT_TOKENS = int(os.getenv("OFFERS_LLM_MAX_OUTPUT_TOKENS", "4096"))

# CSS selectors for the fields of one product tile on the offers page
TILE_SELECTORS: Dict[str, str] = {
    "tile": ".ProductTileV2",
    "id_attr": "data-product-id",
    "brand": ".product-brand",
    "name": ".product-name",
    "price": ".PriceTag.current.primary",
    "price_whole": ".dollarAmount",
    "price_fractional": ".centsAmount",
    "multi_buy": ".dinkus.clickable-view-all",
    "was_price": ".PriceTag.slashthrough.secondary",
}

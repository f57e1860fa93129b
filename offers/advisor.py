"""LLM advisory ranking of normalized products.

Asks a chat model to rank the batch by value and explain its choices. The
answer is free-form commentary shown next to the deterministic ranking; it is
never parsed back into structured data.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from offers.config import (
    LLM_BASE_URL,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
)
from offers.errors import AdvisoryUnavailable
from offers.logging_config import get_logger, log_offers_event
from offers.models import Product

__all__ = ["ADVISORY_PROMPT", "build_advisory_input", "OpenAIAdvisor"]

logger = get_logger("advisor")

ADVISORY_PROMPT = """Analyze these products and rank them by value, considering:
1. Base price per 100ml
2. Any promotional offers
3. Pack sizes and bulk discounts
Return a ranked list from best value to least, with a short reason for each."""


def build_advisory_input(products: Sequence[Product]) -> List[Dict[str, Any]]:
    """Build the Responses API input payload for a product batch."""
    payload = json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False)
    return [
        {"role": "system", "content": [{"type": "input_text", "text": ADVISORY_PROMPT}]},
        {"role": "user", "content": [{"type": "input_text", "text": payload}]},
    ]


def _get_openai_client(base_url: Optional[str] = None):
    """Get OpenAI client (lazy initialization)."""
    from openai import OpenAI
    return OpenAI(base_url=base_url) if base_url else OpenAI()


class OpenAIAdvisor:
    """Advisory collaborator backed by the OpenAI Responses API.

    Any OpenAI-compatible endpoint works through ``base_url``.
    """

    def __init__(
        self,
        model: str = LLM_MODEL,
        client: Any = None,
        base_url: Optional[str] = LLM_BASE_URL,
        temperature: Optional[float] = LLM_TEMPERATURE,
        max_output_tokens: int = LLM_MAX_OUTPUT_TOKENS,
    ):
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = _get_openai_client(self.base_url)
        return self._client

    def explain(self, products: Sequence[Product]) -> str:
        """Return the model's value ranking for ``products``.

        Raises:
            AdvisoryUnavailable: If the call fails or returns no text
        """
        input_payload = build_advisory_input(products)
        log_offers_event("llm_call_advisory", {
            "model": self.model,
            "products": len(products),
        }, logger_name="advisor")

        request: Dict[str, Any] = {
            "model": self.model,
            "input": input_payload,
            "max_output_tokens": self.max_output_tokens,
        }
        if self.temperature is not None:
            request["temperature"] = self.temperature

        try:
            resp = self.client.responses.create(**request)
        except Exception as e:
            log_offers_event("llm_error_advisory", {
                "message": f"Advisory LLM call failed: {e}",
                "model": self.model,
                "error": str(e),
            }, level=logging.ERROR, logger_name="advisor")
            raise AdvisoryUnavailable(f"LLM call failed: {e}") from e

        text = ""
        for item in resp.output:
            if hasattr(item, "content") and item.content:
                text = (item.content[0].text or "").strip()  # type: ignore[union-attr]
                if text:
                    break

        log_offers_event("llm_response_advisory", {
            "model": self.model,
            "raw_response": text,
        }, level=logging.DEBUG, logger_name="advisor")

        if not text:
            raise AdvisoryUnavailable("No analysis received")
        return text

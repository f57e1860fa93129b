"""Exceptions raised at the collaborator boundaries.

Data-quality problems inside the pipeline are never raised: unparseable fields
become None and incomplete tiles are dropped. Only the page source, the
catalog store and the advisory LLM report failures, each isolated to the call
or item that failed.
"""

from typing import Optional

__all__ = [
    "OffersError",
    "SourceUnavailable",
    "CatalogStoreError",
    "AdvisoryUnavailable",
]


class OffersError(Exception):
    """Base class for all offers errors."""
    pass


class SourceUnavailable(OffersError):
    """Raised when the offers page cannot be fetched."""
    pass


class CatalogStoreError(OffersError):
    """Raised when the catalog store cannot be opened or a product cannot be upserted.

    ``product_id`` is None when the store itself is unavailable.
    """

    def __init__(self, product_id: Optional[str], reason: str):
        if product_id is None:
            super().__init__(f"Catalog store unavailable: {reason}")
        else:
            super().__init__(f"Failed to upsert product {product_id}: {reason}")
        self.product_id = product_id
        self.reason = reason


class AdvisoryUnavailable(OffersError):
    """Raised when the advisory LLM errors, times out or returns nothing."""
    pass

"""SQLite catalog store for normalized products and their price history."""

import json
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Protocol

from offers.config import DB_PATH
from offers.errors import CatalogStoreError
from offers.logging_config import get_logger, log_offers_event
from offers.models import PersistenceReport, Product, UpsertFailure

__all__ = [
    "DEFAULT_DB_PATH",
    "CatalogStore",
    "SQLiteCatalogStore",
    "get_connection",
    "init_db",
    "upsert_product",
    "get_product",
    "get_all_products",
    "get_price_history",
    "get_product_count",
    "persist_products",
]

DEFAULT_DB_PATH = DB_PATH

logger = get_logger("db")


class CatalogStore(Protocol):
    """Upsert-by-id persistence for products."""

    def upsert(self, product: Product) -> None:
        """Insert or update ``product``; raise CatalogStoreError on failure."""
        ...


@contextmanager
def get_connection(db_path: str = DEFAULT_DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        # Latest known state of each product, keyed on the retailer's id
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                volume_ml INTEGER NOT NULL,
                current_price TEXT NOT NULL,
                price_per_100ml TEXT NOT NULL,
                deal_type TEXT,
                best_deal_json TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Every observed price, one row per upsert
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS price_observations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_id TEXT NOT NULL,
                observed_at TIMESTAMP NOT NULL,
                current_price TEXT NOT NULL,
                price_per_100ml TEXT NOT NULL,
                deal_type TEXT,
                deal_details TEXT,
                FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_deal_type ON products(deal_type)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_price_observations_product_id "
            "ON price_observations(product_id, observed_at)"
        )

        conn.commit()


def upsert_product(db_path: str, product: Product) -> None:
    """Insert or update a product and record the observation in its history."""
    best_deal_json = json.dumps(product.deal.to_dict(), ensure_ascii=False)
    updated_at = datetime.now(timezone.utc).isoformat()

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO products (id, name, volume_ml, current_price, price_per_100ml,
                                  deal_type, best_deal_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                volume_ml = excluded.volume_ml,
                current_price = excluded.current_price,
                price_per_100ml = excluded.price_per_100ml,
                deal_type = excluded.deal_type,
                best_deal_json = excluded.best_deal_json,
                updated_at = excluded.updated_at
        """, (product.id, product.display_name, product.volume_ml,
              str(product.current_price), str(product.price_per_100ml),
              product.deal.type, best_deal_json, updated_at, updated_at))

        cursor.execute("""
            INSERT INTO price_observations (product_id, observed_at, current_price,
                                            price_per_100ml, deal_type, deal_details)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (product.id, product.observed_at.isoformat(), str(product.current_price),
              str(product.price_per_100ml), product.deal.type, product.deal.details))

        conn.commit()


def _row_to_product_dict(row: sqlite3.Row) -> Dict[str, Any]:
    product = dict(row)
    product["current_price"] = Decimal(product["current_price"])
    product["price_per_100ml"] = Decimal(product["price_per_100ml"])
    best_deal_json = product.pop("best_deal_json", None)
    try:
        product["best_deal"] = json.loads(best_deal_json) if best_deal_json else None
    except json.JSONDecodeError:
        product["best_deal"] = None
    return product


def get_product(db_path: str, product_id: str) -> Optional[Dict[str, Any]]:
    """Get the stored state of one product, or None."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products WHERE id = ?", (product_id,))
        row = cursor.fetchone()
        return _row_to_product_dict(row) if row else None


def get_all_products(db_path: str = DEFAULT_DB_PATH) -> List[Dict[str, Any]]:
    """Retrieve all stored products ordered by id."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products ORDER BY id")
        return [_row_to_product_dict(row) for row in cursor.fetchall()]


def get_price_history(db_path: str, product_id: str) -> List[Dict[str, Any]]:
    """Get every observation of a product, oldest first."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT observed_at, current_price, price_per_100ml, deal_type, deal_details
            FROM price_observations
            WHERE product_id = ?
            ORDER BY observed_at, id
        """, (product_id,))

        history = []
        for row in cursor.fetchall():
            entry = dict(row)
            entry["current_price"] = Decimal(entry["current_price"])
            entry["price_per_100ml"] = Decimal(entry["price_per_100ml"])
            history.append(entry)
        return history


def get_product_count(db_path: str = DEFAULT_DB_PATH, deal_type: Optional[str] = None) -> int:
    """Get the number of stored products, optionally only those with a deal type."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        if deal_type:
            cursor.execute("SELECT COUNT(*) as count FROM products WHERE deal_type = ?", (deal_type,))
        else:
            cursor.execute("SELECT COUNT(*) as count FROM products")
        return cursor.fetchone()["count"]


class SQLiteCatalogStore:
    """CatalogStore backed by a local SQLite file."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        try:
            init_db(db_path)
        except (sqlite3.Error, OSError) as e:
            raise CatalogStoreError(None, f"{db_path}: {e}") from e

    def upsert(self, product: Product) -> None:
        try:
            upsert_product(self.db_path, product)
        except (sqlite3.Error, OSError) as e:
            raise CatalogStoreError(product.id, str(e)) from e


def _upsert_one(store: CatalogStore, product: Product) -> Optional[UpsertFailure]:
    try:
        store.upsert(product)
    except CatalogStoreError as e:
        return UpsertFailure(product_id=product.id, reason=e.reason)
    except Exception as e:
        return UpsertFailure(product_id=product.id, reason=str(e) or e.__class__.__name__)
    return None


def persist_products(
    products: Iterable[Product],
    store: CatalogStore,
    max_workers: Optional[int] = None,
) -> PersistenceReport:
    """Upsert each product independently and report per-item failures.

    A failing product never stops the others from being written. With
    ``max_workers`` the upserts run on a thread pool; the report keeps input
    order either way.

    Args:
        products: Normalized products to persist
        store: Target catalog store
        max_workers: Number of worker threads (default: sequential)

    Returns:
        PersistenceReport listing saved ids and failures
    """
    products = list(products)
    if max_workers and max_workers > 1 and len(products) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda p: _upsert_one(store, p), products))
    else:
        outcomes = [_upsert_one(store, p) for p in products]

    report = PersistenceReport()
    for product, failure in zip(products, outcomes):
        if failure is None:
            report.saved.append(product.id)
            logger.debug(f"Upserted product: {product.display_name}")
            continue

        report.failures.append(failure)
        log_offers_event("persist_error", {
            "message": f"Error upserting product {product.id}: {failure.reason}",
            "product_id": failure.product_id,
            "error": failure.reason,
        }, level=logging.ERROR, logger_name="db")

    logger.info(f"Persisted {len(report.saved)}/{len(products)} products")
    return report

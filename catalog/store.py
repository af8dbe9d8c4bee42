"""
catalog/store.py -- SQLAlchemy-backed persistence layer for the product catalog.

Uses SQLAlchemy Core (not ORM) so the dataclass in catalog/models.py remains
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ProductStore is the repository;
_row_to_product is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ProductStore("sqlite:///neonthreads.db")
    product_id = store.create_product(product)
    tracksuits = store.list_by_type("tracksuit")
    store.update_product(product)
    store.close()
"""

import logging
from typing import Optional

from sqlalchemy import CheckConstraint, Column, Integer, MetaData, Numeric, String, Table, Text, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from catalog.models import Product
from core.db import make_engine

logger = logging.getLogger("neonthreads.catalog.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(50), nullable=False),
    Column("title", String(255), nullable=False, unique=True),
    Column("description", Text, nullable=False, server_default=""),
    Column("price", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("gender", String(20), nullable=False, server_default=""),
    Column("color", String(50), nullable=False, server_default=""),
    Column("small", Integer, nullable=False, server_default="0"),
    Column("medium", Integer, nullable=False, server_default="0"),
    Column("large", Integer, nullable=False, server_default="0"),
    Column("image_url", Text, nullable=False, server_default=""),
    Column("image_alt", Text, nullable=False, server_default=""),
    CheckConstraint("small >= 0 AND medium >= 0 AND large >= 0", name="ck_stock_non_negative"),
)


def _product_values(product: Product) -> dict:
    return {
        "type": product.type,
        "title": product.title,
        "description": product.description,
        "price": product.price,
        "gender": product.gender,
        "color": product.color,
        "small": product.small,
        "medium": product.medium,
        "large": product.large,
        "image_url": product.image_url,
        "image_alt": product.image_alt,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProductStore:
    """Repository for Product entities."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_product(self, product: Product) -> int:
        """Insert a product and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the title is already taken.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_products.insert().values(**_product_values(product)))
            conn.commit()
            return result.inserted_primary_key[0]

    def list_products(self) -> list[Product]:
        """Return every product ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_products.select().order_by(_products.c.id)).fetchall()
        return [_row_to_product(r) for r in rows]

    def list_by_type(self, product_type: str) -> list[Product]:
        """Return products of one type (exact match) ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _products.select().where(_products.c.type == product_type).order_by(_products.c.id)
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def get_by_id(self, product_id: int) -> Optional[Product]:
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def get_by_title(self, title: str) -> Optional[Product]:
        """Look up a product by exact title. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.title == title)).fetchone()
        return _row_to_product(row) if row is not None else None

    def update_product(self, product: Product) -> bool:
        """Overwrite every column of the product identified by product.id.

        Returns True if a row was updated, False if the id does not exist.
        Raises IntegrityError when the new title collides with another product.
        """
        if product.id is None:
            raise ValueError("update_product() requires product.id")
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.update().where(_products.c.id == product.id).values(**_product_values(product))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_product(self, product_id: int) -> bool:
        """Delete a product. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_products.delete().where(_products.c.id == product_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Product store ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        type=row.type,
        title=row.title,
        description=row.description or "",
        price=float(row.price),
        gender=row.gender or "",
        color=row.color or "",
        small=row.small,
        medium=row.medium,
        large=row.large,
        image_url=row.image_url or "",
        image_alt=row.image_alt or "",
    )

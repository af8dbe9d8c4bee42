"""
api/routes/products.py -- Product catalog endpoints.

Routes:
  GET    /api/products               -- list all products (public)
  POST   /api/products               -- create a product (product access)
  PUT    /api/products               -- replace a product, keyed by body id (product access)
  GET    /api/products/tracksuits    -- list tracksuits (public)
  GET    /api/products/windbreakers  -- list windbreakers (public)
  GET    /api/products/{title}       -- one product by title slug (public)
  DELETE /api/products/{title}       -- delete by title slug (product access)

Title slugs: "-" in the path stands for a space, so "Neon-Track-Top" finds
"Neon Track Top". An exact match is tried first so titles that really
contain a hyphen stay reachable.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import CreatedResponse, MessageResponse, ProductIn, ProductResponse, ProductUpdate
from auth.dependencies import require_access
from auth.models import ResourceClass, User
from catalog.models import TRACKSUIT, WINDBREAKER, Product
from catalog.store import ProductStore

logger = logging.getLogger("neonthreads.api.products")

# Auth policy:
# - GET routes: public -- the catalog is readable without an account
# - POST / PUT / DELETE: require_access(ResourceClass.PRODUCT) -- level <= 1
router = APIRouter(prefix="/products")

_product_access = require_access(ResourceClass.PRODUCT)


def _store(request: Request) -> ProductStore:
    return request.app.state.product_store


def _find_by_slug(store: ProductStore, slug: str) -> Product:
    product = store.get_by_title(slug)
    if product is None and "-" in slug:
        product = store.get_by_title(slug.replace("-", " "))
    if product is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Product not found."},
        )
    return product


def _title_conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"code": "conflict", "message": "A product with that title already exists."},
    )


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("", response_model=list[ProductResponse])
def list_products(request: Request) -> list[ProductResponse]:
    return [ProductResponse.from_product(p) for p in _store(request).list_products()]


@router.post("", response_model=CreatedResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductIn,
    user: User = Depends(_product_access),
) -> CreatedResponse:
    try:
        product_id = _store(request).create_product(body.to_product())
    except IntegrityError as exc:
        raise _title_conflict() from exc
    logger.info("Product %r (id=%s) created by %s", body.title, product_id, user.username)
    return CreatedResponse(id=product_id)


@router.put("", response_model=MessageResponse)
def update_product(
    request: Request,
    body: ProductUpdate,
    user: User = Depends(_product_access),
) -> MessageResponse:
    """Replace every field of the product whose id is in the body."""
    try:
        updated = _store(request).update_product(body.to_product(product_id=body.id))
    except IntegrityError as exc:
        raise _title_conflict() from exc
    if not updated:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Product not found."},
        )
    logger.info("Product id=%s updated by %s", body.id, user.username)
    return MessageResponse(message="product updated")


# ---------------------------------------------------------------------------
# Listings by type -- registered before /{product_title} so they win the match
# ---------------------------------------------------------------------------


@router.get("/tracksuits", response_model=list[ProductResponse])
def list_tracksuits(request: Request) -> list[ProductResponse]:
    return [ProductResponse.from_product(p) for p in _store(request).list_by_type(TRACKSUIT)]


@router.get("/windbreakers", response_model=list[ProductResponse])
def list_windbreakers(request: Request) -> list[ProductResponse]:
    return [ProductResponse.from_product(p) for p in _store(request).list_by_type(WINDBREAKER)]


# ---------------------------------------------------------------------------
# Single product
# ---------------------------------------------------------------------------


@router.get("/{product_title}", response_model=ProductResponse)
def get_product(request: Request, product_title: str) -> ProductResponse:
    return ProductResponse.from_product(_find_by_slug(_store(request), product_title))


@router.delete("/{product_title}", response_model=MessageResponse)
def delete_product(
    request: Request,
    product_title: str,
    user: User = Depends(_product_access),
) -> MessageResponse:
    store = _store(request)
    product = _find_by_slug(store, product_title)
    if not store.delete_product(product.id):
        # Deleted concurrently between lookup and delete.
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Product not found."},
        )
    logger.info("Product %r (id=%s) deleted by %s", product.title, product.id, user.username)
    return MessageResponse(message="product deleted")

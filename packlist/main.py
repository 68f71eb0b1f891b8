import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from . import config
from .cache import TTLCache
from .calculations import apply_totals, compute_weights, package_box_count
from .catalog import format_hs_code, normalize_product
from .db import get_recent_usage, log_usage_event
from .export import ExportLayout, to_export_rows
from .migrations import upgrade_packing_list, upgrade_product
from .models import HSCode, PackageItem, PackingList, Product
from .pagination import paginate
from .storage import (
    ConflictError,
    DocumentStore,
    DuplicateError,
    NotFoundError,
    StoreError,
    open_store,
)
from .validation import (
    COMPLETED_LIST_MESSAGE,
    check_package_range,
    utc_now_iso,
    validate_package_row,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Packing List Backend v1")

# -------------------------------------------------------------------
# CORS
# -------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Store + read cache
# -------------------------------------------------------------------
_store: Optional[DocumentStore] = None
cache = TTLCache(ttl=config.CACHE_TTL_SECONDS)


def get_store() -> DocumentStore:
    global _store
    if _store is None:
        _store = open_store()
    return _store


def set_store(store: Optional[DocumentStore]) -> None:
    """Swap the backing store (tests, alternate deployments)."""
    global _store
    _store = store
    cache.invalidate()


def _store_call(fn, *args, **kwargs):
    """Run a store operation and translate its failures into HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except (DuplicateError, ConflictError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except StoreError as exc:
        logger.error("Store failure: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _validation_failed(messages: List[str]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Validation failed", "messages": messages},
    )


def _written(collection: str, category: str, detail: Dict[str, Any]) -> None:
    cache.invalidate(f"/{collection}")
    log_usage_event(category, detail)
    logger.info("%s %s", category, detail)


def _list_response(collection: str, page: Optional[int], limit: int, build):
    # Keyed on the normalised paging arguments only; unknown query params do
    # not create new entries
    key = f"/{collection}?page={page or ''}&limit={limit if page else ''}"
    cached = cache.get(key)
    if cached is not None:
        return cached

    items = build(_store_call(get_store().get_all, collection))
    result = paginate(items, page, limit) if page else items
    cache.set(key, result)
    return result


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


# -------------------------------------------------------------------
# Products
# -------------------------------------------------------------------
def _parse_product(payload: Dict[str, Any]) -> Product:
    try:
        product = Product(**upgrade_product(payload))
    except ValidationError as exc:
        raise _validation_failed([e["msg"] for e in exc.errors()])

    errors = normalize_product(product)
    if errors:
        raise _validation_failed(errors)
    return product


@app.get("/products")
async def api_products(
    page: Optional[int] = Query(default=None, ge=1),
    limit: int = Query(config.PAGE_SIZE, ge=1, le=100),
):
    return _list_response(
        "products", page, limit,
        lambda docs: [Product(**upgrade_product(d)).model_dump() for d in docs],
    )


@app.get("/products/{product_id}")
async def api_product(product_id: str) -> Dict[str, Any]:
    doc = _store_call(get_store().get_by_id, "products", product_id)
    return Product(**upgrade_product(doc)).model_dump()


@app.post("/products", status_code=status.HTTP_201_CREATED)
async def api_create_product(payload: Dict[str, Any]) -> Dict[str, Any]:
    product = _parse_product(payload)
    created = _store_call(get_store().create, "products", product.model_dump(exclude={"id"}))
    _written("products", "PRODUCT_CREATE", {"id": created["id"], "name": product.name})
    return created


@app.put("/products/{product_id}")
async def api_update_product(product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    product = _parse_product(payload)
    updated = _store_call(get_store().update, "products", product_id, product.model_dump())
    _written("products", "PRODUCT_UPDATE", {"id": product_id})
    return updated


@app.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_delete_product(product_id: str) -> None:
    _store_call(get_store().delete, "products", product_id)
    _written("products", "PRODUCT_DELETE", {"id": product_id})


# -------------------------------------------------------------------
# HS Codes
# -------------------------------------------------------------------
class HSCodePayload(BaseModel):
    code: str


@app.get("/hsCodes")
async def api_hs_codes() -> List[str]:
    return _list_response(
        "hsCodes", None, config.PAGE_SIZE,
        lambda docs: [d.get("code") for d in docs if d.get("code")],
    )


@app.post("/hsCodes", status_code=status.HTTP_201_CREATED)
async def api_add_hs_code(payload: HSCodePayload) -> Dict[str, Any]:
    try:
        code = format_hs_code(payload.code)
    except ValueError as exc:
        raise _validation_failed([str(exc)])

    created = _store_call(get_store().create, "hsCodes", HSCode(code=code).model_dump(exclude={"id"}))
    _written("hsCodes", "HS_CODE_CREATE", {"code": code})
    return created


@app.delete("/hsCodes/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def api_delete_hs_code(code: str) -> None:
    store = get_store()
    docs = _store_call(store.get_all, "hsCodes")
    match = next((d for d in docs if d.get("code") == code), None)
    if match is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="HS Code not found")

    _store_call(store.delete, "hsCodes", match["id"])
    _written("hsCodes", "HS_CODE_DELETE", {"code": code})


# -------------------------------------------------------------------
# Packing lists
# -------------------------------------------------------------------
def _parse_packing_list(payload: Dict[str, Any]) -> PackingList:
    """
    Upgrade, validate every package and recompute totals. Totals sent by the
    client are ignored; they are always derived from `items`.
    """
    try:
        packing_list = PackingList(**upgrade_packing_list(payload))
    except ValidationError as exc:
        raise _validation_failed([e["msg"] for e in exc.errors()])

    errors: List[str] = []
    for row in packing_list.items:
        messages = validate_package_row(row)
        range_error = check_package_range(row.packageRange)
        if range_error:
            messages.append(range_error)
        errors.extend(f"Package {row.packageNo}: {msg}" for msg in messages)
    if errors:
        raise _validation_failed(errors)

    return apply_totals(packing_list)


@app.get("/packingLists")
async def api_packing_lists(
    page: Optional[int] = Query(default=None, ge=1),
    limit: int = Query(config.PAGE_SIZE, ge=1, le=100),
):
    return _list_response(
        "packingLists", page, limit,
        lambda docs: [upgrade_packing_list(d) for d in docs],
    )


@app.get("/packingLists/{list_id}")
async def api_packing_list(list_id: str) -> Dict[str, Any]:
    doc = _store_call(get_store().get_by_id, "packingLists", list_id)
    return upgrade_packing_list(doc)


@app.post("/packingLists", status_code=status.HTTP_201_CREATED)
async def api_create_packing_list(payload: Dict[str, Any]) -> Dict[str, Any]:
    packing_list = _parse_packing_list(payload)
    now = utc_now_iso()
    packing_list.createdAt = packing_list.createdAt or now
    packing_list.updatedAt = now

    created = _store_call(
        get_store().create, "packingLists", packing_list.model_dump(exclude={"id"})
    )
    _written("packingLists", "PACKING_LIST_CREATE", {
        "id": created["id"],
        "packages": len(packing_list.items),
    })
    return created


@app.put("/packingLists/{list_id}")
async def api_update_packing_list(
    list_id: str,
    payload: Dict[str, Any],
    expected_updated_at: Optional[str] = Query(default=None, alias="expectedUpdatedAt"),
) -> Dict[str, Any]:
    packing_list = _parse_packing_list(payload)
    store = get_store()

    # Structural edits to a completed list require moving it back to draft
    stored = PackingList(**upgrade_packing_list(_store_call(store.get_by_id, "packingLists", list_id)))
    if stored.status == "completed" and packing_list.status == "completed":
        if [r.model_dump() for r in stored.items] != [r.model_dump() for r in packing_list.items]:
            raise _validation_failed([COMPLETED_LIST_MESSAGE])

    packing_list.createdAt = packing_list.createdAt or stored.createdAt
    packing_list.updatedAt = utc_now_iso()

    updated = _store_call(
        store.update,
        "packingLists",
        list_id,
        packing_list.model_dump(),
        expected_updated_at=expected_updated_at,
    )
    _written("packingLists", "PACKING_LIST_UPDATE", {
        "id": list_id,
        "status": packing_list.status,
        "packages": len(packing_list.items),
    })
    return updated


@app.delete("/packingLists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_delete_packing_list(list_id: str) -> None:
    _store_call(get_store().delete, "packingLists", list_id)
    _written("packingLists", "PACKING_LIST_DELETE", {"id": list_id})


@app.get("/packingLists/{list_id}/export", response_model=ExportLayout)
async def api_export_packing_list(
    list_id: str,
    start_row: int = Query(10, ge=1, alias="startRow"),
) -> ExportLayout:
    doc = _store_call(get_store().get_by_id, "packingLists", list_id)
    try:
        packing_list = PackingList(**upgrade_packing_list(doc))
    except ValidationError as exc:
        logger.error("Stored packing list %s does not parse: %s", list_id, exc)
        raise HTTPException(status_code=500, detail="Stored packing list is invalid")
    return to_export_rows(packing_list, start_row=start_row)


# -------------------------------------------------------------------
# Stateless package preview
# -------------------------------------------------------------------
class WeightPreviewPayload(BaseModel):
    items: List[PackageItem]
    isPallet: bool = False


@app.post("/packages/weights")
async def api_package_weights(payload: WeightPreviewPayload) -> Dict[str, Any]:
    weights = compute_weights(payload.items, payload.isPallet)
    return {
        "grossWeight": weights.gross,
        "netWeight": weights.net,
        "boxes": package_box_count(payload.items),
    }


# -------------------------------------------------------------------
# Usage audit trail
# -------------------------------------------------------------------
@app.get("/usage/recent")
async def api_usage_recent(
    limit: int = Query(100, ge=1, le=1000),
    category: Optional[str] = None,
) -> List[Dict[str, Any]]:
    return get_recent_usage(limit=limit, category=category)

# packlist/migrations.py
"""
Upgrade stored documents written by earlier versions of the app to the
current schema before they are parsed into models.

Older packing lists used `packageNumber` instead of `packageNo`, had no
package `kind`, and some items carried only a full product (with
product-level `weights`) and no `variant`. The upgrade is applied on every
load and on every incoming write, and is a no-op on current documents.
"""
import copy
from typing import Any, Dict, List, Optional

from .calculations import apply_totals, has_pallet_footprint
from .models import Dimensions, PackingList

TOTAL_FIELDS = ("totalGrossWeight", "totalNetWeight", "totalNumberOfBoxes", "totalVolume")


def _default_variant_dict(product: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    variants = product.get("variants")
    if isinstance(variants, list) and variants:
        for v in variants:
            if isinstance(v, dict) and v.get("isDefault"):
                return v
        first = variants[0]
        return first if isinstance(first, dict) else None

    # Pre-variant products kept one box description on the product itself
    if isinstance(product.get("weights"), dict):
        return {
            "id": "legacy",
            "name": "Legacy",
            "boxQuantity": product.get("boxQuantity") or 1,
            "boxDimensions": product.get("boxDimensions") or product.get("dimensions") or {},
            "weights": product["weights"],
            "isDefault": True,
        }
    return None


def _upgrade_item(item: Dict[str, Any]) -> Dict[str, Any]:
    product = item.get("product") if isinstance(item.get("product"), dict) else {}

    if not isinstance(item.get("variant"), dict):
        variant = _default_variant_dict(product)
        if variant is not None:
            item["variant"] = copy.deepcopy(variant)

    item["product"] = {
        "id": product.get("id"),
        "name": product.get("name") or "",
        "hsCode": product.get("hsCode") or "",
    }
    return item


def _upgrade_row(row: Dict[str, Any]) -> Dict[str, Any]:
    if "packageNo" not in row and "packageNumber" in row:
        row["packageNo"] = str(row.pop("packageNumber"))
    if row.get("packageNo") is not None:
        row["packageNo"] = str(row["packageNo"])

    if not row.get("kind"):
        dims = Dimensions(**(row.get("dimensions") or {}))
        row["kind"] = "pallet" if has_pallet_footprint(dims) else "carton"

    items = row.get("items")
    if isinstance(items, list):
        row["items"] = [_upgrade_item(i) for i in items if isinstance(i, dict)]
    return row


def upgrade_packing_list(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return an upgraded deep copy of a stored packing-list document."""
    doc = copy.deepcopy(doc or {})

    rows = doc.get("items")
    if isinstance(rows, list):
        doc["items"] = [_upgrade_row(r) for r in rows if isinstance(r, dict)]

    if doc.get("status") not in ("draft", "completed"):
        doc["status"] = "draft"

    if any(field not in doc for field in TOTAL_FIELDS):
        parsed = apply_totals(PackingList(**doc))
        for field in TOTAL_FIELDS:
            doc[field] = getattr(parsed, field)
    return doc


def upgrade_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = copy.deepcopy(doc or {})
    variants: List[Dict[str, Any]] = [
        v for v in (doc.get("variants") or []) if isinstance(v, dict)
    ]

    if not variants:
        legacy = _default_variant_dict(doc)
        if legacy is not None:
            variants = [legacy]

    if variants and not any(v.get("isDefault") for v in variants):
        variants[0]["isDefault"] = True

    doc["variants"] = variants
    return doc

# packlist/editor.py
"""
Package editing workflow for a packing list held in memory.

Operations return `(result, reason)` pairs: `reason` is None on success and
a user-facing message otherwise. A refused operation leaves the packing list
and the package unchanged, apart from a completed -> draft transition the
caller already confirmed with `confirm_draft`.
"""
import uuid
from typing import List, Optional, Tuple

from .calculations import (
    PALLET_LENGTH_CM,
    PALLET_WIDTH_CM,
    apply_totals,
    compute_weights,
    format_package_no,
    is_pallet,
    next_package_number,
    refresh_package_weights,
)
from .catalog import find_variant, get_default_variant
from .models import (
    Dimensions,
    PackageItem,
    PackageKind,
    PackageRange,
    PackageRow,
    PackingList,
    Product,
    ProductSnapshot,
)
from .validation import (
    check_editable,
    check_package_range,
    utc_now_iso,
    validate_package_row,
)


def new_package(
    packing_list: PackingList,
    kind: PackageKind,
    start: Optional[int] = None,
    end: Optional[int] = None,
    confirm_draft: bool = False,
) -> Tuple[Optional[PackageRow], Optional[str]]:
    """
    Start a new package in editing state. It is not part of the list until
    `save_package` commits it.

    Numbering defaults to the next free package number. Pallets always take a
    single number; cartons may span `start..end`.
    """
    reason = check_editable(packing_list, confirm_draft)
    if reason:
        return None, reason

    if start is None:
        start = next_package_number(packing_list.items)
    if end is None or kind == "pallet":
        end = start

    package_range: Optional[PackageRange] = None
    if kind == "carton":
        package_range = PackageRange(start=start, end=end)
        reason = check_package_range(package_range)
        if reason:
            return None, reason

    if kind == "pallet":
        dimensions = Dimensions(length=PALLET_LENGTH_CM, width=PALLET_WIDTH_CM, height=0)
    else:
        dimensions = Dimensions()

    row = PackageRow(
        id=str(uuid.uuid4()),
        packageNo=format_package_no(kind, start, end),
        kind=kind,
        packageRange=package_range,
        items=[],
        dimensions=dimensions,
    )
    refresh_package_weights(row)
    return row, None


def add_item(
    row: PackageRow,
    product: Product,
    quantity: float,
    variant_id: Optional[str] = None,
) -> Tuple[bool, Optional[str]]:
    if quantity is None or quantity <= 0:
        return False, "Please select a product and enter a valid quantity"

    variant = find_variant(product, variant_id) if variant_id else get_default_variant(product)
    if variant is None:
        return False, "Product has no packaging variant"

    item = PackageItem(
        product=ProductSnapshot(id=product.id, name=product.name, hsCode=product.hsCode),
        variant=variant.model_copy(deep=True),
        quantity=quantity,
    )
    items: List[PackageItem] = [*row.items, item]

    weights = compute_weights(items, is_pallet(row))
    if weights.gross < weights.net:
        return False, "Gross weight cannot be less than net weight"

    # A carton takes the box size of the first item put into it
    if not is_pallet(row) and not row.items:
        row.dimensions = item.variant.boxDimensions.model_copy()
    if row.hsCode is None:
        row.hsCode = product.hsCode or None

    row.items = items
    row.grossWeight = weights.gross
    row.netWeight = weights.net
    return True, None


def remove_item(row: PackageRow, index: int) -> Tuple[bool, Optional[str]]:
    if index < 0 or index >= len(row.items):
        return False, "Item not found"
    row.items = [item for i, item in enumerate(row.items) if i != index]
    refresh_package_weights(row)
    return True, None


def set_item_quantity(row: PackageRow, index: int, quantity: float) -> Tuple[bool, Optional[str]]:
    if index < 0 or index >= len(row.items):
        return False, "Item not found"
    if quantity <= 0:
        return False, "Quantity must be greater than 0"

    items = [item.model_copy() for item in row.items]
    items[index].quantity = quantity
    weights = compute_weights(items, is_pallet(row))
    if weights.gross < weights.net:
        return False, "Gross weight cannot be less than net weight"

    row.items = items
    row.grossWeight = weights.gross
    row.netWeight = weights.net
    return True, None


def save_package(
    packing_list: PackingList,
    row: PackageRow,
    confirm_draft: bool = False,
    recompute: bool = True,
) -> Tuple[bool, List[str]]:
    """
    Commit a package into the list (insert, or replace the row with the same
    id) and refresh the list totals.

    With `recompute=False` the package keeps the weights it carries, which is
    how a manual weight override is saved.
    """
    reason = check_editable(packing_list, confirm_draft)
    if reason:
        return False, [reason]

    candidate = row.model_copy(deep=True)
    if recompute:
        refresh_package_weights(candidate)

    errors = validate_package_row(candidate)
    if errors:
        return False, errors

    for idx, existing in enumerate(packing_list.items):
        if existing.id == candidate.id:
            packing_list.items[idx] = candidate
            break
    else:
        packing_list.items.append(candidate)

    apply_totals(packing_list)
    return True, []


def delete_package(
    packing_list: PackingList,
    package_id: str,
    confirm_draft: bool = False,
) -> Tuple[bool, Optional[str]]:
    remaining = [row for row in packing_list.items if row.id != package_id]
    if len(remaining) == len(packing_list.items):
        return False, "Package not found"

    reason = check_editable(packing_list, confirm_draft)
    if reason:
        return False, reason

    packing_list.items = remaining
    apply_totals(packing_list)
    return True, None


def set_status(packing_list: PackingList, status: str) -> Tuple[bool, Optional[str]]:
    if status not in ("draft", "completed"):
        return False, f"Unknown status: {status}"
    if packing_list.status != status:
        packing_list.status = status
        packing_list.updatedAt = utc_now_iso()
    return True, None

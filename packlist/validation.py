# packlist/validation.py
"""
Validation rules for packages and variants.

Validators only report: they return a list of human-readable messages
(empty when valid) and never mutate or raise. Callers decide whether a
non-empty list blocks the save.
"""
from datetime import datetime, timezone
from typing import List, Optional

from .models import PackageRange, PackageRow, PackingList, Variant

COMPLETED_LIST_MESSAGE = (
    "This packing list is completed. Convert it to draft to make changes."
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_package_row(row: PackageRow) -> List[str]:
    errors: List[str] = []

    if len(row.items) == 0:
        errors.append("Package must contain at least one item")

    if row.grossWeight < row.netWeight:
        errors.append("Gross weight cannot be less than net weight")

    dims = row.dimensions
    if dims.length <= 0 or dims.width <= 0 or dims.height <= 0:
        errors.append("All dimensions must be greater than 0")

    return errors


def validate_variant(variant: Variant) -> List[str]:
    errors: List[str] = []

    if variant.boxQuantity <= 0:
        errors.append("Box quantity must be greater than 0")

    if variant.weights.gross <= 0:
        errors.append("Gross weight must be greater than 0")

    if variant.weights.net <= 0:
        errors.append("Net weight must be greater than 0")

    if variant.weights.gross < variant.weights.net:
        errors.append("Gross weight cannot be less than net weight")

    if variant.boxDimensions.length <= 0:
        errors.append("Length must be greater than 0")

    if variant.boxDimensions.width <= 0:
        errors.append("Width must be greater than 0")

    if variant.boxDimensions.height <= 0:
        errors.append("Height must be greater than 0")

    return errors


def check_package_range(package_range: Optional[PackageRange]) -> Optional[str]:
    """Blocking precondition for creating a carton range."""
    if package_range is not None and package_range.end < package_range.start:
        return "End package number cannot be less than start package number"
    return None


def check_editable(packing_list: PackingList, confirm_draft: bool = False) -> Optional[str]:
    """
    Gate for structural edits.

    A completed list must go back to draft first. With `confirm_draft` the
    caller has confirmed that transition: the list is moved to draft here and
    the edit may proceed. Without it the blocking message is returned and the
    list is left untouched.
    """
    if packing_list.status != "completed":
        return None
    if not confirm_draft:
        return COMPLETED_LIST_MESSAGE

    packing_list.status = "draft"
    packing_list.updatedAt = utc_now_iso()
    return None

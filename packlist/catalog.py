# packlist/catalog.py
import re
import uuid
from typing import List, Optional

from .models import Product, Variant
from .validation import validate_variant

HS_CODE_DIGITS = 12

_NON_DIGITS = re.compile(r"\D")


def format_hs_code(code: str) -> str:
    """
    Canonical HS code rendering: 12 digits as `####.##.##.##.##`.
    Any separators in the input are ignored.
    """
    digits = _NON_DIGITS.sub("", code or "")
    if len(digits) != HS_CODE_DIGITS:
        raise ValueError("HS Code must be exactly 12 digits")
    return f"{digits[0:4]}.{digits[4:6]}.{digits[6:8]}.{digits[8:10]}.{digits[10:12]}"


def validate_product(product: Product) -> List[str]:
    if not product.name.strip() or not product.hsCode.strip():
        return ["Name and HS Code are required"]
    return []


def get_default_variant(product: Product) -> Optional[Variant]:
    for variant in product.variants:
        if variant.isDefault:
            return variant
    return product.variants[0] if product.variants else None


def find_variant(product: Product, variant_id: str) -> Optional[Variant]:
    for variant in product.variants:
        if variant.id == variant_id:
            return variant
    return None


def _ensure_single_default(product: Product, preferred_id: Optional[str] = None) -> None:
    if not product.variants:
        return
    if preferred_id is not None:
        for v in product.variants:
            v.isDefault = v.id == preferred_id
        return
    defaults = [v for v in product.variants if v.isDefault]
    if not defaults:
        product.variants[0].isDefault = True
    elif len(defaults) > 1:
        # Keep the first one marked
        keep = defaults[0].id
        for v in product.variants:
            v.isDefault = v.id == keep


def save_variant(product: Product, variant: Variant) -> List[str]:
    """
    Add `variant` to the product, or replace the variant with the same id.

    Nothing changes when the variant does not validate; the error list is
    returned instead. A variant saved as default demotes every other one.
    """
    errors = validate_variant(variant)
    if errors:
        return errors

    if not variant.id:
        variant.id = uuid.uuid4().hex

    for idx, existing in enumerate(product.variants):
        if existing.id == variant.id:
            product.variants[idx] = variant
            break
    else:
        product.variants.append(variant)

    _ensure_single_default(product, variant.id if variant.isDefault else None)
    return []


def remove_variant(product: Product, variant_id: str) -> bool:
    """Remove a variant; the first remaining one inherits the default flag."""
    removed = find_variant(product, variant_id)
    if removed is None:
        return False

    product.variants = [v for v in product.variants if v.id != variant_id]
    if removed.isDefault and product.variants:
        product.variants[0].isDefault = True
    return True


def normalize_product(product: Product) -> List[str]:
    """
    Prepare a product for storage: required fields, canonical HS code,
    valid variants and exactly one default. Returns error messages.
    """
    errors = validate_product(product)
    if errors:
        return errors

    try:
        product.hsCode = format_hs_code(product.hsCode)
    except ValueError as exc:
        return [str(exc)]

    for variant in product.variants:
        variant_errors = validate_variant(variant)
        if variant_errors:
            label = variant.name or variant.id or "variant"
            errors.extend(f"{label}: {msg}" for msg in variant_errors)
        if not variant.id:
            variant.id = uuid.uuid4().hex

    if not errors:
        _ensure_single_default(product)
    return errors

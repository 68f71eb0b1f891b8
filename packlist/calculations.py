# packlist/calculations.py
"""
Weight, volume and box-count arithmetic for packages and packing lists.

Everything here is a pure function of its arguments: nothing is read from
storage and nothing is cached, so totals can always be re-derived from the
in-memory `items` of a packing list.
"""
import math
from typing import Iterable, List, Optional

from .models import (
    Dimensions,
    PackageItem,
    PackageRow,
    PackingList,
    Totals,
    Weights,
    round1,
)

PALLET_TARE_KG = 24
PALLET_LENGTH_CM = 80
PALLET_WIDTH_CM = 120

CM3_PER_M3 = 1_000_000


def _box_fraction(item: PackageItem) -> float:
    # Share of one full box represented by `quantity`. A variant that
    # slipped past validation with boxQuantity <= 0 contributes nothing.
    if item.variant.boxQuantity <= 0:
        return 0.0
    return item.quantity / item.variant.boxQuantity


def has_pallet_footprint(dimensions: Dimensions) -> bool:
    return dimensions.length == PALLET_LENGTH_CM and dimensions.width == PALLET_WIDTH_CM


def is_pallet(row: PackageRow) -> bool:
    """
    Rows carry an explicit `kind`. Untagged rows (documents stored before the
    tag existed) are classified by the 80 x 120 pallet footprint.
    """
    if row.kind is not None:
        return row.kind == "pallet"
    return has_pallet_footprint(row.dimensions)


# --- Package aggregation ---


def compute_weights(items: Iterable[PackageItem], is_pallet: bool = False) -> Weights:
    """
    Package weight from its line items.

    Each item weighs `(quantity / boxQuantity) * box weight`, so a half box
    weighs half of a full one. A pallet adds its tare once to gross.
    """
    gross = 0.0
    net = 0.0
    for item in items:
        ratio = _box_fraction(item)
        gross += ratio * item.variant.weights.gross
        net += ratio * item.variant.weights.net

    if is_pallet:
        gross += PALLET_TARE_KG

    return Weights(gross=round1(gross), net=round1(net))


def package_box_count(items: Iterable[PackageItem]) -> float:
    """Boxes represented by a package's items. Not rounded."""
    return sum((_box_fraction(item) for item in items), 0.0)


def refresh_package_weights(row: PackageRow) -> PackageRow:
    weights = compute_weights(row.items, is_pallet(row))
    row.grossWeight = weights.gross
    row.netWeight = weights.net
    return row


# --- List totals ---


def physical_box_count(row: PackageRow) -> int:
    """Number of physical packages a row stands for ("5 to 9" is five)."""
    if row.packageRange is not None:
        return row.packageRange.end - row.packageRange.start + 1
    return 1


def volume_of(row: PackageRow) -> float:
    """Row volume in m³: single package volume times its physical count."""
    dims = row.dimensions
    single = (dims.length * dims.width * dims.height) / CM3_PER_M3
    return single * physical_box_count(row)


def compute_totals(rows: Iterable[PackageRow]) -> Totals:
    gross = 0.0
    net = 0.0
    boxes = 0.0
    volume = 0.0
    for row in rows:
        # Stored row weights are authoritative once committed
        gross += row.grossWeight
        net += row.netWeight
        boxes += package_box_count(row.items)
        volume += volume_of(row)

    # Ceil once over the whole list; round first so float noise such as
    # 2.0000000000000004 does not count as a third box.
    total_boxes = math.ceil(round(boxes, 6)) if boxes > 0 else 0

    return Totals(
        grossWeight=round1(gross),
        netWeight=round1(net),
        totalBoxes=total_boxes,
        totalVolume=volume,
    )


def apply_totals(packing_list: PackingList) -> PackingList:
    totals = compute_totals(packing_list.items)
    packing_list.totalGrossWeight = totals.grossWeight
    packing_list.totalNetWeight = totals.netWeight
    packing_list.totalNumberOfBoxes = totals.totalBoxes
    packing_list.totalVolume = totals.totalVolume
    return packing_list


# --- Package numbering ---


def _parse_package_no(value: str) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def next_package_number(rows: Iterable[PackageRow]) -> int:
    """
    Next free package number: one past the highest range end or plain
    package number. Free-form numbers that are not integers are skipped.
    """
    numbers: List[int] = []
    for row in rows:
        if row.packageRange is not None:
            numbers.append(row.packageRange.end)
            continue
        parsed = _parse_package_no(row.packageNo)
        if parsed is not None:
            numbers.append(parsed)

    return max(numbers) + 1 if numbers else 1


def format_package_no(kind: str, start: int, end: int) -> str:
    if kind == "pallet" or start == end:
        return str(start)
    return f"{start} to {end}"

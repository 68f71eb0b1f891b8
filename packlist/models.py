# packlist/models.py
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Literal

from pydantic import BaseModel, Field

PackageKind = Literal["pallet", "carton"]
ListStatus = Literal["draft", "completed"]

ONE_PLACE = Decimal("0.1")


def round1(value: float) -> float:
    """Round to one decimal place, ties away from zero (0.25 -> 0.3)."""
    return float(Decimal(str(value)).quantize(ONE_PLACE, rounding=ROUND_HALF_UP))


# --- Primitives ---


class Dimensions(BaseModel):
    """Box or pallet dimensions in centimeters."""
    length: float = 0
    width: float = 0
    height: float = 0


class Weights(BaseModel):
    """Gross / net pair in kilograms."""
    gross: float = 0
    net: float = 0


class PackageRange(BaseModel):
    start: int
    end: int


# --- Catalog ---


class Variant(BaseModel):
    """
    A packaging configuration of a product: how many units go in one box,
    the box size and the weight of a full box.
    """
    id: str = ""
    name: str = ""
    boxQuantity: int = 1
    boxDimensions: Dimensions = Field(default_factory=Dimensions)
    weights: Weights = Field(default_factory=Weights)
    isDefault: bool = False


class Product(BaseModel):
    id: Optional[str] = None
    name: str = ""
    hsCode: str = ""
    variants: List[Variant] = Field(default_factory=list)

    class Config:
        extra = "allow"


class HSCode(BaseModel):
    id: Optional[str] = None
    code: str


# --- Packing lists ---


class ProductSnapshot(BaseModel):
    """
    The product fields a package item keeps from the catalog at add-time.
    Later catalog edits do not change an existing packing list.
    """
    id: Optional[str] = None
    name: str = ""
    hsCode: str = ""


class PackageItem(BaseModel):
    product: ProductSnapshot
    variant: Variant
    quantity: float


class PackageRow(BaseModel):
    """
    One pallet or carton range in a packing list.

    `kind` is the explicit package type. Documents written before it existed
    have it set by the legacy adapter (see packlist.migrations).
    """
    id: str
    packageNo: str
    kind: Optional[PackageKind] = None
    packageRange: Optional[PackageRange] = None
    items: List[PackageItem] = Field(default_factory=list)
    grossWeight: float = 0
    netWeight: float = 0
    dimensions: Dimensions = Field(default_factory=Dimensions)
    hsCode: Optional[str] = None


class PackingList(BaseModel):
    id: Optional[str] = None
    name: str = ""
    createdAt: str = ""
    updatedAt: str = ""
    status: ListStatus = "draft"
    items: List[PackageRow] = Field(default_factory=list)

    # Derived from `items`; see packlist.calculations.apply_totals
    totalGrossWeight: float = 0
    totalNetWeight: float = 0
    totalNumberOfBoxes: int = 0
    totalVolume: float = 0

    class Config:
        extra = "allow"


class Totals(BaseModel):
    grossWeight: float = 0
    netWeight: float = 0
    totalBoxes: int = 0
    totalVolume: float = 0

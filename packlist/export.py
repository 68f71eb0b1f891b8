# packlist/export.py
"""
Spreadsheet layout of a packing list.

`to_export_rows` flattens the package/item tree into rows plus vertical
merge spans. It produces plain data only; filling an actual workbook
template from it is the job of a rendering adapter.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .calculations import physical_box_count
from .models import Dimensions, PackingList, round1

# First data row of the reference template (1-based spreadsheet rows)
DATA_START_ROW = 10

PACKAGE_LEVEL_COLUMNS = ("packageNo", "grossWeight", "netWeight", "dimensions")

# Column letters used by the reference template
COLUMN_LETTERS: Dict[str, str] = {
    "packageNo": "A",
    "productName": "B",
    "quantity": "C",
    "grossWeight": "D",
    "netWeight": "E",
    "hsCode": "F",
    "dimensions": "G",
}

TOTAL_LABEL = "TOTAL"


class ExportRow(BaseModel):
    row: int
    packageNo: str = ""
    productName: str = ""
    quantity: Optional[float] = None
    grossWeight: Optional[float] = None
    netWeight: Optional[float] = None
    hsCode: str = ""
    dimensions: str = ""
    isTotal: bool = False


class MergeSpan(BaseModel):
    column: str
    startRow: int
    endRow: int


class ExportLayout(BaseModel):
    rows: List[ExportRow] = Field(default_factory=list)
    merges: List[MergeSpan] = Field(default_factory=list)

    # Header / trailer values of the template
    updatedDate: str = ""
    totalPackages: int = 0
    totalVolume: float = 0
    totalVolumeLabel: str = ""


def _fmt1(value: float) -> str:
    return f"{round1(value):.1f}"


def format_dimensions(dims: Dimensions) -> str:
    return f"{_fmt1(dims.length)} × {_fmt1(dims.width)} × {_fmt1(dims.height)}"


def to_export_rows(packing_list: PackingList, start_row: int = DATA_START_ROW) -> ExportLayout:
    layout = ExportLayout()
    current = start_row

    for package in packing_list.items:
        first_row = current
        for index, item in enumerate(package.items):
            first = index == 0
            layout.rows.append(
                ExportRow(
                    row=current,
                    packageNo=package.packageNo if first else "",
                    productName=item.product.name,
                    quantity=round1(item.quantity),
                    grossWeight=round1(package.grossWeight) if first else None,
                    netWeight=round1(package.netWeight) if first else None,
                    hsCode=item.product.hsCode or package.hsCode or "",
                    dimensions=format_dimensions(package.dimensions) if first else "",
                )
            )
            current += 1

        if len(package.items) > 1:
            for column in PACKAGE_LEVEL_COLUMNS:
                layout.merges.append(
                    MergeSpan(column=column, startRow=first_row, endRow=current - 1)
                )

    layout.rows.append(
        ExportRow(
            row=current,
            packageNo=TOTAL_LABEL,
            quantity=packing_list.totalNumberOfBoxes,
            grossWeight=round1(packing_list.totalGrossWeight),
            netWeight=round1(packing_list.totalNetWeight),
            isTotal=True,
        )
    )

    layout.updatedDate = (packing_list.updatedAt or "")[:10]
    layout.totalPackages = sum(physical_box_count(p) for p in packing_list.items)
    layout.totalVolume = packing_list.totalVolume
    layout.totalVolumeLabel = f"{_fmt1(packing_list.totalVolume)} cbm"
    return layout

import pytest

from packlist.models import (
    Dimensions,
    PackageItem,
    PackageRange,
    PackageRow,
    PackingList,
    Product,
    ProductSnapshot,
    Variant,
    Weights,
)


def make_variant(box_quantity=10, gross=5.5, net=5.0, dims=(30, 20, 15), **kwargs):
    return Variant(
        id=kwargs.pop("id", "v1"),
        name=kwargs.pop("name", "Standard"),
        boxQuantity=box_quantity,
        boxDimensions=Dimensions(length=dims[0], width=dims[1], height=dims[2]),
        weights=Weights(gross=gross, net=net),
        isDefault=kwargs.pop("isDefault", True),
    )


def make_item(quantity, variant=None, name="Widget", hs_code="1234.56.78.90.12"):
    return PackageItem(
        product=ProductSnapshot(id="p1", name=name, hsCode=hs_code),
        variant=variant or make_variant(),
        quantity=quantity,
    )


def make_row(items, package_no="1", dims=(30, 20, 15), package_range=None,
             gross=None, net=None, kind=None, row_id=None):
    row = PackageRow(
        id=row_id or f"row-{package_no}",
        packageNo=package_no,
        kind=kind,
        packageRange=PackageRange(start=package_range[0], end=package_range[1]) if package_range else None,
        items=items,
        dimensions=Dimensions(length=dims[0], width=dims[1], height=dims[2]),
    )
    if gross is not None:
        row.grossWeight = gross
    if net is not None:
        row.netWeight = net
    return row


@pytest.fixture
def widget():
    return Product(id="p1", name="Widget", hsCode="1234.56.78.90.12", variants=[make_variant()])


@pytest.fixture
def draft_list():
    return PackingList(
        id="pl1",
        name="Shipment 1",
        createdAt="2024-03-01T10:00:00+00:00",
        updatedAt="2024-03-02T10:00:00+00:00",
        status="draft",
    )

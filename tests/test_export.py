import pytest

from conftest import make_item, make_row, make_variant
from packlist.calculations import apply_totals, refresh_package_weights
from packlist.export import (
    COLUMN_LETTERS,
    DATA_START_ROW,
    PACKAGE_LEVEL_COLUMNS,
    format_dimensions,
    to_export_rows,
)
from packlist.models import Dimensions


@pytest.fixture
def three_item_list(draft_list):
    items = [
        make_item(10, name="Widget"),
        make_item(5, name="Gadget", hs_code="2222.33.44.55.66"),
        make_item(20, name="Gizmo", variant=make_variant(box_quantity=20, gross=8, net=7)),
    ]
    row = make_row(items, package_no="1", dims=(80, 120, 150), kind="pallet")
    refresh_package_weights(row)
    single = make_row([make_item(20)], package_no="2 to 3", package_range=(2, 3), kind="carton")
    refresh_package_weights(single)
    draft_list.items = [row, single]
    return apply_totals(draft_list)


class TestExportRows:

    def test_one_row_per_item_plus_total(self, three_item_list):
        layout = to_export_rows(three_item_list)
        assert len(layout.rows) == 5
        assert [r.row for r in layout.rows] == [10, 11, 12, 13, 14]
        assert layout.rows[-1].isTotal

    def test_package_columns_only_on_first_row(self, three_item_list):
        first, second, third = to_export_rows(three_item_list).rows[:3]
        assert first.packageNo == "1"
        assert first.grossWeight == 40.3  # 5.5 + 2.75 + 8 + 24 tare, rounded up
        assert first.netWeight == 14.5
        assert first.dimensions == "80.0 × 120.0 × 150.0"
        for row in (second, third):
            assert row.packageNo == ""
            assert row.grossWeight is None
            assert row.netWeight is None
            assert row.dimensions == ""

    def test_item_columns_on_every_row(self, three_item_list):
        rows = to_export_rows(three_item_list).rows
        assert [r.productName for r in rows[:3]] == ["Widget", "Gadget", "Gizmo"]
        assert [r.quantity for r in rows[:3]] == [10, 5, 20]
        assert rows[1].hsCode == "2222.33.44.55.66"

    def test_merge_spans_cover_multi_item_package(self, three_item_list):
        merges = to_export_rows(three_item_list).merges
        assert len(merges) == 4
        assert {m.column for m in merges} == set(PACKAGE_LEVEL_COLUMNS)
        assert all((m.startRow, m.endRow) == (10, 12) for m in merges)

    def test_single_item_package_not_merged(self, three_item_list):
        layout = to_export_rows(three_item_list)
        assert all(m.startRow != 13 for m in layout.merges)
        assert layout.rows[3].packageNo == "2 to 3"

    def test_total_row(self, three_item_list):
        total = to_export_rows(three_item_list).rows[-1]
        assert total.packageNo == "TOTAL"
        assert total.quantity == three_item_list.totalNumberOfBoxes == 5
        assert total.grossWeight == 51.3
        assert total.netWeight == 24.5

    def test_trailer_values(self, three_item_list):
        layout = to_export_rows(three_item_list)
        assert layout.updatedDate == "2024-03-02"
        assert layout.totalPackages == 3
        assert layout.totalVolume == pytest.approx(1.44 + 2 * 0.009)
        assert layout.totalVolumeLabel == "1.5 cbm"

    def test_fractional_quantity_rounded(self, draft_list):
        row = make_row([make_item(2.25)], package_no="1")
        refresh_package_weights(row)
        draft_list.items = [row]
        layout = to_export_rows(apply_totals(draft_list))
        assert layout.rows[0].quantity == 2.3

    def test_custom_anchor(self, three_item_list):
        layout = to_export_rows(three_item_list, start_row=2)
        assert layout.rows[0].row == 2
        assert layout.merges[0].endRow == 4

    def test_empty_list(self, draft_list):
        layout = to_export_rows(draft_list)
        assert len(layout.rows) == 1
        assert layout.rows[0].row == DATA_START_ROW
        assert layout.rows[0].packageNo == "TOTAL"
        assert layout.merges == []
        assert layout.totalVolumeLabel == "0.0 cbm"


def test_dimension_formatting():
    assert format_dimensions(Dimensions(length=30, width=20.25, height=15.5)) == "30.0 × 20.3 × 15.5"


def test_template_columns():
    assert [COLUMN_LETTERS[c] for c in PACKAGE_LEVEL_COLUMNS] == ["A", "D", "E", "G"]

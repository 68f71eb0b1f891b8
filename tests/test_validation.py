from conftest import make_item, make_row, make_variant
from packlist.models import PackageRange
from packlist.validation import (
    COMPLETED_LIST_MESSAGE,
    check_editable,
    check_package_range,
    validate_package_row,
    validate_variant,
)


class TestValidatePackageRow:

    def test_valid_row(self):
        row = make_row([make_item(10)], gross=5.5, net=5.0)
        assert validate_package_row(row) == []

    def test_empty_package(self):
        row = make_row([], gross=0, net=0)
        assert validate_package_row(row) == ["Package must contain at least one item"]

    def test_gross_below_net(self):
        row = make_row([make_item(10)], gross=4.0, net=5.0)
        assert validate_package_row(row) == ["Gross weight cannot be less than net weight"]

    def test_zero_pallet_height(self):
        row = make_row([make_item(10)], dims=(80, 120, 0), gross=29.5, net=5.0)
        assert validate_package_row(row) == ["All dimensions must be greater than 0"]

    def test_all_failures_in_order(self):
        row = make_row([], dims=(0, 0, 0), gross=1.0, net=2.0)
        assert validate_package_row(row) == [
            "Package must contain at least one item",
            "Gross weight cannot be less than net weight",
            "All dimensions must be greater than 0",
        ]

    def test_does_not_mutate(self):
        row = make_row([], gross=1.0, net=2.0)
        before = row.model_dump()
        validate_package_row(row)
        assert row.model_dump() == before


class TestValidateVariant:

    def test_valid_variant(self):
        assert validate_variant(make_variant()) == []

    def test_equal_weights_allowed(self):
        assert validate_variant(make_variant(gross=5.0, net=5.0)) == []

    def test_everything_wrong(self):
        variant = make_variant(box_quantity=0, gross=0, net=0, dims=(0, 0, 0))
        assert validate_variant(variant) == [
            "Box quantity must be greater than 0",
            "Gross weight must be greater than 0",
            "Net weight must be greater than 0",
            "Length must be greater than 0",
            "Width must be greater than 0",
            "Height must be greater than 0",
        ]

    def test_gross_less_than_net_reported_after_weight_checks(self):
        variant = make_variant(gross=2.0, net=3.0, dims=(10, 0, 10))
        assert validate_variant(variant) == [
            "Gross weight cannot be less than net weight",
            "Width must be greater than 0",
        ]


class TestPreconditions:

    def test_range_end_before_start(self):
        message = check_package_range(PackageRange(start=5, end=3))
        assert message == "End package number cannot be less than start package number"

    def test_single_box_range_ok(self):
        assert check_package_range(PackageRange(start=5, end=5)) is None
        assert check_package_range(None) is None

    def test_draft_is_editable(self, draft_list):
        assert check_editable(draft_list) is None
        assert draft_list.status == "draft"

    def test_completed_requires_confirmation(self, draft_list):
        draft_list.status = "completed"
        assert check_editable(draft_list) == COMPLETED_LIST_MESSAGE
        assert draft_list.status == "completed"
        assert draft_list.updatedAt == "2024-03-02T10:00:00+00:00"

    def test_confirmed_draft_transition(self, draft_list):
        draft_list.status = "completed"
        assert check_editable(draft_list, confirm_draft=True) is None
        assert draft_list.status == "draft"
        assert draft_list.updatedAt != "2024-03-02T10:00:00+00:00"

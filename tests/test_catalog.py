import pytest

from conftest import make_variant
from packlist.catalog import (
    format_hs_code,
    get_default_variant,
    normalize_product,
    remove_variant,
    save_variant,
    validate_product,
)
from packlist.models import Product


def _product(*variants):
    return Product(id="p1", name="Widget", hsCode="123456789012", variants=list(variants))


class TestHSCode:

    def test_formats_twelve_digits(self):
        assert format_hs_code("123456789012") == "1234.56.78.90.12"

    def test_ignores_separators(self):
        assert format_hs_code("1234.56.78.90.12") == "1234.56.78.90.12"
        assert format_hs_code("1234 56-78 90/12") == "1234.56.78.90.12"

    @pytest.mark.parametrize("code", ["", "1234", "1234567890123", "abcd"])
    def test_rejects_wrong_length(self, code):
        with pytest.raises(ValueError, match="exactly 12 digits"):
            format_hs_code(code)


class TestVariants:

    def test_default_variant_lookup(self):
        a = make_variant(id="a", isDefault=False)
        b = make_variant(id="b", isDefault=True)
        assert get_default_variant(_product(a, b)).id == "b"

    def test_default_falls_back_to_first(self):
        a = make_variant(id="a", isDefault=False)
        assert get_default_variant(_product(a)).id == "a"
        assert get_default_variant(_product()) is None

    def test_first_variant_becomes_default(self):
        product = _product()
        assert save_variant(product, make_variant(id="a", isDefault=False)) == []
        assert product.variants[0].isDefault

    def test_new_default_demotes_others(self):
        product = _product(make_variant(id="a", isDefault=True))
        assert save_variant(product, make_variant(id="b", isDefault=True)) == []
        assert [v.isDefault for v in product.variants] == [False, True]

    def test_saving_replaces_same_id(self):
        product = _product(make_variant(id="a"))
        save_variant(product, make_variant(id="a", box_quantity=24))
        assert len(product.variants) == 1
        assert product.variants[0].boxQuantity == 24

    def test_invalid_variant_is_not_saved(self):
        product = _product(make_variant(id="a"))
        errors = save_variant(product, make_variant(id="b", gross=1.0, net=2.0))
        assert errors == ["Gross weight cannot be less than net weight"]
        assert [v.id for v in product.variants] == ["a"]

    def test_generated_id(self):
        product = _product()
        save_variant(product, make_variant(id=""))
        assert product.variants[0].id

    def test_removing_default_promotes_first_remaining(self):
        product = _product(
            make_variant(id="a", isDefault=True),
            make_variant(id="b", isDefault=False),
            make_variant(id="c", isDefault=False),
        )
        assert remove_variant(product, "a")
        assert [v.id for v in product.variants] == ["b", "c"]
        assert product.variants[0].isDefault
        assert not product.variants[1].isDefault

    def test_removing_last_variant(self):
        product = _product(make_variant(id="a"))
        assert remove_variant(product, "a")
        assert product.variants == []

    def test_remove_unknown(self):
        assert not remove_variant(_product(), "nope")


class TestProduct:

    def test_name_and_hs_code_required(self):
        assert validate_product(Product(name="", hsCode="1")) == ["Name and HS Code are required"]
        assert validate_product(Product(name="x", hsCode=" ")) == ["Name and HS Code are required"]

    def test_normalize_formats_code_and_default(self):
        product = _product(make_variant(id="a", isDefault=False), make_variant(id="b", isDefault=False))
        assert normalize_product(product) == []
        assert product.hsCode == "1234.56.78.90.12"
        assert [v.isDefault for v in product.variants] == [True, False]

    def test_normalize_reports_bad_variants(self):
        product = _product(make_variant(id="a", name="Big box", box_quantity=0))
        assert normalize_product(product) == ["Big box: Box quantity must be greater than 0"]

    def test_normalize_rejects_bad_code(self):
        product = Product(name="Widget", hsCode="12")
        assert normalize_product(product) == ["HS Code must be exactly 12 digits"]

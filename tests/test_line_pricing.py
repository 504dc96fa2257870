import pytest
from decimal import Decimal

from src.api.pricing.constants import BillingCycle, TaxInclusion, category_has_pricing
from src.api.pricing.exceptions import InvalidCycleConfiguration, InvalidQuantity
from src.api.pricing.schemas.block import ConfigurableBlock, TaxComponent
from src.api.pricing.services.line_pricing import (
    LinePricingResolver,
    decompose,
    resolve_total_price,
)


class TestResolveTotalPrice:
    """Test line total computation"""

    def test_exclusive_tax_is_added_on_top(self, test_data_factory):
        """price=100, qty=2, 18% exclusive gives 236.00"""
        block = test_data_factory.create_block(
            price=Decimal("100"), quantity=2, tax_rate=Decimal("18"))

        assert block.total_price == Decimal("236.00")

    def test_inclusive_price_already_contains_tax(self, test_data_factory):
        block = test_data_factory.create_block(
            price=Decimal("118"), tax_rate=Decimal("18"), tax_inclusion=TaxInclusion.INCLUSIVE)

        assert block.total_price == Decimal("118.00")

    def test_zero_rate_is_price_times_quantity(self, test_data_factory):
        block = test_data_factory.create_block(price=Decimal("12.345"), quantity=3)

        assert block.total_price == Decimal("37.04")

    def test_custom_price_overrides_price(self, test_data_factory):
        block = test_data_factory.create_block(
            price=Decimal("100"), custom_price=Decimal("80"), tax_rate=Decimal("10"))

        assert block.total_price == Decimal("88.00")

    def test_unlimited_counts_as_one(self, test_data_factory):
        block = test_data_factory.create_block(price=Decimal("40"), quantity=5, unlimited=True)

        assert block.total_price == Decimal("40.00")

    def test_unpriced_category_is_zero(self, test_data_factory):
        """Text and document lines never carry a price"""
        block = test_data_factory.create_block(
            category_id="text", price=Decimal("500"), tax_rate=Decimal("18"))

        assert block.total_price == Decimal("0.00")
        assert block.has_pricing is False
        assert block.tax_rate == Decimal("0")

    def test_tax_rate_follows_components_over_explicit_rate(self):
        block = ConfigurableBlock(
            id="b1",
            category_id="service",
            price="100",
            currency="INR",
            tax_rate="5",
            taxes=[{"name": "CGST", "rate": "9"}, {"name": "SGST", "rate": "9"}],
        )

        assert block.tax_rate == Decimal("18")
        assert block.total_price == Decimal("118.00")

    @pytest.mark.parametrize("inclusion", [TaxInclusion.INCLUSIVE, TaxInclusion.EXCLUSIVE])
    def test_negative_tax_rate_is_treated_as_zero(self, test_data_factory, inclusion):
        block = test_data_factory.create_block(
            price=Decimal("118"), tax_rate=Decimal("-100"), tax_inclusion=inclusion)

        line = decompose(block)

        assert block.tax_rate == Decimal("0")
        assert block.total_price == Decimal("118.00")
        assert line.base == Decimal("118")
        assert line.tax == Decimal("0")

    def test_negative_component_rate_is_treated_as_zero(self):
        block = ConfigurableBlock(
            id="b1", category_id="spare", price="100", currency="INR",
            taxes=[{"name": "GST", "rate": "-18"}],
        )

        assert block.taxes[0].rate == Decimal("0")
        assert block.tax_rate == Decimal("0")
        assert block.total_price == Decimal("100.00")

    def test_non_numeric_price_is_treated_as_zero(self, test_data_factory):
        block = test_data_factory.create_block(price="not-a-number", tax_rate="18")

        assert block.price == Decimal("0")
        assert block.total_price == Decimal("0.00")

    def test_total_is_idempotent(self, test_data_factory):
        block = test_data_factory.create_block(
            price=Decimal("33.33"), quantity=3, tax_rate=Decimal("18"))

        assert resolve_total_price(block) == resolve_total_price(block) == block.total_price

    def test_total_price_is_not_settable(self, test_data_factory):
        """A supplied total is ignored and recomputed"""
        block = ConfigurableBlock(
            id="b1", category_id="service", price="10", currency="INR", total_price="999")

        assert block.total_price == Decimal("10.00")

    def test_tax_rate_defaults_to_sum_of_components(self):
        block = ConfigurableBlock(
            id="b1",
            category_id="spare",
            price="100",
            currency="INR",
            tax_rate=None,
            taxes=[{"name": "CGST", "rate": "9"}, {"name": "SGST", "rate": "9"}],
        )

        assert block.tax_rate == Decimal("18")
        assert block.total_price == Decimal("118.00")

    def test_flyby_type_is_used_as_category(self):
        block = ConfigurableBlock(
            id="flyby-spare-1", price="20", currency="INR", is_flyby=True, flyby_type="spare")

        assert block.category_id == "spare"
        assert block.has_pricing is True


class TestDecompose:
    """Test base/tax split of a line"""

    def test_inclusive_split(self, test_data_factory):
        """price=118, 18% inclusive splits into 100.00 base and 18.00 tax"""
        block = test_data_factory.create_block(
            price=Decimal("118"), tax_rate=Decimal("18"), tax_inclusion=TaxInclusion.INCLUSIVE)

        line = decompose(block)

        assert line.base.quantize(Decimal("0.01")) == Decimal("100.00")
        assert line.tax.quantize(Decimal("0.01")) == Decimal("18.00")

    def test_exclusive_components(self, test_data_factory):
        block = test_data_factory.create_block(
            price=Decimal("100"),
            tax_rate=Decimal("18"),
            taxes=[TaxComponent(id="cgst", name="CGST", rate="9"),
                   TaxComponent(id="sgst", name="SGST", rate="9")],
        )

        line = decompose(block)

        assert line.base == Decimal("100")
        assert [(c.key, c.amount) for c in line.components] == [
            ("cgst", Decimal("9")), ("sgst", Decimal("9"))]

    def test_unitemised_tax_gets_a_synthetic_component(self, test_data_factory):
        block = test_data_factory.create_block(price=Decimal("200"), tax_rate=Decimal("5"))

        line = decompose(block)

        assert len(line.components) == 1
        assert line.components[0].name == "Tax"
        assert line.components[0].key == "Tax@5"
        assert line.components[0].amount == Decimal("10")

    def test_unpriced_line_is_empty(self, test_data_factory):
        line = decompose(test_data_factory.create_block(category_id="document"))

        assert line.base == line.tax == line.total == Decimal("0")
        assert line.components == []


class TestLinePricingResolver:
    """Test line validation"""

    def test_quantity_below_one_is_rejected(self, test_data_factory):
        block = test_data_factory.create_block(quantity=0)

        with pytest.raises(InvalidQuantity) as exc:
            LinePricingResolver().validate(block)
        assert exc.value.block_id == "line-1"

    def test_custom_cycle_needs_days(self, test_data_factory):
        block = test_data_factory.create_block(cycle=BillingCycle.CUSTOM, custom_cycle_days=None)

        with pytest.raises(InvalidCycleConfiguration):
            LinePricingResolver().validate(block)

    def test_custom_cycle_with_days_is_valid(self, test_data_factory):
        block = test_data_factory.create_block(cycle=BillingCycle.CUSTOM, custom_cycle_days=45)

        LinePricingResolver().validate(block)

    @pytest.mark.parametrize("category, expected", [
        ("service", True),
        ("SPARE", True),
        ("billing", True),
        ("text", False),
        ("checklist", False),
        (None, False),
    ])
    def test_category_has_pricing(self, category, expected):
        assert category_has_pricing(category) is expected

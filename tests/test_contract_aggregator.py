import pytest
from decimal import Decimal

from src.api.pricing.constants import TaxInclusion
from src.api.pricing.schemas.block import TaxComponent
from src.api.pricing.services.contract_aggregator import ContractAggregator, billable_blocks

GST = [TaxComponent(id="cgst", name="CGST", rate="9"), TaxComponent(id="sgst", name="SGST", rate="9")]


@pytest.fixture
def aggregator():
    return ContractAggregator()


class TestContractAggregator:
    """Test contract totals"""

    def test_empty_contract(self, aggregator):
        totals = aggregator.aggregate([])

        assert totals.subtotal == Decimal("0.00")
        assert totals.tax_total == Decimal("0.00")
        assert totals.grand_total == Decimal("0.00")
        assert totals.tax_breakdown == []
        assert totals.billable_count == 0

    def test_mixed_inclusive_and_exclusive(self, aggregator, test_data_factory):
        blocks = [
            test_data_factory.create_block(id="a", price=Decimal("100"), quantity=2,
                                           tax_rate=Decimal("18"), taxes=GST),
            test_data_factory.create_block(id="b", price=Decimal("118"), tax_rate=Decimal("18"),
                                           taxes=GST, tax_inclusion=TaxInclusion.INCLUSIVE),
        ]

        totals = aggregator.aggregate(blocks)

        assert totals.subtotal == Decimal("300.00")
        assert totals.tax_total == Decimal("54.00")
        assert totals.grand_total == Decimal("354.00")
        assert [(t.key, t.amount) for t in totals.tax_breakdown] == [
            ("cgst", Decimal("27.00")), ("sgst", Decimal("27.00"))]

    def test_grand_total_matches_subtotal_plus_breakdown(self, aggregator, test_data_factory):
        blocks = [
            test_data_factory.create_block(id="a", price=Decimal("19.99"), quantity=3,
                                           tax_rate=Decimal("18"), taxes=GST),
            test_data_factory.create_block(id="b", price=Decimal("45.50"), tax_rate=Decimal("5")),
            test_data_factory.create_block(id="c", price=Decimal("7.77"), tax_rate=Decimal("12"),
                                           tax_inclusion=TaxInclusion.INCLUSIVE),
        ]

        totals = aggregator.aggregate(blocks)

        breakdown_sum = sum((t.amount for t in totals.tax_breakdown), Decimal("0"))
        tolerance = Decimal("0.01") * len(totals.tax_breakdown)
        assert abs(totals.grand_total - (totals.subtotal + breakdown_sum)) <= tolerance
        assert totals.grand_total == sum((b.total_price for b in blocks), Decimal("0"))

    def test_unpriced_lines_are_excluded(self, aggregator, test_data_factory):
        blocks = [
            test_data_factory.create_block(id="a", price=Decimal("100")),
            test_data_factory.create_block(id="note", category_id="text", price=Decimal("999")),
        ]

        totals = aggregator.aggregate(blocks)

        assert totals.grand_total == Decimal("100.00")
        assert totals.billable_count == 1
        assert [b.id for b in billable_blocks(blocks)] == ["a"]

    def test_same_tax_from_many_lines_is_merged(self, aggregator, test_data_factory):
        blocks = [
            test_data_factory.create_block(id="a", price=Decimal("100"), tax_rate=Decimal("5")),
            test_data_factory.create_block(id="b", price=Decimal("300"), tax_rate=Decimal("5")),
        ]

        totals = aggregator.aggregate(blocks)

        assert len(totals.tax_breakdown) == 1
        assert totals.tax_breakdown[0].name == "Tax"
        assert totals.tax_breakdown[0].amount == Decimal("20.00")

    def test_group_scope(self, aggregator, test_data_factory):
        blocks = [
            test_data_factory.create_block(id="X__A", price=Decimal("50"), coverage_group_id="A"),
            test_data_factory.create_block(id="X__B", price=Decimal("70"), coverage_group_id="B"),
        ]

        totals = aggregator.aggregate(blocks, "B")

        assert totals.grand_total == Decimal("70.00")
        assert totals.coverage_group_id == "B"
        assert aggregator.aggregate(blocks).grand_total == Decimal("120.00")

    def test_line_breakdown_is_rounded(self, aggregator, test_data_factory):
        block = test_data_factory.create_block(
            price=Decimal("118"), tax_rate=Decimal("18"), tax_inclusion=TaxInclusion.INCLUSIVE)

        line = aggregator.line_breakdown(block)

        assert line.base == Decimal("100.00")
        assert line.tax == Decimal("18.00")
        assert line.total_price == Decimal("118.00")


class TestGroupStats:
    """Test per coverage type statistics"""

    def test_counts_and_subtotals(self, aggregator, test_data_factory, sample_coverage_types):
        blocks = [
            test_data_factory.create_block(id="X__A", price=Decimal("50"), coverage_group_id="A"),
            test_data_factory.create_block(id="Y__A", price=Decimal("25"), coverage_group_id="A"),
            test_data_factory.create_block(id="note", category_id="text", coverage_group_id="A"),
        ]

        stats = aggregator.group_stats(blocks, sample_coverage_types)

        assert [(s.coverage_group_id, s.count, s.subtotal) for s in stats] == [
            ("A", 3, Decimal("75.00")),
            ("B", 0, Decimal("0.00")),
        ]
        assert stats[0].resource_name == "Split AC"

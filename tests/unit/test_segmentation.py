"""
Unit Tests - Segmentation Rules
"""
import polars as pl
import pytest

from sales_reports.config import ReportSettings
from sales_reports.transformation.segmentation import (
    CustomerSegment,
    ProductSegment,
    SegmentRule,
    classify,
    classify_customer,
    classify_product,
    segment_customers,
    segment_expression,
    segment_products,
)


class TestCustomerSegmentation:
    """Tests for VIP / Regular / New"""

    @pytest.mark.parametrize(
        "lifespan_months,total_sales,expected",
        [
            (14, 6000.0, CustomerSegment.VIP),
            (12, 5000.01, CustomerSegment.VIP),
            (12, 5000.0, CustomerSegment.REGULAR),
            (30, 100.0, CustomerSegment.REGULAR),
            (11, 99999.0, CustomerSegment.NEW),
            (0, 150.0, CustomerSegment.NEW),
        ],
    )
    def test_classify_customer(self, lifespan_months, total_sales, expected):
        """Thresholds are inclusive on lifespan, exclusive on sales"""
        assert classify_customer(lifespan_months, total_sales) == expected.value

    def test_frame_matches_scalar_rules(self):
        """Column and scalar evaluation agree row by row"""
        df = pl.DataFrame({
            "lifespan_months": [14, 12, 11, 0],
            "total_sales": [6000.0, 5000.0, 99999.0, 150.0],
        })

        result = segment_customers(df)

        expected = [
            classify_customer(row["lifespan_months"], row["total_sales"])
            for row in df.iter_rows(named=True)
        ]
        assert result["customer_segment"].to_list() == expected
        assert expected == ["VIP", "Regular", "New", "New"]

    def test_thresholds_from_settings(self):
        """Custom thresholds change the boundaries"""
        settings = ReportSettings(min_lifespan_months=6, vip_sales_threshold=1000)

        assert classify_customer(6, 1500.0, settings) == "VIP"
        assert classify_customer(6, 900.0, settings) == "Regular"


class TestProductSegmentation:
    """Tests for High-Performers / Mid-Range / Low-Performers"""

    @pytest.mark.parametrize(
        "total_sales,expected",
        [
            (55000.0, "High-Performers"),
            (50000.0, "Low-Performers"),
            (25000.0, "Low-Performers"),
            (10000.01, "Low-Performers"),
            (10000.0, "Mid-Range"),
            (8000.0, "Mid-Range"),
            (0.0, "Mid-Range"),
        ],
    )
    def test_classify_product(self, total_sales, expected):
        """Mid-Range is the bottom band and Low-Performers the middle one"""
        assert classify_product(total_sales) == expected

    def test_segment_products_frame(self):
        """Every product gets exactly one label"""
        df = pl.DataFrame({"total_sales": [55000.0, 8000.0, 25000.0]})

        result = segment_products(df)

        assert result["product_segment"].to_list() == [
            ProductSegment.HIGH_PERFORMERS.value,
            ProductSegment.MID_RANGE.value,
            ProductSegment.LOW_PERFORMERS.value,
        ]

    def test_overlapping_bands_rejected(self):
        """Mid-range ceiling above the high threshold is a configuration error"""
        with pytest.raises(ValueError):
            ReportSettings(high_performer_threshold=5000, mid_range_ceiling=10000)


class TestSegmentRules:
    """Tests for rule evaluation"""

    def test_first_matching_rule_wins(self):
        """Overlapping conditions resolve by order"""
        rules = [
            SegmentRule("big", lambda v: v["x"] > 10),
            SegmentRule("bigger", lambda v: v["x"] > 100),
            SegmentRule("small"),
        ]

        assert classify(rules, x=500) == "big"
        assert classify(rules, x=1) == "small"

    def test_fallback_must_be_last(self):
        """A rule list without a trailing fallback is rejected"""
        rules = [SegmentRule("fallback"), SegmentRule("big", lambda v: v["x"] > 10)]

        with pytest.raises(ValueError):
            classify(rules, x=1)
        with pytest.raises(ValueError):
            segment_expression(rules, "segment")

    def test_fallback_only(self):
        """A single fallback rule labels everything"""
        df = pl.DataFrame({"x": [1, 2]})

        result = df.with_columns(segment_expression([SegmentRule("all")], "segment"))

        assert result["segment"].to_list() == ["all", "all"]

"""
Segmentation Stage

Ordered threshold rules mapping aggregates to exactly one segment label.
The first rule whose condition holds wins; the last rule has no condition
and catches everything else.

A rule condition receives a lookup of named values and combines them with
comparison and ``&`` operators, so the same rule evaluates on Polars
columns (``pl.col``) and on plain Python numbers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

import polars as pl

from sales_reports.config import ReportSettings


class CustomerSegment(str, Enum):
    """Customer segment labels"""
    VIP = "VIP"
    REGULAR = "Regular"
    NEW = "New"


class ProductSegment(str, Enum):
    """
    Product segment labels.

    The names follow the established report output: ``Mid-Range`` is the
    bottom revenue band and ``Low-Performers`` the middle one.
    """
    HIGH_PERFORMERS = "High-Performers"
    MID_RANGE = "Mid-Range"
    LOW_PERFORMERS = "Low-Performers"


Condition = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class SegmentRule:
    """A label and the condition selecting it (None for the fallback rule)"""
    label: str
    condition: Optional[Condition] = None


class _Columns:
    """Lookup resolving names to Polars column expressions"""

    def __getitem__(self, name: str) -> pl.Expr:
        return pl.col(name)


def customer_segment_rules(settings: Optional[ReportSettings] = None) -> List[SegmentRule]:
    """VIP, Regular, New"""
    settings = settings or ReportSettings()
    min_lifespan = settings.min_lifespan_months
    threshold = settings.vip_sales_threshold

    return [
        SegmentRule(
            CustomerSegment.VIP.value,
            lambda v: (v["lifespan_months"] >= min_lifespan) & (v["total_sales"] > threshold),
        ),
        SegmentRule(
            CustomerSegment.REGULAR.value,
            lambda v: (v["lifespan_months"] >= min_lifespan) & (v["total_sales"] <= threshold),
        ),
        SegmentRule(CustomerSegment.NEW.value),
    ]


def product_segment_rules(settings: Optional[ReportSettings] = None) -> List[SegmentRule]:
    """High-Performers, Mid-Range, Low-Performers"""
    settings = settings or ReportSettings()
    high = settings.high_performer_threshold
    ceiling = settings.mid_range_ceiling

    return [
        SegmentRule(ProductSegment.HIGH_PERFORMERS.value, lambda v: v["total_sales"] > high),
        SegmentRule(ProductSegment.MID_RANGE.value, lambda v: v["total_sales"] <= ceiling),
        SegmentRule(ProductSegment.LOW_PERFORMERS.value),
    ]


def _split(rules: List[SegmentRule]):
    *conditional, fallback = rules
    if fallback.condition is not None or any(r.condition is None for r in conditional):
        raise ValueError("Segment rules need exactly one fallback rule, in last position")
    return conditional, fallback


def segment_expression(rules: List[SegmentRule], alias: str) -> pl.Expr:
    """Compile rules into a when/then chain"""
    conditional, fallback = _split(rules)
    columns = _Columns()

    if not conditional:
        return pl.lit(fallback.label).alias(alias)

    first, *rest = conditional
    expr = pl.when(first.condition(columns)).then(pl.lit(first.label))
    for rule in rest:
        expr = expr.when(rule.condition(columns)).then(pl.lit(rule.label))
    return expr.otherwise(pl.lit(fallback.label)).alias(alias)


def classify(rules: List[SegmentRule], **values: Any) -> str:
    """Evaluate rules against scalar values"""
    conditional, fallback = _split(rules)
    for rule in conditional:
        if rule.condition(values):
            return rule.label
    return fallback.label


def classify_customer(
    lifespan_months: int,
    total_sales: float,
    settings: Optional[ReportSettings] = None,
) -> str:
    return classify(
        customer_segment_rules(settings),
        lifespan_months=lifespan_months,
        total_sales=total_sales,
    )


def classify_product(total_sales: float, settings: Optional[ReportSettings] = None) -> str:
    return classify(product_segment_rules(settings), total_sales=total_sales)


def segment_customers(aggregated: pl.DataFrame, settings: Optional[ReportSettings] = None) -> pl.DataFrame:
    """Add customer_segment"""
    return aggregated.with_columns(
        segment_expression(customer_segment_rules(settings), "customer_segment")
    )


def segment_products(aggregated: pl.DataFrame, settings: Optional[ReportSettings] = None) -> pl.DataFrame:
    """Add product_segment"""
    return aggregated.with_columns(
        segment_expression(product_segment_rules(settings), "product_segment")
    )

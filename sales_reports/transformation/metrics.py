"""
Derived-Metric Stage

Recency, per-order and per-month averages, and customer age groups computed
from the aggregates against an explicit evaluation date.
"""

from datetime import date
from typing import List, Tuple

import polars as pl

from .dates import months_between, years_between

# (exclusive upper bound, label), checked in order; ages past the last bound
# fall into OLDEST_AGE_GROUP
AGE_GROUPS: List[Tuple[int, str]] = [
    (20, "Under 20"),
    (30, "20-29"),
    (40, "30-39"),
    (50, "40-49"),
]
OLDEST_AGE_GROUP = "50 and above"


def safe_ratio(numerator: str, denominator: str, fallback: pl.Expr) -> pl.Expr:
    """``numerator / denominator`` when the denominator is positive, else ``fallback``"""
    return (
        pl.when(pl.col(denominator) > 0)
        .then(pl.col(numerator) / pl.col(denominator))
        .otherwise(fallback)
        .cast(pl.Float64)
    )


def average_per_order(sales_column: str = "total_sales", orders_column: str = "total_orders") -> pl.Expr:
    return safe_ratio(sales_column, orders_column, pl.lit(0.0))


def average_per_month(sales_column: str = "total_sales", lifespan_column: str = "lifespan_months") -> pl.Expr:
    # Zero lifespan surfaces the raw total instead of dividing by zero
    return safe_ratio(sales_column, lifespan_column, pl.col(sales_column))


def age_group(age: pl.Expr, unknown_label: str = "Unknown") -> pl.Expr:
    """Bucket an age expression into AGE_GROUPS"""
    expr = pl.when(age.is_null()).then(pl.lit(unknown_label))
    for upper, label in AGE_GROUPS:
        expr = expr.when(age < upper).then(pl.lit(label))
    return expr.otherwise(pl.lit(OLDEST_AGE_GROUP))


def derive_customer_metrics(
    aggregated: pl.DataFrame,
    evaluation_date: date,
    unknown_label: str = "Unknown",
) -> pl.DataFrame:
    """
    Add age, age_group, recency_months, average_order_value and
    average_monthly_spend to aggregated customers.
    """
    return (
        aggregated.with_columns(
            years_between(pl.col("birthdate"), evaluation_date).alias("age"),
            months_between(pl.col("last_order_date"), evaluation_date).alias("recency_months"),
            average_per_order().alias("average_order_value"),
            average_per_month().alias("average_monthly_spend"),
        )
        .with_columns(age_group(pl.col("age"), unknown_label).alias("age_group"))
    )


def derive_product_metrics(aggregated: pl.DataFrame, evaluation_date: date) -> pl.DataFrame:
    """
    Add recency_months, average_order_revenue and average_monthly_revenue to
    aggregated products.
    """
    return aggregated.with_columns(
        months_between(pl.col("last_sale_date"), evaluation_date).alias("recency_months"),
        average_per_order().alias("average_order_revenue"),
        average_per_month().alias("average_monthly_revenue"),
    )

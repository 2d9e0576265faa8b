"""
Aggregation Stage

Groups joined order lines to one row per entity key. The dimension
attributes are part of the grouping key, so they must be single-valued per
entity key (checked upstream by the dimension validators).
"""

import polars as pl
import structlog

from sales_reports.quality.validators import require_columns
from .dates import months_between
from .joins import CUSTOMER_ATTRIBUTES, FACT_COLUMNS, PRODUCT_ATTRIBUTES

logger = structlog.get_logger(__name__)


def _distinct_count(column: str) -> pl.Expr:
    # COUNT(DISTINCT ...) semantics: nulls are not a value
    return pl.col(column).drop_nulls().n_unique().cast(pl.Int64)


def average_selling_price() -> pl.Expr:
    """
    Mean of per-line ``sales_amount / quantity`` rounded to 1 decimal.

    Lines with zero or null quantity are left out of the mean; an entity
    without any priced line gets 0.0.
    """
    unit_price = (
        pl.when(pl.col("quantity") != 0)
        .then(pl.col("sales_amount") / pl.col("quantity"))
        .otherwise(None)
    )
    return unit_price.mean().round(1).fill_null(0.0)


def aggregate_customers(lines: pl.DataFrame) -> pl.DataFrame:
    """
    Aggregate customer order lines.

    Args:
        lines: Output of join_sales_to_customers

    Returns:
        One row per customer_key with totals, first/last order date and
        lifespan_months
    """
    require_columns(lines, [*FACT_COLUMNS, *CUSTOMER_ATTRIBUTES], "customer order lines")

    aggregated = (
        lines.group_by(["customer_key", *CUSTOMER_ATTRIBUTES])
        .agg([
            _distinct_count("order_number").alias("total_orders"),
            pl.col("sales_amount").sum().alias("total_sales"),
            pl.col("quantity").sum().cast(pl.Int64).alias("total_qty"),
            _distinct_count("product_key").alias("total_products"),
            pl.col("order_date").min().alias("first_order_date"),
            pl.col("order_date").max().alias("last_order_date"),
        ])
        .with_columns(
            months_between(pl.col("first_order_date"), pl.col("last_order_date")).alias("lifespan_months")
        )
    )

    logger.debug("Customer aggregation complete", lines=lines.height, customers=aggregated.height)
    return aggregated


def aggregate_products(lines: pl.DataFrame) -> pl.DataFrame:
    """
    Aggregate product order lines.

    Args:
        lines: Output of join_sales_to_products

    Returns:
        One row per product_key with totals, first/last sale date,
        lifespan_months and avg_selling_price
    """
    require_columns(lines, [*FACT_COLUMNS, *PRODUCT_ATTRIBUTES], "product order lines")

    aggregated = (
        lines.group_by(["product_key", *PRODUCT_ATTRIBUTES])
        .agg([
            _distinct_count("order_number").alias("total_orders"),
            pl.col("sales_amount").sum().alias("total_sales"),
            pl.col("quantity").sum().cast(pl.Int64).alias("total_qty"),
            _distinct_count("customer_key").alias("total_customers"),
            pl.col("order_date").min().alias("first_sale_date"),
            pl.col("order_date").max().alias("last_sale_date"),
            average_selling_price().alias("avg_selling_price"),
        ])
        .with_columns(
            months_between(pl.col("first_sale_date"), pl.col("last_sale_date")).alias("lifespan_months")
        )
    )

    logger.debug("Product aggregation complete", lines=lines.height, products=aggregated.height)
    return aggregated

"""
Join-and-Filter Stage

Flattens fact_sales into one row per order line with the attributes of a
single dimension attached. Lines without an order date are dropped; lines
whose key has no dimension row are kept with null attributes.
"""

from typing import List

import polars as pl
import structlog

from sales_reports.quality.validators import require_columns

logger = structlog.get_logger(__name__)

FACT_COLUMNS: List[str] = [
    "order_number",
    "product_key",
    "customer_key",
    "order_date",
    "sales_amount",
    "quantity",
]

CUSTOMER_ATTRIBUTES: List[str] = ["customer_number", "first_name", "last_name", "birthdate"]
PRODUCT_ATTRIBUTES: List[str] = ["product_name", "category", "subcategory", "cost"]


def _order_date_expr(df: pl.DataFrame) -> pl.Expr:
    dtype = df.schema["order_date"]
    if dtype == pl.Utf8:
        return pl.col("order_date").str.to_date()
    if dtype == pl.Datetime:
        return pl.col("order_date").dt.date()
    return pl.col("order_date").cast(pl.Date)


def qualifying_lines(fact_sales: pl.DataFrame) -> pl.DataFrame:
    """Fact lines with a non-null order date, typed for aggregation"""
    require_columns(fact_sales, FACT_COLUMNS, "fact_sales")

    lines = fact_sales.select(FACT_COLUMNS).with_columns(
        _order_date_expr(fact_sales).alias("order_date"),
        pl.col("sales_amount").cast(pl.Float64),
        pl.col("quantity").cast(pl.Int64),
    )
    qualifying = lines.filter(pl.col("order_date").is_not_null())

    dropped = lines.height - qualifying.height
    if dropped:
        logger.info("Dropped fact lines without order date", dropped=dropped)

    return qualifying


def _join_dimension(
    fact_sales: pl.DataFrame,
    dimension: pl.DataFrame,
    key: str,
    attributes: List[str],
    table: str,
) -> pl.DataFrame:
    require_columns(dimension, [key, *attributes], table)

    lines = qualifying_lines(fact_sales)
    lookup = dimension.select(
        pl.col(key).cast(lines.schema[key]),
        *attributes,
    )

    joined = lines.join(lookup, on=key, how="left")

    unmatched = joined.filter(
        pl.col(key).is_null() | ~pl.col(key).is_in(lookup[key].drop_nulls().to_list())
    ).height
    if unmatched:
        logger.info("Fact lines without a dimension match", table=table, lines=unmatched)

    return joined


def join_sales_to_customers(fact_sales: pl.DataFrame, dim_customers: pl.DataFrame) -> pl.DataFrame:
    """
    Order lines with customer attributes.

    Args:
        fact_sales: Fact table
        dim_customers: Customer dimension

    Returns:
        Frame with FACT_COLUMNS plus CUSTOMER_ATTRIBUTES
    """
    return _join_dimension(fact_sales, dim_customers, "customer_key", CUSTOMER_ATTRIBUTES, "dim_customers")


def join_sales_to_products(fact_sales: pl.DataFrame, dim_products: pl.DataFrame) -> pl.DataFrame:
    """
    Order lines with product attributes.

    Args:
        fact_sales: Fact table
        dim_products: Product dimension

    Returns:
        Frame with FACT_COLUMNS plus PRODUCT_ATTRIBUTES
    """
    return _join_dimension(fact_sales, dim_products, "product_key", PRODUCT_ATTRIBUTES, "dim_products")

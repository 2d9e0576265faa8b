"""
Fact/Dimension Store Reader

Reads the gold-layer tables through an async session into a SalesSnapshot.
"""

from typing import Mapping, Sequence

import polars as pl
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_reports.database.models import DimCustomer, DimProduct, FactSales
from sales_reports.ingestion.snapshot import (
    DIM_CUSTOMERS_SCHEMA,
    DIM_PRODUCTS_SCHEMA,
    FACT_SALES_SCHEMA,
    SalesSnapshot,
)

logger = structlog.get_logger(__name__)


def _columns(model, schema: Mapping[str, pl.DataType]) -> list:
    return [getattr(model, name) for name in schema]


def rows_to_frame(rows: Sequence, schema: Mapping[str, pl.DataType]) -> pl.DataFrame:
    """Convert SQLAlchemy result rows to a frame with a fixed schema"""
    return pl.from_dicts([dict(r._mapping) for r in rows], schema=dict(schema))


async def read_table(
    session: AsyncSession,
    model,
    schema: Mapping[str, pl.DataType],
) -> pl.DataFrame:
    """Read the schema columns of one table"""
    result = await session.execute(select(*_columns(model, schema)))
    df = rows_to_frame(result.all(), schema)
    logger.debug("Table read", table=model.__tablename__, rows=df.height)
    return df


async def load_snapshot(session: AsyncSession) -> SalesSnapshot:
    """
    Read fact_sales, dim_customers and dim_products in one session.

    Args:
        session: Database session

    Returns:
        SalesSnapshot with the report input columns
    """
    snapshot = SalesSnapshot(
        fact_sales=await read_table(session, FactSales, FACT_SALES_SCHEMA),
        dim_customers=await read_table(session, DimCustomer, DIM_CUSTOMERS_SCHEMA),
        dim_products=await read_table(session, DimProduct, DIM_PRODUCTS_SCHEMA),
    )
    logger.info("Snapshot loaded from database", **snapshot.row_counts)
    return snapshot

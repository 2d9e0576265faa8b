"""
Test Suite Configuration
"""
from datetime import date
from pathlib import Path
from typing import AsyncGenerator

import polars as pl
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sales_reports.config import ReportSettings
from sales_reports.database.models import Base
from sales_reports.ingestion.snapshot import SalesSnapshot

EVALUATION_DATE = date(2025, 6, 30)


@pytest.fixture
def evaluation_date() -> date:
    """Fixed evaluation date for recency and age"""
    return EVALUATION_DATE


@pytest.fixture
def report_settings() -> ReportSettings:
    """Default thresholds, independent of the environment"""
    return ReportSettings(
        evaluation_date=None,
        min_lifespan_months=12,
        vip_sales_threshold=5000,
        high_performer_threshold=50000,
        mid_range_ceiling=10000,
        unknown_label="Unknown",
        validate_dimensions=True,
    )


@pytest.fixture
def sample_fact_sales_df() -> pl.DataFrame:
    """
    Order lines covering the report edge cases:

    - customer 1: two orders 14 months apart totalling 6000
    - customer 2: a single order of 150
    - customer 3: no last name and no birthdate
    - SO5 has no order date and must not count anywhere
    - SO6 references customer 99 and product 99, missing from the dimensions
    """
    return pl.DataFrame(
        {
            "order_number": ["SO1", "SO2", "SO2", "SO3", "SO4", "SO5", "SO6"],
            "product_key": [10, 20, 30, 20, 30, 10, 99],
            "customer_key": [1, 1, 1, 2, 3, 1, 99],
            "order_date": [
                date(2023, 1, 15),
                date(2024, 3, 10),
                date(2024, 3, 10),
                date(2025, 2, 1),
                date(2025, 5, 20),
                None,
                date(2024, 12, 5),
            ],
            "sales_amount": [4000.0, 1500.0, 500.0, 150.0, 80.0, 9999.0, 300.0],
            "quantity": [1, 2, 1, 1, 2, 1, 3],
        },
        schema={
            "order_number": pl.Utf8,
            "product_key": pl.Int64,
            "customer_key": pl.Int64,
            "order_date": pl.Date,
            "sales_amount": pl.Float64,
            "quantity": pl.Int64,
        },
    )


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Customer dimension; customer 4 never ordered"""
    return pl.DataFrame(
        {
            "customer_key": [1, 2, 3, 4],
            "customer_number": ["AW00000001", "AW00000002", "AW00000003", "AW00000004"],
            "first_name": ["John", "Jane", "Bob", "Alice"],
            "last_name": ["Doe", "Smith", None, "Brown"],
            "birthdate": [date(1990, 5, 10), date(2007, 1, 1), None, date(1960, 8, 1)],
        },
        schema={
            "customer_key": pl.Int64,
            "customer_number": pl.Utf8,
            "first_name": pl.Utf8,
            "last_name": pl.Utf8,
            "birthdate": pl.Date,
        },
    )


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Product dimension"""
    return pl.DataFrame(
        {
            "product_key": [10, 20, 30],
            "product_name": ["Road-150 Red", "Sport-100 Helmet", "Long-Sleeve Jersey"],
            "category": ["Bikes", "Accessories", "Clothing"],
            "subcategory": ["Road Bikes", "Helmets", "Jerseys"],
            "cost": [2171.29, 13.09, 38.49],
        },
        schema={
            "product_key": pl.Int64,
            "product_name": pl.Utf8,
            "category": pl.Utf8,
            "subcategory": pl.Utf8,
            "cost": pl.Float64,
        },
    )


@pytest.fixture
def sample_snapshot(sample_fact_sales_df, sample_customers_df, sample_products_df) -> SalesSnapshot:
    """Snapshot of the three sample tables"""
    return SalesSnapshot.from_frames(sample_fact_sales_df, sample_customers_df, sample_products_df)


@pytest.fixture
def snapshot_dir(tmp_path: Path, sample_snapshot: SalesSnapshot) -> Path:
    """Sample tables written as CSV files"""
    sample_snapshot.fact_sales.write_csv(tmp_path / "fact_sales.csv")
    sample_snapshot.dim_customers.write_csv(tmp_path / "dim_customers.csv")
    sample_snapshot.dim_products.write_csv(tmp_path / "dim_products.csv")
    return tmp_path


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

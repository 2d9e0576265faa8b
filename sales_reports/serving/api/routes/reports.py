"""
Reports API Endpoints

REST API exposing the customer and product reports as queryable relations.
Every request recomputes the report from the current store contents.
"""

import asyncio
from datetime import date
from typing import List, Optional

import polars as pl
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from sales_reports.database.connection import get_db_dependency
from sales_reports.database.store import load_snapshot
from sales_reports.ingestion.snapshot import SalesSnapshot
from sales_reports.quality.validators import DimensionIntegrityError, MissingColumnsError
from sales_reports.transformation.reports import ReportBuilder, ReportResult, ReportType
from sales_reports.transformation.segmentation import CustomerSegment, ProductSegment

router = APIRouter()
logger = structlog.get_logger(__name__)


class CustomerReportRow(BaseModel):
    """One customer report row"""
    customer_key: Optional[int]
    customer_number: Optional[str]
    customer_name: Optional[str]
    age: Optional[int] = Field(alias="Age")
    age_group: str
    customer_segment: str
    last_order_date: date
    recency_months: int
    total_orders: int
    total_sales: float
    total_qty: int
    total_products: int
    lifespan_months: int
    average_order_value: float
    average_monthly_spend: float


class ProductReportRow(BaseModel):
    """One product report row"""
    product_key: Optional[int]
    product_name: Optional[str]
    category: Optional[str]
    subcategory: Optional[str]
    cost: Optional[float]
    last_sale_date: date
    recency_months: int
    product_segment: str
    lifespan_months: int
    total_orders: int
    total_sales: float
    total_qty: int
    total_customers: int
    avg_selling_price: float
    average_order_revenue: float
    average_monthly_revenue: float


class CustomerReportPage(BaseModel):
    """Paginated customer report"""
    items: List[CustomerReportRow]
    total: int
    page: int
    page_size: int
    evaluation_date: date


class ProductReportPage(BaseModel):
    """Paginated product report"""
    items: List[ProductReportRow]
    total: int
    page: int
    page_size: int
    evaluation_date: date


class SegmentSummary(BaseModel):
    """Entities and sales per segment"""
    segment: str
    count: int
    total_sales: float


async def get_snapshot(db: AsyncSession = Depends(get_db_dependency)) -> SalesSnapshot:
    """Read the fact/dimension snapshot for one request"""
    return await load_snapshot(db)


def get_report_builder(
    evaluation_date: Optional[date] = Query(None, description="Date recency and age are measured against"),
) -> ReportBuilder:
    return ReportBuilder(evaluation_date=evaluation_date)


async def _compute(
    report_type: ReportType,
    snapshot: SalesSnapshot,
    builder: ReportBuilder,
) -> ReportResult:
    try:
        return await asyncio.to_thread(builder.build, report_type, snapshot)
    except (DimensionIntegrityError, MissingColumnsError) as e:
        raise HTTPException(status_code=422, detail=str(e))


def _page(
    df: pl.DataFrame,
    key_column: str,
    order_by: str,
    descending: bool,
    page: int,
    page_size: int,
) -> pl.DataFrame:
    if order_by not in df.columns:
        raise HTTPException(status_code=400, detail=f"Cannot order by '{order_by}'")

    by = [order_by] if order_by == key_column else [order_by, key_column]
    ordered = df.sort(by, descending=[descending] + [False] * (len(by) - 1), nulls_last=True)
    return ordered.slice((page - 1) * page_size, page_size)


def _segment_summary(result: ReportResult) -> List[SegmentSummary]:
    column = result.report_type.segment_column
    summary = (
        result.data.group_by(column)
        .agg(pl.len().alias("count"), pl.col("total_sales").sum().alias("total_sales"))
        .sort(column)
    )
    return [
        SegmentSummary(segment=row[column], count=row["count"], total_sales=row["total_sales"])
        for row in summary.iter_rows(named=True)
    ]


@router.get("/customers", response_model=CustomerReportPage)
async def list_customer_reports(
    segment: Optional[CustomerSegment] = None,
    age_group: Optional[str] = None,
    order_by: str = Query("customer_key"),
    descending: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> CustomerReportPage:
    """List customer report rows with filtering and ordering."""
    logger.info(
        "list_customer_reports called",
        segment=segment.value if segment else None,
        age_group=age_group,
        order_by=order_by,
        page=page,
    )

    result = await _compute(ReportType.CUSTOMERS, snapshot, builder)
    df = result.data
    if segment:
        df = df.filter(pl.col("customer_segment") == segment.value)
    if age_group:
        df = df.filter(pl.col("age_group") == age_group)

    rows = _page(df, "customer_key", order_by, descending, page, page_size)

    return CustomerReportPage(
        items=[CustomerReportRow(**row) for row in rows.iter_rows(named=True)],
        total=df.height,
        page=page,
        page_size=page_size,
        evaluation_date=result.evaluation_date,
    )


@router.get("/customers/segments", response_model=List[SegmentSummary])
async def get_customer_segments(
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> List[SegmentSummary]:
    """Customer segment distribution."""
    result = await _compute(ReportType.CUSTOMERS, snapshot, builder)
    return _segment_summary(result)


@router.get("/customers/{customer_key}", response_model=CustomerReportRow)
async def get_customer_report(
    customer_key: int,
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> CustomerReportRow:
    """Report row for one customer."""
    result = await _compute(ReportType.CUSTOMERS, snapshot, builder)
    rows = result.data.filter(pl.col("customer_key") == customer_key)

    if rows.is_empty():
        raise HTTPException(status_code=404, detail="Customer not found in report")

    return CustomerReportRow(**rows.row(0, named=True))


@router.get("/products", response_model=ProductReportPage)
async def list_product_reports(
    segment: Optional[ProductSegment] = None,
    category: Optional[str] = None,
    order_by: str = Query("product_key"),
    descending: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> ProductReportPage:
    """List product report rows with filtering and ordering."""
    logger.info(
        "list_product_reports called",
        segment=segment.value if segment else None,
        category=category,
        order_by=order_by,
        page=page,
    )

    result = await _compute(ReportType.PRODUCTS, snapshot, builder)
    df = result.data
    if segment:
        df = df.filter(pl.col("product_segment") == segment.value)
    if category:
        df = df.filter(pl.col("category") == category)

    rows = _page(df, "product_key", order_by, descending, page, page_size)

    return ProductReportPage(
        items=[ProductReportRow(**row) for row in rows.iter_rows(named=True)],
        total=df.height,
        page=page,
        page_size=page_size,
        evaluation_date=result.evaluation_date,
    )


@router.get("/products/segments", response_model=List[SegmentSummary])
async def get_product_segments(
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> List[SegmentSummary]:
    """Product segment distribution."""
    result = await _compute(ReportType.PRODUCTS, snapshot, builder)
    return _segment_summary(result)


@router.get("/products/{product_key}", response_model=ProductReportRow)
async def get_product_report(
    product_key: int,
    snapshot: SalesSnapshot = Depends(get_snapshot),
    builder: ReportBuilder = Depends(get_report_builder),
) -> ProductReportRow:
    """Report row for one product."""
    result = await _compute(ReportType.PRODUCTS, snapshot, builder)
    rows = result.data.filter(pl.col("product_key") == product_key)

    if rows.is_empty():
        raise HTTPException(status_code=404, detail="Product not found in report")

    return ProductReportRow(**rows.row(0, named=True))

"""
Report Builder

Orchestrates join → aggregate → derive → segment for the customer and
product reports. Both reports are full recomputes over one snapshot and are
independent of each other.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

import polars as pl
import structlog

from sales_reports.config import ReportSettings, get_settings
from sales_reports.ingestion.snapshot import SalesSnapshot
from sales_reports.quality.validators import validate_report_inputs
from .aggregations import aggregate_customers, aggregate_products
from .joins import join_sales_to_customers, join_sales_to_products
from .metrics import derive_customer_metrics, derive_product_metrics
from .segmentation import segment_customers, segment_products

logger = structlog.get_logger(__name__)


CUSTOMER_REPORT_COLUMNS: List[str] = [
    "customer_key",
    "customer_number",
    "customer_name",
    "Age",
    "age_group",
    "customer_segment",
    "last_order_date",
    "recency_months",
    "total_orders",
    "total_sales",
    "total_qty",
    "total_products",
    "lifespan_months",
    "average_order_value",
    "average_monthly_spend",
]

PRODUCT_REPORT_COLUMNS: List[str] = [
    "product_key",
    "product_name",
    "category",
    "subcategory",
    "cost",
    "last_sale_date",
    "recency_months",
    "product_segment",
    "lifespan_months",
    "total_orders",
    "total_sales",
    "total_qty",
    "total_customers",
    "avg_selling_price",
    "average_order_revenue",
    "average_monthly_revenue",
]


class ReportType(str, Enum):
    """Types of reports"""
    CUSTOMERS = "customers"
    PRODUCTS = "products"

    @property
    def key_column(self) -> str:
        return "customer_key" if self is ReportType.CUSTOMERS else "product_key"

    @property
    def segment_column(self) -> str:
        return "customer_segment" if self is ReportType.CUSTOMERS else "product_segment"

    @property
    def dimension_table(self) -> str:
        return "dim_customers" if self is ReportType.CUSTOMERS else "dim_products"


def _customer_name() -> pl.Expr:
    first, last = pl.col("first_name"), pl.col("last_name")
    return (
        pl.when(first.is_null() & last.is_null())
        .then(pl.lit(None, dtype=pl.Utf8))
        .otherwise(pl.concat_str([first, last], separator=" ", ignore_nulls=True))
    )


def build_customer_report(
    fact_sales: pl.DataFrame,
    dim_customers: pl.DataFrame,
    evaluation_date: date,
    settings: Optional[ReportSettings] = None,
) -> pl.DataFrame:
    """
    Compute the customer report.

    Args:
        fact_sales: Fact table
        dim_customers: Customer dimension
        evaluation_date: Date recency and age are measured against
        settings: Segment thresholds and labels

    Returns:
        One row per customer_key with CUSTOMER_REPORT_COLUMNS, sorted by key
    """
    settings = settings or get_settings().reports

    lines = join_sales_to_customers(fact_sales, dim_customers)
    aggregated = aggregate_customers(lines)
    derived = derive_customer_metrics(aggregated, evaluation_date, settings.unknown_label)
    segmented = segment_customers(derived, settings)

    return (
        segmented.with_columns(
            _customer_name().alias("customer_name"),
            pl.col("age").alias("Age"),
        )
        .select(CUSTOMER_REPORT_COLUMNS)
        .sort("customer_key", nulls_last=True)
    )


def build_product_report(
    fact_sales: pl.DataFrame,
    dim_products: pl.DataFrame,
    evaluation_date: date,
    settings: Optional[ReportSettings] = None,
) -> pl.DataFrame:
    """
    Compute the product report.

    Args:
        fact_sales: Fact table
        dim_products: Product dimension
        evaluation_date: Date recency is measured against
        settings: Segment thresholds

    Returns:
        One row per product_key with PRODUCT_REPORT_COLUMNS, sorted by key
    """
    settings = settings or get_settings().reports

    lines = join_sales_to_products(fact_sales, dim_products)
    aggregated = aggregate_products(lines)
    derived = derive_product_metrics(aggregated, evaluation_date)
    segmented = segment_products(derived, settings)

    return segmented.select(PRODUCT_REPORT_COLUMNS).sort("product_key", nulls_last=True)


@dataclass
class ReportResult:
    """Result of one report computation"""
    report_type: ReportType
    data: pl.DataFrame
    evaluation_date: date
    input_rows: int
    qualifying_rows: int
    output_rows: int
    started_at: datetime
    completed_at: datetime
    duration_seconds: float

    @property
    def rows_dropped(self) -> int:
        """Fact lines excluded for a missing order date"""
        return self.input_rows - self.qualifying_rows

    def segment_counts(self) -> Dict[str, int]:
        """Number of entities per segment label"""
        column = self.report_type.segment_column
        counts = self.data.group_by(column).agg(pl.len().alias("count")).sort(column)
        return {row[column]: row["count"] for row in counts.iter_rows(named=True)}


class ReportBuilder:
    """
    Report pipeline orchestrator.

    Example:
        builder = ReportBuilder(evaluation_date=date(2025, 1, 1))
        result = builder.build_customer_report(snapshot)
        results = await builder.build_all(snapshot)
    """

    def __init__(
        self,
        evaluation_date: Optional[date] = None,
        settings: Optional[ReportSettings] = None,
        validate_dimensions: Optional[bool] = None,
    ):
        self.settings = settings or get_settings().reports
        self.evaluation_date = evaluation_date or self.settings.evaluation_date or date.today()
        self.validate_dimensions = (
            self.settings.validate_dimensions if validate_dimensions is None else validate_dimensions
        )

    def _prepare(self, report_type: ReportType, snapshot: SalesSnapshot) -> None:
        if self.validate_dimensions:
            validate_report_inputs(snapshot, report_type.dimension_table)

    def _run(self, report_type: ReportType, snapshot: SalesSnapshot) -> ReportResult:
        # Stage loggers (joins, validators) pick these up through merge_contextvars
        with structlog.contextvars.bound_contextvars(
            report_type=report_type.value,
            evaluation_date=self.evaluation_date.isoformat(),
        ):
            return self._execute(report_type, snapshot)

    def _execute(self, report_type: ReportType, snapshot: SalesSnapshot) -> ReportResult:
        started_at = datetime.now()
        start = time.perf_counter()
        input_rows = snapshot.fact_sales.height

        logger.info(f"Starting {report_type.value} report", input_rows=input_rows)

        try:
            self._prepare(report_type, snapshot)
            if report_type is ReportType.CUSTOMERS:
                data = build_customer_report(
                    snapshot.fact_sales, snapshot.dim_customers, self.evaluation_date, self.settings
                )
            else:
                data = build_product_report(
                    snapshot.fact_sales, snapshot.dim_products, self.evaluation_date, self.settings
                )
        except Exception as e:
            logger.error(
                f"{report_type.value.capitalize()} report failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        qualifying_rows = snapshot.fact_sales.filter(pl.col("order_date").is_not_null()).height
        result = ReportResult(
            report_type=report_type,
            data=data,
            evaluation_date=self.evaluation_date,
            input_rows=input_rows,
            qualifying_rows=qualifying_rows,
            output_rows=data.height,
            started_at=started_at,
            completed_at=datetime.now(),
            duration_seconds=time.perf_counter() - start,
        )

        logger.info(
            f"{report_type.value.capitalize()} report complete",
            output_rows=result.output_rows,
            rows_dropped=result.rows_dropped,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    def build_customer_report(self, snapshot: SalesSnapshot) -> ReportResult:
        return self._run(ReportType.CUSTOMERS, snapshot)

    def build_product_report(self, snapshot: SalesSnapshot) -> ReportResult:
        return self._run(ReportType.PRODUCTS, snapshot)

    def build(self, report_type: ReportType, snapshot: SalesSnapshot) -> ReportResult:
        return self._run(ReportType(report_type), snapshot)

    async def build_all(self, snapshot: SalesSnapshot) -> Dict[ReportType, ReportResult]:
        """
        Build both reports concurrently.

        Args:
            snapshot: Fact/dimension snapshot shared by both pipelines

        Returns:
            Results keyed by report type
        """
        customers, products = await asyncio.gather(
            asyncio.to_thread(self.build_customer_report, snapshot),
            asyncio.to_thread(self.build_product_report, snapshot),
        )
        return {ReportType.CUSTOMERS: customers, ReportType.PRODUCTS: products}

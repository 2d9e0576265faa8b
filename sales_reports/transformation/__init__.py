"""
Report Transformation Module
"""
from .joins import join_sales_to_customers, join_sales_to_products
from .aggregations import aggregate_customers, aggregate_products
from .metrics import derive_customer_metrics, derive_product_metrics
from .segmentation import (
    CustomerSegment,
    ProductSegment,
    classify_customer,
    classify_product,
)
from .reports import (
    CUSTOMER_REPORT_COLUMNS,
    PRODUCT_REPORT_COLUMNS,
    ReportBuilder,
    ReportResult,
    ReportType,
    build_customer_report,
    build_product_report,
)

__all__ = [
    "join_sales_to_customers",
    "join_sales_to_products",
    "aggregate_customers",
    "aggregate_products",
    "derive_customer_metrics",
    "derive_product_metrics",
    "CustomerSegment",
    "ProductSegment",
    "classify_customer",
    "classify_product",
    "CUSTOMER_REPORT_COLUMNS",
    "PRODUCT_REPORT_COLUMNS",
    "ReportBuilder",
    "ReportResult",
    "ReportType",
    "build_customer_report",
    "build_product_report",
]

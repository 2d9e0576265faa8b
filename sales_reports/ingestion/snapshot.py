"""
Snapshot Loader

Reads one consistent snapshot of the fact/dimension layer into Polars frames.
Supports:
- CSV and Parquet files laid out as <source>/<table>.<format>
- Conforming columns to the report input schemas
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import polars as pl
import structlog

from sales_reports.config import get_settings
from sales_reports.quality.validators import require_columns

logger = structlog.get_logger(__name__)


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    PARQUET = "parquet"


FACT_SALES_SCHEMA: Dict[str, pl.DataType] = {
    "order_number": pl.Utf8,
    "product_key": pl.Int64,
    "customer_key": pl.Int64,
    "order_date": pl.Date,
    "sales_amount": pl.Float64,
    "quantity": pl.Int64,
}

DIM_CUSTOMERS_SCHEMA: Dict[str, pl.DataType] = {
    "customer_key": pl.Int64,
    "customer_number": pl.Utf8,
    "first_name": pl.Utf8,
    "last_name": pl.Utf8,
    "birthdate": pl.Date,
}

DIM_PRODUCTS_SCHEMA: Dict[str, pl.DataType] = {
    "product_key": pl.Int64,
    "product_name": pl.Utf8,
    "category": pl.Utf8,
    "subcategory": pl.Utf8,
    "cost": pl.Float64,
}

TABLE_SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    "fact_sales": FACT_SALES_SCHEMA,
    "dim_customers": DIM_CUSTOMERS_SCHEMA,
    "dim_products": DIM_PRODUCTS_SCHEMA,
}

NULL_VALUES = ["", "NULL", "null", "None", "NA", "N/A"]


def conform_frame(
    df: pl.DataFrame,
    schema: Mapping[str, pl.DataType],
    table: str,
) -> pl.DataFrame:
    """
    Select and cast the schema columns of a frame.

    Extra columns are dropped. Date columns stored as strings or datetimes
    are converted to dates.

    Raises:
        MissingColumnsError: If a schema column is absent
    """
    require_columns(df, schema.keys(), table)

    columns = []
    for name, dtype in schema.items():
        current = df.schema[name]
        expr = pl.col(name)
        if dtype == pl.Date and current == pl.Utf8:
            expr = expr.str.to_date()
        elif dtype == pl.Date and current == pl.Datetime:
            expr = expr.dt.date()
        else:
            expr = expr.cast(dtype)
        columns.append(expr.alias(name))

    return df.select(columns)


@dataclass(frozen=True)
class SalesSnapshot:
    """Immutable view of fact_sales, dim_customers and dim_products"""
    fact_sales: pl.DataFrame
    dim_customers: pl.DataFrame
    dim_products: pl.DataFrame

    @classmethod
    def from_frames(
        cls,
        fact_sales: pl.DataFrame,
        dim_customers: pl.DataFrame,
        dim_products: pl.DataFrame,
    ) -> "SalesSnapshot":
        """Build a snapshot, conforming each frame to its input schema"""
        return cls(
            fact_sales=conform_frame(fact_sales, FACT_SALES_SCHEMA, "fact_sales"),
            dim_customers=conform_frame(dim_customers, DIM_CUSTOMERS_SCHEMA, "dim_customers"),
            dim_products=conform_frame(dim_products, DIM_PRODUCTS_SCHEMA, "dim_products"),
        )

    @property
    def row_counts(self) -> Dict[str, int]:
        return {
            "fact_sales": self.fact_sales.height,
            "dim_customers": self.dim_customers.height,
            "dim_products": self.dim_products.height,
        }


class SnapshotLoader:
    """
    File-based snapshot loader.

    Example:
        loader = SnapshotLoader("data/gold", file_format=FileFormat.PARQUET)
        snapshot = loader.load()
    """

    def __init__(
        self,
        source_path: Optional[Union[str, Path]] = None,
        file_format: Optional[Union[str, FileFormat]] = None,
    ):
        settings = get_settings()
        self.source_path = Path(source_path or settings.data_source.source_path)
        self.file_format = FileFormat(file_format or settings.data_source.file_format)

    def table_path(self, table: str) -> Path:
        """Location of a table file within the source directory"""
        return self.source_path / f"{table}.{self.file_format.value}"

    def _read_csv(self, path: Path) -> pl.DataFrame:
        return pl.read_csv(
            path,
            null_values=NULL_VALUES,
            try_parse_dates=True,
            infer_schema_length=10000,
        )

    def _read_parquet(self, path: Path) -> pl.DataFrame:
        return pl.read_parquet(path)

    def read_table(self, table: str) -> pl.DataFrame:
        """Read and conform a single table"""
        path = self.table_path(table)
        if not path.exists():
            raise FileNotFoundError(f"Table file not found: {path}")

        if self.file_format == FileFormat.CSV:
            df = self._read_csv(path)
        else:
            df = self._read_parquet(path)

        logger.debug("Table read", table=table, path=str(path), rows=df.height)
        return conform_frame(df, TABLE_SCHEMAS[table], table)

    def load(self) -> SalesSnapshot:
        """Read all three tables into a snapshot"""
        snapshot = SalesSnapshot(
            fact_sales=self.read_table("fact_sales"),
            dim_customers=self.read_table("dim_customers"),
            dim_products=self.read_table("dim_products"),
        )
        logger.info(
            "Snapshot loaded",
            source=str(self.source_path),
            format=self.file_format.value,
            **snapshot.row_counts,
        )
        return snapshot


def load_snapshot_from_directory(
    source_path: Union[str, Path],
    file_format: Union[str, FileFormat] = FileFormat.CSV,
) -> SalesSnapshot:
    """Convenience wrapper around SnapshotLoader"""
    return SnapshotLoader(source_path, file_format).load()

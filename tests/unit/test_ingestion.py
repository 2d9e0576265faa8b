"""
Unit Tests - Snapshot Ingestion
"""
from datetime import date, datetime

import polars as pl
import pytest
from polars.testing import assert_frame_equal

from sales_reports.ingestion.snapshot import (
    DIM_CUSTOMERS_SCHEMA,
    FACT_SALES_SCHEMA,
    FileFormat,
    SalesSnapshot,
    SnapshotLoader,
    conform_frame,
    load_snapshot_from_directory,
)
from sales_reports.quality.validators import MissingColumnsError


class TestConformFrame:
    """Tests for conform_frame"""

    def test_extra_columns_dropped(self, sample_customers_df):
        """Only schema columns survive, in schema order"""
        df = sample_customers_df.with_columns(pl.lit("Male").alias("gender"))

        result = conform_frame(df, DIM_CUSTOMERS_SCHEMA, "dim_customers")

        assert result.columns == list(DIM_CUSTOMERS_SCHEMA)

    def test_dates_and_numbers_cast(self):
        """String dates, datetimes and integer amounts are converted"""
        df = pl.DataFrame({
            "order_number": ["SO1", "SO2"],
            "product_key": [1, 2],
            "customer_key": [1, 2],
            "order_date": [datetime(2024, 1, 5, 13, 0), None],
            "sales_amount": [10, 20],
            "quantity": [1, 1],
        })

        result = conform_frame(df, FACT_SALES_SCHEMA, "fact_sales")

        assert result.schema["order_date"] == pl.Date
        assert result.schema["sales_amount"] == pl.Float64
        assert result["order_date"].to_list() == [date(2024, 1, 5), None]

    def test_missing_column_raises(self, sample_customers_df):
        """Absent schema columns are reported by name"""
        with pytest.raises(MissingColumnsError) as exc_info:
            conform_frame(sample_customers_df.drop("birthdate"), DIM_CUSTOMERS_SCHEMA, "dim_customers")

        assert exc_info.value.missing == ["birthdate"]


class TestSnapshotLoader:
    """Tests for SnapshotLoader"""

    def test_load_csv(self, snapshot_dir, sample_snapshot):
        """CSV files load back into the same snapshot"""
        snapshot = SnapshotLoader(snapshot_dir, FileFormat.CSV).load()

        assert snapshot.row_counts == {"fact_sales": 7, "dim_customers": 4, "dim_products": 3}
        assert snapshot.fact_sales["order_date"].null_count() == 1
        assert_frame_equal(snapshot.dim_customers, sample_snapshot.dim_customers)

    def test_load_parquet(self, tmp_path, sample_snapshot):
        """Parquet files are read with their stored types"""
        sample_snapshot.fact_sales.write_parquet(tmp_path / "fact_sales.parquet")
        sample_snapshot.dim_customers.write_parquet(tmp_path / "dim_customers.parquet")
        sample_snapshot.dim_products.write_parquet(tmp_path / "dim_products.parquet")

        snapshot = load_snapshot_from_directory(tmp_path, "parquet")

        assert_frame_equal(snapshot.fact_sales, sample_snapshot.fact_sales)
        assert_frame_equal(snapshot.dim_products, sample_snapshot.dim_products)

    def test_missing_file_raises(self, tmp_path):
        """A missing table file aborts the load"""
        loader = SnapshotLoader(tmp_path, "csv")

        with pytest.raises(FileNotFoundError):
            loader.load()

    def test_table_path(self, tmp_path):
        """Tables are laid out as <source>/<table>.<format>"""
        loader = SnapshotLoader(tmp_path, FileFormat.PARQUET)

        assert loader.table_path("dim_products") == tmp_path / "dim_products.parquet"

    def test_from_frames_conforms(self, sample_fact_sales_df, sample_customers_df, sample_products_df):
        """Frames passed to from_frames are conformed"""
        fact = sample_fact_sales_df.with_columns(pl.col("order_date").cast(pl.Utf8))

        snapshot = SalesSnapshot.from_frames(fact, sample_customers_df, sample_products_df)

        assert snapshot.fact_sales.schema["order_date"] == pl.Date

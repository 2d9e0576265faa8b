"""
Command line interface for computing the reports.

Usage:
    sales-reports customers --source data/gold --evaluation-date 2025-06-30
    sales-reports products --from-database --segment High-Performers
    sales-reports summary --source data/gold --format parquet
    sales-reports customers --output out/customer_report.parquet
"""

import argparse
import asyncio
from datetime import date
from pathlib import Path
from typing import List, Optional

import polars as pl
import structlog

from sales_reports.config.logging import configure_logging
from sales_reports.ingestion.snapshot import FileFormat, SalesSnapshot, SnapshotLoader
from sales_reports.transformation.reports import ReportBuilder, ReportResult, ReportType

logger = structlog.get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sales-reports",
        description="Compute customer and product reports from the sales star schema",
    )
    parser.add_argument(
        "command",
        choices=["customers", "products", "summary"],
        help="Report to compute, or 'summary' for segment counts of both",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--source", help="Directory with fact_sales/dim_customers/dim_products files")
    source.add_argument(
        "--from-database",
        action="store_true",
        help="Read the tables from the configured database instead of files",
    )

    parser.add_argument(
        "--format",
        choices=[f.value for f in FileFormat],
        default=None,
        help="File format of --source (default: DATA_FILE_FORMAT)",
    )
    parser.add_argument(
        "--evaluation-date",
        type=_parse_date,
        default=None,
        help="Date recency and age are measured against (default: today)",
    )
    parser.add_argument("--segment", help="Only keep rows of this segment")
    parser.add_argument("--output", help="Export the report to a .csv or .parquet file")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        default=None,
        help="Log output on stderr (default: LOG_FORMAT)",
    )
    return parser


async def _load_from_database() -> SalesSnapshot:
    from sales_reports.database.connection import close_database, get_db, init_database
    from sales_reports.database.store import load_snapshot

    await init_database()
    try:
        async with get_db() as db:
            return await load_snapshot(db)
    finally:
        await close_database()


def load_source(args: argparse.Namespace) -> SalesSnapshot:
    if args.from_database:
        return asyncio.run(_load_from_database())
    return SnapshotLoader(args.source, args.format).load()


def export_report(df: pl.DataFrame, output: str) -> Path:
    """Write a report frame, choosing the format from the file suffix"""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix == ".parquet":
        df.write_parquet(path)
    elif path.suffix == ".csv":
        df.write_csv(path)
    else:
        raise ValueError(f"Unsupported export format '{path.suffix}', use .csv or .parquet")

    logger.info("Report exported", path=str(path), rows=df.height)
    return path


def _filter_segment(result: ReportResult, segment: Optional[str]) -> pl.DataFrame:
    if not segment:
        return result.data
    return result.data.filter(pl.col(result.report_type.segment_column) == segment)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "summary" and (args.segment or args.output):
        parser.error("--segment and --output apply to the customers and products reports only")
    configure_logging(args.log_level, args.log_format)

    snapshot = load_source(args)
    builder = ReportBuilder(evaluation_date=args.evaluation_date)

    if args.command == "summary":
        results = asyncio.run(builder.build_all(snapshot))
        print(f"Evaluation date: {builder.evaluation_date.isoformat()}")
        for report_type, result in results.items():
            print(f"\n{report_type.value}: {result.output_rows} rows ({result.rows_dropped} fact lines without order date)")
            for segment, count in result.segment_counts().items():
                print(f"  {segment:<16} {count:>8}")
        return 0

    result = builder.build(ReportType(args.command), snapshot)
    df = _filter_segment(result, args.segment)

    if args.output:
        export_report(df, args.output)
    else:
        with pl.Config(tbl_rows=20, tbl_cols=-1):
            print(df)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Calendar arithmetic expressions.

Month and year differences count calendar boundaries crossed, so
2024-01-31 -> 2024-02-01 is one month and 2023-12-31 -> 2024-01-01 is one year.
"""

from datetime import date
from typing import Union

import polars as pl

DateLike = Union[pl.Expr, date]


def _as_expr(value: DateLike) -> pl.Expr:
    if isinstance(value, pl.Expr):
        return value
    return pl.lit(value, dtype=pl.Date)


def months_between(start: DateLike, end: DateLike) -> pl.Expr:
    """Whole calendar months from ``start`` to ``end`` (Int64)"""
    start, end = _as_expr(start), _as_expr(end)
    return (
        (end.dt.year().cast(pl.Int64) - start.dt.year().cast(pl.Int64)) * 12
        + (end.dt.month().cast(pl.Int64) - start.dt.month().cast(pl.Int64))
    )


def years_between(start: DateLike, end: DateLike) -> pl.Expr:
    """Whole calendar years from ``start`` to ``end`` (Int64)"""
    start, end = _as_expr(start), _as_expr(end)
    return end.dt.year().cast(pl.Int64) - start.dt.year().cast(pl.Int64)


def month_diff(start: date, end: date) -> int:
    """Scalar counterpart of :func:`months_between`"""
    return (end.year - start.year) * 12 + (end.month - start.month)

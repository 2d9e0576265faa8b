"""
Database Models - Gold Layer Star Schema

Read-only mapping of the fact/dimension tables the reports are computed from:

Fact Tables:
- FactSales: One row per order line

Dimension Tables:
- DimCustomer: Customer attributes
- DimProduct: Product catalog attributes

The tables live in the warehouse schema configured by POSTGRES_SCHEMA_NAME
(``gold`` by default), applied through ``schema_translate_map``.
"""

from datetime import date
from typing import Optional

from sqlalchemy import (
    Date,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class DimCustomer(Base):
    """
    Customer Dimension Table

    One row per customer surrogate key.
    """
    __tablename__ = "dim_customers"

    customer_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    customer_id: Mapped[Optional[int]] = mapped_column(Integer)
    customer_number: Mapped[Optional[str]] = mapped_column(String(50))

    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))

    # Demographics
    country: Mapped[Optional[str]] = mapped_column(String(100))
    gender: Mapped[Optional[str]] = mapped_column(String(20))
    birthdate: Mapped[Optional[date]] = mapped_column(Date)


class DimProduct(Base):
    """
    Product Dimension Table

    One row per product surrogate key.
    """
    __tablename__ = "dim_products"

    product_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_id: Mapped[Optional[int]] = mapped_column(Integer)
    product_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_name: Mapped[Optional[str]] = mapped_column(String(200))

    # Categorization
    category: Mapped[Optional[str]] = mapped_column(String(100))
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))

    cost: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))


# =============================================================================
# FACT TABLES
# =============================================================================

class FactSales(Base):
    """
    Sales Fact Table

    Grain: one row per order line. Keys are not constrained; lines may
    reference customers or products missing from the dimensions.
    """
    __tablename__ = "fact_sales"

    sales_line_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False)

    product_key: Mapped[Optional[int]] = mapped_column(Integer)
    customer_key: Mapped[Optional[int]] = mapped_column(Integer)

    order_date: Mapped[Optional[date]] = mapped_column(Date)
    shipping_date: Mapped[Optional[date]] = mapped_column(Date)
    due_date: Mapped[Optional[date]] = mapped_column(Date)

    # Metrics
    sales_amount: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))

    __table_args__ = (
        Index("ix_fact_sales_customer_key", "customer_key"),
        Index("ix_fact_sales_product_key", "product_key"),
        Index("ix_fact_sales_order_date", "order_date"),
    )

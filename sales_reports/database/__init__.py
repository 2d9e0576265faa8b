"""
Database Module
"""
from .connection import (
    init_database,
    close_database,
    get_db,
    get_db_dependency,
    check_database_health,
)
from .models import Base, DimCustomer, DimProduct, FactSales
from .store import load_snapshot

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_db_dependency",
    "check_database_health",
    "Base",
    "DimCustomer",
    "DimProduct",
    "FactSales",
    "load_snapshot",
]

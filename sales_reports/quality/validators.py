"""
Data Validation Module

Rule-based precondition checks for the fact/dimension snapshot the reports
are computed from.

Features:
- Required column checks
- Null checks
- Dimension key uniqueness (fail fast)
- Referential integrity reporting (unmatched keys are logged, not rejected)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

import polars as pl
import structlog

if TYPE_CHECKING:
    from sales_reports.ingestion.snapshot import SalesSnapshot

logger = structlog.get_logger(__name__)


class MissingColumnsError(ValueError):
    """A frame lacks columns the report pipeline needs"""

    def __init__(self, table: str, missing: List[str]):
        self.table = table
        self.missing = missing
        super().__init__(f"Table '{table}' is missing required columns: {', '.join(missing)}")


class DimensionIntegrityError(ValueError):
    """A dimension table maps one key to more than one row"""

    def __init__(self, table: str, result: "ValidationResult"):
        self.table = table
        self.result = result
        messages = "; ".join(check.message for check in result.errors)
        super().__init__(f"Dimension '{table}' failed validation: {messages}")


def require_columns(df: pl.DataFrame, columns: Iterable[str], table: str) -> None:
    """Raise MissingColumnsError unless every column is present"""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingColumnsError(table, missing)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks pipeline
    WARNING = "warning"  # Non-critical - logged but continues
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def errors(self) -> List[ValidationCheck]:
        """Failed checks with ERROR severity"""
        return [c for c in self.checks if not c.passed and c.severity == ValidationSeverity.ERROR]


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("customer_key")
        validator.add_unique_check("customer_key")
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    @staticmethod
    def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"not_null_{column}", column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=f"not_null_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"unique_{column}", column, severity)

            total = len(df)
            duplicated = df.filter(pl.col(column).is_duplicated())
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=f"unique_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={
                    "duplicate_count": duplicate_count,
                    "sample_keys": duplicated[column].unique().sort().head(10).to_list(),
                },
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            passed = check_func(df)
            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message="Check passed" if passed else message_on_fail,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add referential integrity check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"ref_integrity_{column}", column, severity)

            ref_values = reference_df[reference_column].drop_nulls().unique().to_list()

            orphans = df.filter(
                ~pl.col(column).is_in(ref_values) & pl.col(column).is_not_null()
            ).height
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=f"ref_integrity_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now()
        results = []

        logger.debug(f"Running {len(self._checks)} validation checks on {len(df)} rows")

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(),
        )

        logger.debug(
            f"Validation complete: {validation_result.status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


# Pre-built validators for the snapshot tables
def create_fact_sales_validator(
    dim_customers: Optional[pl.DataFrame] = None,
    dim_products: Optional[pl.DataFrame] = None,
) -> DataValidator:
    """Fact lines: missing dates and unmatched keys are reported, never rejected"""
    validator = DataValidator().add_not_null_check("order_date", severity=ValidationSeverity.INFO)
    if dim_customers is not None:
        validator.add_referential_integrity_check("customer_key", dim_customers, "customer_key")
    if dim_products is not None:
        validator.add_referential_integrity_check("product_key", dim_products, "product_key")
    return validator


def create_dimension_validator(key_column: str) -> DataValidator:
    """Dimension keys must be present and map to exactly one row"""
    return (
        DataValidator()
        .add_not_null_check(key_column)
        .add_unique_check(key_column)
    )


def create_customers_validator() -> DataValidator:
    """Create pre-configured validator for the customer dimension"""
    return create_dimension_validator("customer_key")


def create_products_validator() -> DataValidator:
    """Create pre-configured validator for the product dimension"""
    return create_dimension_validator("product_key")


DIMENSION_VALIDATORS: Dict[str, Callable[[], DataValidator]] = {
    "dim_customers": create_customers_validator,
    "dim_products": create_products_validator,
}


def validate_dimension(df: pl.DataFrame, table: str) -> ValidationResult:
    """
    Validate a dimension table and fail fast on key problems.

    Args:
        df: Dimension frame
        table: dim_customers or dim_products

    Raises:
        DimensionIntegrityError: If the key column is null or duplicated
    """
    result = DIMENSION_VALIDATORS[table]().validate(df)
    if result.status == ValidationStatus.FAILED:
        logger.error("Dimension validation failed", table=table, failed_checks=result.failed_checks)
        raise DimensionIntegrityError(table, result)
    return result


def _validate_fact_sales(fact_sales: pl.DataFrame, **dimensions: pl.DataFrame) -> ValidationResult:
    result = create_fact_sales_validator(**dimensions).validate(fact_sales)

    findings = {c.name: c.failed_rows for c in result.checks if not c.passed}
    if findings:
        logger.info(
            "Fact table has lines that will be dropped or keep null attributes",
            findings=findings,
        )
    return result


def validate_report_inputs(snapshot: "SalesSnapshot", table: str) -> Dict[str, ValidationResult]:
    """
    Validate the one dimension a report joins, and the fact lines against it.

    The other dimension is not inspected, so a broken product dimension
    never blocks the customer report and vice versa.

    Raises:
        DimensionIntegrityError: If the dimension key is null or duplicated
    """
    dimension = getattr(snapshot, table)
    return {
        table: validate_dimension(dimension, table),
        "fact_sales": _validate_fact_sales(snapshot.fact_sales, **{table: dimension}),
    }


def validate_snapshot(snapshot: "SalesSnapshot") -> Dict[str, ValidationResult]:
    """
    Validate every table of a snapshot.

    Dimension failures raise DimensionIntegrityError; fact findings are only
    logged since the pipeline tolerates missing dates and unmatched keys.
    """
    results = {table: validate_dimension(getattr(snapshot, table), table) for table in DIMENSION_VALIDATORS}
    results["fact_sales"] = _validate_fact_sales(
        snapshot.fact_sales,
        dim_customers=snapshot.dim_customers,
        dim_products=snapshot.dim_products,
    )
    return results

"""
Data validation module for quality checks and data integrity.

Provides validation including:
- Schema validation
- Data type checks
- Missing value analysis
- Value range checks
- Temporal consistency checks
- Outlier detection (informational)
"""

import logging
from datetime import datetime
from typing import List, Any
from dataclasses import dataclass, field

import pandas as pd
import numpy as np

from ..exceptions import DataValidationError

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a single validation check."""
    name: str
    passed: bool
    message: str
    details: Any = None


@dataclass
class ValidationReport:
    """Complete validation report."""
    timestamp: datetime
    data_type: str
    row_count: int
    column_count: int
    results: List[ValidationResult] = field(default_factory=list)

    CRITICAL_CHECKS = (
        'non_empty', 'schema', 'data_types', 'value_ranges',
        'temporal_consistency', 'complete_features'
    )

    @property
    def all_passed(self) -> bool:
        """Check if all validations passed."""
        return all(r.passed for r in self.results)

    @property
    def critical_passed(self) -> bool:
        """Check if critical validations passed."""
        return all(
            r.passed for r in self.results
            if r.name in self.CRITICAL_CHECKS
        )

    @property
    def failures(self) -> List[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            f"Validation Report - {self.timestamp}",
            f"Data type: {self.data_type}",
            f"Shape: {self.row_count} rows × {self.column_count} columns",
            f"Overall: {'PASSED' if self.all_passed else 'FAILED'}",
            "",
            "Results:"
        ]

        for result in self.results:
            status = "✓" if result.passed else "✗"
            lines.append(f"  {status} {result.name}: {result.message}")

        return "\n".join(lines)


class DataValidator:
    """
    Data validation for price and feature tables.

    Validates:
    - Non-empty table
    - Required columns and schema
    - Data types
    - Missing values
    - Value ranges (positive prices, bounded RSI)
    - Temporal consistency (strictly increasing, unique dates)
    - Outliers
    """

    RAW_COLUMNS = ['date', 'open', 'high', 'low', 'close', 'volume', 'adjusted']

    FEATURE_COLUMNS = ['log_returns', 'rsi_14', 'sma_20', 'sma_50', 'macd', 'macd_signal']

    PROCESSED_COLUMNS = RAW_COLUMNS + FEATURE_COLUMNS

    # Columns that must be positive
    POSITIVE_COLUMNS = ['open', 'high', 'low', 'close', 'adjusted', 'sma_20', 'sma_50']

    # Columns that must be non-negative
    NON_NEGATIVE_COLUMNS = ['volume']

    def validate_non_empty(self, df: pd.DataFrame) -> ValidationResult:
        if len(df) == 0:
            return ValidationResult(
                name="non_empty",
                passed=False,
                message="Table has no rows"
            )

        return ValidationResult(
            name="non_empty",
            passed=True,
            message=f"{len(df)} rows"
        )

    def validate_schema(
        self,
        df: pd.DataFrame,
        required_columns: List[str]
    ) -> ValidationResult:
        """
        Validate that DataFrame has required columns.

        Args:
            df: DataFrame to validate
            required_columns: List of required column names

        Returns:
            ValidationResult
        """
        missing = [col for col in required_columns if col not in df.columns]

        if missing:
            return ValidationResult(
                name="schema",
                passed=False,
                message=f"Missing columns: {missing}",
                details={'missing_columns': missing}
            )

        return ValidationResult(
            name="schema",
            passed=True,
            message="All required columns present"
        )

    def validate_data_types(self, df: pd.DataFrame) -> ValidationResult:
        """
        Validate data types of columns.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult
        """
        issues = []

        numeric_cols = [c for c in self.PROCESSED_COLUMNS if c != 'date']
        for col in numeric_cols:
            if col in df.columns:
                if not pd.api.types.is_numeric_dtype(df[col]):
                    issues.append(f"{col} is not numeric")

        if 'date' in df.columns and not pd.api.types.is_datetime64_any_dtype(df['date']):
            issues.append("date is not a datetime column")

        if issues:
            return ValidationResult(
                name="data_types",
                passed=False,
                message=f"Type issues: {issues}",
                details={'issues': issues}
            )

        return ValidationResult(
            name="data_types",
            passed=True,
            message="All data types valid"
        )

    def validate_missing_values(self, df: pd.DataFrame) -> ValidationResult:
        """Report missing values in the price columns."""
        present = [c for c in self.RAW_COLUMNS if c in df.columns]
        missing = df[present].isnull().sum()
        missing = missing[missing > 0]

        if len(missing) > 0:
            return ValidationResult(
                name="missing_values",
                passed=False,
                message=f"Missing values in columns: {missing.to_dict()}",
                details={'missing_counts': missing.to_dict()}
            )

        return ValidationResult(
            name="missing_values",
            passed=True,
            message="No missing price values"
        )

    def validate_complete_features(self, df: pd.DataFrame) -> ValidationResult:
        """Every row of a feature table must carry all derived features."""
        present = [c for c in self.FEATURE_COLUMNS if c in df.columns]
        incomplete = int(df[present].isnull().any(axis=1).sum())

        if incomplete:
            return ValidationResult(
                name="complete_features",
                passed=False,
                message=f"{incomplete} rows with undefined features",
                details={'incomplete_rows': incomplete}
            )

        return ValidationResult(
            name="complete_features",
            passed=True,
            message="All feature rows complete"
        )

    def validate_value_ranges(self, df: pd.DataFrame) -> ValidationResult:
        """
        Validate that values are within expected ranges.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult
        """
        issues = []

        # Check positive columns
        for col in self.POSITIVE_COLUMNS:
            if col in df.columns:
                negative_count = (df[col] <= 0).sum()
                if negative_count > 0:
                    issues.append(f"{col}: {negative_count} non-positive values")

        # Check non-negative columns
        for col in self.NON_NEGATIVE_COLUMNS:
            if col in df.columns:
                negative_count = (df[col] < 0).sum()
                if negative_count > 0:
                    issues.append(f"{col}: {negative_count} negative values")

        if 'rsi_14' in df.columns:
            out_of_range = ((df['rsi_14'] < 0) | (df['rsi_14'] > 100)).sum()
            if out_of_range > 0:
                issues.append(f"rsi_14: {out_of_range} values outside [0, 100]")

        if issues:
            return ValidationResult(
                name="value_ranges",
                passed=False,
                message=f"Range issues: {issues}",
                details={'issues': issues}
            )

        return ValidationResult(
            name="value_ranges",
            passed=True,
            message="All values within expected ranges"
        )

    def validate_temporal_consistency(self, df: pd.DataFrame) -> ValidationResult:
        """
        Validate temporal ordering.

        Gaps are allowed (and reported); reordering and duplicates are not.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult
        """
        if 'date' not in df.columns:
            return ValidationResult(
                name="temporal_consistency",
                passed=False,
                message="No date column found"
            )

        issues = []

        duplicates = df['date'].duplicated().sum()
        if duplicates > 0:
            issues.append(f"{duplicates} duplicate dates")

        if not df['date'].is_monotonic_increasing:
            issues.append("Data not sorted chronologically")

        if issues:
            return ValidationResult(
                name="temporal_consistency",
                passed=False,
                message=f"Temporal issues: {issues}",
                details={'issues': issues}
            )

        max_gap = None
        if len(df) > 1:
            max_gap = df['date'].diff().max()

        return ValidationResult(
            name="temporal_consistency",
            passed=True,
            message="Data temporally consistent",
            details={'max_gap': max_gap}
        )

    def validate_outliers(
        self,
        df: pd.DataFrame,
        z_threshold: float = 5.0
    ) -> ValidationResult:
        """
        Detect statistical outliers using z-score.

        Args:
            df: DataFrame to validate
            z_threshold: Z-score threshold for outliers

        Returns:
            ValidationResult (informational, always passes)
        """
        outlier_counts = {}

        numeric_cols = df.select_dtypes(include=[np.number]).columns

        for col in numeric_cols:
            if df[col].std() > 0:
                z_scores = np.abs((df[col] - df[col].mean()) / df[col].std())
                outliers = (z_scores > z_threshold).sum()

                if outliers > 0:
                    outlier_counts[col] = int(outliers)

        if outlier_counts:
            return ValidationResult(
                name="outliers",
                passed=True,  # Informational only
                message=f"Outliers detected (z>{z_threshold}): {outlier_counts}",
                details={'outlier_counts': outlier_counts}
            )

        return ValidationResult(
            name="outliers",
            passed=True,
            message="No significant outliers detected"
        )

    def validate(
        self,
        df: pd.DataFrame,
        data_type: str = "raw",
        raise_on_failure: bool = False
    ) -> ValidationReport:
        """
        Run all validation checks.

        Args:
            df: DataFrame to validate
            data_type: Type of data ('raw' or 'processed')
            raise_on_failure: Raise DataValidationError if a critical check fails

        Returns:
            ValidationReport with all results
        """
        logger.info(f"Running validation for {data_type} data...")

        processed = data_type == "processed"
        required_columns = self.PROCESSED_COLUMNS if processed else self.RAW_COLUMNS

        report = ValidationReport(
            timestamp=datetime.now(),
            data_type=data_type,
            row_count=len(df),
            column_count=len(df.columns)
        )

        validations = [
            ('non_empty', lambda: self.validate_non_empty(df)),
            ('schema', lambda: self.validate_schema(df, required_columns)),
            ('data_types', lambda: self.validate_data_types(df)),
            ('missing_values', lambda: self.validate_missing_values(df)),
            ('value_ranges', lambda: self.validate_value_ranges(df)),
            ('temporal_consistency', lambda: self.validate_temporal_consistency(df)),
            ('outliers', lambda: self.validate_outliers(df))
        ]
        if processed:
            validations.append(('complete_features', lambda: self.validate_complete_features(df)))

        for name, validation_func in validations:
            try:
                result = validation_func()
            except (KeyError, TypeError, ValueError) as e:
                result = ValidationResult(
                    name=name,
                    passed=False,
                    message=f"Error: {str(e)}"
                )
            report.results.append(result)

            log_level = logging.INFO if result.passed else logging.WARNING
            logger.log(log_level, f"  {name}: {result.message}")

        status = "PASSED" if report.all_passed else "FAILED"
        logger.info(f"Validation {status} ({len([r for r in report.results if r.passed])}/{len(report.results)} checks)")

        if raise_on_failure and not report.critical_passed:
            reasons = "; ".join(
                f"{r.name}: {r.message}" for r in report.failures
                if r.name in report.CRITICAL_CHECKS
            )
            raise DataValidationError(f"{data_type} data failed validation - {reasons}")

        return report

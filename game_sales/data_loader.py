"""
Data Loader Module
==================

Handles CSV ingestion against a fixed column schema, configuration loading
and basic data quality checks.

Functions:
    - load_config: Load YAML configuration file
    - load_data: Load a delimited file into a typed DataFrame
    - records_from_frame: Convert DataFrame rows to GameRecord objects
    - validate_data: Check data quality constraints
    - print_data_summary: Console summary of a loaded dataset
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Any, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
import yaml

from .exceptions import SchemaError

logger = logging.getLogger(__name__)


# Column order of the vgsales CSV; columns bind by position, not header text.
GAME_SALES_SCHEMA: Dict[str, type] = {
    "rank": int,
    "name": str,
    "platform": str,
    "year": int,
    "genre": str,
    "publisher": str,
    "na_sales": float,
    "eu_sales": float,
    "jp_sales": float,
    "other_sales": float,
    "global_sales": float,
}

CATEGORICAL_COLUMNS = ["platform", "genre", "publisher"]
REGIONAL_SALES_COLUMNS = ["na_sales", "eu_sales", "jp_sales", "other_sales"]
LABEL_COLUMN = "global_sales"

_PANDAS_DTYPES = {int: "int64", float: "float64", str: "object"}


@dataclass(frozen=True)
class GameRecord:
    """One game entry. ``global_sales`` is the label and may be absent."""

    rank: int
    name: str
    platform: str
    year: int
    genre: str
    publisher: str
    na_sales: float
    eu_sales: float
    jp_sales: float
    other_sales: float
    global_sales: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "GameRecord":
        """
        Build a record from a mapping of field names (extra keys ignored).

        Values are converted to their schema types with the same rules as
        load_data, so "2022" becomes 2022 but 2022.7 or "lots" raise
        SchemaError.
        """
        names = [f.name for f in fields(cls)]
        missing = [n for n in names if n not in row and n != LABEL_COLUMN]
        if missing:
            raise SchemaError(f"Record is missing fields: {missing}")

        values = {}
        for name in names:
            if name not in row:
                continue
            value = row[name]
            if name == LABEL_COLUMN and (value is None or pd.isna(value)):
                values[name] = None
                continue
            values[name] = _coerce_value(value, name, GAME_SALES_SCHEMA[name])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_frame(self) -> pd.DataFrame:
        """One-row DataFrame with the schema's columns."""
        return pd.DataFrame([self.to_dict()], columns=list(GAME_SALES_SCHEMA))


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def _empty_frame(schema: Mapping[str, type]) -> pd.DataFrame:
    return pd.DataFrame(
        {name: pd.Series(dtype=_PANDAS_DTYPES[kind]) for name, kind in schema.items()}
    )


def _invalid_numbers(parsed: pd.Series, kind: type) -> pd.Series:
    """Mask of non-finite values, plus fractional ones in an int column."""
    bad = parsed.isna() | np.isinf(parsed)
    if kind is int:
        bad |= (parsed % 1) != 0
    return bad


def _coerce_value(value: Any, column: str, kind: type) -> Any:
    """Convert a single field value to its declared type or raise SchemaError."""
    if kind is str:
        return str(value)

    # bool is an int subclass but never a valid count or amount
    text = "" if isinstance(value, (bool, np.bool_)) else str(value).strip()
    parsed = pd.to_numeric(pd.Series([text]), errors="coerce")
    if _invalid_numbers(parsed, kind).iloc[0]:
        raise SchemaError(
            f"Cannot parse {value!r} as {kind.__name__} in column '{column}'",
            column=column
        )
    return kind(parsed.iloc[0])


def _data_line_numbers(file_path: Path, has_header: bool) -> List[int]:
    """Physical line number of each data row; pandas skips blank lines."""
    with open(file_path, encoding="utf-8", errors="replace") as f:
        numbers = [n for n, line in enumerate(f, start=1) if line.strip()]
    if has_header and numbers and numbers[0] == 1:
        numbers = numbers[1:]
    return numbers


def _parse_column(
    values: pd.Series,
    column: str,
    kind: type,
    line_of: Callable[[int], int]
) -> pd.Series:
    """Parse one raw text column to its declared type or raise SchemaError."""
    if kind is str:
        return values.astype(object)

    parsed = pd.to_numeric(values.str.strip(), errors="coerce")
    bad = _invalid_numbers(parsed, kind)

    if bad.any():
        idx = bad[bad].index[0]
        line = line_of(int(idx))
        raise SchemaError(
            f"Cannot parse {values[idx]!r} as {kind.__name__} "
            f"in column '{column}' (line {line})",
            line=line,
            column=column
        )

    return parsed.astype(_PANDAS_DTYPES[kind])


def load_data(
    file_path: str,
    schema: Optional[Mapping[str, type]] = None,
    delimiter: str = ",",
    has_header: bool = True
) -> pd.DataFrame:
    """
    Load a delimited text file into a typed DataFrame.

    Every row must have exactly one field per schema column and every value
    must parse to its declared type; the first malformed row aborts loading.

    Args:
        file_path: Path to the CSV file
        schema: Ordered mapping of column name to type (int, float or str).
            Defaults to GAME_SALES_SCHEMA.
        delimiter: Field separator
        has_header: Whether the first line is a header row (skipped)

    Returns:
        DataFrame with the schema's columns in schema order

    Raises:
        FileNotFoundError: If data file doesn't exist
        SchemaError: If a row has the wrong column count or an unparseable value
    """
    schema = schema or GAME_SALES_SCHEMA
    columns = list(schema)
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    def line_of(idx: int) -> int:
        return _data_line_numbers(file_path, has_header)[idx]

    try:
        raw = pd.read_csv(
            file_path,
            sep=delimiter,
            header=None,
            names=columns,
            skiprows=1 if has_header else 0,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        logger.warning(f"No data rows in {file_path}")
        return _empty_frame(schema)
    except pd.errors.ParserError as e:
        raise SchemaError(f"Malformed row in {file_path}: {e}") from e

    # Extra fields on the first data row make pandas promote them to an index
    if len(raw) and not isinstance(raw.index, pd.RangeIndex):
        raise SchemaError(
            f"Expected {len(columns)} fields per row in {file_path}, found more "
            f"(line {line_of(0)})",
            line=line_of(0)
        )

    short_rows = raw.isna().any(axis=1)
    if short_rows.any():
        idx = int(short_rows[short_rows].index[0])
        n_fields = int(raw.loc[idx].notna().sum())
        raise SchemaError(
            f"Expected {len(columns)} fields, saw {n_fields} "
            f"(line {line_of(idx)})",
            line=line_of(idx)
        )

    df = pd.DataFrame(
        {
            column: _parse_column(raw[column], column, kind, line_of)
            for column, kind in schema.items()
        },
        columns=columns
    )

    logger.info(f"Loaded data from {file_path}: {df.shape[0]} rows × {df.shape[1]} columns")
    return df


def records_from_frame(df: pd.DataFrame) -> List[GameRecord]:
    """Convert every row of a loaded dataset to a GameRecord."""
    return [GameRecord.from_row(row) for row in df.to_dict(orient="records")]


def validate_data(
    df: pd.DataFrame,
    strict: bool = False,
    sum_tolerance: float = 0.05
) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate data quality constraints for the sales dataset.

    Checks:
        - Dataset is not empty
        - No duplicate rows
        - No negative sales figures
        - Global sales agree with the sum of regional sales

    Args:
        df: DataFrame to validate
        strict: If True, raise errors on validation failure
        sum_tolerance: Allowed gap between global and summed regional sales

    Returns:
        Tuple of (is_valid, validation_report)
    """
    report = {
        "total_rows": len(df),
        "total_columns": len(df.columns),
        "column_names": list(df.columns),
        "issues": []
    }

    if df.empty:
        report["issues"].append("Dataset is empty")

    duplicates = int(df.duplicated().sum())
    if duplicates > 0:
        report["issues"].append(f"Duplicate rows found: {duplicates}")

    sales_columns = [c for c in REGIONAL_SALES_COLUMNS + [LABEL_COLUMN] if c in df.columns]
    for col in sales_columns:
        negatives = int((df[col] < 0).sum())
        if negatives > 0:
            report["issues"].append(f"Column '{col}' has {negatives} negative values")

    if set(REGIONAL_SALES_COLUMNS + [LABEL_COLUMN]).issubset(df.columns):
        gap = (df[REGIONAL_SALES_COLUMNS].sum(axis=1) - df[LABEL_COLUMN]).abs()
        mismatched = int((gap > sum_tolerance).sum())
        if mismatched > 0:
            report["issues"].append(
                f"{mismatched} rows where global sales differ from the regional sum "
                f"by more than {sum_tolerance}"
            )

    for issue in report["issues"]:
        logger.warning(issue)

    is_valid = len(report["issues"]) == 0
    report["is_valid"] = is_valid

    if strict and not is_valid:
        raise ValueError(f"Data validation failed: {report['issues']}")

    return is_valid, report


def print_data_summary(df: pd.DataFrame) -> None:
    """
    Print a formatted summary of the dataset to console.

    Args:
        df: DataFrame to summarize
    """
    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Shape: {df.shape[0]} rows × {df.shape[1]} columns")
    print("\nColumn Information:")
    print("-" * 40)

    for col in df.columns:
        print(f"  {col}: {df[col].dtype}")

    print("\nCategories:")
    print("-" * 40)
    for col in CATEGORICAL_COLUMNS:
        if col in df.columns:
            print(f"  {col}: {df[col].nunique()} distinct values")

    if not df.empty:
        numeric = df.select_dtypes(include=[np.number])
        print("\nBasic Statistics:")
        print("-" * 40)
        print(numeric.describe().round(4).to_string())
    print("=" * 60 + "\n")

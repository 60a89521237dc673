"""Loaders for workload record tables."""

from pathlib import Path
from typing import Dict, List, Optional, Union
import pandas as pd
from loguru import logger

from ..core.workload import WorkloadRecord
from ..exceptions import ConfigurationError

DATA_DIR = Path(__file__).parent

# Column mapping per domain: record field -> CSV column
RECORD_COLUMNS: Dict[str, Dict[str, str]] = {
    "customer": {
        "record_id": "customer_id",
        "magnitude": "annual_income",
        "score": "spending_score",
        "frequency": "purchase_frequency",
        "age": "age",
    },
    "financial": {
        "record_id": "transaction_id",
        "magnitude": "amount",
        "score": "priority",
        "frequency": "data_volume",
        "category": "transaction_type",
    },
}

BUNDLED_TABLES = {
    "customer": DATA_DIR / "customers.csv",
    "financial": DATA_DIR / "transactions.csv",
}

# Record fields whose cells may be left blank
OPTIONAL_FIELDS = frozenset({"age"})


def _integer_column(df: pd.DataFrame, column: str, optional: bool) -> List[Optional[int]]:
    """Column values as ints, blank cells as None where allowed."""
    series = df[column]
    present = series.dropna()
    if not optional and len(present) < len(series):
        raise ConfigurationError(f"Column '{column}' has blank cells")
    if not pd.api.types.is_numeric_dtype(series) or (present % 1 != 0).any():
        raise ConfigurationError(
            f"Column '{column}' must hold integer values, got dtype {series.dtype}"
        )
    return [None if pd.isna(value) else int(value) for value in series]


def records_from_frame(df: pd.DataFrame, domain: str) -> List[WorkloadRecord]:
    """Convert a record table into workload records.

    Raises:
        ConfigurationError: If the domain is unknown, columns are missing or
            hold non-integer values
    """
    if domain not in RECORD_COLUMNS:
        raise ConfigurationError(
            f"Unknown workload domain: '{domain}'. Must be one of {list(RECORD_COLUMNS)}"
        )

    mapping = RECORD_COLUMNS[domain]
    missing_cols = [col for col in mapping.values() if col not in df.columns]
    if missing_cols:
        raise ConfigurationError(
            f"Record table missing required columns: {missing_cols}\n"
            f"Available columns: {list(df.columns)}"
        )

    columns = {
        field: _integer_column(df, column, optional=field in OPTIONAL_FIELDS)
        for field, column in mapping.items()
    }
    return [
        WorkloadRecord(**dict(zip(columns.keys(), row)))
        for row in zip(*columns.values())
    ]


def load_records(
    domain: str,
    path: Optional[Union[str, Path]] = None,
    limit: Optional[int] = None,
) -> List[WorkloadRecord]:
    """Read workload records from CSV; the bundled table when no path is given."""
    if domain not in BUNDLED_TABLES:
        raise ConfigurationError(
            f"Unknown workload domain: '{domain}'. Must be one of {list(BUNDLED_TABLES)}"
        )

    csv_path = Path(path) if path else BUNDLED_TABLES[domain]
    if not csv_path.exists():
        raise ConfigurationError(f"Record table not found: {csv_path}")

    df = pd.read_csv(csv_path)
    if limit is not None:
        df = df.head(limit)

    records = records_from_frame(df, domain)
    logger.info(f"Loaded {len(records)} {domain} records from {csv_path.name}")
    return records

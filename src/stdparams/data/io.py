"""I/O helpers for input data tables and standardized outputs."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

SUPPORTED_SUFFIXES = {".csv", ".parquet", ".pq"}


class TableIOError(FileNotFoundError):
    """Raised when an input table is missing or has an unsupported format."""


def load_table(path: str | Path) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        raise TableIOError(f"Data file does not exist: {p}")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix in {".parquet", ".pq"}:
        return pd.read_parquet(p)
    raise TableIOError(
        f"Unsupported data format '{p.suffix}'. Supported: {', '.join(sorted(SUPPORTED_SUFFIXES))}"
    )


def write_table(table: pd.DataFrame, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.suffix.lower() in {".parquet", ".pq"}:
        table.to_parquet(p, index=False)
    else:
        table.to_csv(p, index=False)

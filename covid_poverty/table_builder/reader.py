"""
Generic reader: load a file-backed table from SOURCES into a DataFrame.

Each source file is checked against the table's schema (keys + value columns)
before concatenation, so a file with a missing column fails loudly instead of
producing a half-empty column after the concat.
"""

import logging
from pathlib import Path

import pandas as pd

from covid_poverty.configs.sources import SOURCES, MEASURES

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """A source file does not match the declared table schema."""


def _resolve_path(path_str: str, base_path: Path | None) -> Path:
    p = Path(path_str)
    if not p.is_absolute() and base_path is not None:
        return base_path / p
    return p


def _read_file(path: Path, spec: dict, dtype: dict | None = None) -> pd.DataFrame:
    fmt = spec.get("format", "csv").lower()
    if fmt == "csv":
        return pd.read_csv(path, dtype=dtype, low_memory=False)
    raise ValueError(f"Unsupported format: {fmt}")


def required_columns(spec: dict, measure: str | None = None) -> list[str]:
    """Raw column names a source file must carry.

    Keys are always required. With a measure, only that measure's value column
    is required; without one, every declared value column is.
    """
    keys = spec.get("keys", {})
    value_columns = spec.get("value_columns", {})
    required = list(keys.values())
    if measure is None:
        required += list(value_columns.values())
    else:
        if measure not in MEASURES:
            raise KeyError(f"Unknown measure '{measure}'. Available: {list(MEASURES)}")
        column = MEASURES[measure]["column"]
        required.append(value_columns.get(column, column))
    return required


def _validate_columns(df: pd.DataFrame, required: list[str], path: Path) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaError(f"{path}: missing required columns {missing}; found {list(df.columns)}")


def _rename_and_select(df: pd.DataFrame, keys: dict, value_columns: dict) -> pd.DataFrame:
    rename = {}
    if keys:
        rename.update({v: k for k, v in keys.items()})
    if value_columns:
        rename.update({v: k for k, v in value_columns.items()})
    df = df.rename(columns=rename)
    keep = list((keys or {}).keys()) + list((value_columns or {}).keys())
    keep = [c for c in keep if c in df.columns]
    return df[keep].copy()


def _apply_dtypes(df: pd.DataFrame, dtypes: dict, table_name: str) -> pd.DataFrame:
    for col, dtype in dtypes.items():
        if col not in df.columns:
            continue
        if dtype in ("string", "str"):
            df[col] = df[col].astype("string").str.strip()
        elif dtype.startswith("float") or dtype.startswith("int"):
            try:
                df[col] = pd.to_numeric(df[col], errors="raise")
            except (TypeError, ValueError) as e:
                raise SchemaError(f"{table_name}: column '{col}' is not numeric ({e})") from e
        else:
            df[col] = df[col].astype(dtype)
    return df


def read(table_name: str, base_path: Path | None = None, measure: str | None = None) -> pd.DataFrame:
    """Load a single file-backed table from SOURCES into a DataFrame.

    Args:
        table_name: Key in SOURCES (e.g. 'covid_daily').
        base_path: Project root for resolving relative paths.
        measure: Optional key in MEASURES; restricts the required value
            columns to the one that measure aggregates.

    Returns:
        DataFrame with canonical column names, rows in file order then
        original row order.
    """
    if table_name not in SOURCES:
        raise KeyError(f"Unknown table '{table_name}'. Available: {list(SOURCES)}")
    spec = SOURCES[table_name]
    if "sources" not in spec and "path" not in spec:
        raise ValueError(f"Table '{table_name}' is not file-backed")

    keys = spec.get("keys", {})
    value_columns = spec.get("value_columns", {})
    required = required_columns(spec, measure)
    # Keep identifiers as text so GEOIDs keep their leading zeros
    read_dtype = {raw: str for raw in keys.values()}

    dfs = []
    for s in spec.get("sources", [spec]):
        path = _resolve_path(s["path"], base_path)
        if not path.exists():
            raise FileNotFoundError(f"Data not found: {path}")
        df_part = _read_file(path, s, dtype=read_dtype)
        _validate_columns(df_part, required, path)
        logger.info(f"Read {table_name}: {len(df_part)} rows from {path.name}")
        dfs.append(df_part)
    df = pd.concat(dfs, ignore_index=True)

    df = _rename_and_select(df, keys, value_columns)
    if "dtypes" in spec:
        df = _apply_dtypes(df, spec["dtypes"], table_name)

    logger.info(f"{table_name}: {len(df)} rows, columns: {list(df.columns)}")
    return df


def read_many(table_names: list[str], base_path: Path | None = None) -> dict[str, pd.DataFrame]:
    """Load multiple tables. Returns dict mapping table name to DataFrame."""
    return {name: read(name, base_path) for name in table_names}


def list_tables() -> list[str]:
    """Return the file-backed table names from SOURCES."""
    return [name for name, spec in SOURCES.items() if "sources" in spec or "path" in spec]

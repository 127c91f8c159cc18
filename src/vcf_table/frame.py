"""Conversion between vcf-table structures and pandas DataFrames.

pandas nullable dtypes carry the NA semantics across the boundary: ``None``
becomes ``pd.NA`` and back.
"""

from collections.abc import Mapping
from typing import Any

import pandas as pd
from pandas.api import types as ptypes

from .table import FIXED_COLUMNS, Column, GenotypeMatrix, Table

KIND_DTYPES = {
    "string": "string",
    "integer": "Int64",
    "float": "Float64",
    "boolean": "boolean",
}

_FIXED_KINDS = dict(FIXED_COLUMNS)


def to_dataframe(table: Table) -> pd.DataFrame:
    """Convert a table to a DataFrame with nullable column dtypes."""
    return pd.DataFrame(
        {
            column.name: pd.array(list(column.values), dtype=KIND_DTYPES[column.kind])
            for column in table.columns
        }
    )


def genotypes_to_dataframe(gt: GenotypeMatrix) -> pd.DataFrame:
    """Convert a genotype matrix to a string DataFrame keyed by sample name."""
    return pd.DataFrame(list(gt.rows), columns=list(gt.samples), dtype="string")


def _kind_of(series: pd.Series) -> str:
    if ptypes.is_bool_dtype(series.dtype):
        return "boolean"
    if ptypes.is_integer_dtype(series.dtype):
        return "integer"
    if ptypes.is_float_dtype(series.dtype):
        return "float"
    return "string"


def _convert(value: Any, kind: str, name: str) -> Any:
    if pd.isna(value):
        return None
    if kind == "integer":
        if ptypes.is_float(value) and not float(value).is_integer():
            raise ValueError(f"Column {name} holds non-integral value {value}")
        return int(value)
    if kind == "float":
        return float(value)
    if kind == "boolean":
        return bool(value)
    return str(value)


def table_from_dataframe(df: pd.DataFrame, kinds: Mapping[str, str] | None = None) -> Table:
    """Build a table from a DataFrame.

    Column kinds come from ``kinds`` when given, then from the standard VCF
    fixed-column kinds for CHROM..INFO, then from the column dtype.
    """
    kinds = kinds or {}
    columns = []
    for name in df.columns:
        series = df[name]
        kind = kinds.get(name) or _FIXED_KINDS.get(name) or _kind_of(series)
        columns.append(Column(str(name), kind, tuple(_convert(v, kind, name) for v in series)))
    return Table(columns)


def genotypes_from_dataframe(df: pd.DataFrame) -> GenotypeMatrix:
    """Build a genotype matrix from a DataFrame; missing cells become ``.``."""
    rows = [
        tuple("." if pd.isna(v) else str(v) for v in row)
        for row in df.itertuples(index=False, name=None)
    ]
    return GenotypeMatrix([str(c) for c in df.columns], rows)

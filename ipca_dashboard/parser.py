from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from ipca_dashboard.errors import EmptyDatasetError, MalformedRowError
from ipca_dashboard.records import (
    DATE_COLUMN,
    FUEL_PRICE_COLUMN,
    INTEGER_COLUMNS,
    IPCA_ACCUMULATED_COLUMN,
    IPCA_MONTHLY_COLUMN,
    LAG0_COLUMN,
    MONTH_COLUMN,
    REQUIRED_VALUE_COLUMNS,
    YEAR_COLUMN,
    Record,
)


logger = logging.getLogger(__name__)

DELIMITER = ","
_LINE_COL = "__line__"


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[Record, ...]
    dropped: Tuple[MalformedRowError, ...] = ()
    columns: Tuple[str, ...] = ()


def split_fields(line: str) -> List[str]:
    """Split one line on the delimiter. No quoting or escaping is supported."""
    return [v.strip() for v in line.split(DELIMITER)]


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def integerize(series: pd.Series, *, valid_range: Optional[Tuple[int, int]] = None) -> pd.Series:
    numeric = pd.to_numeric(series, errors="coerce")
    # beyond int64 the Int64 cast raises instead of coercing
    numeric = numeric.where((numeric % 1 == 0) & (numeric.abs() < 2**63))
    if valid_range is not None:
        lo, hi = valid_range
        numeric = numeric.where((numeric >= lo) & (numeric <= hi))
    return numeric.astype("Int64")


def parse_date(value: object) -> Optional[pd.Timestamp]:
    """Parse one ISO-8601 ``DATA`` value, keeping the local wall-clock date.

    An offset such as ``+03:00`` is dropped rather than converted, so a row
    never moves to a neighbouring day. Returns ``None`` when unparsable.
    """
    try:
        ts = pd.to_datetime(value, format="ISO8601")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def _opt_float(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _record_drop(dropped: List[MalformedRowError], line_number: int, reason: str, raw: Optional[str]) -> None:
    err = MalformedRowError(line_number, reason, raw)
    logger.warning("Skipping dataset row: %s", err)
    dropped.append(err)


def parse_dataset(text: str) -> ParseResult:
    """Parse the raw dataset text into date-sorted records.

    The first line is the header. Rows with the wrong field count, an
    unparsable ``DATA`` value, or no fuel price / monthly IPCA are skipped and
    reported in ``ParseResult.dropped``. Any other numeric column that fails to
    parse is stored as ``None``.
    """
    # text handed over directly (not read with utf-8-sig) may still carry a BOM
    text = (text or "").lstrip("\ufeff")
    if not text.strip():
        raise EmptyDatasetError("Dataset is empty: no header line found")

    lines = text.strip().splitlines()
    header = split_fields(lines[0])
    dropped: List[MalformedRowError] = []

    missing = [c for c in (DATE_COLUMN,) + REQUIRED_VALUE_COLUMNS if c not in header]
    if missing:
        logger.warning("Dataset header is missing required columns %s; every row will be skipped", missing)

    rows: List[List[str]] = []
    raw_lines: List[str] = []
    line_numbers: List[int] = []
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = split_fields(line)
        if len(values) != len(header):
            _record_drop(dropped, line_number, f"expected {len(header)} fields, found {len(values)}", line)
            continue
        rows.append(values)
        raw_lines.append(line)
        line_numbers.append(line_number)

    if not rows:
        logger.info("Parsed dataset: 0 records kept, %d rows skipped", len(dropped))
        return ParseResult(records=(), dropped=tuple(dropped), columns=tuple(header))

    df = drop_duplicate_columns(pd.DataFrame(rows, columns=header)).copy()
    df[_LINE_COL] = line_numbers
    raw_by_line = dict(zip(line_numbers, raw_lines))

    raw_dates = df[DATE_COLUMN].copy() if DATE_COLUMN in df.columns else pd.Series([""] * len(df), index=df.index)
    # per value: a vectorized parse raises on mixed offset / naive values
    df[DATE_COLUMN] = pd.to_datetime(raw_dates.map(parse_date), errors="coerce")

    for col in INTEGER_COLUMNS:
        if col in df.columns:
            df[col] = integerize(df[col], valid_range=(1, 12) if col == MONTH_COLUMN else (1, 9999))
        else:
            df[col] = pd.Series(pd.NA, index=df.index, dtype="Int64")

    value_cols = [c for c in df.columns if c not in (DATE_COLUMN, _LINE_COL) + INTEGER_COLUMNS]
    df = numericize(df, value_cols)
    for col in REQUIRED_VALUE_COLUMNS:
        if col not in df.columns:
            df[col] = float("nan")

    bad_date = df[DATE_COLUMN].isna()
    for line_number, raw in zip(df.loc[bad_date, _LINE_COL], raw_dates[bad_date]):
        _record_drop(dropped, int(line_number), f"unparsable date {raw!r}", raw_by_line.get(line_number))
    df = df[~bad_date]

    missing_value = df[list(REQUIRED_VALUE_COLUMNS)].isna().any(axis=1)
    for line_number in df.loc[missing_value, _LINE_COL]:
        _record_drop(dropped, int(line_number), "missing required value (fuel price or monthly IPCA)", raw_by_line.get(line_number))
    df = df[~missing_value].copy()

    df[YEAR_COLUMN] = df[YEAR_COLUMN].fillna(df[DATE_COLUMN].dt.year.astype("Int64"))
    df[MONTH_COLUMN] = df[MONTH_COLUMN].fillna(df[DATE_COLUMN].dt.month.astype("Int64"))

    # mergesort is stable: rows sharing a date keep file order
    df = df.sort_values(DATE_COLUMN, kind="mergesort")

    extra_cols = [
        c for c in value_cols
        if c not in (FUEL_PRICE_COLUMN, IPCA_MONTHLY_COLUMN, IPCA_ACCUMULATED_COLUMN, LAG0_COLUMN)
    ]
    records = tuple(
        Record(
            date=row[DATE_COLUMN].date(),
            year=int(row[YEAR_COLUMN]),
            month=int(row[MONTH_COLUMN]),
            fuel_price=float(row[FUEL_PRICE_COLUMN]),
            ipca_monthly=float(row[IPCA_MONTHLY_COLUMN]),
            ipca_accumulated=_opt_float(row.get(IPCA_ACCUMULATED_COLUMN)),
            lag0=_opt_float(row.get(LAG0_COLUMN)),
            extras={c: _opt_float(row.get(c)) for c in extra_cols},
        )
        for row in df.to_dict(orient="records")
    )

    dropped.sort(key=lambda e: e.line_number)
    logger.info("Parsed dataset: %d records kept, %d rows skipped", len(records), len(dropped))
    return ParseResult(records=records, dropped=tuple(dropped), columns=tuple(header))


def parse_records(text: str) -> Tuple[Record, ...]:
    return parse_dataset(text).records

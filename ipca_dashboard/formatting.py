from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Sequence

import pandas as pd

from ipca_dashboard.records import Record, category_label, classify


MISSING = "-"

MONTH_NAMES = {
    1: "Janeiro", 2: "Fevereiro", 3: "Março", 4: "Abril", 5: "Maio", 6: "Junho",
    7: "Julho", 8: "Agosto", 9: "Setembro", 10: "Outubro", 11: "Novembro", 12: "Dezembro",
}

TABLE_COLUMNS = ["Data", "Preço Gasolina", "IPCA Mensal", "IPCA Acumulado", "LAG_0", "Tipo"]


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    try:
        return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None


def format_number(value: Optional[float], decimals: int = 2) -> str:
    rounded = round_half_up(value, decimals)
    if rounded is None:
        return MISSING
    return f"{rounded:.{decimals}f}"


def format_currency(value: Optional[float], decimals: int = 2) -> str:
    text = format_number(value, decimals)
    return text if text == MISSING else f"R$ {text}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    text = format_number(value, decimals)
    return text if text == MISSING else f"{text}%"


def format_month_year(d: date) -> str:
    return f"{d.month:02d}/{d.year}"


def format_day_month_year(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year}"


def records_to_frame(records: Sequence[Record]) -> pd.DataFrame:
    """Typed frame of the records, in the order given (no re-sorting)."""
    return pd.DataFrame(
        {
            "date": pd.to_datetime([r.date for r in records]),
            "label": [format_month_year(r.date) for r in records],
            "year": [r.year for r in records],
            "month": [r.month for r in records],
            "fuel_price": [r.fuel_price for r in records],
            "ipca_monthly": [r.ipca_monthly for r in records],
            "ipca_accumulated": [r.ipca_accumulated for r in records],
            "lag0": [r.lag0 for r in records],
            "category": [classify(r) for r in records],
        }
    )


def format_table(records: Sequence[Record]) -> pd.DataFrame:
    rows = [
        {
            "Data": format_month_year(r.date),
            "Preço Gasolina": format_currency(r.fuel_price),
            "IPCA Mensal": format_percent(r.ipca_monthly),
            "IPCA Acumulado": format_percent(r.ipca_accumulated),
            "LAG_0": format_number(r.lag0, 4),
            "Tipo": category_label(r),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)

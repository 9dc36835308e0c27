from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

import pandas as pd

from ipca_dashboard.formatting import MISSING, format_day_month_year, format_number
from ipca_dashboard.records import Record, category_label


logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Data",
    "Preço Gasolina (R$)",
    "IPCA Mensal (%)",
    "IPCA Acumulado (%)",
    "Variação Gasolina (%)",
    "Tipo",
]
EXPORT_PREFIX = "dados_ipca_combustiveis"


def _lag_percent(value: Optional[float]) -> str:
    if value is None:
        return MISSING
    return format_number(value * 100, 2)


def export_frame(records: Sequence[Record]) -> pd.DataFrame:
    rows = [
        {
            "Data": format_day_month_year(r.date),
            "Preço Gasolina (R$)": format_number(r.fuel_price),
            "IPCA Mensal (%)": format_number(r.ipca_monthly),
            "IPCA Acumulado (%)": format_number(r.ipca_accumulated),
            "Variação Gasolina (%)": _lag_percent(r.lag0),
            "Tipo": category_label(r),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def to_csv_text(records: Sequence[Record]) -> str:
    """Serialize the view as comma-separated text, one line per record."""
    csv_text = export_frame(records).to_csv(index=False, lineterminator="\n")
    logger.info("Exported %d records to CSV", len(records))
    return csv_text


def to_csv_bytes(records: Sequence[Record]) -> bytes:
    return to_csv_text(records).encode("utf-8")


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{EXPORT_PREFIX}_{today.isoformat()}.csv"

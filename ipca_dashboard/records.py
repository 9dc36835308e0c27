from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Literal, Optional, Tuple


DATE_COLUMN = "DATA"
YEAR_COLUMN = "ANO"
MONTH_COLUMN = "MES"
FUEL_PRICE_COLUMN = "Gasolina_Preco"
IPCA_MONTHLY_COLUMN = "IPCA_Mensal"
IPCA_ACCUMULATED_COLUMN = "IPCA_Acumulado"
LAG0_COLUMN = "LAG_0"

INTEGER_COLUMNS = (YEAR_COLUMN, MONTH_COLUMN)
REQUIRED_VALUE_COLUMNS = (FUEL_PRICE_COLUMN, IPCA_MONTHLY_COLUMN)
KNOWN_NUMERIC_COLUMNS = (FUEL_PRICE_COLUMN, IPCA_MONTHLY_COLUMN, IPCA_ACCUMULATED_COLUMN, LAG0_COLUMN)

HISTORICAL = "historical"
PROJECTION = "projection"
CATEGORY_ALL = "all"
CATEGORIES = (CATEGORY_ALL, HISTORICAL, PROJECTION)

Category = Literal["historical", "projection"]

# First month (year, month) whose values are forecasts rather than observations.
PROJECTION_CUTOFF: Tuple[int, int] = (2025, 11)

CATEGORY_LABELS = {HISTORICAL: "Histórico", PROJECTION: "Projeção"}


@dataclass(frozen=True)
class Record:
    date: date
    year: int
    month: int
    fuel_price: float
    ipca_monthly: float
    ipca_accumulated: Optional[float] = None
    lag0: Optional[float] = None
    extras: Dict[str, Optional[float]] = field(default_factory=dict, compare=False)


def classify(record: Record) -> Category:
    """Return ``"projection"`` from the cutoff month onwards, else ``"historical"``."""
    cutoff_year, cutoff_month = PROJECTION_CUTOFF
    if record.year > cutoff_year or (record.year == cutoff_year and record.month >= cutoff_month):
        return PROJECTION
    return HISTORICAL


def is_projection(record: Record) -> bool:
    return classify(record) == PROJECTION


def category_label(record: Record) -> str:
    return CATEGORY_LABELS[classify(record)]

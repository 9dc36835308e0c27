from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from ipca_dashboard.records import HISTORICAL, PROJECTION, Record, classify

if TYPE_CHECKING:
    from ipca_dashboard.data import DashboardState


@dataclass(frozen=True)
class Statistics:
    count: int = 0
    average_fuel_price: float = 0.0
    last_accumulated_ipca: float = 0.0


def _value_or_zero(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def summarize(records: Sequence[Record], *, nulls_as_zero: bool = True) -> Statistics:
    """Count, mean fuel price and the latest accumulated IPCA of ``records``.

    ``records`` must already be sorted by date. With ``nulls_as_zero`` (the
    default) a missing price counts as 0 in the sum but still counts in the
    denominator; otherwise missing prices are left out of both.
    """
    count = len(records)
    if count == 0:
        return Statistics()

    prices = [r.fuel_price for r in records]
    if nulls_as_zero:
        total = sum(_value_or_zero(p) for p in prices)
        denominator = count
    else:
        present = [p for p in prices if p is not None]
        total = float(sum(present))
        denominator = len(present)
    average = total / denominator if denominator else 0.0

    return Statistics(
        count=count,
        average_fuel_price=average,
        last_accumulated_ipca=_value_or_zero(records[-1].ipca_accumulated),
    )


def category_counts(records: Sequence[Record]) -> Dict[str, int]:
    counts = {HISTORICAL: 0, PROJECTION: 0}
    for r in records:
        counts[classify(r)] += 1
    return counts


def compute_overview(state: "DashboardState") -> Dict[str, Any]:
    """Hero summary over the full dataset plus the summary of the current view."""
    records = state.records
    view = state.view
    return {
        "criteria": asdict(state.criteria),
        "hero": asdict(summarize(records)),
        "filtered": asdict(summarize(view)),
        "period": {
            "start": records[0].date.isoformat() if records else None,
            "end": records[-1].date.isoformat() if records else None,
        },
        "categories": category_counts(view),
        "dropped_rows": len(state.dropped),
    }

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import altair as alt
import pandas as pd

from ipca_dashboard.formatting import records_to_frame
from ipca_dashboard.records import Record

alt.data_transformers.disable_max_rows()

GAS_COLOR = "#009c3b"
IPCA_COLOR = "#002776"
POSITIVE_COLOR = "#d13438"
NON_POSITIVE_COLOR = "#107c10"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _x_axis() -> alt.X:
    return alt.X("date:T", title="Data", axis=alt.Axis(format="%m/%Y", grid=False, tickCount=10))


def gas_price_chart(df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(df)
        .mark_area(line={"color": GAS_COLOR}, color=GAS_COLOR, opacity=0.15, point={"color": GAS_COLOR})
        .encode(
            x=_x_axis(),
            y=alt.Y("fuel_price:Q", title="Preço da Gasolina (R$)", scale=alt.Scale(zero=False)),
            tooltip=[alt.Tooltip("label:N", title="Data"), alt.Tooltip("fuel_price:Q", title="R$", format=".2f")],
        )
        .properties(height=260)
    )


def ipca_monthly_chart(df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(df)
        .mark_bar(cornerRadius=4)
        .encode(
            x=_x_axis(),
            y=alt.Y("ipca_monthly:Q", title="IPCA Mensal (%)"),
            color=alt.condition(
                alt.datum.ipca_monthly > 0, alt.value(POSITIVE_COLOR), alt.value(NON_POSITIVE_COLOR)
            ),
            tooltip=[alt.Tooltip("label:N", title="Data"), alt.Tooltip("ipca_monthly:Q", title="%", format=".2f")],
        )
        .properties(height=260)
    )


def ipca_accumulated_chart(df: pd.DataFrame) -> alt.Chart:
    return (
        alt.Chart(df)
        .mark_area(line={"color": IPCA_COLOR}, color=IPCA_COLOR, opacity=0.15, point={"color": IPCA_COLOR})
        .encode(
            x=_x_axis(),
            y=alt.Y("ipca_accumulated:Q", title="IPCA Acumulado (%)"),
            tooltip=[alt.Tooltip("label:N", title="Data"), alt.Tooltip("ipca_accumulated:Q", title="%", format=".2f")],
        )
        .properties(height=260)
    )


def normalize_to_max(series: pd.Series) -> Optional[pd.Series]:
    """Scale a series to percent of its maximum; None when the max is 0 or missing."""
    peak = series.max()
    if pd.isna(peak) or peak == 0:
        return None
    return series / peak * 100


def comparison_chart(df: pd.DataFrame) -> Optional[alt.Chart]:
    series = {
        "Gasolina (Normalizado)": normalize_to_max(df["fuel_price"]),
        "IPCA Mensal (Normalizado)": normalize_to_max(df["ipca_monthly"]),
    }
    frames = [
        pd.DataFrame({"date": df["date"], "label": df["label"], "serie": name, "valor": values})
        for name, values in series.items()
        if values is not None
    ]
    if not frames:
        return None
    long_df = pd.concat(frames, ignore_index=True)
    return (
        alt.Chart(long_df)
        .mark_line(point={"size": 20})
        .encode(
            x=_x_axis(),
            y=alt.Y("valor:Q", title="% do máximo"),
            color=alt.Color(
                "serie:N",
                title="Série",
                scale=alt.Scale(domain=list(series), range=[GAS_COLOR, POSITIVE_COLOR]),
            ),
            tooltip=["serie", alt.Tooltip("label:N", title="Data"), alt.Tooltip("valor:Q", format=".2f")],
        )
        .properties(height=260)
    )


def build_charts(records: Sequence[Record]) -> Dict[str, Any]:
    """Vega-Lite specs for every chart of the current view; empty when there is no data."""
    if not records:
        return {}
    df = records_to_frame(records)
    charts = {
        "gas_price": to_vega_spec(gas_price_chart(df)),
        "ipca_monthly": to_vega_spec(ipca_monthly_chart(df)),
        "ipca_accumulated": to_vega_spec(ipca_accumulated_chart(df)),
    }
    comparison = comparison_chart(df)
    if comparison is not None:
        charts["comparison"] = to_vega_spec(comparison)
    return charts

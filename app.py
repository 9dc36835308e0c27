import logging
import os
from contextlib import contextmanager
from typing import Optional

import streamlit as st

from ipca_dashboard import data as dc
from ipca_dashboard.charts import build_charts
from ipca_dashboard.errors import DashboardError, EmptyDatasetError, FetchError
from ipca_dashboard.export import export_filename, to_csv_bytes
from ipca_dashboard.filters import DEFAULT_CRITERIA, normalize_criteria
from ipca_dashboard.formatting import MONTH_NAMES, format_currency, format_day_month_year, format_percent, format_table
from ipca_dashboard.metrics import compute_overview
from ipca_dashboard.records import CATEGORIES

logging.basicConfig(
    level=os.environ.get("IPCA_DASHBOARD_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

ALL_LABEL = "Todos"
CATEGORY_OPTIONS = {"all": "Todos os dados", "historical": "Histórico", "projection": "Projeção"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    with container:
        yield container


def format_filter_summary(criteria) -> str:
    year_chip = f"Ano: {criteria.year}" if criteria.year else "Ano: Todos"
    month_chip = f"Mês: {MONTH_NAMES[criteria.month]}" if criteria.month else "Mês: Todos"
    type_chip = f"Tipo: {CATEGORY_OPTIONS[criteria.category]}"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [year_chip, month_chip, type_chip]])


def get_controller() -> Optional[dc.DashboardController]:
    controller = st.session_state.get("controller")
    try:
        if controller is not None:
            # picks up an edited data file; a cache hit otherwise
            controller.refresh()
            return controller
        controller = dc.DashboardController()
        controller.load()
    except FetchError as exc:
        st.error(f"Erro ao carregar os dados do dashboard: {exc.reason}. Por favor, recarregue a página.")
        return None
    except EmptyDatasetError:
        st.error("O arquivo de dados está vazio. Verifique a fonte configurada.")
        return None
    except DashboardError as exc:
        st.error(f"Erro ao carregar os dados do dashboard: {exc}")
        return None
    st.session_state["controller"] = controller
    return controller


def reset_filters():
    st.session_state["year_filter"] = ALL_LABEL
    st.session_state["month_filter"] = ALL_LABEL
    st.session_state["category_filter"] = DEFAULT_CRITERIA.category
    controller = st.session_state.get("controller")
    if controller is not None:
        controller.reset()


def render_hero(overview: dict):
    hero = overview["hero"]
    cols = st.columns(4)
    cols[0].metric("Pontos de dados", f"{hero['count']}")
    cols[1].metric("Preço médio da gasolina", format_currency(hero["average_fuel_price"]))
    cols[2].metric("IPCA acumulado", format_percent(hero["last_accumulated_ipca"]))
    filtered = overview["filtered"]
    cols[3].metric(
        "Registros filtrados",
        f"{filtered['count']}",
        help="Média no filtro: " + format_currency(filtered["average_fuel_price"]),
    )


def render_charts(view):
    charts = build_charts(view)
    if not charts:
        st.info("Nenhum dado encontrado com os filtros selecionados.")
        return
    c1, c2 = st.columns(2)
    with c1:
        with card("Evolução do preço da gasolina"):
            st.vega_lite_chart(charts["gas_price"], use_container_width=True)
    with c2:
        with card("IPCA mensal"):
            st.vega_lite_chart(charts["ipca_monthly"], use_container_width=True)
    c3, c4 = st.columns(2)
    with c3:
        with card("IPCA acumulado"):
            st.vega_lite_chart(charts["ipca_accumulated"], use_container_width=True)
    with c4:
        with card("Gasolina x IPCA (normalizado)"):
            if "comparison" in charts:
                st.vega_lite_chart(charts["comparison"], use_container_width=True)
            else:
                st.info("Sem valores para normalizar.")


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard IPCA & Combustíveis", layout="wide")
inject_base_styles()
st.title("Dashboard IPCA & Combustíveis")
st.caption("Evolução do preço da gasolina e do IPCA, com dados históricos e projeções.")

controller = get_controller()
if controller is None:
    st.stop()

state = controller.state
year_options = [ALL_LABEL] + [str(y) for y in state.years]
month_options = [ALL_LABEL] + [str(m) for m in range(1, 13)]

with st.sidebar:
    st.markdown("### Filtros")
    year_value = st.selectbox("Ano", options=year_options, key="year_filter")
    month_value = st.selectbox(
        "Mês",
        options=month_options,
        format_func=lambda v: v if v == ALL_LABEL else MONTH_NAMES[int(v)],
        key="month_filter",
    )
    category_value = st.selectbox(
        "Tipo de dados",
        options=list(CATEGORIES),
        format_func=lambda v: CATEGORY_OPTIONS[v],
        key="category_filter",
    )
    st.button("Limpar filtros", on_click=reset_filters)

criteria = normalize_criteria({"year": year_value, "month": month_value, "category": category_value})
if criteria != controller.state.criteria:
    state = controller.apply(criteria)
else:
    state = controller.state

overview = compute_overview(state)
view = state.view

render_hero(overview)
st.markdown(f"<div class='chip-row'>{format_filter_summary(state.criteria)}</div>", unsafe_allow_html=True)
render_charts(view)

with card("Dados detalhados"):
    if view:
        st.dataframe(format_table(view), use_container_width=True, hide_index=True)
    else:
        st.info("Nenhum dado encontrado com os filtros selecionados.")
    st.download_button(
        "Exportar CSV",
        data=to_csv_bytes(view),
        file_name=export_filename(),
        mime="text/csv",
        disabled=not view,
    )

with st.expander("Qualidade dos dados", expanded=False):
    if state.records:
        st.write(
            f"Período: {format_day_month_year(state.records[0].date)} a "
            f"{format_day_month_year(state.records[-1].date)}"
        )
    st.write({"fonte": state.source, "linhas_ignoradas": overview["dropped_rows"]})
    if state.dropped:
        st.dataframe(
            [{"linha": e.line_number, "motivo": e.reason, "conteudo": e.raw} for e in state.dropped],
            hide_index=True,
        )

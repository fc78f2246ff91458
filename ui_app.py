"""Streamlit UI for the Price Studio comparator."""
from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from pricestudio import (
    DecodeFailure,
    EmptyExport,
    InvalidPercentage,
    PriceSession,
    load_config,
)
from pricestudio.search import STOCK_FILTERS, ComparisonEntry

st.set_page_config(page_title="Comparador de Precios", layout="wide")

STOCK_LABELS = {
    "all": "Todo el stock",
    "exclude_zero": "Excluir stock cero",
    "only_zero": "Solo stock cero",
    "only_negative": "Solo stock negativo",
}
SCOPE_LABELS = {
    "selected": "Productos seleccionados",
    "category": "Categoría actual",
    "all": "Todos los productos",
}


def _session() -> PriceSession:
    if "session" not in st.session_state:
        st.session_state["session"] = PriceSession(load_config())
    return st.session_state["session"]


def _entries_frame(entries: List[ComparisonEntry], sources: List[str], selected: set) -> pd.DataFrame:
    rows = []
    for entry in entries:
        row = {
            "Seleccionar": entry.code in selected,
            "Código": entry.code,
            "Nombre": entry.name,
            "Categoría": entry.category,
        }
        for source in sources:
            figures = entry.by_source.get(source)
            if figures is None:
                row[source] = "-"
            else:
                row[source] = (
                    f"Stock: {figures.stock:g} | Costo: ${figures.net_cost:,.2f}"
                    f" | Venta: ${figures.sale_price:,.2f}"
                )
        row["Ganancia"] = f"{entry.current_margin_pct:.1f}%"
        row["Precio Sugerido"] = f"${entry.suggested_price:,.2f}"
        rows.append(row)
    return pd.DataFrame(rows)


session = _session()

st.title("Comparador de Precios")
st.write("Compara precios entre locales y recalcula precios sugeridos sobre el costo neto.")

with st.sidebar:
    st.header("Archivos")
    uploaded = st.file_uploader("Listas de precios", type=["xlsx", "xls"], accept_multiple_files=True)
    if st.button("Cargar y procesar archivos"):
        if not uploaded:
            st.warning("Por favor selecciona al menos un archivo Excel")
        else:
            with st.spinner("Procesando archivos..."):
                try:
                    session.upload([(item.name, item.getvalue()) for item in uploaded])
                except DecodeFailure as exc:
                    st.error(str(exc))
                else:
                    st.success("Archivos procesados exitosamente")

if not session.is_loaded:
    st.info("Carga las listas de precios desde el panel lateral.")
    st.stop()

summary = session.summary
cols = st.columns(4)
cols[0].metric("Total productos", summary.total_products)
cols[1].metric("Locales", len(summary.sources))
cols[2].metric("Categorías", len(summary.categories))
cols[3].metric("Archivos", summary.files_processed)

st.subheader("Buscar y filtrar")
filter_cols = st.columns(3)
query = filter_cols[0].text_input("Buscar producto", value=session.query, placeholder="Código o nombre...")
category_options = ["all", *summary.categories]
category = filter_cols[1].selectbox(
    "Categoría",
    category_options,
    index=category_options.index(session.category) if session.category in category_options else 0,
    format_func=lambda value: "Todas las categorías" if value == "all" else value,
)
stock_filter = filter_cols[2].selectbox(
    "Stock",
    list(STOCK_FILTERS),
    index=list(STOCK_FILTERS).index(session.stock_filter),
    format_func=STOCK_LABELS.get,
)
session.set_filters(query=query, category=category, stock_filter=stock_filter)

st.subheader("Ajuste de precios")
adjust_cols = st.columns(3)
percentage = adjust_cols[0].text_input("Porcentaje de ganancia", value="25")
scope = adjust_cols[1].selectbox("Aplicar a", list(SCOPE_LABELS), format_func=SCOPE_LABELS.get)
if adjust_cols[2].button("Aplicar porcentaje"):
    try:
        changed = session.recalculate(percentage, scope, generation=session.generation)
    except InvalidPercentage:
        st.error("Por favor, ingresa un porcentaje válido.")
    else:
        st.success(f"Precios sugeridos actualizados: {changed}")

entries = session.view()
st.subheader(f"Comparación de productos ({len(entries)})")
edited = st.data_editor(
    _entries_frame(entries, summary.sources, session.selected_codes),
    disabled=["Código", "Nombre", "Categoría", *summary.sources, "Ganancia", "Precio Sugerido"],
    hide_index=True,
    use_container_width=True,
)
if not edited.empty:
    session.update_selection(
        edited["Código"].tolist(),
        edited.loc[edited["Seleccionar"], "Código"].tolist(),
    )

try:
    payload = session.export()
except EmptyExport:
    st.info("No hay productos para exportar.")
else:
    st.download_button(
        "Exportar Excel",
        data=payload,
        file_name=session.config.export.file_name,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

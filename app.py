"""
Plant Dashboard — Interactive Dashboard

Run with:  streamlit run app.py
"""

import io
import sys
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))

from plant_dashboard.config import (
    BUDGET_STATUSES,
    CAPEX_TEMPLATE_FILE,
    INSTRUMENT_STATUSES,
    INSTRUMENT_TEMPLATE_FILE,
    SORT_OPTIONS,
)
from plant_dashboard.loaders import load_capex_register, load_instrument_workbook
from plant_dashboard.filters import get_unique_values, normalize_filters
from plant_dashboard.dashboard import (
    get_capex_overview,
    get_export_frame,
    get_instrument_overview,
    get_obsolescence_items,
)
from plant_dashboard.schema import CAPEX_SCHEMA, INSTRUMENT_SCHEMA
from plant_dashboard.template import build_capex_template, build_instrument_template

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Plant Dashboard",
    page_icon="🏭",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_COLORS = {
    "Healthy": "#2ecc71",
    "Caution": "#f39c12",
    "Warning": "#e74c3c",
    "Overrun": "#e74c3c",
    "Unknown": "#95a5a6",
}


# ---------------------------------------------------------------------------
# Data loading (cached on the uploaded bytes)
# ---------------------------------------------------------------------------
@st.cache_data
def template_bytes(domain: str) -> bytes:
    buf = io.BytesIO()
    if domain == "capex":
        build_capex_template(buf)
    else:
        build_instrument_template(buf)
    return buf.getvalue()


@st.cache_data
def ingest(domain: str, payload: bytes):
    if domain == "capex":
        return load_capex_register(payload)
    return load_instrument_workbook(payload)


def current_result(domain: str, upload):
    """A new upload replaces the previous result for the domain wholesale."""
    key = f"result_{domain}"
    if upload is not None:
        st.session_state[key] = ingest(domain, upload.getvalue())
        st.session_state[f"filename_{domain}"] = upload.name
    elif key not in st.session_state:
        st.session_state[key] = ingest(domain, template_bytes(domain))
        st.session_state[f"filename_{domain}"] = "sample data"
    return st.session_state[key]


def show_messages(result) -> None:
    for message in result.errors:
        st.error(message)
    if result.warnings:
        with st.expander(f"{len(result.warnings)} warning(s)"):
            for message in result.warnings:
                st.warning(message)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Plant Dashboard")
st.sidebar.markdown("CAPEX & Instrument Healthiness")
st.sidebar.divider()

page = st.sidebar.radio("Navigate", ["CAPEX Budget", "Instrument Healthiness"])
domain = "capex" if page == "CAPEX Budget" else "instrument"
schema = CAPEX_SCHEMA if domain == "capex" else INSTRUMENT_SCHEMA

upload = st.sidebar.file_uploader("Upload workbook (.xlsx)", type=["xlsx"], key=f"upload_{domain}")
st.sidebar.download_button(
    "Download template",
    data=template_bytes(domain),
    file_name=CAPEX_TEMPLATE_FILE if domain == "capex" else INSTRUMENT_TEMPLATE_FILE,
)

result = current_result(domain, upload)
rows = result.rows
st.sidebar.caption(f"Source: {st.session_state.get(f'filename_{domain}')}")
st.sidebar.divider()

categories = {}
for field_name in schema.category_fields:
    options = get_unique_values(rows, field_name)
    if options:
        categories[field_name] = st.sidebar.multiselect(schema.label(field_name), options)

date_from = st.sidebar.date_input("From", value=None)
date_to = st.sidebar.date_input("To", value=None)
search_text = st.sidebar.text_input("Search")
sort_by = st.sidebar.selectbox("Sort by", SORT_OPTIONS)

filters = normalize_filters(
    {
        "categories": categories,
        "date_from": date_from,
        "date_to": date_to,
        "search_text": search_text,
        "sort_by": sort_by,
    },
    schema,
)


def status_card(label: str, value: str, status: str, caption: str = ""):
    color = STATUS_COLORS.get(status, STATUS_COLORS["Unknown"])
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{value}</div>
            <div style="font-size: 13px; color: #666;">{caption}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: CAPEX Budget
# ===========================================================================
if page == "CAPEX Budget":
    st.title("CAPEX Budget Overview")
    show_messages(result)

    group_statuses = st.multiselect("Discipline status", BUDGET_STATUSES)
    overview = get_capex_overview(rows, filters, group_statuses=group_statuses)
    kpis = overview["kpis"]
    groups = overview["groups"]

    cols = st.columns(4)
    with cols[0]:
        status_card("Approved Budget", f"RM {kpis['total_approved']:,.0f}", "Healthy",
                    f"{kpis['total_projects']} projects, {kpis['active_projects']} active")
    with cols[1]:
        status_card("Actual Spend", f"RM {kpis['actual_spend']:,.0f}", "Healthy")
    with cols[2]:
        status_card("Remaining", f"RM {kpis['remaining']:,.0f}",
                    "Overrun" if kpis["overrun"] > 0 else "Healthy",
                    f"Overrun: RM {kpis['overrun']:,.0f}")
    with cols[3]:
        status_card("Utilization", f"{kpis['utilization_pct']:.1f}%", "Caution" if kpis["caution_count"] else "Healthy",
                    f"{kpis['healthy_count']} healthy / {kpis['caution_count']} caution / {kpis['overrun_count']} overrun")

    st.divider()
    st.subheader("By Discipline")
    if not groups.empty:
        fig = go.Figure()
        fig.add_trace(go.Bar(
            x=groups["group_key"],
            y=groups["approved_budget"],
            name="Approved",
            marker_color="#3498db",
        ))
        fig.add_trace(go.Bar(
            x=groups["group_key"],
            y=groups["actual_spend"],
            name="Actual",
            marker_color=[STATUS_COLORS[s] for s in groups["status"]],
        ))
        fig.update_layout(barmode="group", height=400, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)

        def color_status(val):
            return f"color: {STATUS_COLORS.get(val, '#333')}; font-weight: 600"

        st.dataframe(groups.style.map(color_status, subset=["status"]),
                     use_container_width=True, hide_index=True)
    else:
        st.info("No projects match the current filters.")

    st.subheader("Projects")
    st.dataframe(
        get_export_frame(
            overview["rows"],
            ["name", "discipline", "current_budget", "actual_spend", "utilization_pct",
             "health", "project_status", "start_date", "end_date"],
            schema,
        ),
        use_container_width=True,
        hide_index=True,
    )


# ===========================================================================
# PAGE: Instrument Healthiness
# ===========================================================================
else:
    st.title("Instrument Asset Healthiness")
    show_messages(result)

    overview = get_instrument_overview(rows, filters)
    kpis = overview["kpis"]

    col1, col2 = st.columns([1, 2])
    with col1:
        fig = go.Figure(go.Indicator(
            mode="gauge+number",
            value=kpis["score"],
            title={"text": f"Overall Health — {kpis['label']}"},
            gauge={"axis": {"range": [0, 100]}, "bar": {"color": "#00B1A9"}},
        ))
        fig.update_layout(height=300, margin=dict(l=20, r=20, t=60, b=20))
        st.plotly_chart(fig, use_container_width=True)
    with col2:
        counts = pd.DataFrame(
            {"status": list(kpis["status_counts"]), "count": list(kpis["status_counts"].values())}
        )
        fig = px.pie(
            counts, names="status", values="count", hole=0.5,
            color="status", color_discrete_map=STATUS_COLORS,
        )
        fig.update_layout(height=300, margin=dict(l=20, r=20, t=20, b=20))
        st.plotly_chart(fig, use_container_width=True)

    st.divider()
    tab1, tab2, tab3 = st.tabs(["By Equipment Type", "Alarms", "Obsolescence (ALS)"])

    with tab1:
        breakdown = overview["by_equipment_type"]
        if not breakdown.empty:
            fig = go.Figure()
            for status in INSTRUMENT_STATUSES:
                fig.add_trace(go.Bar(
                    x=breakdown["group_key"],
                    y=breakdown[status],
                    name=status,
                    marker_color=STATUS_COLORS[status],
                ))
            fig.update_layout(barmode="stack", height=400, plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)
        st.dataframe(breakdown, use_container_width=True, hide_index=True)

    with tab2:
        st.dataframe(
            get_export_frame(overview["rows"], list(schema.columns[1:-1]), schema),
            use_container_width=True,
            hide_index=True,
        )

    with tab3:
        als = get_obsolescence_items(overview["rows"])
        if als.empty:
            st.info("No obsolescence items found.")
        else:
            st.dataframe(
                get_export_frame(
                    als,
                    ["area", "equipment_type", "tag_number", "equipment_description",
                     "status", "alarm_text", "notification_date"],
                    schema,
                ),
                use_container_width=True,
                hide_index=True,
            )

"""
Weld production dashboard: interactive front end.

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from weld_dashboard.config import (
    DEFECT_DATA_SOURCE,
    KPI_TARGETS,
    MAIN_DATA_SOURCE,
    PERIODS,
    RULE_OPERATORS,
    STATUS_COLORS,
)
from weld_dashboard.dashboard import (
    export_csv,
    generate_colors,
    get_defect_pie,
    get_defect_summary,
    get_other_defects,
    get_overview,
    get_production_series,
    get_rework_chart,
    get_rework_pie,
    get_table_page,
    get_trend_summary,
    get_welder_lines,
    get_welder_ranking,
)
from weld_dashboard.errors import DataLoadError, FilterValidationError, RuleError
from weld_dashboard.session import DashboardSession, snapshot_from_tables
from weld_dashboard.simulator import generate_demo_tables

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Weld Production Dashboard",
    page_icon="🔥",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------
def _exists(source: str) -> bool:
    return source.startswith(("http://", "https://")) or Path(source).exists()


@st.cache_data
def demo_snapshot():
    return snapshot_from_tables(*generate_demo_tables())


def load_session(main_source: str, defect_source: str) -> DashboardSession:
    session = DashboardSession()
    if _exists(main_source):
        session.load_sources(main_source, defect_source if _exists(defect_source) else None)
    else:
        session.load(demo_snapshot)
    return session


if "session" not in st.session_state:
    try:
        st.session_state["session"] = load_session(MAIN_DATA_SOURCE, DEFECT_DATA_SOURCE)
    except DataLoadError as exc:
        st.error(f"Could not load weld data: {exc}")
        st.stop()

session: DashboardSession = st.session_state["session"]

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Weld Production")
st.sidebar.markdown("Welder performance and quality dashboard")
st.sidebar.divider()

with st.sidebar.form("filters"):
    date_from = st.text_input("Date from (DD.MM.YYYY)")
    date_to = st.text_input("Date to (DD.MM.YYYY)")
    order = st.text_input("Order")
    component = st.text_input("Component")
    welder = st.text_input("Welder")
    diameter = st.text_input("Diameter")
    thickness = st.text_input("Thickness")
    cutting = st.text_input("Cutting type")
    col_apply, col_reset = st.columns(2)
    applied = col_apply.form_submit_button("Apply")
    reset = col_reset.form_submit_button("Reset")

if applied:
    try:
        session.apply_filters({
            "date_from": date_from,
            "date_to": date_to,
            "order": order,
            "component": component,
            "welder": welder,
            "diameter": diameter,
            "thickness": thickness,
            "cutting": cutting,
        })
    except FilterValidationError as exc:
        st.sidebar.error(str(exc))
elif reset:
    session.reset_filters()

if st.sidebar.button("Reload data"):
    try:
        session.load_sources(MAIN_DATA_SOURCE, DEFECT_DATA_SOURCE if _exists(DEFECT_DATA_SOURCE) else None)
    except DataLoadError as exc:
        st.sidebar.error(f"Reload failed, showing previous data: {exc}")

if not session.has_defect_data and session.headers:
    rule = session.defect_rule
    with st.sidebar.form("defect_rule"):
        st.caption("No defect sheet loaded; defects are flagged by a rule")
        fields = session.headers
        rule_field = st.selectbox(
            "Field", fields, index=fields.index(rule.field) if rule.field in fields else 0
        )
        rule_operator = st.selectbox("Operator", RULE_OPERATORS, index=RULE_OPERATORS.index(rule.operator))
        rule_value = st.text_input("Value", value=str(rule.value))
        if st.form_submit_button("Apply rule"):
            try:
                session.set_defect_rule({"field": rule_field, "operator": rule_operator, "value": rule_value})
            except RuleError as exc:
                st.sidebar.error(str(exc))

page = st.sidebar.radio("Navigate", ["Overview", "Welders", "Quality", "Trends", "Data"])

st.sidebar.divider()
st.sidebar.caption(f"{len(session.filtered)} of {len(session.snapshot.main)} operations shown")
if session.warnings:
    with st.sidebar.expander(f"{len(session.warnings)} load warnings"):
        for message in session.warnings[:50]:
            st.caption(message)


# ---------------------------------------------------------------------------
# Helper: KPI card
# ---------------------------------------------------------------------------
def kpi_card(label: str, card: dict, unit: str = "", fmt: str = "{:,.1f}"):
    color = STATUS_COLORS.get(card["status"], STATUS_COLORS["neutral"])
    info = card["trend_info"]
    trend_color = STATUS_COLORS["good"] if info["quality"] == "good" else (
        STATUS_COLORS["bad"] if info["quality"] == "bad" else STATUS_COLORS["neutral"]
    )
    suffix = " pp" if label == "Defect rate" else "%"
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{fmt.format(card['value'])} <span style="font-size: 14px; color: #888;">{unit}</span></div>
            <div style="font-size: 13px; color: {trend_color}; font-weight: 600;">{info['icon']} {card['trend']:+.1f}{suffix}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: Overview
# ===========================================================================
if page == "Overview":
    st.title("Production Overview")

    overview = get_overview(session)
    cols = st.columns(4)
    with cols[0]:
        kpi_card("Operations", overview["total"], fmt="{:,.0f}")
    with cols[1]:
        kpi_card("Weld length", overview["total_length"], "m")
    with cols[2]:
        kpi_card("Per shift", overview["avg_per_shift"], "m")
    with cols[3]:
        kpi_card("Defect rate", overview["defect_pct"], "%")
    st.caption(f"Defects: {overview['defect_source']}")

    st.divider()

    col1, col2 = st.columns([2, 1])
    with col1:
        st.subheader("Production by month")
        series = get_production_series(session)
        if series["labels"]:
            colors = [STATUS_COLORS["good"] if up else STATUS_COLORS["warning"] for up in series["above_mean"]]
            fig = go.Figure(go.Bar(x=series["labels"], y=series["values"], marker_color=colors, name="Weld length"))
            fig.add_hline(y=series["mean"], line_dash="dash", line_color="#888", annotation_text="Average")
            fig.update_layout(height=380, yaxis_title="m", plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No dated operations in the current filter.")

    with col2:
        st.subheader("Defects")
        summary = get_defect_summary(session)
        st.metric("Defective", summary["defect_count"], delta=f"{summary['defect_pct']}%", delta_color="inverse")
        for name, count in summary["top_welders"]:
            st.markdown(f"- **{name}**: {count}")


# ===========================================================================
# PAGE: Welders
# ===========================================================================
elif page == "Welders":
    st.title("Welder Ranking")

    ranking = get_welder_ranking(session, top_n=None)
    top = ranking.head(10)
    if top.empty:
        st.warning("No operations in the current filter.")
    else:
        fig = go.Figure(go.Bar(
            x=top["score"],
            y=top["welder"],
            orientation="h",
            marker_color=generate_colors(len(top)),
            text=top["score"].apply(lambda x: f"{x:,.1f}"),
            textposition="outside",
        ))
        fig.update_layout(height=420, yaxis=dict(autorange="reversed"), plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(ranking, use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Quality
# ===========================================================================
elif page == "Quality":
    st.title("Quality")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Defect share by welder")
        pie = get_defect_pie(session)
        pie = pie[pie["defect_pct"] > 0]
        if pie.empty:
            st.info("No defects in the current filter.")
        else:
            fig = go.Figure(go.Pie(
                labels=pie["welder"], values=pie["defect_pct"], marker_colors=generate_colors(len(pie)),
            ))
            st.plotly_chart(fig, use_container_width=True)

    with col2:
        st.subheader("Rejection vs rework")
        if session.has_defect_data:
            shares = get_rework_pie(session)
            fig = go.Figure(go.Pie(
                labels=["Rejection", "Rework"],
                values=[shares["rejection"], shares["rework"]],
                marker_colors=[STATUS_COLORS["bad"], STATUS_COLORS["warning"]],
            ))
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No defect dataset loaded; defects come from the rule.")

    if session.has_defect_data:
        st.subheader("Rework by welder")
        rework = get_rework_chart(session)
        if not rework.empty:
            fig = go.Figure()
            fig.add_trace(go.Bar(x=rework["welder"], y=rework["unique_components"], name="Components"))
            fig.add_trace(go.Bar(x=rework["welder"], y=rework["rework_count"], name="Reworked",
                                 marker_color=STATUS_COLORS["warning"]))
            fig.update_layout(barmode="group", height=380, plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)

        st.subheader("Other defects by stage")
        other = get_other_defects(session)
        if other["labels"]:
            fig = go.Figure(go.Bar(x=other["labels"], y=other["counts"], marker_color=generate_colors(len(other["labels"]))))
            fig.update_layout(height=360, plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Trends
# ===========================================================================
elif page == "Trends":
    st.title("Trends")

    trend = get_trend_summary(session)
    if trend["available"]:
        col1, col2, col3 = st.columns(3)
        col1.metric("Current month", f"{trend['current_month']:,.1f} m", delta=f"{trend['month_change_pct']:+.1f}%")
        col2.metric("3-month average", f"{trend['avg_3_months']:,.1f} m", delta=f"{trend['quarter_change_pct']:+.1f}%")
        col3.metric("Monthly target", f"{KPI_TARGETS['monthly_target']:,} m",
                    delta="met" if trend["target_met"] else "not met",
                    delta_color="normal" if trend["target_met"] else "inverse")
    else:
        st.info("At least two months of data are needed for a comparison.")

    period = st.selectbox("Period", PERIODS, index=PERIODS.index("month"))
    lines = get_welder_lines(session, period)
    if lines.empty:
        st.warning("No dated operations in the current filter.")
    else:
        fig = go.Figure()
        for (welder, row), color in zip(lines.iterrows(), generate_colors(len(lines))):
            fig.add_trace(go.Scatter(x=list(lines.columns), y=row.values, name=welder,
                                     mode="lines+markers", line=dict(color=color, width=2)))
        fig.update_layout(height=450, yaxis_title="m", plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Data
# ===========================================================================
elif page == "Data":
    st.title("Latest Operations")

    table = get_table_page(session)
    st.dataframe(table, use_container_width=True, hide_index=True)

    if session.filtered is not None and not session.filtered.empty:
        st.download_button(
            "Download CSV",
            data=export_csv(session),
            file_name=f"welding_{pd.Timestamp.today():%Y-%m-%d}.csv",
            mime="text/csv",
        )

"""
Loopyter - 首页
Session / 上传数据集 / AI 数据分析与清洗建议
"""
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from i18n import language_selector, t
from notebook.api_client import GatewayError
from notebook.executor import DATA_DIR, DATASET_ALIAS
from state import get_workspace, show_gateway_error

st.set_page_config(
    page_title="Loopyter",
    page_icon="🔁",
    layout="wide",
)

language_selector()

st.title(t("home_title"))
st.caption(t("home_subtitle"))
st.markdown("---")

ws = get_workspace()
st.success(f"{t('backend_connected')} ✓")

# ---- Session ----
with st.sidebar:
    st.caption(f"{t('session')}: `{ws.session_id}`")
    new_name = st.text_input(t("session_name"), key="new_session_name")
    if st.button(t("new_session"), use_container_width=True):
        try:
            ws.new_session(new_name or None)
            st.rerun()
        except GatewayError as e:
            show_gateway_error(e)

# ---- 上传 CSV ----
st.subheader(t("upload_csv"))
uploaded = st.file_uploader(t("upload_csv"), type=["csv"], label_visibility="collapsed")
if uploaded is not None and uploaded.name != ws.dataset_file_name:
    try:
        ws.load_dataset(uploaded.getvalue().decode("utf-8"), uploaded.name)
        st.session_state.pop("data_analysis", None)
        st.session_state.pop("cleaning", None)
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        st.error(f"{t('parse_failed')}: {e}")

profile = ws.dataset_profile
if profile is None:
    st.info(t("no_dataset"))
    st.stop()

name = ws.dataset_file_name
st.info(f"{t('dataset_loaded')}: `{name}` · `{DATASET_ALIAS}` · `{DATA_DIR}/{DATASET_ALIAS}`")
st.caption(t("rows_cols", rows=profile["rowCount"], cols=len(profile["columns"])))

tab_preview, tab_stats, tab_dist = st.tabs([t("preview"), t("column_stats"), t("distributions")])

with tab_preview:
    st.dataframe(pd.DataFrame(profile["rows"], columns=profile["columns"]), use_container_width=True)

with tab_stats:
    st.dataframe(pd.DataFrame(profile["stats"]).T, use_container_width=True)

with tab_dist:
    numeric_cols = list(profile["distributions"].keys())
    if numeric_cols:
        col = st.selectbox(t("distributions"), numeric_cols, label_visibility="collapsed")
        bins = profile["distributions"][col]
        fig = go.Figure(go.Bar(
            x=[b["bin"] for b in bins],
            y=[b["count"] for b in bins],
            marker_color="#1E90FF",
        ))
        fig.update_layout(height=320, margin=dict(l=20, r=20, t=30, b=20))
        st.plotly_chart(fig, use_container_width=True)

# ---- AI 数据分析 / 清洗 ----
st.markdown("---")
col1, col2 = st.columns(2)

with col1:
    if st.button(t("ai_analyze_data"), use_container_width=True):
        with st.spinner(t("analyzing")):
            try:
                st.session_state.data_analysis = ws.analyze_data()
            except GatewayError as e:
                show_gateway_error(e)

    analysis = st.session_state.get("data_analysis")
    if analysis:
        st.markdown(analysis["dataDescription"])
        st.markdown(f"**{t('insights')}**")
        for insight in analysis.get("insights", []):
            st.markdown(f"- {insight}")

        recs = analysis.get("mlRecommendations")
        if recs:
            with st.container(border=True):
                st.markdown(f"**{t('ml_recommendations')}** · `{recs['taskType']}` → `{recs.get('targetColumn')}`")
                for m in recs.get("recommendedModels", []):
                    st.markdown(f"- **{m['name']}** ({m['expectedPerformance']}): {m.get('reason', '')}")

        charts = analysis.get("suggestedVisualizations", [])
        if charts:
            st.markdown(f"**{t('suggested_charts')}**")
            for chart in charts:
                st.caption(f"{chart['type']} · {chart['title']}: {chart['description']}")

with col2:
    feedback = st.text_input(t("cleaning_feedback"))
    if st.button(t("ai_clean_data"), use_container_width=True):
        with st.spinner(t("analyzing")):
            try:
                st.session_state.cleaning = ws.clean_data(feedback or None)
            except GatewayError as e:
                show_gateway_error(e)

    cleaning = st.session_state.get("cleaning")
    if cleaning:
        score = cleaning["dataQualityScore"]
        c1, c2 = st.columns(2)
        c1.metric(t("quality_score"), f"{score['after']:.0f}", f"{score['after'] - score['before']:+.0f}")
        c2.markdown(cleaning["summary"])
        for op in cleaning.get("cleaningOperations", []):
            with st.container(border=True):
                st.markdown(f"**{op['type']}** `{op.get('column') or '-'}` · {op.get('impact', '')}")
                st.caption(op["description"])
                st.code(op["action"], language="python")
        for w in cleaning.get("warnings", []):
            st.warning(w)

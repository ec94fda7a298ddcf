"""
每个浏览器会话一个 NotebookWorkspace，保存在 st.session_state 里
"""
import logging
import os

import streamlit as st

from notebook.api_client import API_URL, AIGateway, GatewayError, SessionGateway, check_health
from notebook.workspace import NotebookWorkspace
from i18n import t

logger = logging.getLogger(__name__)


@st.cache_resource
def _configure_logging():
    """Streamlit 会反复执行页面脚本，这里只配置一次"""
    logging.basicConfig(
        level=os.environ.get("LOOPYTER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return True


def get_workspace() -> NotebookWorkspace:
    """第一次调用时预热执行器并创建 session；后端连不上时停止渲染"""
    _configure_logging()
    if "workspace" in st.session_state:
        return st.session_state.workspace

    if not check_health(API_URL):
        st.error(f"{t('backend_disconnected')}：`cd backend && uvicorn main:app --reload`")
        st.stop()

    ws = NotebookWorkspace(SessionGateway(API_URL), AIGateway(API_URL))
    with st.spinner(t("engine_loading")):
        if not ws.executor.initialize():
            st.error(t("engine_failed"))
            st.stop()
    try:
        ws.new_session()
    except GatewayError as e:
        st.error(f"{t('request_failed')}: {e.message}")
        st.stop()
    st.session_state.workspace = ws
    return ws


def show_gateway_error(e: GatewayError):
    """AI / 后端错误只在当前操作的位置提示，不影响页面其它部分"""
    logger.warning("Gateway error: %s", e)
    if e.code == "CONFIG_ERROR":
        st.error(f"⚙️ {e.message}")
    else:
        st.error(f"{t('request_failed')}: {e.message}")

"""
App Safety Agent: search an app, get a safety report, ask follow-up questions.
Run with: streamlit run app_safety/dashboard.py
"""

import streamlit as st
import plotly.graph_objects as go
import pandas as pd
import html
from datetime import datetime
from urllib.parse import urlparse
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app_safety.config import LLM_MODEL
from app_safety.errors import AppSafetyError
from app_safety.logging_config import setup_logging, get_logger
from app_safety.normalizer import NOT_AVAILABLE
from app_safety.session import AnalysisSession, SessionState

setup_logging()
logger = get_logger(__name__)

# ============================================================
# PAGE CONFIG
# ============================================================
st.set_page_config(
    page_title="App Safety Agent",
    page_icon="◆",
    layout="wide",
    initial_sidebar_state="collapsed",
)

# ============================================================
# STYLING, applied ONCE at the top of every render
# ============================================================
CUSTOM_CSS = """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');
html, body, [class*="css"] { font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif; }

footer {visibility: hidden;}
#MainMenu {visibility: hidden;}

:root {
    --bg-elevated: #2d2b26;
    --border: rgba(255,235,205,0.08);
    --text-primary: #e8e0d5;
    --text-secondary: #9c9588;
    --accent: #d97757;
    --accent-hover: #e8895f;
}

/* Metric cards */
[data-testid="stMetric"] {
    background: var(--bg-elevated);
    border: 1px solid var(--border); border-radius: 14px;
    padding: 18px 22px; box-shadow: 0 2px 12px rgba(0,0,0,0.2);
}
[data-testid="stMetric"] label {
    color: var(--text-secondary) !important; font-weight: 500; font-size: 0.72rem;
    text-transform: uppercase; letter-spacing: 0.06em;
}
[data-testid="stMetric"] [data-testid="stMetricValue"] {
    color: var(--text-primary) !important; font-weight: 700; font-size: 1.5rem;
}

/* Buttons */
.stButton > button {
    border-radius: 10px; font-weight: 600; transition: all 0.15s ease;
    border: 1px solid var(--border);
}
.stButton > button[kind="primary"],
.stButton > button[data-testid="baseButton-primary"] {
    background: var(--accent) !important; color: #fff !important; border: none;
}
.stButton > button[kind="primary"]:hover,
.stButton > button[data-testid="baseButton-primary"]:hover {
    background: var(--accent-hover) !important;
}

/* Result cards */
.hit-card {
    background: var(--bg-elevated); border: 1px solid var(--border); border-radius: 14px;
    padding: 16px 18px; margin-bottom: 0.6rem; min-height: 150px;
}
.hit-card .name { color: var(--text-primary); font-weight: 700; font-size: 1.05rem; }
.hit-card .dev { color: var(--accent); font-size: 0.8rem; margin-bottom: 0.4rem; }
.hit-card .desc { color: var(--text-secondary); font-size: 0.85rem; }

/* Tabs */
.stTabs [data-baseweb="tab-list"] { gap: 4px; border-bottom-color: var(--border); }
.stTabs [data-baseweb="tab"] { border-radius: 8px 8px 0 0; padding: 8px 16px; font-weight: 500; }
.stTabs [aria-selected="true"] { border-bottom: 2px solid var(--accent) !important; }

/* Chat messages */
[data-testid="stChatMessage"] { border-radius: 12px; border: 1px solid var(--border); }

hr { border-color: var(--border); }
.stSuccess, .stInfo, .stWarning, .stError { border-radius: 10px; }
</style>
"""

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)


def apply_chart_style(fig):
    fig.update_layout(
        font=dict(family="Inter, sans-serif", color="#9c9588"),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=20, r=20, t=30, b=10),
    )
    return fig


# ============================================================
# SESSION STATE HELPERS
# ============================================================
def _get_session() -> AnalysisSession:
    if "session" not in st.session_state:
        st.session_state.session = AnalysisSession()
    return st.session_state.session


def _update_age(last_updated):
    """'Oct 24, 2024' -> '3 months ago'. None if the date can't be read."""
    try:
        updated = date_parser.parse(last_updated)
    except (ValueError, OverflowError):
        return None
    delta = relativedelta(datetime.now(), updated)
    if delta.years:
        return f"{delta.years} year{'s' if delta.years != 1 else ''} ago"
    if delta.months:
        return f"{delta.months} month{'s' if delta.months != 1 else ''} ago"
    return "this month"


# ============================================================
# HEADER
# ============================================================
def render_header():
    st.markdown("""
    <div style="display:flex; align-items:center; gap:10px; margin-bottom:0.6rem;">
        <span style="font-size:1.3rem; color:#d97757;">◆</span>
        <span style="font-size:1.3rem; font-weight:700; color:#e8e0d5;">App Safety Agent</span>
        <span style="color:#6b6560; font-size:0.8rem; margin-left:auto;">Is this app the real deal?</span>
    </div>""", unsafe_allow_html=True)


def render_error(session: AnalysisSession):
    """Inline, dismissible error message."""
    if not session.error:
        return
    c1, c2 = st.columns([12, 1])
    with c1:
        st.error(session.error)
    with c2:
        if st.button("✕", key="btn_dismiss_error", help="Dismiss"):
            session.dismiss_error()
            st.rerun()


# ============================================================
# SEARCH VIEW
# ============================================================
def render_search(session: AnalysisSession):
    with st.form("search_form"):
        c1, c2 = st.columns([5, 1])
        with c1:
            query = st.text_input("App name", value=session.query,
                                  placeholder="e.g. WhatsApp, Revolut, Duolingo",
                                  label_visibility="collapsed")
        with c2:
            submitted = st.form_submit_button("Search", use_container_width=True, type="primary")

    if submitted and query.strip():
        with st.spinner(f"Searching the Play Store for “{query.strip()}”..."):
            try:
                session.search(query)
            except AppSafetyError as e:
                logger.error(f"Search failed: {e}")
        st.rerun()

    render_error(session)

    if session.state != SessionState.AWAITING_ANALYSIS:
        return

    st.markdown("#### Pick the app to analyze")
    cols = st.columns(len(session.hits))
    for i, (col, hit) in enumerate(zip(cols, session.hits)):
        with col:
            rating = f"★ {hit.rating}" if hit.rating and hit.rating != NOT_AVAILABLE else "★ N/A"
            # LLM text goes into raw HTML here, so escape it
            st.markdown(f"""
            <div class="hit-card">
                <div class="name">{html.escape(hit.name)}</div>
                <div class="dev">{html.escape(hit.developer)} · {rating}</div>
                <div class="desc">{html.escape(hit.description)}</div>
            </div>""", unsafe_allow_html=True)
            if st.button("Analyze", key=f"btn_analyze_{i}", use_container_width=True):
                with st.spinner(f"Analyzing {hit.name}, checking reviews, developer and authenticity..."):
                    try:
                        session.select(hit)
                    except AppSafetyError as e:
                        logger.error(f"Analysis failed: {e}")
                st.rerun()


# ============================================================
# ANALYSIS VIEW
# ============================================================
def chart_rating_gauge(rating: str):
    if rating == NOT_AVAILABLE:
        return
    fig = go.Figure(go.Indicator(
        mode="gauge+number", value=float(rating),
        number=dict(suffix=" ★", font=dict(color="#e8e0d5", size=28)),
        gauge=dict(
            axis=dict(range=[0, 5], tickcolor="#6b6560"),
            bar=dict(color="#d97757"),
            bgcolor="rgba(0,0,0,0)",
            steps=[
                dict(range=[0, 2.5], color="rgba(196,92,74,0.25)"),
                dict(range=[2.5, 4], color="rgba(201,168,92,0.25)"),
                dict(range=[4, 5], color="rgba(90,158,111,0.25)"),
            ],
        ),
    ))
    fig.update_layout(height=200)
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def render_sources(grounding_urls):
    if not grounding_urls:
        return
    st.markdown("---")
    st.caption("SOURCES")
    df = pd.DataFrame({
        "Site": [urlparse(u).netloc or u for u in grounding_urls],
        "Link": grounding_urls,
    })
    st.dataframe(df, hide_index=True, use_container_width=True,
                 column_config={"Link": st.column_config.LinkColumn("Link")})


def render_analysis(session: AnalysisSession):
    hit, analysis = session.selected, session.analysis

    if st.button("← Back to search", key="btn_back"):
        session.reset()
        st.rerun()

    st.markdown(f"## {hit.name}")
    st.caption(f"by **{hit.developer}**")

    # The Updated card only shows when a real date was found
    if analysis.last_updated:
        m1, m2, m3 = st.columns(3)
        age = _update_age(analysis.last_updated)
        m3.metric("Updated", analysis.last_updated, help=age)
    else:
        m1, m2 = st.columns(2)
    m1.metric("Downloads", analysis.downloads or NOT_AVAILABLE)
    m2.metric("Rating", analysis.rating or NOT_AVAILABLE)

    chart_rating_gauge(analysis.rating)

    tab_reviews, tab_auth, tab_bg = st.tabs(["⭐ Reviews", "🛡 Authenticity", "ℹ Background"])
    with tab_reviews:
        st.markdown("#### Review analysis")
        st.markdown(analysis.review_summary)
    with tab_auth:
        st.markdown("#### Authenticity & safety")
        st.markdown(analysis.authenticity)
    with tab_bg:
        st.markdown("#### Developer background")
        st.markdown(analysis.background)

    render_sources(analysis.grounding_urls)


# ============================================================
# CHATBOT
# ============================================================
SUGGESTED_QUESTIONS = [
    "Is this app safe to install?",
    "What do users complain about most?",
    "Are there fake copies of this app?",
]


def _send(session: AnalysisSession, message: str):
    try:
        session.ask(message)
    except AppSafetyError as e:
        # The session already added an error turn to the visible history
        logger.error(f"Chat failed: {e}")


def render_chatbot(session: AnalysisSession):
    st.markdown("#### 💬 Ask AI")
    st.caption(f"Model: {LLM_MODEL}")

    if not session.history:
        st.caption(f"Ask me anything about {session.selected.name}!")
        for i, question in enumerate(SUGGESTED_QUESTIONS):
            if st.button(question, key=f"sq{i}", use_container_width=True):
                with st.spinner("Thinking..."):
                    _send(session, question)
                st.rerun()

    for turn in session.history:
        with st.chat_message(turn.speaker.value):
            st.markdown(turn.text)

    q = st.chat_input("Ask about safety, reviews, the developer...")
    if q and q.strip():
        with st.chat_message("user"):
            st.markdown(q)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                _send(session, q)
        st.rerun()


# ============================================================
# MAIN
# ============================================================
def main():
    session = _get_session()
    render_header()

    if session.state == SessionState.READY:
        left, right = st.columns([3, 2], gap="large")
        with left:
            render_analysis(session)
        with right:
            render_chatbot(session)
    else:
        render_search(session)

if __name__ == "__main__":
    main()

"""
Session: what one user is doing right now.

    IDLE --search--> SEARCHING --hits--> AWAITING_ANALYSIS --select ok--> READY
                         |                  |        ^                    |
                  no hits / error     select error --'       ask, select error (stay READY)
                         v
                       IDLE

A failed operation puts the session back where it was before that operation,
with a user-facing message in `error`. The dashboard keeps one of these in
st.session_state.
"""

from enum import Enum
from typing import Optional

from app_safety.analyzer import LLMCallable, analyze_app, chat_with_app, search_apps
from app_safety.errors import AnalysisFailure, ChatFailure, SearchFailure
from app_safety.logging_config import get_logger
from app_safety.models import Analysis, ChatTurn, SearchHit, Speaker

logger = get_logger(__name__)

NO_RESULTS_MESSAGE = "No apps found. The AI might be busy, please try again."
SEARCH_ERROR_MESSAGE = "Failed to search. The AI encountered an error. Please try again."
ANALYSIS_ERROR_MESSAGE = "Analysis failed. Please try selecting the app again."
CHAT_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    AWAITING_ANALYSIS = "awaiting_analysis"
    READY = "ready"


class AnalysisSession:
    """
    Session state for one user.

    Handles:
    - Search results and the selected app
    - The current analysis
    - Visible chat history (including error turns)
    """

    def __init__(self, llm: Optional[LLMCallable] = None):
        self.llm = llm
        self.state = SessionState.IDLE
        self.query = ""
        self.hits: list[SearchHit] = []
        self.selected: Optional[SearchHit] = None
        self.analysis: Optional[Analysis] = None
        self.history: list[ChatTurn] = []
        self.error: Optional[str] = None


    def search(self, query: str) -> list[SearchHit]:
        """Start a new search. Anything from a previous app is thrown away."""
        if not query or not query.strip():
            raise ValueError("Search query must not be empty")

        self.reset()
        self.query = query.strip()
        self.state = SessionState.SEARCHING

        try:
            hits = search_apps(self.query, llm=self.llm)
        except SearchFailure:
            self.state = SessionState.IDLE
            self.error = SEARCH_ERROR_MESSAGE
            raise

        if not hits:
            self.state = SessionState.IDLE
            self.error = NO_RESULTS_MESSAGE
            return []

        self.hits = hits
        self.state = SessionState.AWAITING_ANALYSIS
        return hits


    def select(self, hit: SearchHit) -> Analysis:
        """Analyze one of the search hits. Re-selecting replaces the old analysis."""
        if self.state not in (SessionState.AWAITING_ANALYSIS, SessionState.READY):
            raise ValueError(f"Cannot select an app while {self.state.value}")
        if hit not in self.hits:
            raise ValueError(f"{hit.name!r} is not one of the current search results")

        self.error = None

        # The current app, analysis and chat stay untouched until the new analysis succeeds
        try:
            analysis = analyze_app(hit, llm=self.llm)
        except AnalysisFailure:
            self.error = ANALYSIS_ERROR_MESSAGE
            raise

        self.selected = hit
        self.analysis = analysis
        self.history = []
        self.state = SessionState.READY
        return analysis


    def ask(self, message: str) -> str:
        """
        Send a chat message about the selected app.
        On failure an error turn is appended so the conversation can go on.
        """
        if self.state != SessionState.READY:
            raise ValueError(f"Cannot chat while {self.state.value}")
        if not message or not message.strip():
            raise ValueError("Chat message must not be empty")

        previous = list(self.history)
        self.history.append(ChatTurn(Speaker.USER, message))

        try:
            reply = chat_with_app(previous, message, self.selected, self.analysis, llm=self.llm)
        except ChatFailure:
            self.history.append(ChatTurn(Speaker.ASSISTANT, CHAT_ERROR_MESSAGE))
            raise

        self.history.append(ChatTurn(Speaker.ASSISTANT, reply))
        return reply


    def reset(self) -> None:
        """Back to search: forget hits, selection, analysis and chat."""
        self.state = SessionState.IDLE
        self.query = ""
        self.hits = []
        self.selected = None
        self.analysis = None
        self.history = []
        self.error = None


    def dismiss_error(self) -> None:
        self.error = None

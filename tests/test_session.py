"""
Tests for the AnalysisSession state machine.
"""
import unittest

from app_safety.errors import AnalysisFailure, ChatFailure, SearchFailure, TransportFailure
from app_safety.models import Completion, Speaker
from app_safety.session import (
    ANALYSIS_ERROR_MESSAGE, CHAT_ERROR_MESSAGE, NO_RESULTS_MESSAGE, SEARCH_ERROR_MESSAGE,
    AnalysisSession, SessionState,
)

HITS_JSON = ('[{"name": "Spotify", "developer": "Spotify AB", "description": "Music", "rating": "4.4"},'
             '{"name": "Spotify Lite", "developer": "Spotify AB", "description": "Lite", "rating": "4.1"}]')
ANALYSIS_JSON = '{"reviewSummary": "Loved", "authenticity": "Official", "background": "Sweden", "rating": "4.5"}'


class ScriptedLLM:
    """Returns queued answers in order; an Exception in the queue is raised instead."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, prompt, system_prompt=None, web_search=False, **kwargs):
        self.calls.append(prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return Completion(text=answer)


class TestAnalysisSession(unittest.TestCase):
    """Test suite for AnalysisSession."""

    def _ready_session(self, *more_answers):
        session = AnalysisSession(llm=ScriptedLLM(HITS_JSON, ANALYSIS_JSON, *more_answers))
        hits = session.search("spotify")
        session.select(hits[0])
        return session

    def test_starts_idle(self):
        session = AnalysisSession(llm=ScriptedLLM())

        assert session.state == SessionState.IDLE
        assert session.hits == []
        assert session.error is None

    def test_search_with_hits_awaits_analysis(self):
        session = AnalysisSession(llm=ScriptedLLM(HITS_JSON))

        hits = session.search("  spotify ")

        assert session.state == SessionState.AWAITING_ANALYSIS
        assert session.query == "spotify"
        assert [h.name for h in hits] == ["Spotify", "Spotify Lite"]
        assert session.hits == hits

    def test_search_without_hits_returns_to_idle_with_message(self):
        session = AnalysisSession(llm=ScriptedLLM("No apps here."))

        assert session.search("zzz") == []
        assert session.state == SessionState.IDLE
        assert session.error == NO_RESULTS_MESSAGE

    def test_search_failure_returns_to_idle_and_reraises(self):
        session = AnalysisSession(llm=ScriptedLLM(TransportFailure("down")))

        with self.assertRaises(SearchFailure):
            session.search("spotify")

        assert session.state == SessionState.IDLE
        assert session.error == SEARCH_ERROR_MESSAGE

    def test_blank_search_rejected(self):
        with self.assertRaises(ValueError):
            AnalysisSession(llm=ScriptedLLM()).search("   ")

    def test_select_makes_session_ready(self):
        session = self._ready_session()

        assert session.state == SessionState.READY
        assert session.selected.name == "Spotify"
        assert session.analysis.rating == "4.5"
        assert session.history == []

    def test_select_failure_goes_back_to_selection(self):
        session = AnalysisSession(llm=ScriptedLLM(HITS_JSON, "no json at all"))
        hits = session.search("spotify")

        with self.assertRaises(AnalysisFailure):
            session.select(hits[0])

        assert session.state == SessionState.AWAITING_ANALYSIS
        assert session.error == ANALYSIS_ERROR_MESSAGE
        assert session.analysis is None
        assert session.hits == hits

    def test_select_before_search_rejected(self):
        session = AnalysisSession(llm=ScriptedLLM())

        with self.assertRaises(ValueError):
            session.select(object())

    def test_select_unknown_hit_rejected(self):
        session = AnalysisSession(llm=ScriptedLLM(HITS_JSON))
        session.search("spotify")
        other = type(session.hits[0])(name="Other", developer="X", description="")

        with self.assertRaises(ValueError):
            session.select(other)

    def test_reselect_replaces_analysis_and_chat(self):
        session = self._ready_session("First answer", '{"reviewSummary": "Lite is fine", "rating": "4.0"}')
        session.ask("Is it safe?")

        session.select(session.hits[1])

        assert session.selected.name == "Spotify Lite"
        assert session.analysis.review_summary == "Lite is fine"
        assert session.history == []

    def test_failed_reselect_keeps_current_app_and_chat(self):
        session = self._ready_session("First answer", TransportFailure("timeout"))
        session.ask("Is it safe?")
        analysis = session.analysis
        history = list(session.history)

        with self.assertRaises(AnalysisFailure):
            session.select(session.hits[1])

        assert session.state == SessionState.READY
        assert session.selected.name == "Spotify"
        assert session.analysis == analysis
        assert session.history == history
        assert session.error == ANALYSIS_ERROR_MESSAGE

    def test_ask_appends_turns(self):
        session = self._ready_session("It is the official app.")

        reply = session.ask("Is it official?")

        assert reply == "It is the official app."
        assert [(t.speaker, t.text) for t in session.history] == [
            (Speaker.USER, "Is it official?"),
            (Speaker.ASSISTANT, "It is the official app."),
        ]

    def test_ask_sends_only_previous_history(self):
        llm = ScriptedLLM(HITS_JSON, ANALYSIS_JSON, "one", "two")
        session = AnalysisSession(llm=llm)
        session.select(session.search("spotify")[0])

        session.ask("first")
        session.ask("second")

        contents = [m["content"] for m in llm.calls[-1][1:]]
        assert contents == ["first", "one", "second"]

    def test_ask_failure_appends_error_turn(self):
        session = self._ready_session(TransportFailure("429"))

        with self.assertRaises(ChatFailure):
            session.ask("Hello?")

        assert session.state == SessionState.READY
        assert [(t.speaker, t.text) for t in session.history] == [
            (Speaker.USER, "Hello?"),
            (Speaker.ASSISTANT, CHAT_ERROR_MESSAGE),
        ]

    def test_ask_before_ready_rejected(self):
        session = AnalysisSession(llm=ScriptedLLM(HITS_JSON))
        session.search("spotify")

        with self.assertRaises(ValueError):
            session.ask("Hello?")

    def test_reset_clears_everything(self):
        session = self._ready_session("hi")
        session.ask("hello")

        session.reset()

        assert session.state == SessionState.IDLE
        assert session.hits == []
        assert session.selected is None
        assert session.analysis is None
        assert session.history == []

    def test_new_search_discards_previous_app(self):
        session = self._ready_session(HITS_JSON)

        session.search("spotify again")

        assert session.state == SessionState.AWAITING_ANALYSIS
        assert session.analysis is None
        assert session.selected is None

    def test_dismiss_error(self):
        session = AnalysisSession(llm=ScriptedLLM("nothing"))
        session.search("zzz")

        session.dismiss_error()

        assert session.error is None

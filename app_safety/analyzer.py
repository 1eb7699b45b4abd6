"""
Analyzer: the brain of the App Safety Agent.

Three operations, each a single LLM call:
    1. search_apps:   find up to 3 real Play Store apps matching a name.
    2. analyze_app:   web-grounded safety / authenticity report for one app.
    3. chat_with_app: answer follow-up questions, grounded in that report.

Key design decisions:
    1. The LLM answers in free text; json_extractor digs out the JSON.
    2. Every field is cleaned by normalizer, so one bad field never fails the whole call.
    3. Only two things fail loudly: the LLM call itself, or an analysis with no JSON at all.
    4. No retries. The UI decides what to tell the user.
"""

from typing import Callable, Optional, Sequence

from app_safety.config import SEARCH_RESULT_LIMIT
from app_safety.context_window import build_window
from app_safety.errors import AnalysisFailure, ChatFailure, ExtractionFailure, SearchFailure
from app_safety.json_extractor import extract_json
from app_safety.llm_client import call_llm
from app_safety.logging_config import get_logger
from app_safety.models import Analysis, ChatTurn, Completion, SearchHit
from app_safety.normalizer import clean_analysis, normalize_search_rating

logger = get_logger(__name__)

NO_RESPONSE = "No response generated."

LLMCallable = Callable[..., Completion]


# ============================================================
# PROMPTS
# ============================================================

SEARCH_PROMPT = """Perform a web search for: "{search_query}".

Task: Find REAL Android apps listed on the Google Play Store (play.google.com).
Strictly extract details from the search results. Do NOT invent apps.

Return a JSON array of the top {limit} results.

Format:
[
  {{
    "name": "Exact App Name",
    "developer": "Developer Name",
    "description": "Short description.",
    "rating": "4.5"
  }}
]"""

ANALYSIS_PROMPT = """Analyze the Android app "{name}" by "{developer}".

Use web search to find the official Google Play Store page.

Extract the following:
1. Rating: The star rating (e.g., 4.5).
2. Downloads: The number of downloads (e.g., "100M+", "1B+", "50k+").
3. Last Updated: The date of the last update.
4. Review Summary: Summarize user sentiment.
5. Authenticity: Is this the official app? Any signs of clones, scams or fake developers?
6. Background: Developer info.

Return strictly valid JSON:
{{
  "reviewSummary": "...",
  "authenticity": "...",
  "background": "...",
  "rating": "4.5",
  "downloads": "100M+",
  "lastUpdated": "Oct 24, 2024"
}}"""

CHAT_SYSTEM_PROMPT = """You are an expert app safety assistant.
App: "{name}" by "{developer}".

Stats:
- Rating: {rating}
- Downloads: {downloads}

Analysis Context:
- Reviews: {review_summary}
- Safety: {authenticity}
- Dev: {background}

Answer concisely. Do not use LaTeX or markdown math syntax (like $ or \\frac). Use plain text or simple arithmetic notation for formulas."""


# ============================================================
# HELPERS
# ============================================================

def _grounding_urls(citations: Sequence) -> list[str]:
    """
    Collect source URLs from the completion's citations, de-duplicated.
    Citations may be plain URL strings or dicts ({"url": ...}, {"web": {"uri": ...}}).
    """
    urls = []
    for citation in citations or []:
        if isinstance(citation, str):
            url = citation
        elif isinstance(citation, dict):
            web = citation.get("web")
            candidates = [citation.get("url"), citation.get("uri")]
            if isinstance(web, dict):
                candidates.append(web.get("uri"))
            url = next((c for c in candidates if isinstance(c, str) and c), None)
        else:
            url = None
        if url:
            urls.append(url)
    return list(dict.fromkeys(urls))


def _parse_hits(data) -> list[SearchHit]:
    """Turn whatever JSON the model gave us into at most SEARCH_RESULT_LIMIT hits."""
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []

    hits = []
    for item in data:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        hits.append(SearchHit(
            name=str(item["name"]).strip(),
            developer=str(item.get("developer") or "Unknown developer").strip(),
            description=str(item.get("description") or "").strip(),
            # Stricter than the analysis cleanup: a download count must never become a rating
            rating=normalize_search_rating(item.get("rating")),
        ))
    return hits[:SEARCH_RESULT_LIMIT]


# ============================================================
# OPERATIONS
# ============================================================

def search_apps(query: str, llm: Optional[LLMCallable] = None) -> list[SearchHit]:
    """
    Find candidate apps on the Google Play Store.

    Returns:
        Up to SEARCH_RESULT_LIMIT hits. An empty list means "nothing found",
        which is a normal outcome, not an error.

    Raises:
        SearchFailure: if the LLM call itself failed.
    """
    llm = llm or call_llm
    search_query = f"site:play.google.com/store/apps/details {query}"
    prompt = SEARCH_PROMPT.format(search_query=search_query, limit=SEARCH_RESULT_LIMIT)

    logger.info(f"Searching apps for: {query!r}")
    try:
        completion = llm(prompt, web_search=True)
    except Exception as e:
        logger.error(f"Error searching apps: {e}")
        raise SearchFailure(f"Search for {query!r} failed: {e}") from e

    hits = _parse_hits(extract_json(completion.text or "[]"))
    logger.info(f"Search for {query!r} returned {len(hits)} apps")
    return hits


def analyze_app(hit: SearchHit, llm: Optional[LLMCallable] = None) -> Analysis:
    """
    Produce the safety / authenticity report for one app.

    The rating found at search time is passed down as a fallback,
    in case the deep analysis fails to find one.

    Raises:
        AnalysisFailure:   if the LLM call itself failed.
        ExtractionFailure: if the answer held no JSON object.
    """
    llm = llm or call_llm
    prompt = ANALYSIS_PROMPT.format(name=hit.name, developer=hit.developer)

    logger.info(f"Analyzing app: {hit.name} by {hit.developer}")
    try:
        completion = llm(prompt, web_search=True)
    except Exception as e:
        logger.error(f"Error analyzing app: {e}")
        raise AnalysisFailure(f"Analysis of {hit.name!r} failed: {e}") from e

    raw = extract_json(completion.text or "{}")
    if not isinstance(raw, dict):
        logger.error(f"Could not parse analysis for {hit.name!r}: {(completion.text or '')[:200]!r}")
        raise ExtractionFailure(f"Could not parse analysis for {hit.name!r}")

    analysis = clean_analysis(raw, hit.rating, _grounding_urls(completion.citations))
    logger.info(f"Analysis ready: rating={analysis.rating}, downloads={analysis.downloads}, "
                f"{len(analysis.grounding_urls)} sources")
    return analysis


def build_chat_context(hit: SearchHit, analysis: Analysis) -> str:
    """The fixed system context for every chat turn about this app."""
    return CHAT_SYSTEM_PROMPT.format(
        name=hit.name,
        developer=hit.developer,
        rating=analysis.rating,
        downloads=analysis.downloads,
        review_summary=analysis.review_summary,
        authenticity=analysis.authenticity,
        background=analysis.background,
    )


def chat_with_app(history: Sequence[ChatTurn], new_message: str, hit: SearchHit,
                  analysis: Analysis, llm: Optional[LLMCallable] = None) -> str:
    """
    Answer a follow-up question about the analyzed app.

    Args:
        history:     Previous turns, oldest first (NOT including new_message).
        new_message: The user's new question.

    Raises:
        ChatFailure: if the LLM call itself failed.
    """
    llm = llm or call_llm
    system_context = build_chat_context(hit, analysis)
    window = build_window(history, system_context, new_message)

    if len(window.turns) < len(history):
        logger.info(f"Chat history trimmed: sending {len(window.turns)} of {len(history)} turns")

    try:
        completion = llm(window.to_messages(new_message))
    except Exception as e:
        logger.error(f"Chat error: {e}")
        raise ChatFailure(f"Chat about {hit.name!r} failed: {e}") from e

    return completion.text or NO_RESPONSE

"""
Normalizer: turns "glitched" LLM fields into clean display strings.

The model is asked for "4.5" and "100M+", but it answers with things like
"Rated 4.5 stars by 2M users", "Over 1,000,000 Downloads" or "Recently".
Each cleaner below is a short ordered list of regex rules: first match wins,
and when nothing matches we fall back to a sentinel instead of guessing.

    rating     -> "D.D" or "N/A"
    downloads  -> "1,000,000", "100M+", "500+", "5000" ... or "N/A"
    date       -> "Oct 24, 2024", "2024-10-24", "24 October 2024" or None

None of these functions ever raise.
"""

import re
from typing import Optional

from app_safety.models import Analysis

NOT_AVAILABLE = "N/A"

# Narrative defaults, used when the model leaves a section empty
DEFAULT_REVIEW_SUMMARY = "No review summary could be generated."
DEFAULT_AUTHENTICITY = "Authenticity check could not be completed."
DEFAULT_BACKGROUND = "Developer background information unavailable."

# ---- Rating rules ----
RATING_IN_TEXT = re.compile(r"[0-5]\.\d")           # "Rated 4.5 stars" -> "4.5"
RATING_EXACT = re.compile(r"[0-5](\.\d)?")          # what a trustworthy fallback looks like
RATING_SINGLE_DIGIT = re.compile(r"[1-5]")          # "4" -> "4.0"
SEARCH_RATING = re.compile(r"[0-5](\.\d)?")         # search stage is cruder: "4" stays "4"

# ---- Download rules ----
DOWNLOAD_NOISE = re.compile(r"downloads|over|approx|more than|installations", re.IGNORECASE)
MAGNITUDE_WORDS = [
    (re.compile(r"\bmillion\b", re.IGNORECASE), "M"),
    (re.compile(r"\bbillion\b", re.IGNORECASE), "B"),
    (re.compile(r"\bthousand\b", re.IGNORECASE), "k"),
]
# Alternatives, in priority order:
#   1,000,000+   |   100M+ / 1.5B   |   500+   |   5000
# A bare 1-2 digit number is never a download count.
DOWNLOAD_TOKEN = re.compile(
    r"(\d{1,3}(?:,\d{3})+\+?)"
    r"|(\d+(?:\.\d+)?\s*[MBK]\+?)"
    r"|(\d+\+)"
    r"|(\d{3,}\+?)",
    re.IGNORECASE,
)

# ---- Date rules ----
DATE_PATTERN = re.compile(
    r"([A-Z][a-z]{2,}\s\d{1,2},\s\d{4})"     # Oct 24, 2024
    r"|(\d{4}-\d{2}-\d{2})"                  # 2024-10-24
    r"|(\d{1,2}\s[A-Z][a-z]{2,}\s\d{4})",    # 24 October 2024
    re.IGNORECASE,
)


def _as_text(value) -> str:
    """LLMs sometimes send numbers (4.5) or null instead of strings."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_rating(raw, fallback: Optional[str] = None) -> str:
    """
    Clean a star rating.

    Args:
        raw:      The rating field from the deep analysis (any text).
        fallback: The rating found at search time. Only used if it looks like
                  a real 0-5 rating, so a download count ("100") can't sneak in.
    """
    text = _as_text(raw)

    match = RATING_IN_TEXT.search(text)
    if match:
        return match.group(0)

    if fallback and fallback != NOT_AVAILABLE and RATING_EXACT.fullmatch(fallback):
        return fallback if "." in fallback else fallback + ".0"

    if RATING_SINGLE_DIGIT.fullmatch(text):
        return text + ".0"

    return NOT_AVAILABLE


def normalize_search_rating(raw) -> str:
    """Rating for a search hit: first 0-5 number in the field, anything else is N/A."""
    match = SEARCH_RATING.search(_as_text(raw))
    return match.group(0) if match else NOT_AVAILABLE


def normalize_downloads(raw) -> str:
    """Clean a download count into a compact token like "100M+"."""
    text = _as_text(raw)
    if not text or text == NOT_AVAILABLE:
        return NOT_AVAILABLE

    text = DOWNLOAD_NOISE.sub("", text).strip()
    for pattern, suffix in MAGNITUDE_WORDS:
        text = pattern.sub(suffix, text)

    match = DOWNLOAD_TOKEN.search(text)
    if match:
        # "100 m+" -> "100M+"
        return re.sub(r"\s", "", match.group(0).upper())

    return NOT_AVAILABLE


def normalize_date(raw) -> Optional[str]:
    """
    Keep the last-updated field only if it's a real date.
    "Recently" or "Unknown" give None, so the UI simply hides the card.
    """
    text = _as_text(raw)
    if not text:
        return None

    match = DATE_PATTERN.search(text)
    return match.group(0) if match else None


def clean_analysis(raw: dict, fallback_rating: Optional[str] = None,
                   grounding_urls=()) -> Analysis:
    """
    Build an Analysis from the model's raw JSON dict.
    Every field goes through its cleaner; empty narrative sections get a default message.
    """
    return Analysis(
        review_summary=_as_text(raw.get("reviewSummary")) or DEFAULT_REVIEW_SUMMARY,
        authenticity=_as_text(raw.get("authenticity")) or DEFAULT_AUTHENTICITY,
        background=_as_text(raw.get("background")) or DEFAULT_BACKGROUND,
        rating=normalize_rating(raw.get("rating"), fallback_rating),
        downloads=normalize_downloads(raw.get("downloads")),
        last_updated=normalize_date(raw.get("lastUpdated")),
        grounding_urls=list(dict.fromkeys(grounding_urls)),
    )


# Quick test
if __name__ == "__main__":
    print(normalize_rating("Rated 4.5 stars"))
    print(normalize_rating("", "100"))
    print(normalize_downloads("Over 1,000,000 Downloads"))
    print(normalize_downloads("100 million+"))
    print(normalize_date("Last updated Oct 24, 2024"))
    print(normalize_date("Recently"))

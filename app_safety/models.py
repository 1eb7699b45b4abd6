"""
Data models: the structure of our data.
Whatever shape the LLM answers in, it gets converted into these before the UI sees it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class SearchHit:
    """A candidate app found by a name search."""
    name: str
    developer: str
    description: str
    rating: Optional[str] = None    # "4.5", "4" or "N/A"

    def to_dict(self) -> dict:
        data = {"name": self.name, "developer": self.developer, "description": self.description}
        if self.rating is not None:
            data["rating"] = self.rating
        return data


@dataclass(frozen=True)
class Analysis:
    """The safety / authenticity report for one selected app."""
    review_summary: str
    authenticity: str
    background: str
    rating: str                     # "4.5" or "N/A"
    downloads: str                  # "100M+", "1,000,000", "500K" or "N/A"
    last_updated: Optional[str] = None  # None when no real date was found
    grounding_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "reviewSummary": self.review_summary,
            "authenticity": self.authenticity,
            "background": self.background,
            "rating": self.rating,
            "downloads": self.downloads,
            "groundingUrls": list(self.grounding_urls),
        }
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        return data


@dataclass(frozen=True)
class ChatTurn:
    """One message in the chat about an app."""
    speaker: Speaker
    text: str


@dataclass(frozen=True)
class ConversationWindow:
    """
    What actually gets sent upstream for one chat call:
    the fixed system context plus the most recent turns that fit the budget.
    """
    system_context: str
    turns: tuple[ChatTurn, ...] = ()

    @property
    def total_chars(self) -> int:
        return len(self.system_context) + sum(len(t.text) for t in self.turns)

    def to_messages(self, new_message: str) -> list[dict]:
        """Chat Completions message list: system, history in order, then the new question."""
        messages = [{"role": "system", "content": self.system_context}]
        for turn in self.turns:
            messages.append({"role": turn.speaker.value, "content": turn.text})
        messages.append({"role": "user", "content": new_message})
        return messages


@dataclass
class Completion:
    """Raw answer from the completion service."""
    text: Optional[str]
    citations: list = field(default_factory=list)   # URL strings or dicts with url / uri / web.uri

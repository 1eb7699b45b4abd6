"""
Context window management for the chat.

The model only sees what we send, and we can't send everything forever.
We keep a character budget (not tokens) and drop the OLDEST turns first.
Once a turn doesn't fit, everything older than it is dropped too:
the window is always a recent, gap-free tail.
"""

from typing import Sequence

from app_safety.config import MAX_CONTEXT_CHARS
from app_safety.models import ChatTurn, ConversationWindow


def trim_history(history: Sequence[ChatTurn], reserved_text: str,
                 budget_chars: int = MAX_CONTEXT_CHARS) -> list[ChatTurn]:
    """
    Return the most recent turns that fit in the budget, in chronological order.

    Args:
        history:       All turns so far, oldest first.
        reserved_text: Text that is always sent (system context + new message).
        budget_chars:  Hard limit. The total must stay strictly below it.
    """
    total = len(reserved_text)
    cut = len(history)

    # Walk backwards from the newest turn, moving the cut point while turns fit
    for index in range(len(history) - 1, -1, -1):
        size = len(history[index].text)
        if total + size >= budget_chars:
            break
        total += size
        cut = index

    return list(history[cut:])


def build_window(history: Sequence[ChatTurn], system_context: str, new_message: str,
                 budget_chars: int = MAX_CONTEXT_CHARS) -> ConversationWindow:
    """Trim the history against system context + new message and wrap it up."""
    turns = trim_history(history, system_context + new_message, budget_chars)
    return ConversationWindow(system_context=system_context, turns=tuple(turns))

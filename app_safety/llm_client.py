"""
LLM Client: interface for talking to the xAI (Grok) model.

Key concepts:
    - System prompt: Sets the model's role and behavior (constant per task).
    - User prompt: The actual question, or a full message list for chat.
    - Temperature: 0 = deterministic, 1 = creative. Low for analysis.
    - Live search: Grok searches the web before answering and returns the
      URLs it used as "citations". We need this, since the model's training data
      doesn't know today's rating or download count of an app.

Live search and response_format=json_object don't mix well, so answers come
back as free text. Parsing is done later by json_extractor.
"""

from typing import Optional, Union

from openai import OpenAI, OpenAIError

from app_safety.config import (
    XAI_API_KEY, XAI_BASE_URL, LLM_MODEL, LLM_TEMPERATURE, XAI_SEARCH_MODE,
)
from app_safety.errors import TransportFailure
from app_safety.logging_config import get_logger
from app_safety.models import Completion

logger = get_logger(__name__)


def get_client() -> OpenAI:
    """Create an OpenAI client pointed at xAI's server. One attempt per call, no retries."""
    return OpenAI(api_key=XAI_API_KEY, base_url=XAI_BASE_URL, max_retries=0)


def call_llm(
    prompt: Union[str, list[dict]],
    system_prompt: Optional[str] = None,
    web_search: bool = False,
    temperature: float = LLM_TEMPERATURE,
    model: str = LLM_MODEL,
) -> Completion:
    """
    Send a prompt to the LLM and get a response.

    Args:
        prompt:        A user prompt string, or a ready-made list of chat messages.
        system_prompt: Optional system message, prepended to the conversation.
        web_search:    Ground the answer in live web search and collect citations.

    Returns:
        Completion with the answer text (may be None) and any citations.

    Raises:
        TransportFailure: if the request itself failed.
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    if isinstance(prompt, str):
        messages.append({"role": "user", "content": prompt})
    else:
        messages.extend(prompt)

    extra = {}
    if web_search:
        extra["extra_body"] = {
            "search_parameters": {"mode": XAI_SEARCH_MODE, "return_citations": True},
        }

    client = get_client()
    logger.info(f"Calling {model} ({len(messages)} messages, web_search={web_search})")

    try:
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            **extra,
        )
    except OpenAIError as e:
        logger.error(f"LLM request failed: {e}")
        raise TransportFailure(str(e)) from e

    text = response.choices[0].message.content if response.choices else None
    # xAI adds "citations" next to "choices"; the SDK keeps unknown fields as attributes
    citations = getattr(response, "citations", None) or []

    logger.debug(f"LLM answered with {len(text or '')} chars and {len(citations)} citations")
    return Completion(text=text, citations=list(citations))


# ---- Quick test ----
if __name__ == "__main__":
    result = call_llm("Which company develops the Spotify Android app?", web_search=True)
    print(result.text)
    print(result.citations)

"""Chat model used by the documentation assistant.

The model reads the conversation, decides when to call ``searchDocuments``
and writes the final cited answer; tools are bound later by
:class:`~doc_rag.agent.graph.ChatOrchestrator`.  Two endpoints are supported:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` (vLLM, a proxy,
   a local gateway …).  ``ChatOpenAI`` works unchanged against any
   ``/v1/chat/completions`` implementation that supports tool calling.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from doc_rag.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the tool-calling chat model behind ``POST /chat``.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API, with a dummy key
    (``"EMPTY"``) when none is configured.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)

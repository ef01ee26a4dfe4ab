"""The ``searchDocuments`` tool exposed to the chat model.

The tool closes over a :class:`~doc_rag.retrieval.retriever.SemanticRetriever`
instead of building one itself, so tests inject a retriever backed by an
in-memory store and fake embeddings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from doc_rag.agent.prompts import (
    SEARCH_QUERY_DESCRIPTION,
    SEARCH_TOOL_DESCRIPTION,
    SEARCH_TOOL_NAME,
)

if TYPE_CHECKING:
    from doc_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


class SearchDocumentsInput(BaseModel):
    query: str = Field(description=SEARCH_QUERY_DESCRIPTION)


def build_search_tool(retriever: SemanticRetriever) -> BaseTool:
    """Wrap *retriever* as a tool whose output is model-readable text.

    Failures never propagate to the model loop: they come back as an
    ``Error searching documents: ...`` string the model can relay.
    """

    def search_documents(query: str) -> str:
        logger.info("[%s] Query: %s", SEARCH_TOOL_NAME, query)
        try:
            response = retriever.retrieve(query)
        except Exception as exc:
            logger.exception("[%s] Error", SEARCH_TOOL_NAME)
            return f"Error searching documents: {exc}"
        logger.info("[%s] Returning response, length: %d", SEARCH_TOOL_NAME, len(response))
        return response

    return StructuredTool.from_function(
        func=search_documents,
        name=SEARCH_TOOL_NAME,
        description=SEARCH_TOOL_DESCRIPTION,
        args_schema=SearchDocumentsInput,
    )

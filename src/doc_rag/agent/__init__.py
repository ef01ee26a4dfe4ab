"""
Agent — tool-calling chat loop built with LangGraph.

This module contains **zero** infrastructure dependencies.  It wires the
``searchDocuments`` retrieval tool into a LangGraph state machine that can
be tested locally with a scripted model and an in-memory store.

Public API
----------
- :class:`ChatOrchestrator` — run or stream one conversation.
- :func:`build_graph` — compile the chat workflow.
- :func:`build_search_tool` — wrap a retriever as a LangChain tool.
- :class:`ChatOutcome` / :class:`ChatStatus` — how a run ended.
"""

from doc_rag.agent.graph import ChatOrchestrator, build_graph, get_orchestrator
from doc_rag.agent.state import ChatOutcome, ChatPhase, ChatState, ChatStatus, ChatStep, ToolCall
from doc_rag.agent.tools import build_search_tool

__all__ = [
    "ChatOrchestrator",
    "ChatOutcome",
    "ChatPhase",
    "ChatState",
    "ChatStatus",
    "ChatStep",
    "ToolCall",
    "build_graph",
    "build_search_tool",
    "get_orchestrator",
]

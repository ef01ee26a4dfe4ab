"""LangGraph graph definition — the tool-calling chat loop.

This module wires the nodes defined in :mod:`doc_rag.agent.nodes` into a
compiled :class:`StateGraph` and wraps it in :class:`ChatOrchestrator`,
which turns the final graph state into a typed :class:`ChatOutcome`:

1. **Call the model** on the transcript (system prompt + conversation).
2. If it requests ``searchDocuments``, **run the tool**, append the
   result, and go back to 1 — at most ``max_steps`` model calls.
3. Stop on the first plain-text reply.

The graph can be tested locally without any external service by
injecting a scripted model and a retriever over an in-memory store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
)
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph

from doc_rag.agent.nodes import ChatNodes, should_continue
from doc_rag.agent.prompts import build_system_message
from doc_rag.agent.state import (
    ChatOutcome,
    ChatPhase,
    ChatState,
    ChatStatus,
    ChatStep,
    ToolCall,
)

logger = logging.getLogger(__name__)

_ROLE_TO_MESSAGE = {
    "user": HumanMessage,
    "assistant": AIMessage,
    "system": SystemMessage,
}


def build_graph(nodes: ChatNodes) -> Any:
    """Construct and return the compiled chat graph.

    Graph topology::

        ┌─────────┐
        │  START   │
        └────┬─────┘
             ▼
      ┌────────────┐
      │ call_model  │◄─────────────┐
      └─────┬──────┘              │
            │ tool requested      │
            │ and step < max      │
            ▼                     │
      ┌────────────┐              │
      │ run_tools   ├──────────────┘
      └────────────┘
            (otherwise) ──► [ END ]

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()`` / ``.stream()``.
    """
    workflow = StateGraph(ChatState)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("call_model", nodes.call_model)
    workflow.add_node("run_tools", nodes.run_tools)

    # -- Edges ---------------------------------------------------------------
    workflow.set_entry_point("call_model")
    workflow.add_conditional_edges(
        "call_model",
        should_continue,
        {
            "run_tools": "run_tools",
            END: END,
        },
    )
    workflow.add_edge("run_tools", "call_model")

    return workflow.compile()


# ---------------------------------------------------------------------------
# Conversation helpers
# ---------------------------------------------------------------------------


def to_messages(conversation: Sequence[dict[str, Any] | BaseMessage]) -> list[BaseMessage]:
    """Convert ``{"role", "content"}`` dicts into LangChain messages.

    The system prompt is always placed first.

    Raises
    ------
    ValueError
        If *conversation* is not a non-empty list of known roles.
    """
    if not isinstance(conversation, (list, tuple)):
        raise ValueError("messages must be an array")
    if not conversation:
        raise ValueError("messages must not be empty")

    messages: list[BaseMessage] = [build_system_message()]
    for i, item in enumerate(conversation):
        if isinstance(item, BaseMessage):
            messages.append(item)
            continue
        if not isinstance(item, dict):
            raise ValueError(f"message {i} must be an object")
        role = item.get("role")
        message_cls = _ROLE_TO_MESSAGE.get(role)
        if message_cls is None:
            raise ValueError(f"message {i} has unsupported role {role!r}")
        content = item.get("content")
        if not isinstance(content, str):
            raise ValueError(f"message {i} content must be a string")
        messages.append(message_cls(content=content))
    return messages


def message_text(message: BaseMessage) -> str:
    """Plain text of a message whose content may be a list of blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ChatOrchestrator:
    """Drives the model ⇄ tool loop and reports how it ended.

    Parameters
    ----------
    model:
        A LangChain chat model supporting ``bind_tools``.
    tools:
        Tools offered to the model (normally just ``searchDocuments``).
    max_steps:
        Cap on model invocations per run.
    """

    def __init__(self, model: Any, tools: list[BaseTool], *, max_steps: int = 5) -> None:
        if max_steps <= 0:
            raise ValueError("max_steps must be > 0")
        self.max_steps = max_steps
        bound = model.bind_tools(tools) if tools else model
        self._graph = build_graph(ChatNodes(bound, tools))

    def stream(self, conversation: Sequence[dict[str, Any] | BaseMessage]) -> Iterator[ChatStep]:
        """Yield one :class:`ChatStep` per node update.

        Invalid conversations and model failures raise; use :meth:`run` for
        a call that always returns a value.
        """
        state: ChatState = {
            "messages": to_messages(conversation),
            "phase": ChatPhase.AWAITING_MODEL,
            "step": 0,
            "max_steps": self.max_steps,
            "tool_calls_made": [],
        }
        config = {"recursion_limit": 2 * self.max_steps + 5}

        step = 0
        for update in self._graph.stream(state, config, stream_mode="updates"):
            for node, delta in update.items():
                delta = delta or {}
                step = delta.get("step", step)
                yield ChatStep(
                    node=node,
                    phase=delta.get("phase", ChatPhase.AWAITING_MODEL),
                    step=step,
                    messages=list(delta.get("messages", [])),
                    tool_calls=list(delta.get("tool_calls_made", [])),
                )

    def run(self, conversation: Sequence[dict[str, Any] | BaseMessage]) -> ChatOutcome:
        """Run the loop to completion.  Never raises."""
        transcript: list[BaseMessage] = []
        tool_calls: list[ToolCall] = []
        phase = ChatPhase.AWAITING_MODEL
        steps = 0
        try:
            for chat_step in self.stream(conversation):
                transcript.extend(chat_step.messages)
                tool_calls.extend(chat_step.tool_calls)
                phase = chat_step.phase
                steps = chat_step.step
        except Exception as exc:
            logger.exception("Chat run failed")
            return ChatOutcome(
                status=ChatStatus.ERROR,
                error=str(exc) or type(exc).__name__,
                steps=steps,
                tool_calls=tool_calls,
                messages=transcript,
            )

        outcome = ChatOutcome(
            status=ChatStatus.ANSWERED,
            steps=steps,
            tool_calls=tool_calls,
            messages=transcript,
        )
        last = transcript[-1] if transcript else None
        text = message_text(last).strip() if isinstance(last, AIMessage) else ""

        if phase == ChatPhase.TOOL_REQUESTED:
            outcome.status = ChatStatus.STEP_LIMIT_EXCEEDED
            outcome.error = f"No final answer after {steps} step(s); the model was still calling tools"
        elif not text:
            outcome.status = ChatStatus.EMPTY_ANSWER
            outcome.error = "The model finished without a text answer"
        else:
            outcome.answer = text

        if outcome.status is not ChatStatus.ANSWERED:
            logger.warning("Chat ended with %s: %s", outcome.status.value, outcome.error)
        return outcome


def get_orchestrator(retriever: Any, model: Any = None) -> ChatOrchestrator:
    """Build an orchestrator over the configured LLM and ``searchDocuments``."""
    from doc_rag.agent.llm import get_llm
    from doc_rag.agent.tools import build_search_tool
    from doc_rag.config import settings

    return ChatOrchestrator(
        model or get_llm(),
        [build_search_tool(retriever)],
        max_steps=settings.max_chat_steps,
    )

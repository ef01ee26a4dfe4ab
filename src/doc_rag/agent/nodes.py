"""Graph nodes — the two steps of the tool-calling loop plus its router.

Node contract
-------------
* Accepts the full :class:`ChatState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Holds no hidden global state: the model and tools are bound on
  construction so every node is independently testable.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.messages import AIMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END

from doc_rag.agent.state import ChatPhase, ChatState, ToolCall

logger = logging.getLogger(__name__)


class ChatNodes:
    """Node callables for one chat graph.

    Parameters
    ----------
    model:
        Chat model with tools already bound (anything exposing ``invoke``).
    tools:
        Tools the model may request, looked up by name.
    """

    def __init__(self, model: Any, tools: list[BaseTool]) -> None:
        self._model = model
        self._tools = {t.name: t for t in tools}

    # ── 1. CALL MODEL ─────────────────────────────────────────────────

    def call_model(self, state: ChatState) -> dict[str, Any]:
        """Invoke the model on the transcript and classify its reply."""
        step = state.get("step", 0) + 1
        response = self._model.invoke(state["messages"])

        phase = ChatPhase.TOOL_REQUESTED if getattr(response, "tool_calls", None) else ChatPhase.FINAL_ANSWER
        logger.info("step %d/%d: model -> %s", step, state.get("max_steps", 0), phase.value)
        return {"messages": [response], "step": step, "phase": phase}

    # ── 2. RUN TOOLS ──────────────────────────────────────────────────

    def run_tools(self, state: ChatState) -> dict[str, Any]:
        """Execute every tool call in the last model message, in order."""
        last = state["messages"][-1]
        tool_calls = last.tool_calls if isinstance(last, AIMessage) else []

        replies: list[ToolMessage] = []
        log: list[ToolCall] = []
        for call in tool_calls:
            name = call["name"]
            args = call.get("args") or {}
            tool = self._tools.get(name)

            if tool is None:
                logger.warning("Model requested unknown tool %r", name)
                output = f"Unknown tool: {name}"
                status = "error"
            else:
                try:
                    output = str(tool.invoke(args))
                    status = "success"
                except Exception as exc:
                    logger.exception("Tool %s failed", name)
                    output = f"Error running {name}: {exc}"
                    status = "error"

            replies.append(ToolMessage(content=output, tool_call_id=call.get("id") or "", name=name, status=status))
            log.append(ToolCall(tool_name=name, tool_input=dict(args), output=output, step=state.get("step", 0)))

        return {"messages": replies, "tool_calls_made": log, "phase": ChatPhase.AWAITING_MODEL}


# ── ROUTING (conditional edge) ─────────────────────────────────────────


def should_continue(state: ChatState) -> str:
    """Conditional edge after ``call_model``.

    Returns
    -------
    str
        ``"run_tools"`` when the model asked for a tool and the step budget
        allows another model call, ``END`` otherwise.
    """
    if state.get("phase") == ChatPhase.TOOL_REQUESTED and state.get("step", 0) < state.get("max_steps", 0):
        return "run_tools"
    return END

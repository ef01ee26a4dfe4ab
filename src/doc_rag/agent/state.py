"""Chat state definition — shared by every graph node.

The conversation moves through three phases::

    awaiting_model ──► tool_requested ──► awaiting_model ──► … ──► final_answer

bounded by ``max_steps`` model invocations.  How the run ended is reported
as a :class:`ChatStatus` so that "no final answer" is a distinct outcome
rather than a silently truncated transcript.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph.message import add_messages


class ChatPhase(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    FINAL_ANSWER = "final_answer"


class ChatStatus(str, Enum):
    """Terminal condition of one orchestrator run."""

    ANSWERED = "answered"
    STEP_LIMIT_EXCEEDED = "step_limit_exceeded"
    EMPTY_ANSWER = "empty_answer"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Structured sub-models (plain dataclasses, no Pydantic required in state)
# ---------------------------------------------------------------------------


@dataclass
class ToolCall:
    """Record of a single tool invocation.

    Attributes
    ----------
    tool_name:
        Which tool was called (e.g. ``"searchDocuments"``).
    tool_input:
        The arguments the model supplied.
    output:
        Text returned to the model.
    step:
        Model step that requested the call (1-based).
    """

    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    output: str = ""
    step: int = 0


@dataclass
class ChatStep:
    """One graph node update, as yielded by ``ChatOrchestrator.stream``."""

    node: str
    phase: ChatPhase
    step: int
    messages: list[BaseMessage] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ChatOutcome:
    """Result of a full orchestrator run.

    ``answer`` is set only when ``status`` is :attr:`ChatStatus.ANSWERED`;
    ``error`` explains every other status.
    """

    status: ChatStatus
    answer: str = ""
    error: str | None = None
    steps: int = 0
    tool_calls: list[ToolCall] = field(default_factory=list)
    messages: list[BaseMessage] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is ChatStatus.ANSWERED


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------


def _append_list(existing: list[Any], new: list[Any]) -> list[Any]:
    """Reducer that appends *new* items to the *existing* list."""
    return existing + new


# ---------------------------------------------------------------------------
# Graph state
# ---------------------------------------------------------------------------


class ChatState(TypedDict):
    """Typed state that flows through the chat graph.

    Attributes
    ----------
    messages:
        Conversation history managed by LangGraph's ``add_messages`` reducer.
    phase:
        Current :class:`ChatPhase` value.
    step:
        Number of model invocations so far.
    max_steps:
        Cap on model invocations.
    tool_calls_made:
        Chronological log of every tool invocation.
    """

    messages: Annotated[list[BaseMessage], add_messages]
    phase: ChatPhase
    step: int
    max_steps: int
    tool_calls_made: Annotated[list[ToolCall], _append_list]

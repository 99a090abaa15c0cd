"""Model-facing conversation transcript for a single orchestration run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TranscriptEntry:
    role: str
    text: Optional[str] = None
    tool_call: Optional[ToolCall] = None
    tool_name: Optional[str] = None
    tool_result: Optional[Dict[str, Any]] = None

    def to_content(self) -> Dict[str, Any]:
        if self.tool_call is not None:
            part: Dict[str, Any] = {
                "function_call": {"name": self.tool_call.name, "args": dict(self.tool_call.args)}
            }
        elif self.tool_result is not None:
            part = {"function_response": {"name": self.tool_name, "response": self.tool_result}}
        else:
            part = {"text": self.text or ""}
        return {"role": self.role, "parts": [part]}


@dataclass
class Transcript:
    """Ordered entries; tool results go back to the model as user entries."""

    entries: List[TranscriptEntry] = field(default_factory=list)

    def add_user_text(self, text: str) -> None:
        self.entries.append(TranscriptEntry(role="user", text=text))

    def add_tool_exchange(self, call: ToolCall, result: Dict[str, Any]) -> None:
        self.entries.append(TranscriptEntry(role="model", tool_call=call))
        self.entries.append(TranscriptEntry(role="user", tool_name=call.name, tool_result=result))

    def to_contents(self) -> List[Dict[str, Any]]:
        return [entry.to_content() for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


__all__ = ["ToolCall", "Transcript", "TranscriptEntry"]

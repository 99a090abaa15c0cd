"""Language model provider abstractions and the Gemini implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import google.generativeai as genai

from agents.transcript import ToolCall, Transcript


LOGGER = logging.getLogger(__name__)


class ModelCallError(RuntimeError):
    """Raised when the model cannot be reached or rejects the request."""


@dataclass
class ModelResponse:
    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)


class ModelClient(ABC):
    """Abstract language model interface."""

    @abstractmethod
    def generate(self, transcript: Transcript, tool_declarations: Sequence[Dict[str, Any]]) -> ModelResponse:
        """Return the model's next turn or raise :class:`ModelCallError`."""


def _gemini_schema(schema: Any) -> Any:
    """Upper-case JSON schema type names the way the Gemini protos expect them."""

    if isinstance(schema, dict):
        converted = {key: _gemini_schema(value) for key, value in schema.items()}
        if isinstance(converted.get("type"), str):
            converted["type"] = converted["type"].upper()
        return converted
    if isinstance(schema, list):
        return [_gemini_schema(value) for value in schema]
    return schema


class GeminiModelClient(ModelClient):
    """Gemini function-calling client built on ``google-generativeai``."""

    def __init__(self, api_key: str | None, model_name: str) -> None:
        self.api_key = api_key
        self.model_name = model_name

    def generate(self, transcript: Transcript, tool_declarations: Sequence[Dict[str, Any]]) -> ModelResponse:
        if not self.api_key:
            raise ModelCallError(
                "Please set GEMINI_API_KEY in your environment. Get a key at https://aistudio.google.com/apikey"
            )

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            self.model_name,
            tools=[{"function_declarations": [_gemini_schema(decl) for decl in tool_declarations]}],
        )
        try:
            response = model.generate_content(transcript.to_contents())
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Gemini request failed", exc_info=exc)
            raise ModelCallError(str(exc) or type(exc).__name__) from exc
        return self._parse(response)

    @staticmethod
    def _parse(response: Any) -> ModelResponse:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return ModelResponse()

        texts: List[str] = []
        calls: List[ToolCall] = []
        for part in candidates[0].content.parts:
            function_call = getattr(part, "function_call", None)
            if function_call and function_call.name:
                payload = type(function_call).to_dict(function_call)
                calls.append(ToolCall(name=function_call.name, args=dict(payload.get("args") or {})))
            elif getattr(part, "text", None):
                texts.append(part.text)
        return ModelResponse(text=" ".join(texts).strip(), tool_calls=calls)


class ScriptedModelClient(ModelClient):
    """Replays canned responses in order; the last one repeats once the script runs out."""

    def __init__(self, responses: Sequence[ModelResponse | Exception]) -> None:
        self.responses = list(responses)
        self.requests: List[List[Dict[str, Any]]] = []

    def generate(self, transcript: Transcript, tool_declarations: Sequence[Dict[str, Any]]) -> ModelResponse:
        self.requests.append(transcript.to_contents())
        if not self.responses:
            return ModelResponse()
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


__all__ = [
    "GeminiModelClient",
    "ModelCallError",
    "ModelClient",
    "ModelResponse",
    "ScriptedModelClient",
]

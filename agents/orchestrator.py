"""Root orchestrator: drives the Gemini tool-calling loop for one user message."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from agents.transcript import ToolCall, Transcript
from logic.validation import validation_failure
from memory.weekly_log import WeeklyLogEntry, WeeklyLogStore, worn_item_ids
from models.clothing_item import ClothingItem
from models.outfit import OutfitPlan
from stylist_app.config import AppConfig
from stylist_app.logging_config import get_logger, log_event, operation_context
from tools.image_composer import CompositionResult
from tools.model_provider import ModelCallError, ModelClient, ModelResponse
from tools.stylist_tools import StylistTools
from tools.weather_provider import (
    WeatherProvider,
    WeatherSnapshot,
    WeatherUnavailableError,
    format_weather_for_agent,
)


LOGGER = get_logger(__name__)

LogCallback = Callable[[str], None]
ImageCallback = Callable[[str], None]

EMPTY_CATALOG_REPLY = (
    "Your wardrobe catalog is empty. Index your wardrobe first to scan and catalog "
    "the clothes in the data/ folder, then ask again."
)
MAX_STEPS_REPLY = "I reached the maximum number of steps. Please try again."
NO_RESPONSE_REPLY = (
    "I couldn't generate a response. Try indexing your wardrobe first and make sure "
    "there are photos of you in data/me/."
)
DEFAULT_IMAGE_NOTE = "generation failed - index your wardrobe so photos in data/me/ are registered"


class RunState(Enum):
    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    DECIDING = "deciding"
    DISPATCH = "dispatch"
    FINALIZING = "finalizing"
    DONE = "done"


class ToolName(str, Enum):
    SEARCH = "search_clothes"
    PLAN = "plan_outfit"
    COMPOSE = "generate_outfit_image"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str) -> "ToolName":
        for member in cls:
            if member is not cls.UNKNOWN and member.value == name:
                return member
        return cls.UNKNOWN


@dataclass
class RunContext:
    """Mutable state owned by exactly one ``run`` call."""

    user_message: str
    catalog: Sequence[ClothingItem]
    on_log: Optional[LogCallback] = None
    on_image: Optional[ImageCallback] = None
    transcript: Transcript = field(default_factory=Transcript)
    weather: Optional[WeatherSnapshot] = None
    weekly_log: List[WeeklyLogEntry] = field(default_factory=list)
    response: Optional[ModelResponse] = None
    pending_call: Optional[ToolCall] = None
    last_plan: Optional[OutfitPlan] = None
    image_generated: bool = False
    image_locator: Optional[str] = None
    last_image_error: Optional[str] = None
    iterations: int = 0
    reply: str = ""

    def emit(self, text: str) -> None:
        if self.on_log:
            self.on_log(text)


def _json_safe(payload: Any) -> Dict[str, Any]:
    # function responses must be plain JSON objects
    return json.loads(json.dumps(payload, default=str))


class OrchestratorAgent:
    """Turns a user message into tool calls and a final reply.

    Each :meth:`run` walks an explicit state machine
    (``INIT -> AWAITING_MODEL -> DECIDING -> DISPATCH -> ... -> FINALIZING``).
    Only the first tool call of a model turn is honored, dispatch cycles are
    capped at ``config.max_iterations`` and every terminal path yields text.
    """

    def __init__(
        self,
        config: AppConfig,
        model_client: ModelClient,
        weather_provider: WeatherProvider,
        memory_store: WeeklyLogStore,
        tools: StylistTools,
    ) -> None:
        self.config = config
        self.model_client = model_client
        self.weather_provider = weather_provider
        self.memory_store = memory_store
        self.tools = tools
        self._handlers: Dict[RunState, Callable[[RunContext], RunState]] = {
            RunState.INIT: self._init,
            RunState.AWAITING_MODEL: self._await_model,
            RunState.DECIDING: self._decide,
            RunState.DISPATCH: self._dispatch,
            RunState.FINALIZING: self._finalize,
        }

    def run(
        self,
        user_message: str,
        catalog: Sequence[ClothingItem],
        on_log: Optional[LogCallback] = None,
        on_image: Optional[ImageCallback] = None,
    ) -> str:
        """Answer ``user_message`` using ``catalog``; returns the reply text."""

        if not user_message or not user_message.strip():
            raise ValueError("message is required")

        with operation_context("agent:orchestrator.run") as correlation_id:
            ctx = RunContext(
                user_message=user_message.strip(),
                catalog=list(catalog),
                on_log=on_log,
                on_image=on_image,
            )
            state = RunState.INIT
            while state is not RunState.DONE:
                state = self._handlers[state](ctx)

            log_event(
                LOGGER,
                logging.INFO,
                "agent_call_completed",
                agent="orchestrator",
                method="run",
                correlation_id=correlation_id,
                iterations=ctx.iterations,
                image_generated=ctx.image_generated,
            )
            return ctx.reply

    def system_directive(self, weather: WeatherSnapshot, weekly_log: Sequence[WeeklyLogEntry]) -> str:
        worn = sorted(worn_item_ids(weekly_log))
        return (
            "You are a personal fashion assistant. You help the user pick outfits based on their wardrobe.\n"
            f"Current weather context: {format_weather_for_agent(weather)}\n"
            f"Items already worn this week: {json.dumps(worn)}\n"
            "When suggesting outfits, consider the weather and avoid repeating recently worn items.\n"
            "You have access to: search_clothes, plan_outfit, generate_outfit_image.\n\n"
            "IMPORTANT: When the user asks what to wear, or when you suggest an outfit, you MUST:\n"
            "1. Call plan_outfit to get the outfit suggestion.\n"
            "2. Then IMMEDIATELY call generate_outfit_image with that outfit (pass the full outfit "
            "from plan_outfit, including tops, bottoms, shoes, etc). Do not skip this step.\n"
            "The user wants to SEE themselves wearing the outfit. Always generate the image when "
            "suggesting what to wear."
        )

    def _init(self, ctx: RunContext) -> RunState:
        ctx.emit("Processing your request...")
        if not ctx.catalog:
            ctx.reply = EMPTY_CATALOG_REPLY
            return RunState.DONE

        ctx.weekly_log = self._load_weekly_log()
        try:
            ctx.weather = self.weather_provider.get_current(
                self.config.default_latitude, self.config.default_longitude
            )
        except WeatherUnavailableError as exc:
            log_event(LOGGER, logging.WARNING, "weather_unavailable", agent="orchestrator", reason=str(exc))
            ctx.reply = f"I couldn't fetch the current weather: {exc}. Please try again in a moment."
            return RunState.DONE

        directive = self.system_directive(ctx.weather, ctx.weekly_log)
        ctx.transcript.add_user_text(f"{directive}\n\nUser: {ctx.user_message}")
        return RunState.AWAITING_MODEL

    def _load_weekly_log(self) -> List[WeeklyLogEntry]:
        try:
            self.memory_store.reset_if_new_week()
        except OSError as exc:
            log_event(LOGGER, logging.WARNING, "weekly_log_reset_failed", agent="orchestrator", reason=str(exc))
        return self.memory_store.get()

    def _await_model(self, ctx: RunContext) -> RunState:
        try:
            ctx.response = self.model_client.generate(ctx.transcript, self.tools.declarations())
        except ModelCallError as exc:
            log_event(LOGGER, logging.ERROR, "model_call_failed", agent="orchestrator", reason=str(exc))
            ctx.reply = f"Something went wrong: {exc}. Check your GEMINI_API_KEY and try again."
            return RunState.DONE
        return RunState.DECIDING

    def _decide(self, ctx: RunContext) -> RunState:
        calls = ctx.response.tool_calls if ctx.response else []
        if not calls:
            return RunState.FINALIZING
        if ctx.iterations >= self.config.max_iterations:
            ctx.reply = MAX_STEPS_REPLY
            return RunState.DONE
        if len(calls) > 1:
            log_event(
                LOGGER,
                logging.INFO,
                "extra_tool_calls_ignored",
                agent="orchestrator",
                ignored=[call.name for call in calls[1:]],
            )
        ctx.pending_call = calls[0]
        return RunState.DISPATCH

    def _dispatch(self, ctx: RunContext) -> RunState:
        call = ctx.pending_call
        ctx.emit(f"Calling tool: {call.name}...")
        result = self._execute(ctx, call)
        ctx.transcript.add_tool_exchange(call, _json_safe(result))
        ctx.pending_call = None
        ctx.iterations += 1
        return RunState.AWAITING_MODEL

    def _execute(self, ctx: RunContext, call: ToolCall) -> Dict[str, Any]:
        tool = ToolName.parse(call.name)
        try:
            if tool is ToolName.SEARCH:
                items = self.tools.search_clothes(ctx.catalog, **call.args)
                return {"results": [item.to_record() for item in items], "count": len(items)}
            if tool is ToolName.PLAN:
                plan = self.tools.plan_outfit(ctx.catalog, ctx.weather, ctx.weekly_log, **call.args)
                ctx.last_plan = plan
                self._commit_plan(plan)
                return plan.to_record()
            if tool is ToolName.COMPOSE:
                return self._compose_requested(ctx, call.args)
            return {"error": f"Unknown tool: {call.name}"}
        except ValidationError as exc:
            return validation_failure(f"Invalid arguments for {call.name}", exc)

    def _commit_plan(self, plan: OutfitPlan) -> None:
        ids = [item.id for item in [*plan.tops, *plan.bottoms]]
        if not ids:
            return
        try:
            self.memory_store.append(self.memory_store.today().isoformat(), ids)
        except Exception as exc:  # noqa: BLE001
            log_event(
                LOGGER,
                logging.WARNING,
                "weekly_log_append_failed",
                agent="orchestrator",
                reason=str(exc),
                exc_info=True,
            )

    def _compose_requested(self, ctx: RunContext, args: Dict[str, Any]) -> Dict[str, Any]:
        if ctx.image_generated:
            return CompositionResult(
                locator=ctx.image_locator or "",
                success=True,
                message="An outfit image was already generated for this request.",
            ).to_record()
        result = self.tools.generate_outfit_image(ctx.last_plan, **args)
        self._record_image(ctx, result)
        return result.to_record()

    def _record_image(self, ctx: RunContext, result: CompositionResult) -> None:
        if result.success and result.locator:
            ctx.image_generated = True
            ctx.image_locator = result.locator
            ctx.last_image_error = None
            if ctx.on_image:
                ctx.on_image(result.locator)
        else:
            ctx.last_image_error = result.message or "Image generation failed"

    def _finalize(self, ctx: RunContext) -> RunState:
        plan = ctx.last_plan
        if plan and not plan.is_empty() and not ctx.image_generated and ctx.on_image:
            ctx.emit("Generating outfit image...")
            self._record_image(ctx, self.tools.generate_outfit_image(plan))

        text = (ctx.response.text if ctx.response else "").strip()
        if text:
            ctx.reply = text
        elif plan:
            names = plan.item_names()
            note = ""
            if names and not ctx.image_generated:
                note = f"\n\n(Image: {ctx.last_image_error or DEFAULT_IMAGE_NOTE})"
            ctx.reply = f"I suggest wearing: {', '.join(names)}. {plan.reason}{note}"
        else:
            ctx.reply = NO_RESPONSE_REPLY
        return RunState.DONE


__all__ = [
    "EMPTY_CATALOG_REPLY",
    "MAX_STEPS_REPLY",
    "NO_RESPONSE_REPLY",
    "OrchestratorAgent",
    "RunContext",
    "RunState",
    "ToolName",
]

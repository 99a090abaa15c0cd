"""Orchestration loop coverage with scripted model, weather and storage stand-ins."""

from datetime import date
from typing import List, Optional

import pytest

from agents.orchestrator import (
    EMPTY_CATALOG_REPLY,
    MAX_STEPS_REPLY,
    NO_RESPONSE_REPLY,
    OrchestratorAgent,
    ToolName,
)
from agents.transcript import ToolCall
from memory.weekly_log import WeeklyLogEntry, WeeklyLogStore
from models.clothing_item import ClothingItem
from models.outfit import OutfitPlan
from stylist_app.config import AppConfig
from tools.image_composer import CompositionResult
from tools.model_provider import ModelCallError, ModelResponse, ScriptedModelClient
from tools.stylist_tools import StylistTools
from tools.weather_provider import MockWeatherProvider, WeatherProvider, WeatherSnapshot, WeatherUnavailableError


class _MemoryStore(WeeklyLogStore):
    def __init__(self, entries: Optional[List[WeeklyLogEntry]] = None, fail_append: bool = False) -> None:
        self.entries = entries or []
        self.fail_append = fail_append
        self.appended: list = []
        self.resets = 0

    def today(self) -> date:
        return date(2024, 1, 2)

    def get(self) -> List[WeeklyLogEntry]:
        return list(self.entries)

    def append(self, day: str, item_ids: List[str]) -> None:
        if self.fail_append:
            raise OSError("disk full")
        self.appended.append((day, list(item_ids)))

    def reset_if_new_week(self) -> bool:
        self.resets += 1
        return False


class _CountingComposer:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.calls: List[OutfitPlan] = []

    def compose(self, outfit: OutfitPlan, base_photo: Optional[str] = None) -> CompositionResult:
        self.calls.append(outfit)
        if not self.succeed:
            return CompositionResult(locator="", success=False, message="No base photo found.")
        return CompositionResult(locator=f"/generated/outfit-{len(self.calls)}.png", success=True)


class _BrokenWeather(WeatherProvider):
    def get_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        raise WeatherUnavailableError("Weather API error: 503")


def _item(item_id: str, category: str) -> ClothingItem:
    return ClothingItem(
        id=item_id,
        name=item_id.title(),
        category=category,
        primary_color="black",
        image_url=f"/api/image?path=clothes/{item_id}.jpg",
        colors=("black",),
        occasions=("casual",),
    )


CATALOG = [_item("tee", "top"), _item("tee2", "top"), _item("jeans", "bottom")]
WEATHER = WeatherSnapshot(temperature_c=15.0, condition="rainy", humidity_pct=80, wind_speed_kph=10, precipitation_mm=1.0)


def _call(name: str, **args) -> ModelResponse:
    return ModelResponse(tool_calls=[ToolCall(name=name, args=args)])


def _agent(
    model: ScriptedModelClient,
    store: Optional[_MemoryStore] = None,
    composer: Optional[_CountingComposer] = None,
    weather: Optional[WeatherProvider] = None,
) -> OrchestratorAgent:
    return OrchestratorAgent(
        config=AppConfig(api_key="dummy-key"),
        model_client=model,
        weather_provider=weather or MockWeatherProvider(WEATHER),
        memory_store=store or _MemoryStore(),
        tools=StylistTools(composer or _CountingComposer()),
    )


def test_empty_catalog_short_circuits_without_model_or_weather() -> None:
    model = ScriptedModelClient([ModelResponse(text="unused")])
    weather = MockWeatherProvider(WEATHER)
    agent = _agent(model, weather=weather)

    reply = agent.run("what should I wear?", [])

    assert reply == EMPTY_CATALOG_REPLY
    assert model.requests == []
    assert weather.calls == 0


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
def test_blank_message_is_rejected(message: str) -> None:
    with pytest.raises(ValueError):
        _agent(ScriptedModelClient([])).run(message, CATALOG)


def test_plain_text_reply_is_trimmed_and_directive_embeds_context() -> None:
    store = _MemoryStore([WeeklyLogEntry(date="2024-01-01", worn_item_ids=["jeans"])])
    model = ScriptedModelClient([ModelResponse(text="  Hello there!  ")])

    reply = _agent(model, store=store).run("hi", CATALOG)

    assert reply == "Hello there!"
    assert store.resets == 1
    opening = model.requests[0][0]["parts"][0]["text"]
    assert "15°C, rainy" in opening
    assert '"jeans"' in opening
    assert "generate_outfit_image" in opening
    assert opening.endswith("User: hi")


def test_plan_then_image_call_commits_memory_and_reports_one_image() -> None:
    store = _MemoryStore()
    composer = _CountingComposer()
    model = ScriptedModelClient(
        [
            _call("plan_outfit", occasion="casual"),
            _call("generate_outfit_image", outfit={}),
            ModelResponse(text="  Wear the tee and jeans.  "),
        ]
    )
    logs: List[str] = []
    images: List[str] = []

    reply = _agent(model, store=store, composer=composer).run(
        "What should I wear?", CATALOG, on_log=logs.append, on_image=images.append
    )

    assert reply == "Wear the tee and jeans."
    assert images == ["/generated/outfit-1.png"]
    assert len(composer.calls) == 1
    assert [item.id for item in composer.calls[0].tops] == ["tee", "tee2"]
    assert store.appended == [("2024-01-02", ["tee", "tee2", "jeans"])]
    assert logs == [
        "Processing your request...",
        "Calling tool: plan_outfit...",
        "Calling tool: generate_outfit_image...",
    ]


def test_tool_results_are_fed_back_as_paired_entries() -> None:
    store = _MemoryStore([WeeklyLogEntry(date="2024-01-01", worn_item_ids=["tee"])])
    model = ScriptedModelClient(
        [_call("plan_outfit", excludeWornThisWeek=True), ModelResponse(text="done")]
    )

    _agent(model, store=store).run("plan something", CATALOG)

    follow_up = model.requests[1]
    assert [entry["role"] for entry in follow_up] == ["user", "model", "user"]
    assert follow_up[1]["parts"][0]["function_call"]["name"] == "plan_outfit"
    response = follow_up[2]["parts"][0]["function_response"]
    assert response["name"] == "plan_outfit"
    assert [top["id"] for top in response["response"]["tops"]] == ["tee2"]


def test_only_first_tool_call_is_honored() -> None:
    model = ScriptedModelClient(
        [
            ModelResponse(tool_calls=[ToolCall("search_clothes", {"query": "tee"}), ToolCall("plan_outfit", {})]),
            ModelResponse(text="Found it."),
        ]
    )
    store = _MemoryStore()

    reply = _agent(model, store=store).run("find my tee", CATALOG)

    assert reply == "Found it."
    assert len(model.requests[1]) == 3
    result = model.requests[1][2]["parts"][0]["function_response"]["response"]
    assert result["count"] == 2
    assert store.appended == []


def test_iteration_ceiling_returns_fixed_reply() -> None:
    model = ScriptedModelClient([_call("search_clothes", query="tee")])
    logs: List[str] = []

    reply = _agent(model).run("loop forever", CATALOG, on_log=logs.append)

    assert reply == MAX_STEPS_REPLY
    assert len(model.requests) == 9
    assert sum(1 for line in logs if line.startswith("Calling tool")) == 8


def test_unknown_tool_and_invalid_arguments_are_recoverable() -> None:
    model = ScriptedModelClient(
        [
            _call("summon_tailor"),
            _call("search_clothes", limit="many"),
            ModelResponse(text="Sorry about that."),
        ]
    )

    reply = _agent(model).run("help", CATALOG)

    assert reply == "Sorry about that."
    unknown = model.requests[1][2]["parts"][0]["function_response"]["response"]
    assert unknown == {"error": "Unknown tool: summon_tailor"}
    invalid = model.requests[2][4]["parts"][0]["function_response"]["response"]
    assert invalid["status"] == "invalid_arguments"
    assert invalid["details"][0]["loc"] == ["limit"]


def test_model_failure_is_fatal_with_user_facing_text() -> None:
    first = _agent(ScriptedModelClient([ModelCallError("invalid api key")])).run("hi", CATALOG)
    later = _agent(ScriptedModelClient([_call("plan_outfit"), ModelCallError("quota exceeded")])).run(
        "hi", CATALOG
    )

    assert first.startswith("Something went wrong: invalid api key.")
    assert later.startswith("Something went wrong: quota exceeded.")


def test_weather_failure_is_fatal_before_model_call() -> None:
    model = ScriptedModelClient([ModelResponse(text="unused")])

    reply = _agent(model, weather=_BrokenWeather()).run("hi", CATALOG)

    assert "couldn't fetch the current weather" in reply
    assert model.requests == []


def test_finalize_composes_once_from_last_plan_when_model_goes_quiet() -> None:
    composer = _CountingComposer()
    model = ScriptedModelClient([_call("plan_outfit"), ModelResponse()])
    images: List[str] = []

    reply = _agent(model, composer=composer).run("outfit?", CATALOG, on_image=images.append)

    assert images == ["/generated/outfit-1.png"]
    assert reply.startswith("I suggest wearing: Tee, Tee2, Jeans. Weather: 15°C, rainy.")
    assert "(Image:" not in reply


def test_finalize_reports_composition_failure_inline() -> None:
    composer = _CountingComposer(succeed=False)
    model = ScriptedModelClient([_call("plan_outfit"), ModelResponse()])
    images: List[str] = []

    reply = _agent(model, composer=composer).run("outfit?", CATALOG, on_image=images.append)

    assert images == []
    assert reply.endswith("(Image: No base photo found.)")


def test_finalize_skips_composition_without_image_sink() -> None:
    composer = _CountingComposer()
    model = ScriptedModelClient([_call("plan_outfit"), ModelResponse(text="Wear the tee.")])

    reply = _agent(model, composer=composer).run("outfit?", CATALOG)

    assert reply == "Wear the tee."
    assert composer.calls == []


def test_duplicate_image_requests_produce_one_image() -> None:
    composer = _CountingComposer()
    model = ScriptedModelClient(
        [
            _call("plan_outfit"),
            _call("generate_outfit_image"),
            _call("generate_outfit_image"),
            ModelResponse(),
        ]
    )
    images: List[str] = []

    reply = _agent(model, composer=composer).run("show me", CATALOG, on_image=images.append)

    assert images == ["/generated/outfit-1.png"]
    assert len(composer.calls) == 1
    repeat = model.requests[3][6]["parts"][0]["function_response"]["response"]
    assert repeat["imageUrl"] == "/generated/outfit-1.png"
    assert "already generated" in repeat["message"]
    assert "(Image:" not in reply


def test_memory_append_failure_does_not_abort_turn() -> None:
    model = ScriptedModelClient([_call("plan_outfit"), ModelResponse(text="Tee and jeans.")])

    reply = _agent(model, store=_MemoryStore(fail_append=True)).run("outfit?", CATALOG)

    assert reply == "Tee and jeans."


def test_no_text_and_no_plan_returns_generic_reply() -> None:
    reply = _agent(ScriptedModelClient([ModelResponse()])).run("hmm", CATALOG)

    assert reply == NO_RESPONSE_REPLY


def test_tool_name_parsing_is_closed() -> None:
    assert ToolName.parse("search_clothes") is ToolName.SEARCH
    assert ToolName.parse("plan_outfit") is ToolName.PLAN
    assert ToolName.parse("generate_outfit_image") is ToolName.COMPOSE
    assert ToolName.parse("unknown") is ToolName.UNKNOWN
    assert ToolName.parse("drop_tables") is ToolName.UNKNOWN


def test_malformed_outfit_argument_is_recoverable() -> None:
    composer = _CountingComposer()
    model = ScriptedModelClient(
        [
            _call("generate_outfit_image", outfit={"tops": 3}),
            ModelResponse(text="Let me plan that first."),
        ]
    )

    reply = _agent(model, composer=composer).run("show me", CATALOG, on_image=lambda url: None)

    assert reply == "Let me plan that first."
    assert composer.calls == []
    result = model.requests[1][2]["parts"][0]["function_response"]["response"]
    assert result["status"] == "invalid_arguments"
    assert result["details"][0]["loc"] == ["outfit", "tops"]

"""Application bootstrap: wires config, providers, stores and the orchestrator."""

import logging
from typing import Callable, List, Optional

from agents.orchestrator import OrchestratorAgent
from memory.weekly_log import JSONWeeklyLogStore, WeeklyLogStore
from models.clothing_item import ClothingItem, load_catalog
from stylist_app.config import AppConfig
from stylist_app.logging_config import configure_logging, get_logger, log_event, operation_context
from tools.image_composer import ImageComposer
from tools.model_provider import GeminiModelClient, ModelClient
from tools.stylist_tools import StylistTools
from tools.weather_provider import OpenMeteoProvider, WeatherProvider, WeatherSnapshot


LOGGER = get_logger(__name__)


class WardrobeStylistApp:
    """Wires together the orchestrator and its collaborators.

    Collaborators can be injected, which is how the tests swap Gemini and
    Open-Meteo for scripted stand-ins.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        model_client: ModelClient | None = None,
        weather_provider: WeatherProvider | None = None,
        memory_store: WeeklyLogStore | None = None,
        composer: ImageComposer | None = None,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()

        self.model_client = model_client or GeminiModelClient(
            api_key=self.config.api_key, model_name=self.config.model
        )
        self.weather_provider = weather_provider or OpenMeteoProvider(
            timeout_seconds=self.config.weather_timeout_seconds
        )
        self.memory_store = memory_store or JSONWeeklyLogStore(self.config.weekly_log_path)
        self.composer = composer or ImageComposer(
            data_dir=self.config.data_path,
            person_photos_path=self.config.person_photos_path,
            person_photo_dir=self.config.person_photo_dir,
            generated_dir=self.config.generated_dir,
        )
        self.tools = StylistTools(self.composer)
        self.orchestrator = OrchestratorAgent(
            config=self.config,
            model_client=self.model_client,
            weather_provider=self.weather_provider,
            memory_store=self.memory_store,
            tools=self.tools,
        )

    def load_catalog(self) -> List[ClothingItem]:
        """Read the current catalog snapshot from disk."""

        return load_catalog(self.config.catalog_path)

    def weather(self, latitude: float | None = None, longitude: float | None = None) -> WeatherSnapshot:
        lat = self.config.default_latitude if latitude is None else latitude
        lon = self.config.default_longitude if longitude is None else longitude
        return self.weather_provider.get_current(lat, lon)

    def chat(
        self,
        message: str,
        on_log: Optional[Callable[[str], None]] = None,
        on_image: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Run one conversational turn against a fresh catalog snapshot.

        Raises ``ValueError`` for an empty message; every other outcome is
        reply text.
        """

        if not message or not message.strip():
            raise ValueError("message is required")

        with operation_context("app:chat") as correlation_id:
            catalog = self.load_catalog()
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_started",
                agent="app",
                method="chat",
                correlation_id=correlation_id,
                catalog_size=len(catalog),
            )
            reply = self.orchestrator.run(message, catalog, on_log=on_log, on_image=on_image)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_completed",
                agent="app",
                method="chat",
                correlation_id=correlation_id,
            )
            return reply


__all__ = ["WardrobeStylistApp"]

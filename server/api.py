"""FastAPI server exposing the stylist chat endpoints."""

import json
import queue
import threading
from pathlib import Path
from typing import Iterator

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from stylist_app.app import WardrobeStylistApp
from stylist_app.logging_config import configure_logging
from tools.weather_provider import WeatherUnavailableError

configure_logging()

stylist_app = WardrobeStylistApp()
app = FastAPI(title="Wardrobe Stylist", version="0.1.0")

stylist_app.config.generated_dir.mkdir(parents=True, exist_ok=True)
app.mount("/generated", StaticFiles(directory=stylist_app.config.generated_dir), name="generated")

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class ChatRequest(BaseModel):
    """Request payload for one conversational turn."""

    message: str = Field("", description="Free-text question for the stylist")


@app.get("/healthz")
async def healthcheck() -> dict:
    return {
        "status": "ok",
        "service": "wardrobe-stylist",
        "environment": stylist_app.config.environment or "local",
        "model": stylist_app.config.model,
    }


@app.get("/catalog")
def catalog() -> list:
    return [item.to_record() for item in stylist_app.load_catalog()]


@app.get("/weather")
def weather(lat: float | None = None, lon: float | None = None) -> dict:
    try:
        snapshot = stylist_app.weather(lat, lon)
    except WeatherUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {
        "temperature": snapshot.temperature_c,
        "temperatureUnit": "celsius",
        "condition": snapshot.condition,
        "humidity": snapshot.humidity_pct,
        "windSpeed": snapshot.wind_speed_kph,
        "precipitation": snapshot.precipitation_mm,
    }


@app.post("/chat")
def chat(request: ChatRequest) -> dict:
    """Run one turn and return the final reply plus any generated image locators."""

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message is required")
    images: list[str] = []
    response = stylist_app.chat(request.message, on_image=images.append)
    return {"response": response, "images": images}


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@app.post("/chat/stream")
def chat_stream(request: ChatRequest) -> StreamingResponse:
    """Stream progress logs, image locators and the final reply as server-sent events."""

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message is required")

    events: "queue.Queue[dict | None]" = queue.Queue()

    def worker() -> None:
        try:
            reply = stylist_app.chat(
                request.message,
                on_log=lambda text: events.put({"type": "log", "message": text}),
                on_image=lambda url: events.put({"type": "image", "imageUrl": url}),
            )
            events.put({"type": "done", "response": reply})
        except Exception as exc:  # noqa: BLE001
            events.put({"type": "error", "error": str(exc)})
        finally:
            events.put(None)

    threading.Thread(target=worker, daemon=True).start()

    def stream() -> Iterator[str]:
        while True:
            event = events.get()
            if event is None:
                return
            yield _sse(event)

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@app.get("/api/image")
def image(path: str = Query("", description="Path relative to the data directory")) -> FileResponse:
    """Serve a wardrobe or person photo from the data directory."""

    if not path.strip():
        raise HTTPException(status_code=400, detail="path is required")
    data_dir = stylist_app.config.data_path.resolve()
    resolved = (data_dir / path.lstrip("/")).resolve()
    if not resolved.is_relative_to(data_dir):
        raise HTTPException(status_code=403, detail="Invalid path")
    if not resolved.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    media_type = MIME_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")
    return FileResponse(resolved, media_type=media_type, headers={"Cache-Control": "public, max-age=3600"})


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)

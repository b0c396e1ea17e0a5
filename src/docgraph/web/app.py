"""FastAPI application exposing the live document graph."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from docgraph import __version__
from docgraph.config import AppConfig
from docgraph.drivers.live import LiveDriver
from docgraph.exceptions import ConfigError
from docgraph.ingestion.rendering import render

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocGraph Web", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_driver: Optional[LiveDriver] = None


class CachePayload(BaseModel):
    enabled: bool


def configure(driver: Optional[LiveDriver]) -> None:
    """Install the driver served by the application (None to rebuild from env)."""
    global _driver
    _driver = driver


def get_driver() -> LiveDriver:
    global _driver
    if _driver is None:
        try:
            _driver = LiveDriver(AppConfig.from_env())
        except ConfigError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
    return _driver


def _checked_path(path: str) -> str:
    path = path.strip()
    if not path.startswith("/") or not path.endswith(".md"):
        raise HTTPException(status_code=400, detail=f"Not a document path: {path!r}")
    return path


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if _driver is not None:
        await _driver.aclose()


@app.get("/files")
async def list_files(driver: LiveDriver = Depends(get_driver)) -> dict[str, Any]:
    """Crawl from the configured roots and return every document with backlinks."""
    result = await driver.get_files()
    return result.to_dict()


@app.get("/file")
async def get_file(
    path: str = Query(..., description="Canonical document path, e.g. /index.md"),
    driver: LiveDriver = Depends(get_driver),
) -> dict[str, Any]:
    document = await driver.get_file(_checked_path(path))
    payload = document.to_dict()
    payload["backlinks"] = driver.backlinks.get(document.path)
    return payload


@app.get("/render", response_class=HTMLResponse)
async def render_file(
    path: str = Query(..., description="Canonical document path"),
    driver: LiveDriver = Depends(get_driver),
) -> HTMLResponse:
    document = await driver.get_file(_checked_path(path))
    return HTMLResponse(content=render(document, driver.cache.evaluator))


@app.post("/cache")
async def toggle_cache(payload: CachePayload, driver: LiveDriver = Depends(get_driver)) -> dict[str, Any]:
    if payload.enabled:
        driver.enable_cache()
    else:
        driver.disable_cache()
    return {"status": "ok", "cached": driver.is_cached()}


@app.post("/cache/reset")
async def reset_cache(driver: LiveDriver = Depends(get_driver)) -> dict[str, Any]:
    driver.reset()
    return {"status": "ok"}

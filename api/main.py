"""Tracker API - FastAPI service for the emergency response dashboard.

Runs one tracker session for the lifetime of the service and exposes its
latest snapshot, recent alerts, and the clear control. Clearing the
record requires the admin key.
"""

import hmac
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.core.config import Config, validate_config
from src.shell.config_loader import get_config
from src.shell.sinks import DashboardSink
from src.tracker import build_session

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# ===== Response Models =====

class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    observed_at: int
    observed_at_iso: str
    maps_url: str


class SnapshotResponse(BaseModel):
    phase: str
    connection_status: str
    bootstrapped: bool
    coordinates_changed: bool
    location: LocationResponse | None = None
    status: str


class MapsUrlResponse(BaseModel):
    maps_url: str


# ===== Helpers =====

def _verify_admin_key(expected: str | None, x_admin_key: str | None) -> None:
    """Verify the admin API key header."""
    if not expected:
        raise HTTPException(status_code=500, detail="Admin API key not configured")
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=401, detail="Invalid admin key")


def create_app(config: Config | None = None, feed: Any = None) -> FastAPI:
    """Create the API application.

    Args:
        config: Application configuration (loaded from file/env if None)
        feed: Feed source override (Firebase if None)

    Returns:
        FastAPI application owning one tracker session
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_config = config or get_config()

        validation = validate_config(app_config)
        for warning in validation.warnings:
            logger.warning("Config %s: %s", warning.field, warning.message)

        # An injected feed needs no database URL
        critical = [
            error for error in validation.critical_errors
            if feed is None or error.field != "database_url"
        ]
        if critical:
            for error in critical:
                logger.error("Config %s: %s", error.field, error.message)
            raise RuntimeError(
                "Invalid configuration: " + "; ".join(e.message for e in critical)
            )

        dashboard = DashboardSink(history_size=app_config.alert_history_size)
        session = build_session(app_config, feed=feed, sinks=[dashboard])

        app.state.config = app_config
        app.state.dashboard = dashboard
        app.state.session = session

        session.start()
        session.bootstrap()
        try:
            yield
        finally:
            session.stop()

    app = FastAPI(
        title="Emergency Response Tracker API",
        description="Live accident location from the vehicle emergency alert feed",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        session = app.state.session
        return {
            "status": "healthy",
            "subscribed": session.running,
            "online": session.state.is_online,
        }

    @app.get("/api-location", response_model=SnapshotResponse)
    async def get_location():
        """Latest tracker snapshot."""
        return app.state.dashboard.snapshot()

    @app.get("/api-location/maps-url", response_model=MapsUrlResponse)
    async def get_maps_url():
        """Google Maps link for the active location."""
        maps_url = app.state.session.open_external_map()
        if maps_url is None:
            raise HTTPException(
                status_code=404,
                detail="There is no active accident location to show on Google Maps.",
            )
        return {"maps_url": maps_url}

    @app.get("/api-alerts")
    async def get_alerts():
        """Recent alerts and errors, newest first."""
        dashboard = app.state.dashboard
        return {
            "alerts": dashboard.recent_alerts(),
            "errors": dashboard.recent_errors(),
        }

    @app.get("/api-status")
    async def get_status():
        """One-line system status."""
        snapshot = app.state.dashboard.snapshot()
        return {
            "status": snapshot["status"],
            "connection_status": snapshot["connection_status"],
            "active_locations": 1 if snapshot["location"] else 0,
        }

    @app.delete("/api-location")
    async def clear_location(x_admin_key: str | None = Header(default=None)):
        """Clear the tracked record."""
        _verify_admin_key(app.state.config.admin_api_key, x_admin_key)

        if not app.state.session.clear():
            raise HTTPException(
                status_code=502,
                detail="Unable to remove location data. Please try again.",
            )

        return {
            "status": "cleared",
            "message": "Emergency location data has been successfully removed from the system.",
        }

    return app


app = create_app()

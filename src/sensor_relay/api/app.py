"""
FastAPI application exposing the relay's read-only status endpoints.
"""

from typing import Dict, Optional

import psutil
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from sensor_relay import __version__
from sensor_relay.core.messages import now_ms
from sensor_relay.core.types import (
    CONTROLLER_POLICY_STRICT,
    CONTROLLER_SCOPE_ROOM,
    SERVICE_NAME,
)
from sensor_relay.infrastructure import get_logger

from ..relay.server import RelayServer

logger = get_logger("status_api")


class ConnectionCounts(BaseModel):
    """Active and lifetime connection counts."""
    active: int
    total: int


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""
    status: str
    uptime: int
    connections: ConnectionCounts
    messages: Dict[str, int]
    rooms: int
    timestamp: int


class MemoryUsage(BaseModel):
    """Process memory in megabytes."""
    rss_mb: float
    vms_mb: float


class StatusResponse(HealthResponse):
    """Response model for the detailed status endpoint."""
    service: str
    version: str
    instance: str
    controller: Optional[int] = None
    memory: MemoryUsage
    features: Dict[str, bool]


class PingResponse(BaseModel):
    """Response model for the keep-alive endpoint."""
    status: str
    timestamp: int
    uptime: int


def _memory_usage() -> MemoryUsage:
    try:
        info = psutil.Process().memory_info()
        return MemoryUsage(
            rss_mb=round(info.rss / 1024 / 1024, 1),
            vms_mb=round(info.vms / 1024 / 1024, 1),
        )
    except psutil.Error as e:
        logger.warning(f"Failed to read memory usage: {e}")
        return MemoryUsage(rss_mb=0.0, vms_mb=0.0)


def create_app(relay: RelayServer) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        relay: The relay whose counters the endpoints report

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=SERVICE_NAME,
        description="Status endpoints for the sensor and signaling relay",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    def _health() -> HealthResponse:
        stats = relay.get_stats()
        return HealthResponse(
            status="ok" if stats["server_running"] else "starting",
            uptime=stats["uptime"],
            connections=ConnectionCounts(**stats["connections"]),
            messages=stats["messages"],
            rooms=stats["rooms"],
            timestamp=now_ms(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return _health()

    @app.get("/api/status", response_model=StatusResponse)
    async def status():
        """Detailed status: health fields plus memory and feature flags."""
        try:
            health = _health()
            config = relay.config
            stats = relay.get_stats()
            return StatusResponse(
                **health.model_dump(),
                service=SERVICE_NAME,
                version=__version__,
                instance=config.instance_name,
                controller=stats["controller"]["controller"],
                memory=_memory_usage(),
                features={
                    "gyroscope": True,
                    "shakeDetection": True,
                    "spin": True,
                    "screenCapture": True,
                    "webrtcSignaling": True,
                    "strictController": config.controller_policy == CONTROLLER_POLICY_STRICT,
                    "roomScopedController": config.controller_scope == CONTROLLER_SCOPE_ROOM,
                    "peerLeftNotifications": config.notify_peer_left,
                    "pipeFormat": config.pipe_format_enabled,
                },
            )
        except Exception as e:
            logger.error(f"Error building status: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to build status")

    @app.get("/api/ping", response_model=PingResponse)
    async def ping():
        """Keep-alive endpoint."""
        return PingResponse(
            status="pong",
            timestamp=now_ms(),
            uptime=relay.state.stats.uptime(),
        )

    return app

"""
Health check handler.
"""

from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...config import Settings
from ...services.storage import Database
from ...utils.logging import get_logger

logger = get_logger("health")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str
    uptime: float


class HealthHandler:
    """Handler for health check endpoints."""

    def __init__(self, settings: Settings, db: Database):
        self.settings = settings
        self.db = db
        self.start_time = datetime.now()
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup health check routes."""

        @self.router.get("/", response_model=HealthResponse)
        async def health_check():
            """Basic health check endpoint."""
            uptime = (datetime.now() - self.start_time).total_seconds()
            return HealthResponse(
                status="healthy",
                timestamp=datetime.now().isoformat(),
                version=self.settings.app_version,
                uptime=uptime,
            )

        @self.router.get("/ready")
        async def readiness_check():
            """Ready once the database answers."""
            try:
                await self.db.fetch_one("SELECT 1 AS ok")
            except Exception:
                logger.exception("readiness check failed")
                return JSONResponse({"status": "unavailable"}, status_code=503)
            return {"status": "ready"}

        @self.router.get("/live")
        async def liveness_check():
            """Liveness check for container orchestration."""
            return {"status": "alive"}

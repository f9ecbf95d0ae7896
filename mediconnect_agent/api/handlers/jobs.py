"""
Scheduled job triggers, called by an external scheduler.
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from ...config import Settings
from ...services.maintenance import ReminderService, SlotGenerator
from ...utils.logging import get_logger

logger = get_logger("jobs")


class JobsHandler:
    """Slot regeneration and reminder endpoints, guarded by the service key."""

    def __init__(self, settings: Settings, slots: SlotGenerator, reminders: ReminderService):
        self.settings = settings
        self.slots = slots
        self.reminders = reminders
        self.router = APIRouter(dependencies=[Depends(self._authorize)])
        self._setup_routes()

    async def _authorize(self, authorization: Optional[str] = Header(default=None)) -> None:
        key = self.settings.service_role_key
        expected = f"Bearer {key}" if key else None
        if not expected or not authorization or not hmac.compare_digest(authorization, expected):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    def _setup_routes(self):
        @self.router.post("/regenerate-slots")
        async def regenerate_slots():
            try:
                stats = await self.slots.regenerate()
            except Exception as e:
                logger.exception("slot regeneration failed")
                return JSONResponse({"success": False, "error": str(e)}, status_code=500)
            return {"success": True, "stats": stats.model_dump()}

        @self.router.post("/send-reminders")
        async def send_reminders():
            try:
                results = await self.reminders.send_reminders()
            except Exception as e:
                logger.exception("reminder run failed")
                return JSONResponse({"success": False, "error": str(e)}, status_code=500)
            return {"success": True, "results": results.model_dump()}

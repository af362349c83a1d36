from __future__ import annotations

from fastapi import APIRouter

from api.routes import time_slots, timetables


api_router = APIRouter()
api_router.include_router(timetables.router, prefix="/schools/{school_id}/timetables", tags=["timetables"])
api_router.include_router(time_slots.router, prefix="/schools/{school_id}/time-slots", tags=["time-slots"])

# Campus statistics route, public

from typing import Dict, Any
from fastapi import APIRouter, Depends

from api.auth.routes import get_database
from db.manager import DatabaseManager
from db.stats_operations import StatsOperations
from utils.response import create_success_response

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=Dict[str, Any])
async def get_campus_stats(db: DatabaseManager = Depends(get_database)):
    stats = StatsOperations(db).get_campus_stats()
    return create_success_response(data=stats, message="Campus statistics")

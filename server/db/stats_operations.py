# Campus statistics, recomputed on every call

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Callable

from .manager import DatabaseManager
from utils.clock import utc_now, format_timestamp

logger = logging.getLogger(__name__)

CARBON_KG_PER_MEAL = 1.5
WATER_LITERS_PER_MEAL = 500
ACTIVE_STUDENT_WINDOW_DAYS = 30


class StatsOperations:
    """Read-only rollups for the landing page"""

    def __init__(self, db_manager: DatabaseManager, now_func: Optional[Callable[[], datetime]] = None):
        self.db = db_manager
        self.now = now_func or utc_now

    def _scalar(self, query: str, params: list = None) -> int:
        value = self.db.conn.execute(query, params or []).fetchone()[0]
        return int(value or 0)

    def get_campus_stats(self) -> Dict[str, Any]:
        """
        Returns:
            total_meals_saved: claimed claims
            active_students: distinct claimants over the trailing 30 days
            partner_canteens: distinct canteens among active items
            food_provided: units ever posted
            wasted_food: expired claims (stored or past TTL) plus stock left
                on expired items
            claimed_food: completed claims
            carbon_footprint_saved_kg, water_footprint_saved_liters: per
                completed claim, whatever its quantity
        """
        now = format_timestamp(self.now())
        window_start = format_timestamp(self.now() - timedelta(days=ACTIVE_STUDENT_WINDOW_DAYS))

        total_meals_saved = self._scalar(
            "SELECT COUNT(*) FROM food_claims WHERE status = 'claimed'"
        )

        active_students = self._scalar(
            "SELECT COUNT(DISTINCT user_id) FROM food_claims WHERE created_at >= ?",
            [window_start]
        )

        partner_canteens = self._scalar(
            "SELECT COUNT(DISTINCT canteen_name) FROM food_items WHERE is_active = TRUE"
        )

        food_provided = self._scalar(
            "SELECT COALESCE(SUM(quantity_posted), 0) FROM food_items"
        )

        expired_claims = self._scalar("""
            SELECT COUNT(*) FROM food_claims
            WHERE status = 'expired' OR (status = 'reserved' AND expires_at < ?)
        """, [now])

        expired_stock = self._scalar("""
            SELECT COALESCE(SUM(quantity_available), 0) FROM food_items
            WHERE is_active = FALSE AND available_until <= ?
        """, [now])

        stats = {
            'total_meals_saved': total_meals_saved,
            'active_students': active_students,
            'partner_canteens': partner_canteens,
            'food_provided': food_provided,
            'wasted_food': expired_claims + expired_stock,
            'claimed_food': total_meals_saved,
            'carbon_footprint_saved_kg': round(total_meals_saved * CARBON_KG_PER_MEAL, 2),
            'water_footprint_saved_liters': total_meals_saved * WATER_LITERS_PER_MEAL,
        }

        logger.debug(f"Campus stats: {stats}")
        return stats

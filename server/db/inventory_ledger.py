# Inventory ledger
# Sole writer of food_items.quantity_available and food_items.is_active

import logging
from datetime import datetime
from typing import Optional, Dict, Any, Callable

from .manager import DatabaseManager
from .errors import (
    ItemNotFoundError, ItemInactiveError, ItemExpiredError,
    InsufficientQuantityError, InvalidStateError
)
from utils.clock import utc_now, format_timestamp, parse_timestamp
from utils.validators import validate_positive_integer, validate_non_negative_integer

logger = logging.getLogger(__name__)

ITEM_COLUMNS = """
    food_item_id, name, description, canteen_name, canteen_location, image_url,
    quantity_posted, quantity_available, available_until, is_active,
    created_by, created_at, updated_at
"""


def row_to_item(row) -> Dict[str, Any]:
    item = dict(row)
    item['is_active'] = bool(item['is_active'])
    return item


class InventoryLedger:
    """
    Inventory ledger

    Claim and donation code asks the ledger for quantity changes instead of
    writing item rows itself, so the never-negative rule lives in one place.
    Every write is a compare-and-swap UPDATE that runs inside the caller's
    transaction when there is one.
    """

    def __init__(self, db_manager: DatabaseManager, now_func: Optional[Callable[[], datetime]] = None):
        self.db = db_manager
        self.now = now_func or utc_now

    def get_item(self, food_item_id: int) -> Dict[str, Any]:
        """
        Raises:
            ItemNotFoundError: no such item
        """
        row = self.db.conn.execute(
            f"SELECT {ITEM_COLUMNS} FROM food_items WHERE food_item_id = ?",
            [food_item_id]
        ).fetchone()

        if not row:
            raise ItemNotFoundError(f"Food item {food_item_id} not found")

        return row_to_item(row)

    def reserved_quantity(self, food_item_id: int, now: Optional[datetime] = None) -> int:
        """
        Units held by reservations that are still within their TTL.
        """
        now = now or self.now()
        held = self.db.conn.execute("""
            SELECT COALESCE(SUM(quantity_claimed), 0) FROM food_claims
            WHERE food_item_id = ? AND status = 'reserved' AND expires_at >= ?
        """, [food_item_id, format_timestamp(now)]).fetchone()[0]
        return int(held)

    def available_quantity(self, item: Dict[str, Any], now: Optional[datetime] = None) -> int:
        """
        Quantity a new claim may take: the ledger quantity minus live reservations.
        """
        return item['quantity_available'] - self.reserved_quantity(item['food_item_id'], now)

    def check_claimable(self, item: Dict[str, Any], now: Optional[datetime] = None):
        """
        Raises:
            ItemInactiveError: item is deactivated (checked first)
            ItemExpiredError: now is at or past available_until
        """
        now = now or self.now()

        if not item['is_active']:
            raise ItemInactiveError(f"Food item '{item['name']}' is not active")

        if now >= parse_timestamp(item['available_until']):
            raise ItemExpiredError(f"Food item '{item['name']}' is no longer available")

    def decrement_quantity(self, food_item_id: int, amount: int, require_active: bool = True) -> Dict[str, Any]:
        """
        Remove units from the item.

        Args:
            food_item_id: item id
            amount: units to remove, at least 1
            require_active: also require the item to be active and before its
                deadline. Claim completion passes False: its units were held
                by a reservation that was valid when made.

        Returns:
            the updated item

        Raises:
            ValueError, ItemNotFoundError, ItemInactiveError, ItemExpiredError,
            InsufficientQuantityError
        """
        if not validate_positive_integer(amount):
            raise ValueError(f"Amount must be a positive integer, got {amount!r}")

        with self.db.transaction():
            now = self.now()
            item = self.get_item(food_item_id)

            if require_active:
                self.check_claimable(item, now)

            if item['quantity_available'] < amount:
                raise InsufficientQuantityError(
                    f"Only {item['quantity_available']} of '{item['name']}' left, {amount} requested"
                )

            cursor = self.db.conn.execute("""
                UPDATE food_items
                SET quantity_available = quantity_available - ?,
                    updated_at = ?
                WHERE food_item_id = ? AND quantity_available >= ?
            """, [amount, format_timestamp(now), food_item_id, amount])

            if cursor.rowcount != 1:
                raise InsufficientQuantityError(f"Quantity of '{item['name']}' changed concurrently")

            logger.debug(f"Item {food_item_id}: -{amount} (was {item['quantity_available']})")
            return self.get_item(food_item_id)

    def transfer_out(self, food_item_id: int, amount: int) -> Dict[str, Any]:
        """
        Remove units handed to the donation pipeline. Works on inactive items.
        """
        return self.decrement_quantity(food_item_id, amount, require_active=False)

    def set_posted_quantity(self, food_item_id: int, quantity: int) -> Dict[str, Any]:
        """
        Apply a poster's quantity edit.

        quantity_available moves by the same delta as quantity_posted, so
        units already consumed by redeemed claims stay consumed.

        Raises:
            InvalidStateError: the edit would leave fewer units than live
                reservations hold
        """
        if not validate_non_negative_integer(quantity):
            raise ValueError(f"Quantity must be a non-negative integer, got {quantity!r}")

        with self.db.transaction():
            now = self.now()
            item = self.get_item(food_item_id)
            delta = quantity - item['quantity_posted']
            new_available = max(item['quantity_available'] + delta, 0)
            held = self.reserved_quantity(food_item_id, now)

            if new_available < held:
                raise InvalidStateError(
                    f"{held} units of '{item['name']}' are reserved; quantity cannot drop to {quantity}"
                )

            self.db.conn.execute("""
                UPDATE food_items
                SET quantity_posted = ?, quantity_available = ?, updated_at = ?
                WHERE food_item_id = ?
            """, [quantity, new_available, format_timestamp(now), food_item_id])

            logger.info(f"Item {food_item_id}: posted quantity {item['quantity_posted']} -> {quantity}")
            return self.get_item(food_item_id)

    def withdraw(self, food_item_id: int) -> Dict[str, Any]:
        """
        Soft-remove an item: no quantity left and inactive, so the expiry
        refresh never reactivates it.
        """
        with self.db.transaction():
            self.get_item(food_item_id)
            self.db.conn.execute("""
                UPDATE food_items
                SET quantity_available = 0, is_active = FALSE, updated_at = ?
                WHERE food_item_id = ?
            """, [format_timestamp(self.now()), food_item_id])

            logger.info(f"Item {food_item_id} withdrawn")
            return self.get_item(food_item_id)

    def refresh_expiry_status(self) -> Dict[str, int]:
        """
        Bring is_active in line with available_until.

        Active items past their deadline are deactivated; inactive items whose
        deadline was extended into the future and that still hold stock are
        reactivated. Idempotent.

        Returns:
            {'deactivated': n, 'reactivated': m}
        """
        with self.db.transaction():
            now = format_timestamp(self.now())

            deactivated = self.db.conn.execute("""
                UPDATE food_items
                SET is_active = FALSE, updated_at = ?
                WHERE is_active = TRUE AND available_until <= ?
            """, [now, now]).rowcount

            reactivated = self.db.conn.execute("""
                UPDATE food_items
                SET is_active = TRUE, updated_at = ?
                WHERE is_active = FALSE AND available_until > ? AND quantity_available >= 1
            """, [now, now]).rowcount

        if deactivated or reactivated:
            logger.info(f"Expiry refresh: {deactivated} deactivated, {reactivated} reactivated")

        return {'deactivated': deactivated, 'reactivated': reactivated}

# Food item management
# Posting, editing and withdrawing surplus meals; quantity writes go through the ledger

import logging
from datetime import datetime
from typing import List, Optional, Dict, Any, Callable

from .manager import DatabaseManager
from .inventory_ledger import InventoryLedger, ITEM_COLUMNS, row_to_item
from .claim_operations import ClaimOperations
from .supporting_operations import SupportingOperations
from utils.clock import utc_now, to_utc, format_timestamp
from utils.validators import validate_positive_integer, validate_string_length

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'description', 'canteen_name', 'canteen_location', 'image_url')


class FoodItemOperations:
    """
    Food item operations for canteen staff
    """
    def __init__(self, db_manager: DatabaseManager, now_func: Optional[Callable[[], datetime]] = None):
        self.db = db_manager
        self.now = now_func or utc_now
        self.ledger = InventoryLedger(db_manager, self.now)
        self.claims = ClaimOperations(db_manager, self.now)
        self.support = SupportingOperations(db_manager, self.now)

    def _verify_admin_permission(self, user_id: str):
        if not self.support.is_admin(user_id):
            raise PermissionError("Only canteen staff can manage food items")

    def _verify_creator(self, user_id: str, item: Dict[str, Any]):
        if item['created_by'] != user_id:
            raise PermissionError("Only the poster of a food item can change it")

    def _validate_details(self, name: str, canteen_name: str):
        if not validate_string_length(name, 1, 255):
            raise ValueError("Food item name must be 1-255 characters")
        if not validate_string_length(canteen_name, 1, 255):
            raise ValueError("Canteen name must be 1-255 characters")

    def _with_availability(self, item: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        reserved = self.ledger.reserved_quantity(item['food_item_id'], now)
        item['reserved_quantity'] = reserved
        item['actual_available_quantity'] = max(item['quantity_available'] - reserved, 0)
        return item

    def create_food_item(self, user_id: str, name: str, canteen_name: str, quantity: int,
                         available_until: datetime, description: str = None,
                         canteen_location: str = None, image_url: str = None) -> Dict[str, Any]:
        """
        Post a surplus meal.

        Args:
            user_id: poster, must be an admin
            quantity: units on offer, at least 1
            available_until: claim deadline, must be in the future

        Returns:
            the created item
        """
        self._validate_details(name, canteen_name)

        if not validate_positive_integer(quantity):
            raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")

        def create_food_item_operation():
            self._verify_admin_permission(user_id)

            now = self.now()
            if to_utc(available_until) <= now:
                raise ValueError("Available-until time must be in the future")

            cursor = self.db.conn.execute("""
                INSERT INTO food_items (name, description, canteen_name, canteen_location, image_url,
                                        quantity_posted, quantity_available, available_until,
                                        is_active, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, TRUE, ?, ?, ?)
            """, [name.strip(), description, canteen_name.strip(), canteen_location, image_url,
                  quantity, quantity, format_timestamp(available_until), user_id,
                  format_timestamp(now), format_timestamp(now)])

            return self.ledger.get_item(cursor.lastrowid)

        item = self.db.execute_transaction([create_food_item_operation])[0]
        logger.info(f"Food item {item['food_item_id']} '{item['name']}' posted by {user_id}, quantity {quantity}")
        return item

    def update_food_item(self, user_id: str, food_item_id: int, **changes) -> Dict[str, Any]:
        """
        Edit an item. Only its creator may do so.

        Args:
            changes: any of name, description, canteen_name, canteen_location,
                image_url, quantity, available_until; None values are ignored

        Raises:
            ItemNotFoundError, PermissionError, ValueError,
            InvalidStateError: quantity below live reservations
        """
        changes = {key: value for key, value in changes.items() if value is not None}
        unknown = set(changes) - set(EDITABLE_FIELDS) - {'quantity', 'available_until'}
        if unknown:
            raise ValueError(f"Unknown food item fields: {', '.join(sorted(unknown))}")

        def update_food_item_operation():
            item = self.ledger.get_item(food_item_id)
            self._verify_creator(user_id, item)

            name = changes.get('name', item['name'])
            canteen_name = changes.get('canteen_name', item['canteen_name'])
            self._validate_details(name, canteen_name)

            fields = {key: changes[key] for key in EDITABLE_FIELDS if key in changes}
            for key in ('name', 'canteen_name'):
                if key in fields:
                    fields[key] = fields[key].strip()
            if 'available_until' in changes:
                fields['available_until'] = format_timestamp(changes['available_until'])

            if fields:
                assignments = ", ".join(f"{key} = ?" for key in fields)
                self.db.conn.execute(
                    f"UPDATE food_items SET {assignments}, updated_at = ? WHERE food_item_id = ?",
                    list(fields.values()) + [format_timestamp(self.now()), food_item_id]
                )

            if 'quantity' in changes:
                self.ledger.set_posted_quantity(food_item_id, changes['quantity'])

            if 'available_until' in changes:
                self.ledger.refresh_expiry_status()

            return self.ledger.get_item(food_item_id)

        item = self.db.execute_transaction([update_food_item_operation])[0]
        logger.info(f"Food item {food_item_id} updated by {user_id}: {', '.join(sorted(changes)) or 'no changes'}")
        return item

    def remove_food_item(self, user_id: str, food_item_id: int) -> Dict[str, Any]:
        """
        Remove an item. Items with claim or donation history are withdrawn
        instead of deleted: outstanding reservations are cancelled and the
        ledger empties and deactivates the item.

        Returns:
            {'food_item_id', 'deleted': bool, 'cancelled_reservations': int}
        """
        def remove_food_item_operation():
            item = self.ledger.get_item(food_item_id)
            self._verify_creator(user_id, item)

            history = self.db.conn.execute("""
                SELECT (SELECT COUNT(*) FROM food_claims WHERE food_item_id = ?)
                     + (SELECT COUNT(*) FROM food_donations WHERE food_item_id = ?)
            """, [food_item_id, food_item_id]).fetchone()[0]

            if not history:
                self.db.conn.execute("DELETE FROM food_items WHERE food_item_id = ?", [food_item_id])
                return {'food_item_id': food_item_id, 'deleted': True, 'cancelled_reservations': 0}

            cancelled = self.claims.cancel_reservations_for_item(food_item_id)
            self.ledger.withdraw(food_item_id)
            return {'food_item_id': food_item_id, 'deleted': False, 'cancelled_reservations': cancelled}

        result = self.db.execute_transaction([remove_food_item_operation])[0]
        if result['deleted']:
            logger.info(f"Food item {food_item_id} deleted by {user_id}")
        else:
            logger.info(
                f"Food item {food_item_id} withdrawn by {user_id}, "
                f"{result['cancelled_reservations']} reservation(s) cancelled"
            )
        return result

    def get_food_item(self, food_item_id: int) -> Dict[str, Any]:
        item = self.ledger.get_item(food_item_id)
        return self._with_availability(item, self.now())

    def list_active_food_items(self) -> List[Dict[str, Any]]:
        """
        Items a student can claim right now: active, before the deadline and
        with stock. Expiry status is refreshed first.

        Each item carries its creator, the number of live claims and the
        quantity still claimable after live reservations.
        """
        self.ledger.refresh_expiry_status()
        now = self.now()

        rows = self.db.conn.execute("""
            SELECT f.food_item_id, f.name, f.description, f.canteen_name, f.canteen_location,
                   f.image_url, f.quantity_posted, f.quantity_available, f.available_until,
                   f.is_active, f.created_by, f.created_at, f.updated_at,
                   u.first_name AS creator_first_name, u.last_name AS creator_last_name,
                   u.email AS creator_email,
                   (SELECT COUNT(*) FROM food_claims c
                    WHERE c.food_item_id = f.food_item_id
                      AND c.status IN ('reserved', 'claimed')) AS claim_count
            FROM food_items f
            LEFT JOIN users u ON f.created_by = u.user_id
            WHERE f.is_active = TRUE AND f.available_until > ? AND f.quantity_available >= 1
            ORDER BY f.created_at DESC, f.food_item_id DESC
        """, [format_timestamp(now)]).fetchall()

        items = []
        for row in rows:
            item = dict(row)
            item['is_active'] = bool(item['is_active'])
            item['creator'] = {
                'user_id': item['created_by'],
                'first_name': item.pop('creator_first_name'),
                'last_name': item.pop('creator_last_name'),
                'email': item.pop('creator_email'),
            }
            items.append(self._with_availability(item, now))

        return items

    def get_food_items_by_creator(self, user_id: str) -> List[Dict[str, Any]]:
        """All items a poster created, including expired and withdrawn ones"""
        self.ledger.refresh_expiry_status()
        now = self.now()

        rows = self.db.conn.execute(
            f"SELECT {ITEM_COLUMNS} FROM food_items WHERE created_by = ? "
            "ORDER BY created_at DESC, food_item_id DESC",
            [user_id]
        ).fetchall()

        return [self._with_availability(row_to_item(row), now) for row in rows]

# Donation transfer operations
# Expired, unclaimed inventory moves into the donation pipeline exactly once per item

import sqlite3
import logging
from datetime import datetime
from typing import List, Optional, Dict, Any, Callable

from .manager import DatabaseManager
from .inventory_ledger import InventoryLedger
from .claim_operations import ClaimOperations
from .models import DonationStatus
from .errors import DonationNotFoundError, InvalidStateError
from utils.clock import utc_now, format_timestamp
from utils.validators import validate_string_length, validate_phone_number

logger = logging.getLogger(__name__)

DONATION_DETAILS_QUERY = """
    SELECT d.donation_id, d.food_item_id, d.ngo_name, d.ngo_contact_person,
           d.ngo_phone_number, d.quantity_donated, d.status, d.donated_at,
           d.reserved_at, d.collected_at, d.notes, d.created_at,
           f.name AS item_name, f.canteen_name AS item_canteen_name,
           f.canteen_location AS item_canteen_location,
           f.available_until AS item_available_until, f.created_by AS item_created_by
    FROM food_donations d
    LEFT JOIN food_items f ON d.food_item_id = f.food_item_id
"""


def _donation_details(row) -> Dict[str, Any]:
    donation = {key: row[key] for key in (
        'donation_id', 'food_item_id', 'ngo_name', 'ngo_contact_person',
        'ngo_phone_number', 'quantity_donated', 'status', 'donated_at',
        'reserved_at', 'collected_at', 'notes', 'created_at'
    )}
    donation['food_item'] = {
        'food_item_id': row['food_item_id'],
        'name': row['item_name'],
        'canteen_name': row['item_canteen_name'],
        'canteen_location': row['item_canteen_location'],
        'available_until': row['item_available_until'],
        'created_by': row['item_created_by'],
    }
    return donation


class DonationOperations:
    """
    Donation transfer sweeper and NGO hand-off

    available -> reserved_for_ngo -> collected
    """
    def __init__(self, db_manager: DatabaseManager, now_func: Optional[Callable[[], datetime]] = None):
        self.db = db_manager
        self.now = now_func or utc_now
        self.ledger = InventoryLedger(db_manager, self.now)
        self.claims = ClaimOperations(db_manager, self.now)

    def _get_donation(self, donation_id: int) -> Dict[str, Any]:
        row = self.db.conn.execute(
            DONATION_DETAILS_QUERY + " WHERE d.donation_id = ?", [donation_id]
        ).fetchone()

        if not row:
            raise DonationNotFoundError(f"Donation {donation_id} not found")

        return _donation_details(row)

    def _donation_exists(self, food_item_id: int) -> bool:
        row = self.db.conn.execute(
            "SELECT 1 FROM food_donations WHERE food_item_id = ? LIMIT 1", [food_item_id]
        ).fetchone()
        return row is not None

    def sweep_expired_to_donations(self) -> int:
        """
        Transfer every expired item's undistributed quantity into a donation.

        Steps:
            1. refresh item expiry so the expired set is current
            2. expire stale reservations
            3. for each inactive item past its deadline with quantity left and
               no donation yet: record a donation for the units not held by
               live reservations and transfer them out of the ledger

        Re-running is a no-op for items already transferred.

        Returns:
            number of donations created
        """
        self.ledger.refresh_expiry_status()
        self.claims.expire_stale_reservations()

        def sweep_operation():
            now = self.now()
            expired_items = self.db.conn.execute("""
                SELECT food_item_id, name, quantity_available FROM food_items
                WHERE is_active = FALSE AND available_until <= ? AND quantity_available > 0
                ORDER BY created_at DESC
            """, [format_timestamp(now)]).fetchall()

            transferred_count = 0
            for item in expired_items:
                food_item_id = item['food_item_id']

                if self._donation_exists(food_item_id):
                    continue

                undistributed = item['quantity_available'] - self.ledger.reserved_quantity(food_item_id, now)
                if undistributed <= 0:
                    continue

                try:
                    self.db.conn.execute("""
                        INSERT INTO food_donations (food_item_id, quantity_donated, status,
                                                    donated_at, notes, created_at)
                        VALUES (?, ?, 'available', ?, ?, ?)
                    """, [food_item_id, undistributed, format_timestamp(now),
                          f"Auto-transferred from expired food item: {item['name']}",
                          format_timestamp(now)])
                except sqlite3.IntegrityError:
                    # another sweep got there first
                    logger.info(f"Donation for item {food_item_id} already exists, skipping")
                    continue

                self.ledger.transfer_out(food_item_id, undistributed)
                transferred_count += 1
                logger.info(f"Item {food_item_id} ({item['name']}): {undistributed} unit(s) moved to donations")

            return transferred_count

        transferred_count = self.db.execute_transaction([sweep_operation])[0]
        logger.info(f"Donation sweep finished, {transferred_count} new donation(s)")
        return transferred_count

    def reserve_for_ngo(self, donation_id: int, ngo_name: str, ngo_contact_person: str,
                        ngo_phone_number: str) -> Dict[str, Any]:
        """
        Reserve an available donation for an NGO.

        Raises:
            ValueError: missing or malformed NGO details
            DonationNotFoundError
            InvalidStateError: donation is not available
        """
        if not (validate_string_length(ngo_name, 1, 255)
                and validate_string_length(ngo_contact_person, 1, 255)
                and validate_string_length(ngo_phone_number, 1, 20)):
            raise ValueError("NGO name, contact person and phone number are required")

        if not validate_phone_number(ngo_phone_number):
            raise ValueError(f"Invalid NGO phone number: {ngo_phone_number}")

        def reserve_operation():
            donation = self._get_donation(donation_id)
            status = DonationStatus(donation['status'])

            if status is not DonationStatus.AVAILABLE:
                raise InvalidStateError(f"Donation is {status.value}; only available donations can be reserved")

            self.db.conn.execute("""
                UPDATE food_donations
                SET status = 'reserved_for_ngo', ngo_name = ?, ngo_contact_person = ?,
                    ngo_phone_number = ?, reserved_at = ?
                WHERE donation_id = ?
            """, [ngo_name.strip(), ngo_contact_person.strip(), ngo_phone_number.strip(),
                  format_timestamp(self.now()), donation_id])

            return self._get_donation(donation_id)

        donation = self.db.execute_transaction([reserve_operation])[0]
        logger.info(f"Donation {donation_id} reserved for {donation['ngo_name']}")
        return donation

    def mark_collected(self, donation_id: int) -> Dict[str, Any]:
        """
        Raises:
            DonationNotFoundError
            InvalidStateError: donation is not reserved for an NGO
        """
        def collect_operation():
            donation = self._get_donation(donation_id)
            status = DonationStatus(donation['status'])

            if status is not DonationStatus.RESERVED_FOR_NGO:
                raise InvalidStateError(
                    f"Donation is {status.value}; only donations reserved for an NGO can be collected"
                )

            self.db.conn.execute("""
                UPDATE food_donations SET status = 'collected', collected_at = ?
                WHERE donation_id = ?
            """, [format_timestamp(self.now()), donation_id])

            return self._get_donation(donation_id)

        donation = self.db.execute_transaction([collect_operation])[0]
        logger.info(f"Donation {donation_id} collected")
        return donation

    def get_donation(self, donation_id: int) -> Dict[str, Any]:
        return self._get_donation(donation_id)

    def get_all_donations(self) -> List[Dict[str, Any]]:
        rows = self.db.conn.execute(
            DONATION_DETAILS_QUERY + " ORDER BY d.created_at DESC, d.donation_id DESC"
        ).fetchall()
        return [_donation_details(row) for row in rows]

    def get_donations_by_creator(self, user_id: str) -> List[Dict[str, Any]]:
        """Donations sourced from items the given poster created"""
        rows = self.db.conn.execute(
            DONATION_DETAILS_QUERY + " WHERE f.created_by = ? ORDER BY d.created_at DESC, d.donation_id DESC",
            [user_id]
        ).fetchall()
        return [_donation_details(row) for row in rows]

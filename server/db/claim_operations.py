# Claim lifecycle operations
# reserved -> claimed | expired | cancelled

import sqlite3
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any, Callable

from .manager import DatabaseManager
from .inventory_ledger import InventoryLedger
from .supporting_operations import SupportingOperations
from .models import ClaimStatus, CLAIM_STATUS_MESSAGES, LIVE_CLAIM_STATUSES
from .errors import (
    NotFoundError, ClaimNotFoundError, ClaimExpiredError, AlreadyClaimedError,
    InsufficientQuantityError, InvalidStateError, StorageUnavailableError
)
from utils.claim_code import generate_claim_code, normalize_claim_code, is_valid_claim_code
from utils.clock import utc_now, format_timestamp, parse_timestamp
from utils.validators import validate_positive_integer

logger = logging.getLogger(__name__)

DEFAULT_RESERVATION_TTL_MINUTES = 20
DEFAULT_CODE_GENERATION_ATTEMPTS = 10

CLAIM_DETAILS_QUERY = """
    SELECT c.claim_id, c.user_id, c.food_item_id, c.quantity_claimed, c.claim_code,
           c.status, c.expires_at, c.claimed_at, c.created_at,
           u.email AS user_email, u.first_name AS user_first_name,
           u.last_name AS user_last_name, u.student_id AS user_student_id,
           u.phone_number AS user_phone_number,
           f.name AS item_name, f.description AS item_description,
           f.canteen_name AS item_canteen_name, f.canteen_location AS item_canteen_location,
           f.quantity_available AS item_quantity_available,
           f.available_until AS item_available_until, f.is_active AS item_is_active,
           f.created_by AS item_created_by
    FROM food_claims c
    LEFT JOIN users u ON c.user_id = u.user_id
    LEFT JOIN food_items f ON c.food_item_id = f.food_item_id
"""


def _claim_details(row) -> Dict[str, Any]:
    """Fold a CLAIM_DETAILS_QUERY row into a claim with nested user and item"""
    return {
        'claim_id': row['claim_id'],
        'user_id': row['user_id'],
        'food_item_id': row['food_item_id'],
        'quantity_claimed': row['quantity_claimed'],
        'claim_code': row['claim_code'],
        'status': row['status'],
        'expires_at': row['expires_at'],
        'claimed_at': row['claimed_at'],
        'created_at': row['created_at'],
        'user': {
            'user_id': row['user_id'],
            'email': row['user_email'],
            'first_name': row['user_first_name'],
            'last_name': row['user_last_name'],
            'student_id': row['user_student_id'],
            'phone_number': row['user_phone_number'],
        },
        'food_item': {
            'food_item_id': row['food_item_id'],
            'name': row['item_name'],
            'description': row['item_description'],
            'canteen_name': row['item_canteen_name'],
            'canteen_location': row['item_canteen_location'],
            'quantity_available': row['item_quantity_available'],
            'available_until': row['item_available_until'],
            'is_active': bool(row['item_is_active']),
            'created_by': row['item_created_by'],
        },
    }


class ClaimOperations:
    """
    Claim lifecycle manager

    Quantity is accounted at redemption time: creating a claim only reserves
    units (availability is the ledger quantity minus live reservations), and
    completing it asks the ledger to consume them. Expired reservations
    therefore never need to give quantity back.

    Expiry is lazy: a reserved claim past expires_at is written as expired
    the next time it is read, verified, completed, or when another claim on
    the same item is created.
    """

    def __init__(self, db_manager: DatabaseManager,
                 now_func: Optional[Callable[[], datetime]] = None,
                 reservation_ttl_minutes: int = DEFAULT_RESERVATION_TTL_MINUTES,
                 code_generation_attempts: int = DEFAULT_CODE_GENERATION_ATTEMPTS):
        self.db = db_manager
        self.now = now_func or utc_now
        self.reservation_ttl = timedelta(minutes=reservation_ttl_minutes)
        self.code_generation_attempts = code_generation_attempts
        self.ledger = InventoryLedger(db_manager, self.now)
        self.support = SupportingOperations(db_manager, self.now)

    # Shared helpers
    def _get_claim_row(self, claim_id: int) -> Dict[str, Any]:
        row = self.db.conn.execute(
            "SELECT * FROM food_claims WHERE claim_id = ?", [claim_id]
        ).fetchone()

        if not row:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")

        return dict(row)

    def _get_claim_details(self, claim_id: int) -> Dict[str, Any]:
        row = self.db.conn.execute(
            CLAIM_DETAILS_QUERY + " WHERE c.claim_id = ?", [claim_id]
        ).fetchone()

        if not row:
            raise ClaimNotFoundError(f"Claim {claim_id} not found")

        return _claim_details(row)

    def _set_status(self, claim_id: int, status: ClaimStatus, claimed_at: Optional[datetime] = None):
        self.db.conn.execute("""
            UPDATE food_claims SET status = ?, claimed_at = COALESCE(?, claimed_at)
            WHERE claim_id = ?
        """, [status.value, format_timestamp(claimed_at), claim_id])

    def _is_past_ttl(self, claim: Dict[str, Any], now: datetime) -> bool:
        return now > parse_timestamp(claim['expires_at'])

    def _find_live_claim(self, user_id: str, food_item_id: int) -> Optional[Dict[str, Any]]:
        row = self.db.conn.execute("""
            SELECT claim_id, status FROM food_claims
            WHERE user_id = ? AND food_item_id = ? AND status IN (?, ?)
        """, [user_id, food_item_id, *LIVE_CLAIM_STATUSES]).fetchone()
        return dict(row) if row else None

    def _insert_claim(self, user_id: str, food_item_id: int, quantity: int,
                      expires_at: datetime, now: datetime):
        """
        Insert a reserved claim, drawing a fresh code on collision.

        Returns:
            (claim_id, claim_code)
        """
        for attempt in range(1, self.code_generation_attempts + 1):
            claim_code = generate_claim_code()
            try:
                cursor = self.db.conn.execute("""
                    INSERT INTO food_claims (user_id, food_item_id, quantity_claimed, claim_code,
                                             status, expires_at, claimed_at, created_at)
                    VALUES (?, ?, ?, ?, 'reserved', ?, NULL, ?)
                """, [user_id, food_item_id, quantity, claim_code,
                      format_timestamp(expires_at), format_timestamp(now)])
                return cursor.lastrowid, claim_code

            except sqlite3.IntegrityError as e:
                if 'food_claims.claim_code' in str(e):
                    logger.warning(f"Claim code collision on attempt {attempt}, regenerating")
                    continue
                if 'food_claims.user_id' in str(e):
                    raise AlreadyClaimedError("You have already claimed this food item") from e
                raise

        raise StorageUnavailableError(
            f"Could not allocate a unique claim code after {self.code_generation_attempts} attempts"
        )

    def expire_stale_reservations(self, food_item_id: Optional[int] = None) -> int:
        """
        Write reserved claims past their TTL as expired.

        Args:
            food_item_id: limit to one item, None for all items

        Returns:
            number of claims expired
        """
        with self.db.transaction():
            query = """
                UPDATE food_claims SET status = 'expired'
                WHERE status = 'reserved' AND expires_at < ?
            """
            params = [format_timestamp(self.now())]
            if food_item_id is not None:
                query += " AND food_item_id = ?"
                params.append(food_item_id)

            expired = self.db.conn.execute(query, params).rowcount

        if expired:
            logger.info(f"Expired {expired} stale reservation(s)")
        return expired

    # Lifecycle operations
    def create_claim(self, user_id: str, food_item_id: int, quantity: int = 1) -> Dict[str, Any]:
        """
        Reserve units of a food item for a user.

        Args:
            user_id: claimant
            food_item_id: item to claim from
            quantity: units requested, at least 1

        Returns:
            the reserved claim with its claim_code and expires_at

        Raises:
            ItemNotFoundError, ItemInactiveError, ItemExpiredError,
            InsufficientQuantityError, AlreadyClaimedError,
            StorageUnavailableError
        """
        if not validate_positive_integer(quantity):
            raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")

        def create_claim_operation():
            now = self.now()

            if not self.support.get_user_by_id(user_id):
                raise NotFoundError(f"User {user_id} not found")

            self.expire_stale_reservations(food_item_id)

            item = self.ledger.get_item(food_item_id)
            self.ledger.check_claimable(item, now)

            available = self.ledger.available_quantity(item, now)
            if quantity > available:
                raise InsufficientQuantityError(
                    f"Insufficient quantity available: {available} left, {quantity} requested"
                )

            if self._find_live_claim(user_id, food_item_id):
                raise AlreadyClaimedError("You have already claimed this food item")

            expires_at = now + self.reservation_ttl
            claim_id, claim_code = self._insert_claim(user_id, food_item_id, quantity, expires_at, now)

            return {
                'claim_id': claim_id,
                'user_id': user_id,
                'food_item_id': food_item_id,
                'food_item_name': item['name'],
                'poster_id': item['created_by'],
                'quantity_claimed': quantity,
                'claim_code': claim_code,
                'status': ClaimStatus.RESERVED.value,
                'expires_at': format_timestamp(expires_at),
                'claimed_at': None,
                'created_at': format_timestamp(now),
                'remaining_quantity': available - quantity,
            }

        claim = self.db.execute_transaction([create_claim_operation])[0]
        logger.info(
            f"Claim {claim['claim_id']} ({claim['claim_code']}) reserved: "
            f"user {user_id}, item {food_item_id}, quantity {quantity}"
        )

        self._notify_poster(claim)
        return claim

    def _notify_poster(self, claim: Dict[str, Any]):
        """Fire-and-forget; the claim is already committed"""
        try:
            self.support.create_notification(
                user_id=claim['poster_id'],
                title="New food claim",
                message=(
                    f"{claim['quantity_claimed']} x '{claim['food_item_name']}' reserved "
                    f"with code {claim['claim_code']}"
                ),
                notification_type="info",
                related_item_id=claim['claim_id'],
                related_item_type="claim"
            )
        except Exception as e:
            logger.warning(f"Could not notify poster of claim {claim['claim_id']}: {str(e)}")

    def verify_claim(self, claim_code: str) -> Dict[str, Any]:
        """
        Check a claim code presented to staff.

        Unknown, expired and no-longer-reserved codes are reported as
        {'success': False, 'message': ...} rather than raised. A reserved
        claim past its TTL is written as expired here.

        Returns:
            {'success': True, 'claim': {... with user and food_item}} or
            {'success': False, 'message': str}
        """
        claim_code = normalize_claim_code(claim_code)
        if not claim_code:
            return {'success': False, 'message': "Claim code is required"}

        if not is_valid_claim_code(claim_code):
            return {'success': False, 'message': "Invalid claim code"}

        def verify_claim_operation():
            row = self.db.conn.execute(
                CLAIM_DETAILS_QUERY + " WHERE c.claim_code = ?", [claim_code]
            ).fetchone()

            if not row:
                return {'success': False, 'message': "Invalid claim code"}

            claim = _claim_details(row)
            status = ClaimStatus(claim['status'])

            if status is ClaimStatus.RESERVED and self._is_past_ttl(claim, self.now()):
                self._set_status(claim['claim_id'], ClaimStatus.EXPIRED)
                logger.info(f"Claim {claim['claim_id']} expired on verification")
                return {'success': False, 'message': CLAIM_STATUS_MESSAGES[ClaimStatus.EXPIRED]}

            if status is not ClaimStatus.RESERVED:
                return {'success': False, 'message': CLAIM_STATUS_MESSAGES[status]}

            return {'success': True, 'claim': claim, 'message': "Claim is valid"}

        return self.db.execute_transaction([verify_claim_operation])[0]

    def complete_claim(self, claim_id: int) -> Dict[str, Any]:
        """
        Redeem a reserved claim: the ledger consumes its units and the claim
        becomes claimed. The food item itself is kept.

        Raises:
            ClaimNotFoundError, ClaimExpiredError, InvalidStateError
        """
        def complete_claim_operation():
            now = self.now()
            claim = self._get_claim_row(claim_id)
            status = ClaimStatus(claim['status'])

            if status.is_terminal:
                raise InvalidStateError(
                    f"Claim is {status.value}; only reserved claims can be completed"
                )

            if self._is_past_ttl(claim, now):
                # committed before the error is raised below
                self._set_status(claim_id, ClaimStatus.EXPIRED)
                return None

            self.ledger.decrement_quantity(
                claim['food_item_id'], claim['quantity_claimed'], require_active=False
            )
            self._set_status(claim_id, ClaimStatus.CLAIMED, claimed_at=now)

            return self._get_claim_details(claim_id)

        claim = self.db.execute_transaction([complete_claim_operation])[0]

        if claim is None:
            logger.info(f"Claim {claim_id} expired before completion")
            raise ClaimExpiredError("Claim has expired")

        logger.info(f"Claim {claim_id} completed, {claim['quantity_claimed']} unit(s) consumed")
        return claim

    def complete_claim_by_code(self, claim_code: str) -> Dict[str, Any]:
        """
        Redeem by code, for staff entering the code directly.
        """
        row = self.db.conn.execute(
            "SELECT claim_id FROM food_claims WHERE claim_code = ?",
            [normalize_claim_code(claim_code)]
        ).fetchone()

        if not row:
            raise ClaimNotFoundError("Claim not found")

        return self.complete_claim(row['claim_id'])

    def cancel_claim(self, claim_id: int, user_id: str, is_admin: bool = False) -> Dict[str, Any]:
        """
        Cancel a reserved claim, releasing its units.

        Raises:
            ClaimNotFoundError, PermissionError, ClaimExpiredError,
            InvalidStateError
        """
        def cancel_claim_operation():
            claim = self._get_claim_row(claim_id)

            if not is_admin and claim['user_id'] != user_id:
                raise PermissionError("Users can only cancel their own claims")

            status = ClaimStatus(claim['status'])
            if status.is_terminal:
                raise InvalidStateError(f"Claim is {status.value}; only reserved claims can be cancelled")

            if self._is_past_ttl(claim, self.now()):
                self._set_status(claim_id, ClaimStatus.EXPIRED)
                return None

            self._set_status(claim_id, ClaimStatus.CANCELLED)
            return self._get_claim_details(claim_id)

        claim = self.db.execute_transaction([cancel_claim_operation])[0]

        if claim is None:
            raise ClaimExpiredError("Claim has expired")

        logger.info(f"Claim {claim_id} cancelled by {user_id}")
        return claim

    def cancel_reservations_for_item(self, food_item_id: int) -> int:
        """
        Cancel every reserved claim on an item (used when the item is withdrawn).
        """
        with self.db.transaction():
            return self.db.conn.execute("""
                UPDATE food_claims SET status = 'cancelled'
                WHERE food_item_id = ? AND status = 'reserved'
            """, [food_item_id]).rowcount

    # Reads
    def get_claim_by_code(self, claim_code: str) -> Dict[str, Any]:
        """A reserved claim past its TTL is written as expired before it is returned"""
        claim_code = normalize_claim_code(claim_code)

        def get_claim_by_code_operation():
            row = self.db.conn.execute(
                CLAIM_DETAILS_QUERY + " WHERE c.claim_code = ?", [claim_code]
            ).fetchone()

            if not row:
                raise ClaimNotFoundError("Claim not found")

            claim = _claim_details(row)
            if claim['status'] == ClaimStatus.RESERVED.value and self._is_past_ttl(claim, self.now()):
                self._set_status(claim['claim_id'], ClaimStatus.EXPIRED)
                claim['status'] = ClaimStatus.EXPIRED.value
                logger.info(f"Claim {claim['claim_id']} expired on lookup")

            return claim

        return self.db.execute_transaction([get_claim_by_code_operation])[0]

    def get_claims_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """
        A user's claims, newest first. Stale reservations are expired first so
        the statuses shown are current.
        """
        self.expire_stale_reservations()

        rows = self.db.conn.execute(
            CLAIM_DETAILS_QUERY + " WHERE c.user_id = ? ORDER BY c.created_at DESC, c.claim_id DESC",
            [user_id]
        ).fetchall()

        return [_claim_details(row) for row in rows]

    def get_active_claims(self) -> List[Dict[str, Any]]:
        """Reservations still within their TTL, for the staff dashboard"""
        rows = self.db.conn.execute(
            CLAIM_DETAILS_QUERY + """
            WHERE c.status = 'reserved' AND c.expires_at >= ?
            ORDER BY c.created_at DESC, c.claim_id DESC
            """,
            [format_timestamp(self.now())]
        ).fetchall()

        return [_claim_details(row) for row in rows]

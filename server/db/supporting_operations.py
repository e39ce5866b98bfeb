# Supporting operations: user records mirrored from the identity provider,
# and poster notifications

import logging
from datetime import datetime
from typing import Optional, Dict, Any, Callable

from .manager import DatabaseManager
from .models import UserRole
from utils.clock import utc_now, format_timestamp
from utils.validators import validate_string_length

logger = logging.getLogger(__name__)

USER_COLUMNS = """
    user_id, email, first_name, last_name, profile_image_url, role,
    student_id, phone_number, created_at, updated_at
"""


class SupportingOperations:
    """
    Supporting operations

    Authentication lives outside the engine; this class only keeps the user
    rows the engine joins against and records notifications.
    """
    def __init__(self, db_manager: DatabaseManager, now_func: Optional[Callable[[], datetime]] = None):
        self.db = db_manager
        self.now = now_func or utc_now

    def upsert_user(self, user_id: str, email: str = None, first_name: str = None,
                    last_name: str = None, role: Optional[str] = UserRole.STUDENT.value,
                    student_id: str = None, phone_number: str = None,
                    profile_image_url: str = None) -> Dict[str, Any]:
        """
        Insert or refresh a user from identity-provider data.

        Args:
            user_id: stable external identifier
            role: 'student', 'admin', or None for accounts pending approval

        Returns:
            the stored user
        """
        if not validate_string_length(user_id, 1, 128):
            raise ValueError("User id must be 1-128 characters")

        if role is not None:
            role = UserRole(role).value

        def upsert_user_operation():
            now = format_timestamp(self.now())
            self.db.conn.execute("""
                INSERT INTO users (user_id, email, first_name, last_name, profile_image_url,
                                   role, student_id, phone_number, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    email = excluded.email,
                    first_name = excluded.first_name,
                    last_name = excluded.last_name,
                    profile_image_url = excluded.profile_image_url,
                    role = excluded.role,
                    student_id = excluded.student_id,
                    phone_number = excluded.phone_number,
                    updated_at = excluded.updated_at
            """, [user_id, email, first_name, last_name, profile_image_url,
                  role, student_id, phone_number, now, now])

            return self.get_user_by_id(user_id)

        user = self.db.execute_transaction([upsert_user_operation])[0]
        logger.info(f"User {user_id} upserted with role {role}")
        return user

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            user dict, or None when unknown
        """
        row = self.db.conn.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?",
            [user_id]
        ).fetchone()

        return dict(row) if row else None

    def is_admin(self, user_id: str) -> bool:
        user = self.get_user_by_id(user_id)
        return bool(user) and user['role'] == UserRole.ADMIN.value

    def create_notification(self, user_id: str, title: str, message: str,
                            notification_type: str = "info",
                            related_item_id: int = None,
                            related_item_type: str = None) -> int:
        """
        Record a notification for a user.

        Returns:
            notification id
        """
        cursor = self.db.execute_single("""
            INSERT INTO notifications (user_id, title, message, type, is_read,
                                       related_item_id, related_item_type, created_at)
            VALUES (?, ?, ?, ?, FALSE, ?, ?, ?)
        """, [user_id, title, message, notification_type,
              related_item_id, related_item_type, format_timestamp(self.now())])

        return cursor.lastrowid

    def get_notifications(self, user_id: str, unread_only: bool = False) -> list:
        query = """
            SELECT notification_id, user_id, title, message, type, is_read,
                   related_item_id, related_item_type, created_at
            FROM notifications
            WHERE user_id = ?
        """
        if unread_only:
            query += " AND is_read = FALSE"
        query += " ORDER BY notification_id DESC"

        rows = self.db.conn.execute(query, [user_id]).fetchall()
        return [dict(row, is_read=bool(row['is_read'])) for row in rows]

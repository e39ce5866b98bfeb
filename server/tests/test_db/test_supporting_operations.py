# Supporting operations tests

import pytest


class TestUsers:
    """User records"""

    def test_upsert_creates_user(self, support_ops):
        user = support_ops.upsert_user("student-x", email="x@campus.edu", first_name="Xi")

        assert user['user_id'] == "student-x"
        assert user['role'] == 'student'
        assert user['first_name'] == "Xi"

    def test_upsert_refreshes_user(self, support_ops, clock):
        support_ops.upsert_user("student-x", email="x@campus.edu", first_name="Xi")
        clock.advance(minutes=5)

        user = support_ops.upsert_user("student-x", email="xi@campus.edu", first_name="Xi", role="admin")

        assert user['email'] == "xi@campus.edu"
        assert user['role'] == 'admin'
        assert user['updated_at'] > user['created_at']

    def test_pending_role(self, support_ops):
        user = support_ops.upsert_user("new-staff", role=None)

        assert user['role'] is None
        assert support_ops.is_admin("new-staff") is False

    def test_unknown_role_rejected(self, support_ops):
        with pytest.raises(ValueError):
            support_ops.upsert_user("student-x", role="superuser")

    def test_is_admin(self, support_ops, sample_admin_user, sample_students):
        assert support_ops.is_admin(sample_admin_user) is True
        assert support_ops.is_admin(sample_students[0]) is False
        assert support_ops.is_admin("nobody") is False

    def test_get_unknown_user(self, support_ops):
        assert support_ops.get_user_by_id("nobody") is None


class TestNotifications:
    """Notifications"""

    def test_create_and_list(self, support_ops, sample_admin_user):
        first = support_ops.create_notification(sample_admin_user, "Hello", "First")
        second = support_ops.create_notification(
            sample_admin_user, "Claim", "Second", notification_type="success",
            related_item_id=7, related_item_type="claim"
        )

        notifications = support_ops.get_notifications(sample_admin_user)

        assert [n['notification_id'] for n in notifications] == [second, first]
        assert notifications[0]['type'] == "success"
        assert notifications[0]['is_read'] is False

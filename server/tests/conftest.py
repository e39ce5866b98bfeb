# Test configuration and fixtures

import pytest
import os
import sys
from datetime import timedelta
from pathlib import Path

# make the server packages importable
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ['CONFIG_ENV'] = 'development'

from db.manager import DatabaseManager
from db.schema import create_tables
from db.inventory_ledger import InventoryLedger
from db.claim_operations import ClaimOperations
from db.donation_operations import DonationOperations
from db.food_item_operations import FoodItemOperations
from db.stats_operations import StatsOperations
from db.supporting_operations import SupportingOperations
from utils.clock import utc_now


class FakeClock:
    """Controllable clock passed to the operations classes as now_func"""

    def __init__(self, start=None):
        self.current = (start or utc_now()).replace(microsecond=0)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_db():
    """In-memory database with the full schema"""
    db = DatabaseManager(":memory:", auto_connect=True)
    create_tables(db)

    yield db
    db.close()


@pytest.fixture
def support_ops(test_db, clock):
    return SupportingOperations(test_db, clock)


@pytest.fixture
def ledger(test_db, clock):
    return InventoryLedger(test_db, clock)


@pytest.fixture
def claim_ops(test_db, clock):
    return ClaimOperations(test_db, clock)


@pytest.fixture
def donation_ops(test_db, clock):
    return DonationOperations(test_db, clock)


@pytest.fixture
def food_ops(test_db, clock):
    return FoodItemOperations(test_db, clock)


@pytest.fixture
def stats_ops(test_db, clock):
    return StatsOperations(test_db, clock)


@pytest.fixture
def sample_admin_user(support_ops):
    user = support_ops.upsert_user(
        user_id="staff-001",
        email="canteen@campus.edu",
        first_name="Canteen",
        last_name="Staff",
        role="admin"
    )
    return user['user_id']


@pytest.fixture
def sample_students(support_ops):
    """Three students: A, B and C"""
    student_ids = []
    for letter in "ABC":
        user = support_ops.upsert_user(
            user_id=f"student-{letter.lower()}",
            email=f"student.{letter.lower()}@campus.edu",
            first_name="Student",
            last_name=letter,
            student_id=f"S100{letter}"
        )
        student_ids.append(user['user_id'])
    return student_ids


@pytest.fixture
def sample_food_item(food_ops, clock, sample_admin_user):
    """Three portions available for the next six hours"""
    item = food_ops.create_food_item(
        user_id=sample_admin_user,
        name="Vegetable biryani",
        canteen_name="North Canteen",
        canteen_location="Block A, ground floor",
        quantity=3,
        available_until=clock() + timedelta(hours=6),
        description="Leftover lunch portions"
    )
    return item['food_item_id']

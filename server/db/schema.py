# Table and index definitions
# Shared by scripts/init_db.py and the test fixtures

from .manager import DatabaseManager

CORE_TABLES = ['users', 'food_items', 'food_claims', 'food_donations', 'notifications']

TABLES_SQL = [
    # users are owned by the identity provider; the engine only needs a
    # stable id and the role gating admin endpoints
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        email VARCHAR(255) UNIQUE,
        first_name VARCHAR(100),
        last_name VARCHAR(100),
        profile_image_url VARCHAR(500),
        role VARCHAR(20) DEFAULT 'student',        -- student / admin / NULL (pending approval)
        student_id VARCHAR(50),
        phone_number VARCHAR(20),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS food_items (
        food_item_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name VARCHAR(255) NOT NULL,
        description TEXT,
        canteen_name VARCHAR(255) NOT NULL,
        canteen_location VARCHAR(255),
        image_url TEXT,
        quantity_posted INTEGER NOT NULL CHECK (quantity_posted >= 0),
        quantity_available INTEGER NOT NULL DEFAULT 0 CHECK (quantity_available >= 0),
        available_until TEXT NOT NULL,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_by TEXT NOT NULL REFERENCES users(user_id),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS food_claims (
        claim_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL REFERENCES users(user_id),
        food_item_id INTEGER NOT NULL REFERENCES food_items(food_item_id),
        quantity_claimed INTEGER NOT NULL DEFAULT 1 CHECK (quantity_claimed >= 1),
        claim_code VARCHAR(20) UNIQUE NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'reserved'
            CHECK (status IN ('reserved', 'claimed', 'expired', 'cancelled')),
        expires_at TEXT NOT NULL,
        claimed_at TEXT,
        created_at TEXT NOT NULL
    )
    """,

    # at most one donation per item; backstop for concurrent sweeps
    """
    CREATE TABLE IF NOT EXISTS food_donations (
        donation_id INTEGER PRIMARY KEY AUTOINCREMENT,
        food_item_id INTEGER NOT NULL UNIQUE REFERENCES food_items(food_item_id),
        ngo_name VARCHAR(255),
        ngo_contact_person VARCHAR(255),
        ngo_phone_number VARCHAR(20),
        quantity_donated INTEGER NOT NULL CHECK (quantity_donated >= 1),
        status VARCHAR(20) NOT NULL DEFAULT 'available'
            CHECK (status IN ('available', 'reserved_for_ngo', 'collected')),
        donated_at TEXT NOT NULL,
        reserved_at TEXT,
        collected_at TEXT,
        notes TEXT,
        created_at TEXT NOT NULL
    )
    """,

    """
    CREATE TABLE IF NOT EXISTS notifications (
        notification_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL REFERENCES users(user_id),
        title VARCHAR(255) NOT NULL,
        message TEXT NOT NULL,
        type VARCHAR(20) NOT NULL DEFAULT 'info',   -- info / success / warning / error
        is_read BOOLEAN NOT NULL DEFAULT FALSE,
        related_item_id INTEGER,
        related_item_type VARCHAR(50),
        created_at TEXT NOT NULL
    )
    """,
]

INDEXES_SQL = [
    # one live claim per (user, item), enforced atomically with the insert
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_food_claims_live_user_item
    ON food_claims(user_id, food_item_id)
    WHERE status IN ('reserved', 'claimed')
    """,
    "CREATE INDEX IF NOT EXISTS idx_food_claims_item_status ON food_claims(food_item_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_food_claims_user ON food_claims(user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_food_items_active ON food_items(is_active, available_until)",
    "CREATE INDEX IF NOT EXISTS idx_food_items_creator ON food_items(created_by)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, is_read)",
]


def create_tables(db_manager: DatabaseManager):
    """
    Create all tables and indexes. Safe to run repeatedly.
    """
    for sql in TABLES_SQL:
        db_manager.execute_single(sql)

    for sql in INDEXES_SQL:
        db_manager.execute_single(sql)

    db_manager.logger.info(f"Schema ready: {', '.join(CORE_TABLES)}")

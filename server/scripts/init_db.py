#!/usr/bin/env python3
# Database initialisation script

import os
import sys
import logging
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db.manager import DatabaseManager
from db.schema import create_tables, CORE_TABLES
from db.supporting_operations import SupportingOperations
from db.models import UserRole
from utils.config import Config
from utils.logger import setup_logging


def insert_initial_data(db_manager: DatabaseManager):
    """
    Seed the first canteen staff account when FOOD_RESCUE_ADMIN_ID is set.
    Further admins are promoted from the identity provider's user records.
    """
    admin_id = os.getenv('FOOD_RESCUE_ADMIN_ID')
    if not admin_id:
        logging.info("FOOD_RESCUE_ADMIN_ID not set, no admin seeded")
        return

    support_ops = SupportingOperations(db_manager)
    if support_ops.is_admin(admin_id):
        logging.info(f"Admin {admin_id} already exists")
        return

    support_ops.upsert_user(
        user_id=admin_id,
        email=os.getenv('FOOD_RESCUE_ADMIN_EMAIL'),
        first_name="Canteen",
        last_name="Staff",
        role=UserRole.ADMIN.value
    )
    logging.info(f"Seeded admin account {admin_id}")


def main():
    config = Config()
    setup_logging(config.config)

    db_config = config.get_database_config()
    db_path = db_config['path']

    logging.info(f"Initialising database: {db_path}")
    logging.info(f"Config environment: {config.env}")

    db_manager = DatabaseManager(db_path, busy_timeout=db_config['busy_timeout_seconds'])
    try:
        db_manager.connect()

        logging.info("Creating tables and indexes...")
        create_tables(db_manager)

        logging.info("Inserting initial data...")
        insert_initial_data(db_manager)

        issues = db_manager.check_integrity(CORE_TABLES)
        if issues:
            logging.error("Database initialised with integrity problems")
            sys.exit(1)

        logging.info("Database initialised")
        for table_name in CORE_TABLES:
            info = db_manager.get_table_info(table_name)
            logging.info(f"  - {table_name}: {info['record_count']} rows")

    except Exception as e:
        logging.error(f"Database initialisation failed: {e}")
        sys.exit(1)
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()

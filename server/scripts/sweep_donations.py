#!/usr/bin/env python3
# One-shot donation sweep, meant to run from cron:
#   */10 * * * * cd /srv/food-rescue/server && python scripts/sweep_donations.py

import sys
import logging
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db.manager import DatabaseManager
from db.donation_operations import DonationOperations
from db.errors import StorageUnavailableError
from utils.config import Config
from utils.logger import setup_logging


def main() -> int:
    config = Config()
    setup_logging(config.config)

    db_config = config.get_database_config()

    try:
        with DatabaseManager(db_config['path'], busy_timeout=db_config['busy_timeout_seconds']) as db_manager:
            transferred_count = DonationOperations(db_manager).sweep_expired_to_donations()
    except StorageUnavailableError as e:
        # the next scheduled run picks the items up
        logging.warning(f"Donation sweep skipped, database unavailable: {e}")
        return 1

    logging.info(f"Donation sweep done: {transferred_count} item(s) transferred")
    return 0


if __name__ == "__main__":
    sys.exit(main())

# Database connection and transaction management

import sqlite3
import logging
import os
import threading
from datetime import datetime
from typing import List, Dict, Any, Callable
from contextlib import contextmanager

from .errors import StorageUnavailableError


class DatabaseManager:
    """
    Database manager

    Owns one SQLite connection and hands out write transactions. Transactions
    start with BEGIN IMMEDIATE, so the database write lock is taken before the
    first read; two connections racing for the same food item are serialised
    and the second one sees the first one's committed result.
    """

    def __init__(self, db_path: str, auto_connect: bool = False, busy_timeout: float = 5.0):
        """
        Args:
            db_path: database file path, or ':memory:'
            auto_connect: connect immediately
            busy_timeout: seconds to wait for another writer before giving up
        """
        self.db_path = db_path
        self.busy_timeout = busy_timeout
        self.conn = None
        self._is_connected = False
        self._lock = threading.RLock()
        self._tx_depth = 0

        self.logger = logging.getLogger(self.__class__.__name__)

        if auto_connect:
            self.connect()

    def connect(self) -> sqlite3.Connection:
        """
        Open the connection.

        Raises:
            StorageUnavailableError: the database could not be opened
        """
        try:
            if self.conn is not None:
                self.logger.warning("Connection already open, closing it first")
                self.close()

            db_dir = os.path.dirname(self.db_path)
            if self.db_path != ':memory:' and db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)
                self.logger.info(f"Created database directory: {db_dir}")

            # isolation_level=None: transactions are issued explicitly by transaction()
            self.conn = sqlite3.connect(
                self.db_path,
                timeout=self.busy_timeout,
                isolation_level=None,
                check_same_thread=False
            )
            self.conn.row_factory = sqlite3.Row
            self._is_connected = True
            self.logger.info(f"Connected to database: {self.db_path}")

            self._configure_database()

            return self.conn

        except sqlite3.Error as e:
            self.logger.error(f"Failed to connect to database: {str(e)}")
            raise StorageUnavailableError(f"Cannot open database {self.db_path}: {str(e)}")

    def close(self):
        if self.conn is not None:
            try:
                self.conn.close()
                self.logger.info("Database connection closed")
            except sqlite3.Error as e:
                self.logger.error(f"Error while closing database connection: {str(e)}")
            finally:
                self.conn = None
                self._is_connected = False

    def _configure_database(self):
        try:
            pragmas = [
                "PRAGMA foreign_keys = ON",
                "PRAGMA journal_mode = WAL",
                "PRAGMA synchronous = NORMAL",
                f"PRAGMA busy_timeout = {int(self.busy_timeout * 1000)}",
                "PRAGMA temp_store = MEMORY"
            ]

            for pragma in pragmas:
                self.conn.execute(pragma)

            self.logger.debug("Database pragmas configured")

        except sqlite3.Error as e:
            self.logger.warning(f"Could not apply database pragmas: {str(e)}")

    def is_connected(self) -> bool:
        return self._is_connected and self.conn is not None

    def ensure_connected(self):
        """
        Raises:
            StorageUnavailableError: no open connection
        """
        if not self.is_connected():
            raise StorageUnavailableError("Database is not connected, call connect() first")

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self):
        """
        Write transaction context manager

        Nested use joins the outer transaction; only the outermost level
        commits or rolls back. sqlite3.OperationalError (locked database,
        busy timeout, I/O failure) surfaces as StorageUnavailableError.

        Usage:
            with db_manager.transaction() as conn:
                conn.execute("UPDATE ...")
        """
        self.ensure_connected()

        with self._lock:
            if self._tx_depth > 0:
                self._tx_depth += 1
                try:
                    yield self.conn
                finally:
                    self._tx_depth -= 1
                return

            transaction_id = datetime.now().strftime("%Y%m%d%H%M%S%f")
            try:
                self.conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                self.logger.error(f"Transaction {transaction_id} could not start: {str(e)}")
                raise StorageUnavailableError(f"Database is busy: {str(e)}")

            self._tx_depth = 1
            try:
                self.logger.debug(f"Transaction {transaction_id} started")
                yield self.conn
                self.conn.execute("COMMIT")
                self.logger.debug(f"Transaction {transaction_id} committed")
            except Exception as e:
                self.logger.debug(f"Transaction {transaction_id} failed: {type(e).__name__}: {str(e)}")
                try:
                    self.conn.execute("ROLLBACK")
                    self.logger.debug(f"Transaction {transaction_id} rolled back")
                except sqlite3.Error as rollback_error:
                    self.logger.error(f"Rollback failed: {str(rollback_error)}")

                if isinstance(e, sqlite3.OperationalError):
                    raise StorageUnavailableError(f"Storage operation failed: {str(e)}") from e
                raise
            finally:
                self._tx_depth = 0

    def execute_transaction(self, operations: List[Callable]) -> List[Any]:
        """
        Run operations in order inside one transaction.

        Args:
            operations: callables, each returning its result

        Returns:
            results in the same order
        """
        if not operations:
            self.logger.warning("Empty transaction operation list")
            return []

        with self.transaction():
            return [operation() for operation in operations]

    def execute_single(self, query: str, params: List = None) -> sqlite3.Cursor:
        """
        Run one statement. Outside a transaction it autocommits.
        """
        self.ensure_connected()

        try:
            with self._lock:
                if params:
                    return self.conn.execute(query, params)
                return self.conn.execute(query)

        except sqlite3.OperationalError as e:
            self.logger.error(f"Query failed: {query.strip()[:100]}..., error: {str(e)}")
            raise StorageUnavailableError(f"Storage operation failed: {str(e)}") from e

    def get_table_info(self, table_name: str) -> Dict[str, Any]:
        """
        Column layout and row count of a table.
        """
        self.ensure_connected()

        columns_result = self.conn.execute(f"PRAGMA table_info('{table_name}')").fetchall()

        if not columns_result:
            raise ValueError(f"Table {table_name} does not exist")

        columns = [
            {
                'name': col[1],
                'type': col[2],
                'not_null': bool(col[3]),
                'default_value': col[4],
                'primary_key': bool(col[5])
            }
            for col in columns_result
        ]

        record_count = self.conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]

        return {
            'table_name': table_name,
            'columns': columns,
            'record_count': record_count
        }

    def check_integrity(self, core_tables: List[str]) -> List[str]:
        """
        Verify the core tables exist, SQLite's own integrity check passes and
        the inventory invariants hold.

        Returns:
            list of problems, empty when healthy
        """
        self.ensure_connected()
        issues = []

        for table in core_tables:
            exists = self.conn.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table,)
            ).fetchone()[0]
            if not exists:
                issues.append(f"Core table {table} is missing")

        if issues:
            return issues

        result = self.conn.execute("PRAGMA integrity_check").fetchone()[0]
        if result != 'ok':
            issues.append(f"SQLite integrity check: {result}")

        duplicate_live_claims = self.conn.execute("""
            SELECT user_id, food_item_id, COUNT(*) FROM food_claims
            WHERE status IN ('reserved', 'claimed')
            GROUP BY user_id, food_item_id
            HAVING COUNT(*) > 1
        """).fetchall()
        issues.extend(
            f"User {row[0]} holds {row[2]} live claims on item {row[1]}"
            for row in duplicate_live_claims
        )

        duplicate_donations = self.conn.execute("""
            SELECT food_item_id, COUNT(*) FROM food_donations
            GROUP BY food_item_id
            HAVING COUNT(*) > 1
        """).fetchall()
        issues.extend(
            f"Item {row[0]} has {row[1]} donation records"
            for row in duplicate_donations
        )

        if issues:
            self.logger.error("Integrity check found problems:\n" + "\n".join(issues))
        else:
            self.logger.info("Integrity check passed")

        return issues

    def __enter__(self):
        if not self.is_connected():
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        if self.is_connected():
            self.close()

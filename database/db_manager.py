import os
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from utils.constants import DEFAULT_CATEGORIES, DEFAULT_PROFILE, db_file_for_profile
from utils.errors import StorageUnavailableError, ValidationError

_PROFILE_RE = re.compile(r"^[A-Za-z0-9_-]{1,40}$")

# Child tables first so deletes never trip a foreign key
TABLES_DELETE_ORDER = (
    "plans", "tax_rules", "budgets", "transactions", "goals",
    "bills", "loans", "categories", "accounts", "app_settings",
)


class DatabaseManager:
    """Owns the single SQLite connection. Passed to every DAO.

    The handle has an explicit lifecycle: nothing touches the file until
    open() and every call after close() raises StorageUnavailableError.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def open(self) -> "DatabaseManager":
        if self._conn is not None:
            return self
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Cannot open database at {self.db_path}: {e}") from e
        self._conn = conn
        self.initialize()
        logger.info(f"Opened database {self.db_path}")
        return self

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.info(f"Closed database {self.db_path}")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageUnavailableError("Database is not open.")
        return self._conn

    def __enter__(self) -> "DatabaseManager":
        return self.open()

    def __exit__(self, *exc):
        self.close()

    # ── Transactions ─────────────────────────────────────────────────────────

    def commit(self):
        """Commit unless an enclosing transaction() block owns the commit."""
        if self._tx_depth == 0:
            self.get_connection().commit()

    @contextmanager
    def transaction(self):
        """Group several DAO writes into one all-or-nothing unit."""
        conn = self.get_connection()
        self._tx_depth += 1
        try:
            yield conn
        except Exception:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                conn.rollback()
            raise
        else:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                conn.commit()

    # ── Schema ───────────────────────────────────────────────────────────────

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS accounts (
                id              TEXT PRIMARY KEY,
                name            TEXT NOT NULL,
                type            TEXT NOT NULL DEFAULT 'checking',
                currency        TEXT NOT NULL DEFAULT 'USD',
                initial_balance REAL NOT NULL DEFAULT 0.0,
                created_at      TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS categories (
                id         TEXT PRIMARY KEY,
                name       TEXT NOT NULL,
                type       TEXT NOT NULL CHECK(type IN ('income','expense')),
                color      TEXT NOT NULL DEFAULT '#888888',
                icon       TEXT NOT NULL DEFAULT '',
                is_default INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id            TEXT PRIMARY KEY,
                account_id    TEXT NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
                to_account_id TEXT REFERENCES accounts(id),
                category_id   TEXT REFERENCES categories(id) ON DELETE SET NULL,
                type          TEXT NOT NULL CHECK(type IN ('income','expense','transfer')),
                amount        REAL NOT NULL CHECK(amount >= 0),
                date          TEXT NOT NULL,
                merchant      TEXT NOT NULL DEFAULT '',
                notes         TEXT NOT NULL DEFAULT '',
                tags_json     TEXT NOT NULL DEFAULT '[]',
                tax_amount    REAL NOT NULL DEFAULT 0.0,
                created_at    TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_account_id    ON transactions(account_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_to_account_id ON transactions(to_account_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date          ON transactions(date);
            CREATE INDEX IF NOT EXISTS idx_transactions_category_id   ON transactions(category_id);

            CREATE TABLE IF NOT EXISTS budgets (
                id           TEXT PRIMARY KEY,
                category_id  TEXT NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                period       TEXT NOT NULL DEFAULT 'monthly',
                limit_amount REAL NOT NULL CHECK(limit_amount >= 0)
            );

            CREATE TABLE IF NOT EXISTS goals (
                id                TEXT PRIMARY KEY,
                name              TEXT NOT NULL,
                target_amount     REAL NOT NULL,
                target_date       TEXT,
                linked_account_id TEXT REFERENCES accounts(id) ON DELETE SET NULL,
                current_amount    REAL NOT NULL DEFAULT 0.0
            );

            CREATE TABLE IF NOT EXISTS bills (
                id            TEXT PRIMARY KEY,
                name          TEXT NOT NULL,
                amount        REAL NOT NULL,
                next_due_date TEXT NOT NULL,
                recurrence    TEXT NOT NULL DEFAULT 'monthly',
                is_paid       INTEGER NOT NULL DEFAULT 0,
                auto_pay      INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS loans (
                id                TEXT PRIMARY KEY,
                name              TEXT NOT NULL,
                lender            TEXT NOT NULL DEFAULT '',
                principal_amount  REAL NOT NULL,
                current_balance   REAL NOT NULL,
                interest_rate     REAL NOT NULL DEFAULT 0.0,
                payment_amount    REAL NOT NULL DEFAULT 0.0,
                payment_frequency TEXT NOT NULL DEFAULT 'monthly',
                start_date        TEXT NOT NULL DEFAULT '',
                end_date          TEXT,
                notes             TEXT NOT NULL DEFAULT ''
            );

            CREATE TABLE IF NOT EXISTS plans (
                id             TEXT PRIMARY KEY,
                item_type      TEXT NOT NULL CHECK(item_type IN ('transaction','loan','goal')),
                item_id        TEXT NOT NULL,
                title          TEXT NOT NULL,
                scenario_if    TEXT NOT NULL DEFAULT '',
                scenario_else  TEXT NOT NULL DEFAULT '',
                what_if        TEXT NOT NULL DEFAULT '',
                outcome        TEXT NOT NULL DEFAULT '',
                months_overdue INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS tax_rules (
                id          TEXT PRIMARY KEY,
                category_id TEXT REFERENCES categories(id) ON DELETE SET NULL,
                rate        REAL NOT NULL,
                mode        TEXT NOT NULL DEFAULT 'flat'
            );

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("appearance_mode", "system"),
            ("currency_symbol", "$"),
            ("budget_alert_threshold", "0.90"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

        # Only seed categories into a brand-new store
        count = conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
        if count:
            return
        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT INTO categories(id, name, type, color, icon, is_default)
                   VALUES (?, ?, ?, ?, ?, 1)""",
                (cat["id"], cat["name"], cat["type"], cat["color"], cat["icon"]),
            )
        logger.debug("Seeded default categories")

    def clear_all(self):
        """Delete every row from every table (caller owns the transaction)."""
        conn = self.get_connection()
        for table in TABLES_DELETE_ORDER:
            conn.execute(f"DELETE FROM {table}")
        self.commit()

    # ── Settings ─────────────────────────────────────────────────────────────

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        self.commit()

    # ── Profiles ─────────────────────────────────────────────────────────────

    @staticmethod
    def path_for_profile(profile: str | None, db_folder: str | None = None) -> str:
        profile = profile or DEFAULT_PROFILE
        if not _PROFILE_RE.match(profile):
            raise ValidationError(
                f"Invalid profile name '{profile}'. Use letters, digits, '-' or '_'."
            )
        filename = db_file_for_profile(profile)
        return os.path.join(db_folder, filename) if db_folder else filename

    @staticmethod
    def open_for_profile(profile: str | None = None, db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: each local profile is its own database file."""
        if db_folder:
            Path(db_folder).mkdir(parents=True, exist_ok=True)
        return DatabaseManager(DatabaseManager.path_for_profile(profile, db_folder)).open()

    @staticmethod
    def list_profiles(db_folder: str | None = None) -> list[str]:
        folder = Path(db_folder or ".")
        names = []
        for p in sorted(folder.glob("finance_*.db")):
            names.append(p.stem[len("finance_"):])
        return names

"""Export all user data as CSV files or as a ZIP backup, and restore it.

The backup is a ZIP holding a single backup.json that maps each table to
its rows. Restoring replaces the whole store inside one SQLite
transaction, so a bad archive leaves the current data untouched.
"""
import csv
import json
import sqlite3
import zipfile
from datetime import datetime
from pathlib import Path

from loguru import logger

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.category_dao import CategoryDAO
from database.transaction_dao import TransactionDAO
from database.budget_dao import BudgetDAO
from database.goal_dao import GoalDAO
from database.bill_dao import BillDAO
from database.loan_dao import LoanDAO
from database.plan_dao import PlanDAO
from database.tax_rule_dao import TaxRuleDAO
from services.change_notifier import ChangeNotifier
from services.import_service import get_kind
from utils.date_helpers import today_str
from utils.errors import MalformedInputError, ValidationError

EXPORT_VERSION = 1
BACKUP_ENTRY = "backup.json"

# Parents before children so foreign keys hold while rows go back in
BACKUP_TABLES = (
    "accounts", "categories", "transactions", "budgets", "goals",
    "bills", "loans", "plans", "tax_rules", "app_settings",
)

CSV_KINDS = (
    "accounts", "categories", "transactions", "budgets", "goals",
    "bills", "loans", "plans", "tax_rules",
)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class DataService:
    def __init__(
        self,
        db: DatabaseManager,
        account_dao: AccountDAO,
        category_dao: CategoryDAO,
        tx_dao: TransactionDAO,
        budget_dao: BudgetDAO,
        goal_dao: GoalDAO,
        bill_dao: BillDAO,
        loan_dao: LoanDAO,
        plan_dao: PlanDAO,
        tax_rule_dao: TaxRuleDAO,
        notifier: ChangeNotifier | None = None,
    ):
        self._db = db
        self._account_dao = account_dao
        self._category_dao = category_dao
        self._tx_dao = tx_dao
        self._budget_dao = budget_dao
        self._goal_dao = goal_dao
        self._bill_dao = bill_dao
        self._loan_dao = loan_dao
        self._plan_dao = plan_dao
        self._tax_rule_dao = tax_rule_dao
        self._notifier = notifier

    # ── CSV export ────────────────────────────────────────────────────────────

    def export_csv(self, kind: str, path) -> int:
        """Write one kind as quoted CSV. Returns the number of data rows."""
        headers, rows = self.csv_rows(kind)
        self._write_csv(path, [headers] + rows)
        logger.info(f"Exported {len(rows)} {kind} row(s) to {path}")
        return len(rows)

    def export_csv_folder(self, folder) -> list[Path]:
        """One `<kind>_export_<date>.csv` per kind in `folder`."""
        folder = Path(folder)
        folder.mkdir(parents=True, exist_ok=True)
        stamp = today_str()
        written = []
        for kind in CSV_KINDS:
            path = folder / f"{kind}_export_{stamp}.csv"
            self.export_csv(kind, path)
            written.append(path)
        return written

    def template_rows(self, kind: str) -> list[list[str]]:
        """Header plus example rows for an import kind."""
        import_kind = get_kind(kind)
        return [list(import_kind.columns)] + [list(r) for r in import_kind.template]

    def write_template(self, kind: str, path):
        self._write_csv(path, self.template_rows(kind))

    def csv_rows(self, kind: str) -> tuple[list[str], list[list[str]]]:
        builder = getattr(self, f"_rows_{kind}", None) if kind in CSV_KINDS else None
        if builder is None:
            raise ValidationError(
                f"Unknown export type '{kind}'. Must be one of: {', '.join(CSV_KINDS)}."
            )
        headers, records = builder()
        return headers, [[_cell(v) for v in rec] for rec in records]

    @staticmethod
    def _write_csv(path, rows: list[list[str]]):
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerows(rows)

    # ── Private row builders ──────────────────────────────────────────────────

    def _rows_accounts(self):
        headers = ["id", "name", "type", "currency", "initial_balance", "created_at"]
        return headers, [
            [a.id, a.name, a.type, a.currency, a.initial_balance, a.created_at]
            for a in self._account_dao.get_all()
        ]

    def _rows_categories(self):
        headers = ["id", "name", "type", "color", "icon", "is_default"]
        return headers, [
            [c.id, c.name, c.type, c.color, c.icon, c.is_default]
            for c in self._category_dao.get_all()
        ]

    def _rows_transactions(self):
        # Same columns the importer reads, so an export can be re-imported
        headers = list(get_kind("transactions").columns)
        return headers, [
            [t.id, t.date, t.merchant, t.amount, t.type, t.category_name,
             t.account_name, t.to_account_name, t.notes]
            for t in self._tx_dao.get_all()
        ]

    def _rows_budgets(self):
        headers = ["id", "category", "period", "limit_amount"]
        return headers, [
            [b.id, b.category_name, b.period, b.limit_amount]
            for b in self._budget_dao.get_all()
        ]

    def _rows_goals(self):
        headers = ["id", "name", "target_amount", "current_amount", "target_date", "linked_account"]
        names = {a.id: a.name for a in self._account_dao.get_all()}
        return headers, [
            [g.id, g.name, g.target_amount, g.current_amount, g.target_date,
             names.get(g.linked_account_id, "")]
            for g in self._goal_dao.get_all()
        ]

    def _rows_bills(self):
        headers = list(get_kind("bills").columns)
        return headers, [
            [b.id, b.name, b.amount, b.next_due_date, b.recurrence, b.is_paid, b.auto_pay]
            for b in self._bill_dao.get_all()
        ]

    def _rows_loans(self):
        headers = list(get_kind("loans").columns)
        return headers, [
            [l.id, l.name, l.lender, l.principal_amount, l.current_balance, l.interest_rate,
             l.payment_amount, l.payment_frequency, l.start_date, l.end_date, l.notes]
            for l in self._loan_dao.get_all()
        ]

    def _rows_plans(self):
        headers = ["id", "item_type", "item_id", "title", "scenario_if",
                   "scenario_else", "what_if", "outcome", "months_overdue"]
        return headers, [
            [p.id, p.item_type, p.item_id, p.title, p.scenario_if,
             p.scenario_else, p.what_if, p.outcome, p.months_overdue]
            for p in self._plan_dao.get_all()
        ]

    def _rows_tax_rules(self):
        headers = ["id", "category", "rate", "mode"]
        names = {c.id: c.name for c in self._category_dao.get_all()}
        return headers, [
            [r.id, names.get(r.category_id, ""), r.rate, r.mode]
            for r in self._tax_rule_dao.get_all()
        ]

    # ── Backup / restore ──────────────────────────────────────────────────────

    def export_json(self) -> dict:
        """Every table as a list of row dicts, plus version metadata."""
        conn = self._db.get_connection()
        data = {
            "export_version": EXPORT_VERSION,
            "exported_at": datetime.now().isoformat(timespec="seconds"),
        }
        for table in BACKUP_TABLES:
            order = "key" if table == "app_settings" else "id"
            rows = conn.execute(f"SELECT * FROM {table} ORDER BY {order}").fetchall()
            data[table] = [dict(r) for r in rows]
        return data

    def export_backup(self, path, reset_after: bool = False) -> dict:
        """Write a ZIP holding backup.json. With reset_after, clear the store once written."""
        data = self.export_json()
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(BACKUP_ENTRY, json.dumps(data, indent=2))
        counts = {table: len(data[table]) for table in BACKUP_TABLES}
        logger.info(f"Backup written to {path}: {counts}")
        if reset_after:
            self.reset_all()
        return counts

    def read_backup(self, path) -> dict:
        try:
            with zipfile.ZipFile(path, "r") as zf:
                if BACKUP_ENTRY not in zf.namelist():
                    raise MalformedInputError(f"{BACKUP_ENTRY} not found in {Path(path).name}.")
                raw = zf.read(BACKUP_ENTRY)
        except zipfile.BadZipFile as e:
            raise MalformedInputError(f"{Path(path).name} is not a ZIP archive.") from e
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedInputError(f"{BACKUP_ENTRY} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedInputError(f"{BACKUP_ENTRY} must hold an object of tables.")
        for table in BACKUP_TABLES:
            if not isinstance(data.get(table, []), list):
                raise MalformedInputError(f"'{table}' in {BACKUP_ENTRY} must be a list.")
        return data

    def restore_backup(self, path) -> dict:
        """Replace everything with the archive's contents, all or nothing."""
        data = self.read_backup(path)
        counts = {}
        try:
            with self._db.transaction() as conn:
                self._db.clear_all()
                for table in BACKUP_TABLES:
                    counts[table] = self._insert_rows(conn, table, data.get(table, []))
        except sqlite3.Error as e:
            logger.error(f"Restore from {path} rolled back: {e}")
            raise MalformedInputError(f"Backup could not be restored: {e}") from e
        logger.info(f"Restored backup {path}: {counts}")
        self._emit()
        return counts

    def reset_all(self):
        """Delete all data, then re-seed the defaults a new store starts with."""
        with self._db.transaction():
            self._db.clear_all()
        self._db.initialize()
        logger.info("All data reset")
        self._emit()

    @staticmethod
    def _insert_rows(conn: sqlite3.Connection, table: str, rows: list) -> int:
        columns = [r["name"] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()]
        count = 0
        for row in rows:
            if not isinstance(row, dict):
                raise MalformedInputError(f"Rows in '{table}' must be objects.")
            cols = [c for c in columns if c in row]
            if not cols:
                continue
            placeholders = ", ".join("?" for _ in cols)
            conn.execute(
                f"INSERT OR REPLACE INTO {table}({', '.join(cols)}) VALUES ({placeholders})",
                [row[c] for c in cols],
            )
            count += 1
        return count

    def _emit(self):
        if self._notifier:
            self._notifier.emit("full")

import json
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        keys = row.keys()
        return Transaction(
            id=row["id"],
            account_id=row["account_id"],
            type=row["type"],
            amount=row["amount"],
            date=row["date"],
            category_id=row["category_id"],
            to_account_id=row["to_account_id"],
            merchant=row["merchant"],
            notes=row["notes"],
            tags=json.loads(row["tags_json"] or "[]"),
            tax_amount=row["tax_amount"],
            created_at=row["created_at"],
            category_name=row["category_name"] if "category_name" in keys else "",
            account_name=row["account_name"] if "account_name" in keys else "",
            to_account_name=row["to_account_name"] if "to_account_name" in keys else "",
        )

    def _select(self) -> str:
        return """
            SELECT t.*,
                   COALESCE(c.name, '')  AS category_name,
                   COALESCE(a.name, '')  AS account_name,
                   COALESCE(ta.name, '') AS to_account_name
            FROM transactions t
            LEFT JOIN categories c ON t.category_id = c.id
            LEFT JOIN accounts a   ON t.account_id = a.id
            LEFT JOIN accounts ta  ON t.to_account_id = ta.id
        """

    def get_all(
        self,
        account_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        """Newest first. account_id matches either side of a transfer."""
        conn = self._db.get_connection()
        sql = self._select() + " WHERE 1=1"
        params: list = []
        if account_id:
            sql += " AND (t.account_id = ? OR t.to_account_id = ?)"
            params.extend([account_id, account_id])
        if start_date:
            sql += " AND t.date >= ?"
            params.append(start_date)
        if end_date:
            sql += " AND t.date <= ?"
            params.append(end_date)
        sql += " ORDER BY t.date DESC, t.created_at DESC, t.id"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: str) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE t.id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, tx: Transaction) -> Transaction:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO transactions
               (id, account_id, to_account_id, category_id, type, amount, date,
                merchant, notes, tags_json, tax_amount, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, COALESCE(NULLIF(?, ''), datetime('now')))
               ON CONFLICT(id) DO UPDATE SET
                   account_id = excluded.account_id,
                   to_account_id = excluded.to_account_id,
                   category_id = excluded.category_id,
                   type = excluded.type,
                   amount = excluded.amount,
                   date = excluded.date,
                   merchant = excluded.merchant,
                   notes = excluded.notes,
                   tags_json = excluded.tags_json,
                   tax_amount = excluded.tax_amount""",
            (
                tx.id, tx.account_id, tx.to_account_id, tx.category_id, tx.type,
                tx.amount, tx.date, tx.merchant or "", tx.notes or "",
                json.dumps(list(tx.tags or [])), tx.tax_amount or 0.0, tx.created_at,
            ),
        )
        self._db.commit()
        return self.get_by_id(tx.id)

    def delete(self, tx_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        self._db.commit()

    def get_category_expense_total(self, category_id: str, start_date: str, end_date: str) -> float:
        """Sum of expense amounts in a category with start_date <= date <= end_date."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(amount), 0) AS total
               FROM transactions
               WHERE type = 'expense'
                 AND category_id = ?
                 AND date >= ?
                 AND date <= ?""",
            (category_id, start_date, end_date),
        ).fetchone()
        return float(row["total"])

    def get_totals(self) -> dict:
        """All-time income and expense totals across all accounts."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT
                SUM(CASE WHEN type='income'  THEN amount ELSE 0 END) AS income,
                SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense
               FROM transactions"""
        ).fetchone()
        return {
            "income":  row["income"]  or 0.0,
            "expense": row["expense"] or 0.0,
        }

    def get_monthly_totals(self, start_date: str, end_date: str) -> list[dict]:
        """Return [{month, income, expense}] for months with income or expense in the range, oldest first.

        Transfers move money between accounts and are not activity here.
        """
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT substr(date, 1, 7) AS month,
                      SUM(CASE WHEN type='income'  THEN amount ELSE 0 END) AS income,
                      SUM(CASE WHEN type='expense' THEN amount ELSE 0 END) AS expense
               FROM transactions
               WHERE date >= ? AND date <= ?
                 AND type IN ('income', 'expense')
               GROUP BY month
               ORDER BY month""",
            (start_date, end_date),
        ).fetchall()
        return [dict(r) for r in rows]

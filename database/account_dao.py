from typing import Optional
from database.db_manager import DatabaseManager
from models.account import Account


class AccountDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Account:
        return Account(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            currency=row["currency"],
            initial_balance=row["initial_balance"],
            created_at=row["created_at"],
        )

    def get_all(self) -> list[Account]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM accounts ORDER BY name COLLATE NOCASE"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, account_id: str) -> Optional[Account]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, name: str) -> Optional[Account]:
        """Case-insensitive exact match on the trimmed name."""
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM accounts WHERE lower(name) = lower(?)", (name.strip(),)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, account: Account) -> Account:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO accounts(id, name, type, currency, initial_balance, created_at)
               VALUES (?, ?, ?, ?, ?, COALESCE(NULLIF(?, ''), datetime('now')))
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   type = excluded.type,
                   currency = excluded.currency,
                   initial_balance = excluded.initial_balance""",
            (
                account.id, account.name, account.type, account.currency,
                account.initial_balance, account.created_at,
            ),
        )
        self._db.commit()
        return self.get_by_id(account.id)

    def delete(self, account_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
        self._db.commit()

    def count_linked_transfers(self, account_id: str) -> int:
        """Transfers between this account and any other, in either direction."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COUNT(*) FROM transactions
               WHERE type = 'transfer'
                 AND (account_id = ? OR to_account_id = ?)""",
            (account_id, account_id),
        ).fetchone()
        return row[0]

    def get_balance_components(self, account_id: str) -> dict:
        """All-time sums that make up an account's balance, in one query."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT
                a.initial_balance AS initial_balance,
                COALESCE(SUM(CASE WHEN t.type = 'income'   AND t.account_id = a.id
                                  THEN t.amount END), 0) AS income,
                COALESCE(SUM(CASE WHEN t.type = 'expense'  AND t.account_id = a.id
                                  THEN t.amount END), 0) AS expense,
                COALESCE(SUM(CASE WHEN t.type = 'transfer' AND t.account_id = a.id
                                  THEN t.amount END), 0) AS transfers_out,
                COALESCE(SUM(CASE WHEN t.type = 'transfer' AND t.to_account_id = a.id
                                  THEN t.amount END), 0) AS transfers_in
               FROM accounts a
               LEFT JOIN transactions t
                      ON t.account_id = a.id OR t.to_account_id = a.id
               WHERE a.id = ?
               GROUP BY a.id""",
            (account_id,),
        ).fetchone()
        return dict(row) if row else None

    def get_all_balances(self) -> dict[str, float]:
        """Return {account_id: balance} for every account in one aggregate query."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT
                a.id AS account_id,
                a.initial_balance + COALESCE(SUM(
                    CASE
                        WHEN t.type = 'income'   AND t.account_id = a.id    THEN  t.amount
                        WHEN t.type = 'expense'  AND t.account_id = a.id    THEN -t.amount
                        WHEN t.type = 'transfer' AND t.account_id = a.id    THEN -t.amount
                        WHEN t.type = 'transfer' AND t.to_account_id = a.id THEN  t.amount
                        ELSE 0
                    END
                ), 0) AS balance
               FROM accounts a
               LEFT JOIN transactions t
                      ON t.account_id = a.id OR t.to_account_id = a.id
               GROUP BY a.id"""
        ).fetchall()
        return {r["account_id"]: r["balance"] for r in rows}

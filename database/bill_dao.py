from typing import Optional
from database.db_manager import DatabaseManager
from models.bill import Bill


class BillDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Bill:
        return Bill(
            id=row["id"],
            name=row["name"],
            amount=row["amount"],
            next_due_date=row["next_due_date"],
            recurrence=row["recurrence"],
            is_paid=bool(row["is_paid"]),
            auto_pay=bool(row["auto_pay"]),
        )

    def get_all(self) -> list[Bill]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM bills ORDER BY next_due_date, name"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, bill_id: str) -> Optional[Bill]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM bills WHERE id = ?", (bill_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def get_unpaid_due_between(self, start_date: str, end_date: str) -> list[Bill]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT * FROM bills
               WHERE is_paid = 0 AND next_due_date >= ? AND next_due_date <= ?
               ORDER BY next_due_date, name""",
            (start_date, end_date),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def save(self, bill: Bill) -> Bill:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO bills(id, name, amount, next_due_date, recurrence, is_paid, auto_pay)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   amount = excluded.amount,
                   next_due_date = excluded.next_due_date,
                   recurrence = excluded.recurrence,
                   is_paid = excluded.is_paid,
                   auto_pay = excluded.auto_pay""",
            (
                bill.id, bill.name, bill.amount, bill.next_due_date, bill.recurrence,
                1 if bill.is_paid else 0, 1 if bill.auto_pay else 0,
            ),
        )
        self._db.commit()
        return self.get_by_id(bill.id)

    def set_paid(self, bill_id: str, paid: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE bills SET is_paid = ? WHERE id = ?", (1 if paid else 0, bill_id)
        )
        self._db.commit()

    def delete(self, bill_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM bills WHERE id = ?", (bill_id,))
        self._db.commit()

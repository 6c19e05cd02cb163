from typing import Optional
from database.db_manager import DatabaseManager
from models.loan import Loan


class LoanDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Loan:
        return Loan(
            id=row["id"],
            name=row["name"],
            lender=row["lender"],
            principal_amount=row["principal_amount"],
            current_balance=row["current_balance"],
            interest_rate=row["interest_rate"],
            payment_amount=row["payment_amount"],
            payment_frequency=row["payment_frequency"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            notes=row["notes"],
        )

    def get_all(self) -> list[Loan]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM loans ORDER BY interest_rate DESC, name"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, loan_id: str) -> Optional[Loan]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM loans WHERE id = ?", (loan_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, loan: Loan) -> Loan:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO loans(id, name, lender, principal_amount, current_balance,
                                 interest_rate, payment_amount, payment_frequency,
                                 start_date, end_date, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   lender = excluded.lender,
                   principal_amount = excluded.principal_amount,
                   current_balance = excluded.current_balance,
                   interest_rate = excluded.interest_rate,
                   payment_amount = excluded.payment_amount,
                   payment_frequency = excluded.payment_frequency,
                   start_date = excluded.start_date,
                   end_date = excluded.end_date,
                   notes = excluded.notes""",
            (
                loan.id, loan.name, loan.lender or "", loan.principal_amount,
                loan.current_balance, loan.interest_rate, loan.payment_amount,
                loan.payment_frequency, loan.start_date or "", loan.end_date,
                loan.notes or "",
            ),
        )
        self._db.commit()
        return self.get_by_id(loan.id)

    def delete(self, loan_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM loans WHERE id = ?", (loan_id,))
        self._db.commit()

from typing import Optional
from database.db_manager import DatabaseManager
from models.budget import Budget


class BudgetDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Budget:
        keys = row.keys()
        return Budget(
            id=row["id"],
            category_id=row["category_id"],
            period=row["period"],
            limit_amount=row["limit_amount"],
            category_name=(row["category_name"] or "") if "category_name" in keys else "",
            color=(row["color"] or "#888888") if "color" in keys else "#888888",
        )

    def get_all(self) -> list[Budget]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT b.*, c.name AS category_name, c.color
               FROM budgets b LEFT JOIN categories c ON b.category_id = c.id
               ORDER BY c.name COLLATE NOCASE, b.period"""
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, budget_id: str) -> Optional[Budget]:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT b.*, c.name AS category_name, c.color
               FROM budgets b
               LEFT JOIN categories c ON b.category_id = c.id
               WHERE b.id = ?""",
            (budget_id,),
        ).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, budget: Budget) -> Budget:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO budgets(id, category_id, period, limit_amount)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(id)
               DO UPDATE SET category_id = excluded.category_id,
                             period = excluded.period,
                             limit_amount = excluded.limit_amount""",
            (budget.id, budget.category_id, budget.period, budget.limit_amount),
        )
        self._db.commit()
        return self.get_by_id(budget.id)

    def delete(self, budget_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        self._db.commit()

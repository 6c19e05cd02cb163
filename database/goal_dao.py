from typing import Optional
from database.db_manager import DatabaseManager
from models.goal import Goal


class GoalDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Goal:
        return Goal(
            id=row["id"],
            name=row["name"],
            target_amount=row["target_amount"],
            current_amount=row["current_amount"],
            target_date=row["target_date"],
            linked_account_id=row["linked_account_id"],
        )

    def get_all(self) -> list[Goal]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM goals ORDER BY COALESCE(target_date, '9999-12-31'), name"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, goal_id: str) -> Optional[Goal]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, goal: Goal) -> Goal:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO goals(id, name, target_amount, target_date,
                                 linked_account_id, current_amount)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   target_amount = excluded.target_amount,
                   target_date = excluded.target_date,
                   linked_account_id = excluded.linked_account_id,
                   current_amount = excluded.current_amount""",
            (
                goal.id, goal.name, goal.target_amount, goal.target_date,
                goal.linked_account_id, goal.current_amount,
            ),
        )
        self._db.commit()
        return self.get_by_id(goal.id)

    def delete(self, goal_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
        self._db.commit()

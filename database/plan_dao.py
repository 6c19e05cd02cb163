from typing import Optional
from database.db_manager import DatabaseManager
from models.plan import Plan


class PlanDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Plan:
        return Plan(
            id=row["id"],
            item_type=row["item_type"],
            item_id=row["item_id"],
            title=row["title"],
            scenario_if=row["scenario_if"],
            scenario_else=row["scenario_else"],
            what_if=row["what_if"],
            outcome=row["outcome"],
            months_overdue=row["months_overdue"],
        )

    def get_all(self) -> list[Plan]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM plans ORDER BY months_overdue DESC, title"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, plan_id: str) -> Optional[Plan]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM plans WHERE id = ?", (plan_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def get_for_item(self, item_type: str, item_id: str) -> list[Plan]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM plans WHERE item_type = ? AND item_id = ? ORDER BY title",
            (item_type, item_id),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def save(self, plan: Plan) -> Plan:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO plans(id, item_type, item_id, title, scenario_if,
                                 scenario_else, what_if, outcome, months_overdue)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   item_type = excluded.item_type,
                   item_id = excluded.item_id,
                   title = excluded.title,
                   scenario_if = excluded.scenario_if,
                   scenario_else = excluded.scenario_else,
                   what_if = excluded.what_if,
                   outcome = excluded.outcome,
                   months_overdue = excluded.months_overdue""",
            (
                plan.id, plan.item_type, plan.item_id, plan.title,
                plan.scenario_if or "", plan.scenario_else or "",
                plan.what_if or "", plan.outcome or "", plan.months_overdue,
            ),
        )
        self._db.commit()
        return self.get_by_id(plan.id)

    def delete(self, plan_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM plans WHERE id = ?", (plan_id,))
        self._db.commit()

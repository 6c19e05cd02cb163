from typing import Optional
from database.db_manager import DatabaseManager
from models.tax_rule import TaxRule


class TaxRuleDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> TaxRule:
        return TaxRule(
            id=row["id"],
            rate=row["rate"],
            category_id=row["category_id"],
            mode=row["mode"],
        )

    def get_all(self) -> list[TaxRule]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM tax_rules ORDER BY id").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: str) -> Optional[TaxRule]:
        conn = self._db.get_connection()
        row = conn.execute("SELECT * FROM tax_rules WHERE id = ?", (rule_id,)).fetchone()
        return self._row_to_model(row) if row else None

    def save(self, rule: TaxRule) -> TaxRule:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO tax_rules(id, category_id, rate, mode)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   category_id = excluded.category_id,
                   rate = excluded.rate,
                   mode = excluded.mode""",
            (rule.id, rule.category_id, rule.rate, rule.mode),
        )
        self._db.commit()
        return self.get_by_id(rule.id)

    def delete(self, rule_id: str):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM tax_rules WHERE id = ?", (rule_id,))
        self._db.commit()

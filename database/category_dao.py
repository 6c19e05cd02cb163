from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            color=row["color"],
            icon=row["icon"],
            is_default=bool(row["is_default"]),
        )

    def get_all(self) -> list[Category]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM categories ORDER BY type, name COLLATE NOCASE"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, category_id: str) -> Optional[Category]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_name(self, name: str, type_: str | None = None) -> Optional[Category]:
        """Case-insensitive exact match, optionally restricted to one type."""
        conn = self._db.get_connection()
        sql = "SELECT * FROM categories WHERE lower(name) = lower(?)"
        params: list = [name.strip()]
        if type_:
            sql += " AND type = ?"
            params.append(type_)
        row = conn.execute(sql, params).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_type(self, type_filter: str) -> list[Category]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM categories WHERE type = ? ORDER BY name COLLATE NOCASE",
            (type_filter,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def save(self, category: Category) -> Category:
        conn = self._db.get_connection()
        conn.execute(
            """INSERT INTO categories(id, name, type, color, icon, is_default)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   name = excluded.name,
                   type = excluded.type,
                   color = excluded.color,
                   icon = excluded.icon,
                   is_default = excluded.is_default""",
            (
                category.id, category.name, category.type, category.color,
                category.icon, 1 if category.is_default else 0,
            ),
        )
        self._db.commit()
        return self.get_by_id(category.id)

    def delete_orphaning(self, category_id: str):
        """Null the category on transactions, drop its budgets, then the category."""
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE transactions SET category_id = NULL WHERE category_id = ?",
                (category_id,),
            )
            conn.execute("DELETE FROM budgets WHERE category_id = ?", (category_id,))
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))

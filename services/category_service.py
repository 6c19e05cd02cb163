import uuid

from loguru import logger

from database.category_dao import CategoryDAO
from models.category import Category
from services.change_notifier import ChangeNotifier
from utils.errors import NotFoundError, ValidationError

CATEGORY_TYPES = ("income", "expense")


class CategoryService:
    def __init__(self, category_dao: CategoryDAO, notifier: ChangeNotifier | None = None):
        self._dao = category_dao
        self._notifier = notifier

    def get_all(self) -> list[Category]:
        return self._dao.get_all()

    def get_by_id(self, category_id: str) -> Category | None:
        return self._dao.get_by_id(category_id)

    def get_by_name(self, name: str, type_: str | None = None) -> Category | None:
        return self._dao.get_by_name(name, type_)

    def get_expense_categories(self) -> list[Category]:
        return self._dao.get_by_type("expense")

    def create(self, name: str, type_: str, color_hex: str = "#888888", icon: str = "") -> Category:
        name = self._check_name(name, type_)
        self._check_unique(name, type_)
        category = Category(id=uuid.uuid4().hex, name=name, type=type_, color=color_hex, icon=icon)
        saved = self._dao.save(category)
        self._emit()
        return saved

    def update(self, category_id: str, name: str, type_: str, color_hex: str, icon: str = "") -> Category:
        current = self._dao.get_by_id(category_id)
        if current is None:
            raise NotFoundError(f"Category {category_id} not found.")
        name = self._check_name(name, type_)
        self._check_unique(name, type_, exclude_id=category_id)
        current.name = name
        current.type = type_
        current.color = color_hex
        current.icon = icon
        saved = self._dao.save(current)
        self._emit()
        return saved

    def delete(self, category_id: str):
        """Transactions keep existing with no category. Budgets on it are removed."""
        if self._dao.get_by_id(category_id) is None:
            raise NotFoundError(f"Category {category_id} not found.")
        self._dao.delete_orphaning(category_id)
        logger.info(f"Deleted category {category_id}")
        self._emit()

    def _emit(self):
        if self._notifier:
            # Budgets and transactions show category names too
            self._notifier.emit("category")

    @staticmethod
    def _check_name(name: str, type_: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty.")
        if type_ not in CATEGORY_TYPES:
            raise ValidationError(f"Invalid category type: {type_}")
        return name

    def _check_unique(self, name: str, type_: str, exclude_id: str | None = None):
        existing = self._dao.get_by_name(name, type_)
        if existing and existing.id != exclude_id:
            raise ValidationError(f"A category named '{name}' already exists.")

import uuid
from datetime import date

from loguru import logger

from models.budget import Budget
from database.budget_dao import BudgetDAO
from database.transaction_dao import TransactionDAO
from database.category_dao import CategoryDAO
from services.change_notifier import ChangeNotifier
from utils.constants import BUDGET_ALERT_THRESHOLD, BUDGET_PERIODS
from utils.date_helpers import period_window
from utils.errors import NotFoundError, ValidationError


class BudgetService:
    def __init__(
        self,
        budget_dao: BudgetDAO,
        tx_dao: TransactionDAO,
        category_dao: CategoryDAO,
        notifier: ChangeNotifier | None = None,
    ):
        self._budget_dao = budget_dao
        self._tx_dao = tx_dao
        self._category_dao = category_dao
        self._notifier = notifier

    def get_all(self) -> list[Budget]:
        return self._budget_dao.get_all()

    def get_spent(self, budget: Budget, now: date | None = None) -> float:
        """Expense total in the budget's category over its current period window."""
        start, end = period_window(budget.period, now)
        spent = self._tx_dao.get_category_expense_total(budget.category_id, start, end)
        logger.debug(f"Budget {budget.id} ({budget.period}) window {start}..{end}: {spent:.2f}")
        return spent

    def get_budget_status(self, now: date | None = None) -> list[Budget]:
        """Return all budgets with spent amounts filled in."""
        budgets = self._budget_dao.get_all()
        for b in budgets:
            b.spent_amount = self.get_spent(b, now)
        return budgets

    def get_alerts(
        self, now: date | None = None, threshold: float = BUDGET_ALERT_THRESHOLD
    ) -> list[Budget]:
        """Budgets at or past `threshold` of their limit, most used first."""
        flagged = [
            b for b in self.get_budget_status(now)
            if b.limit_amount > 0 and b.percentage >= threshold
        ]
        return sorted(flagged, key=lambda b: b.percentage, reverse=True)

    def create(self, category_id: str, period: str, limit_amount: float) -> Budget:
        self._validate(category_id, period, limit_amount)
        budget = Budget(
            id=uuid.uuid4().hex,
            category_id=category_id,
            period=period,
            limit_amount=float(limit_amount),
        )
        saved = self._budget_dao.save(budget)
        self._emit()
        return saved

    def update(self, budget_id: str, category_id: str, period: str, limit_amount: float) -> Budget:
        current = self._budget_dao.get_by_id(budget_id)
        if current is None:
            raise NotFoundError(f"Budget {budget_id} not found.")
        self._validate(category_id, period, limit_amount)
        current.category_id = category_id
        current.period = period
        current.limit_amount = float(limit_amount)
        saved = self._budget_dao.save(current)
        self._emit()
        return saved

    def delete(self, budget_id: str):
        self._budget_dao.delete(budget_id)
        self._emit()

    def get_expense_categories(self):
        """Return categories valid for budgeting."""
        return self._category_dao.get_by_type("expense")

    def _emit(self):
        if self._notifier:
            self._notifier.emit("budget")

    def _validate(self, category_id: str, period: str, limit_amount: float):
        if limit_amount is None or limit_amount < 0:
            raise ValidationError("Budget limit must be non-negative.")
        if period not in BUDGET_PERIODS:
            raise ValidationError(
                f"Invalid period '{period}'. Must be one of: {', '.join(BUDGET_PERIODS)}."
            )
        category = self._category_dao.get_by_id(category_id)
        if category is None:
            raise ValidationError(f"Category {category_id!r} does not exist.")
        if category.type != "expense":
            raise ValidationError("Budgets can only track expense categories.")

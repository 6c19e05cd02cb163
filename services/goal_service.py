import uuid

from database.goal_dao import GoalDAO
from database.account_dao import AccountDAO
from models.goal import Goal
from services.change_notifier import ChangeNotifier
from utils.date_helpers import format_date, parse_date
from utils.errors import NotFoundError, ValidationError


class GoalService:
    def __init__(self, goal_dao: GoalDAO, account_dao: AccountDAO, notifier: ChangeNotifier | None = None):
        self._dao = goal_dao
        self._account_dao = account_dao
        self._notifier = notifier

    def get_all(self) -> list[Goal]:
        return self._dao.get_all()

    def get_by_id(self, goal_id: str) -> Goal | None:
        return self._dao.get_by_id(goal_id)

    def save(self, goal: Goal) -> Goal:
        goal.name = (goal.name or "").strip()
        if not goal.name:
            raise ValidationError("Goal name cannot be empty.")
        if goal.target_amount is None or goal.target_amount <= 0:
            raise ValidationError("Target amount must be positive.")
        if goal.current_amount < 0:
            raise ValidationError("Current amount cannot be negative.")
        if goal.target_date:
            d = parse_date(goal.target_date)
            if not d:
                raise ValidationError("Invalid target date. Use YYYY-MM-DD.")
            goal.target_date = format_date(d)
        else:
            goal.target_date = None
        if goal.linked_account_id and self._account_dao.get_by_id(goal.linked_account_id) is None:
            raise ValidationError(f"Account {goal.linked_account_id!r} does not exist.")
        if not goal.id:
            goal.id = uuid.uuid4().hex
        saved = self._dao.save(goal)
        self._emit()
        return saved

    def create(
        self,
        name: str,
        target_amount: float,
        current_amount: float = 0.0,
        target_date: str | None = None,
        linked_account_id: str | None = None,
    ) -> Goal:
        return self.save(Goal(
            id="",
            name=name,
            target_amount=target_amount,
            current_amount=current_amount,
            target_date=target_date,
            linked_account_id=linked_account_id,
        ))

    def contribute(self, goal_id: str, amount: float) -> Goal:
        """Add (or with a negative amount, withdraw) from a goal's saved amount."""
        goal = self._dao.get_by_id(goal_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found.")
        new_amount = goal.current_amount + amount
        if new_amount < 0:
            raise ValidationError("Cannot withdraw more than the goal holds.")
        goal.current_amount = new_amount
        saved = self._dao.save(goal)
        self._emit()
        return saved

    def delete(self, goal_id: str):
        self._dao.delete(goal_id)
        self._emit()

    def _emit(self):
        if self._notifier:
            self._notifier.emit("goal")

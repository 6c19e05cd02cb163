import uuid

from database.plan_dao import PlanDAO
from database.transaction_dao import TransactionDAO
from database.loan_dao import LoanDAO
from database.goal_dao import GoalDAO
from models.plan import Plan
from services.change_notifier import ChangeNotifier
from utils.constants import PLAN_ITEM_TYPES
from utils.errors import NotFoundError, ValidationError


class PlanService:
    """What-if scenarios attached to a transaction, loan or goal."""

    def __init__(
        self,
        plan_dao: PlanDAO,
        tx_dao: TransactionDAO,
        loan_dao: LoanDAO,
        goal_dao: GoalDAO,
        notifier: ChangeNotifier | None = None,
    ):
        self._dao = plan_dao
        self._lookups = {
            "transaction": tx_dao.get_by_id,
            "loan": loan_dao.get_by_id,
            "goal": goal_dao.get_by_id,
        }
        self._notifier = notifier

    def get_all(self) -> list[Plan]:
        return self._dao.get_all()

    def get_by_id(self, plan_id: str) -> Plan | None:
        return self._dao.get_by_id(plan_id)

    def get_for_item(self, item_type: str, item_id: str) -> list[Plan]:
        return self._dao.get_for_item(item_type, item_id)

    def save(self, plan: Plan) -> Plan:
        plan.title = (plan.title or "").strip()
        if not plan.title:
            raise ValidationError("Plan title cannot be empty.")
        if plan.item_type not in PLAN_ITEM_TYPES:
            raise ValidationError(f"Invalid plan item type: {plan.item_type}")
        if not plan.item_id or self._lookups[plan.item_type](plan.item_id) is None:
            raise ValidationError(f"The {plan.item_type} {plan.item_id!r} does not exist.")
        if plan.months_overdue is None or plan.months_overdue < 0:
            raise ValidationError("Months overdue cannot be negative.")
        if not plan.id:
            plan.id = uuid.uuid4().hex
        saved = self._dao.save(plan)
        self._emit()
        return saved

    def increment_overdue(self, plan_id: str, months: int = 1) -> Plan:
        """Bump the stored overdue counter. Nothing advances it automatically."""
        plan = self._dao.get_by_id(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found.")
        plan.months_overdue = max(0, plan.months_overdue + months)
        saved = self._dao.save(plan)
        self._emit()
        return saved

    def delete(self, plan_id: str):
        self._dao.delete(plan_id)
        self._emit()

    def _emit(self):
        if self._notifier:
            self._notifier.emit("plan")

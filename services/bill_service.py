import uuid
from datetime import date, timedelta

from database.bill_dao import BillDAO
from models.bill import Bill
from services.change_notifier import ChangeNotifier
from utils.constants import BILL_RECURRENCES, UPCOMING_BILL_DAYS
from utils.date_helpers import format_date, parse_date, today
from utils.errors import NotFoundError, ValidationError


class BillService:
    def __init__(self, bill_dao: BillDAO, notifier: ChangeNotifier | None = None):
        self._dao = bill_dao
        self._notifier = notifier

    def get_all(self) -> list[Bill]:
        return self._dao.get_all()

    def get_by_id(self, bill_id: str) -> Bill | None:
        return self._dao.get_by_id(bill_id)

    def save(self, bill: Bill) -> Bill:
        bill.name = (bill.name or "").strip()
        if not bill.name:
            raise ValidationError("Bill name cannot be empty.")
        if bill.amount is None or bill.amount < 0:
            raise ValidationError("Bill amount cannot be negative.")
        d = parse_date(bill.next_due_date)
        if not d:
            raise ValidationError("Invalid due date. Use YYYY-MM-DD.")
        bill.next_due_date = format_date(d)
        if bill.recurrence not in BILL_RECURRENCES:
            raise ValidationError(
                f"Invalid recurrence '{bill.recurrence}'. "
                f"Must be one of: {', '.join(BILL_RECURRENCES)}."
            )
        if not bill.id:
            bill.id = uuid.uuid4().hex
        saved = self._dao.save(bill)
        self._emit()
        return saved

    def set_paid(self, bill_id: str, paid: bool = True) -> Bill:
        if self._dao.get_by_id(bill_id) is None:
            raise NotFoundError(f"Bill {bill_id} not found.")
        self._dao.set_paid(bill_id, paid)
        self._emit()
        return self._dao.get_by_id(bill_id)

    def get_upcoming(self, days: int = UPCOMING_BILL_DAYS, now: date | None = None) -> list[Bill]:
        """Unpaid bills due within `days` days of now, overdue ones included, soonest first."""
        now = now or today()
        end = format_date(now + timedelta(days=days))
        return self._dao.get_unpaid_due_between("0000-01-01", end)

    def delete(self, bill_id: str):
        self._dao.delete(bill_id)
        self._emit()

    def _emit(self):
        if self._notifier:
            self._notifier.emit("bill")

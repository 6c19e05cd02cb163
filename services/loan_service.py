import uuid

from database.loan_dao import LoanDAO
from models.loan import Loan
from services.change_notifier import ChangeNotifier
from utils.constants import HIGH_INTEREST_RATE, LOAN_FREQUENCIES
from utils.date_helpers import format_date, parse_date
from utils.errors import ValidationError


class LoanService:
    def __init__(self, loan_dao: LoanDAO, notifier: ChangeNotifier | None = None):
        self._dao = loan_dao
        self._notifier = notifier

    def get_all(self) -> list[Loan]:
        return self._dao.get_all()

    def get_by_id(self, loan_id: str) -> Loan | None:
        return self._dao.get_by_id(loan_id)

    def save(self, loan: Loan) -> Loan:
        loan.name = (loan.name or "").strip()
        if not loan.name:
            raise ValidationError("Loan name cannot be empty.")
        for label, value in (
            ("Principal", loan.principal_amount),
            ("Current balance", loan.current_balance),
            ("Interest rate", loan.interest_rate),
            ("Payment amount", loan.payment_amount),
        ):
            if value is None or value < 0:
                raise ValidationError(f"{label} cannot be negative.")
        if loan.payment_frequency not in LOAN_FREQUENCIES:
            raise ValidationError(
                f"Invalid payment frequency '{loan.payment_frequency}'. "
                f"Must be one of: {', '.join(LOAN_FREQUENCIES)}."
            )
        loan.start_date = self._normalize_date(loan.start_date, "start") or ""
        loan.end_date = self._normalize_date(loan.end_date, "end")
        if not loan.id:
            loan.id = uuid.uuid4().hex
        saved = self._dao.save(loan)
        if self._notifier:
            self._notifier.emit("loan")
        return saved

    def delete(self, loan_id: str):
        self._dao.delete(loan_id)
        if self._notifier:
            self._notifier.emit("loan")

    def get_summary(self) -> dict:
        """Portfolio totals for the loans overview."""
        loans = self._dao.get_all()
        return {
            "count": len(loans),
            "total_debt": sum(l.current_balance for l in loans),
            "total_principal": sum(l.principal_amount for l in loans),
            "monthly_interest": sum(l.monthly_interest for l in loans),
            "monthly_payments": sum(l.payment_amount for l in loans),
            "high_interest_count": sum(1 for l in loans if l.interest_rate > HIGH_INTEREST_RATE),
        }

    @staticmethod
    def _normalize_date(value: str | None, label: str) -> str | None:
        if not value:
            return None
        d = parse_date(value)
        if not d:
            raise ValidationError(f"Invalid {label} date. Use YYYY-MM-DD.")
        return format_date(d)

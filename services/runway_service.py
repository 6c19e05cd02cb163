"""
Burn rate and runway.

The estimator functions are pure: the same sample always gives the same
RunwayEstimate. BurnRateTracker holds a mutable sample and swaps in a new
estimate on every change, so burn rate and runway can never come from two
different generations of the sample. RunwayService feeds the estimator
from the ledger.
"""
import math
import threading
from datetime import date
from typing import Iterable, Optional

from loguru import logger

from database.transaction_dao import TransactionDAO
from models.runway import RunwayEstimate
from services.account_service import AccountService
from utils.date_helpers import month_range, trailing_months, today

SAFE_MONTHS = 9.0
WARNING_MONTHS = 6.0
DANGER_MONTHS = 3.0

_RISK_LEVELS = {"safe": 25, "warning": 50, "danger": 75, "critical": 100}


def average(sample: Iterable[float]) -> float:
    values = list(sample)
    if not values:
        return 0.0
    return sum(values) / len(values)


def runway_status(runway: float) -> str:
    if runway >= SAFE_MONTHS:
        return "safe"
    if runway >= WARNING_MONTHS:
        return "warning"
    if runway >= DANGER_MONTHS:
        return "danger"
    return "critical"


def risk_level(status: str) -> int:
    """Gauge position for a runway status, 25 (safe) to 100 (critical)."""
    return _RISK_LEVELS.get(status, 100)


def estimate_runway(
    current_cash: float,
    expense_sample: Iterable[float],
    income_sample: Optional[Iterable[float]] = None,
) -> RunwayEstimate:
    """Months of cash left at the sample's average burn.

    Without an income sample the whole average expense is burned. With one,
    only the part of it income does not cover. Runway is math.inf when
    nothing is burned.
    """
    expenses = list(expense_sample)
    avg_burn = average(expenses)

    if income_sample is None:
        avg_income = 0.0
        net_burn = avg_burn
        runway = current_cash / avg_burn if avg_burn != 0 else math.inf
    else:
        avg_income = average(income_sample)
        net_burn = avg_burn - avg_income
        runway = current_cash / net_burn if net_burn > 0 else math.inf

    status = runway_status(runway)
    return RunwayEstimate(
        current_cash=current_cash,
        avg_burn=avg_burn,
        avg_income=avg_income,
        net_burn=net_burn,
        runway_months=runway,
        status=status,
        risk_level=risk_level(status),
        sample_size=len(expenses),
    )


class BurnRateTracker:
    """A what-if sample of monthly expenses the user can edit line by line."""

    def __init__(
        self,
        current_cash: float = 0.0,
        expenses: Iterable[float] = (),
        incomes: Optional[Iterable[float]] = None,
    ):
        self._lock = threading.Lock()
        self._cash = float(current_cash)
        self._expenses = [float(x) for x in expenses]
        self._incomes = None if incomes is None else [float(x) for x in incomes]
        self._estimate = self._recompute()

    def _recompute(self) -> RunwayEstimate:
        return estimate_runway(self._cash, self._expenses, self._incomes)

    @property
    def estimate(self) -> RunwayEstimate:
        return self._estimate

    @property
    def expenses(self) -> list[float]:
        with self._lock:
            return list(self._expenses)

    def add_expense(self, amount: float) -> RunwayEstimate:
        if amount < 0:
            raise ValueError("Expense amount cannot be negative.")
        with self._lock:
            self._expenses.append(float(amount))
            self._estimate = self._recompute()
            return self._estimate

    def remove_expense(self, index: int) -> RunwayEstimate:
        with self._lock:
            del self._expenses[index]
            self._estimate = self._recompute()
            return self._estimate

    def set_current_cash(self, amount: float) -> RunwayEstimate:
        with self._lock:
            self._cash = float(amount)
            self._estimate = self._recompute()
            return self._estimate

    def set_incomes(self, incomes: Optional[Iterable[float]]) -> RunwayEstimate:
        """None switches back to gross burn."""
        with self._lock:
            self._incomes = None if incomes is None else [float(x) for x in incomes]
            self._estimate = self._recompute()
            return self._estimate


class RunwayService:
    def __init__(self, tx_dao: TransactionDAO, account_service: AccountService):
        self._tx_dao = tx_dao
        self._account_svc = account_service

    def get_monthly_history(self, months: int = 6, now: date | None = None) -> list[dict]:
        """[{month, income, expense}] for trailing months with activity, oldest first."""
        if months < 1:
            raise ValueError("months must be at least 1.")
        window = trailing_months(months, now or today())
        start, _ = month_range(window[0])
        _, end = month_range(window[-1])
        return self._tx_dao.get_monthly_totals(start, end)

    def estimate_from_history(
        self,
        months: int = 6,
        include_income: bool = False,
        current_cash: float | None = None,
        now: date | None = None,
    ) -> RunwayEstimate:
        history = self.get_monthly_history(months, now)
        if current_cash is None:
            current_cash = self._account_svc.get_total_balance()
        expenses = [row["expense"] for row in history]
        incomes = [row["income"] for row in history] if include_income else None
        estimate = estimate_runway(current_cash, expenses, incomes)
        logger.info(
            f"Runway over {len(history)} month(s): burn {estimate.avg_burn:.2f}/mo, "
            f"{estimate.runway_months:.1f} months ({estimate.status})"
        )
        return estimate

    def tracker_from_history(self, months: int = 6, now: date | None = None) -> BurnRateTracker:
        history = self.get_monthly_history(months, now)
        return BurnRateTracker(
            current_cash=self._account_svc.get_total_balance(),
            expenses=[row["expense"] for row in history],
        )

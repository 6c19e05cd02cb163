from dataclasses import dataclass
from typing import Optional


@dataclass
class Loan:
    id: str
    name: str
    principal_amount: float
    current_balance: float
    interest_rate: float        # annual percent, e.g. 5.5
    payment_amount: float = 0.0
    payment_frequency: str = "monthly"
    start_date: str = ""
    end_date: Optional[str] = None
    lender: str = ""
    notes: str = ""

    @property
    def monthly_interest(self) -> float:
        # Simple accrual on the current balance, not an amortization schedule
        return self.current_balance * (self.interest_rate / 100) / 12

    @property
    def progress(self) -> float:
        if self.principal_amount <= 0:
            return 0.0
        return (self.principal_amount - self.current_balance) / self.principal_amount

from dataclasses import dataclass


@dataclass
class Bill:
    id: str
    name: str
    amount: float
    next_due_date: str
    recurrence: str = "monthly"
    is_paid: bool = False
    auto_pay: bool = False

from dataclasses import dataclass

ACCOUNT_TYPES = ("checking", "savings", "credit", "investment", "cash", "other")

ACCOUNT_TYPE_LABELS = {
    "checking": "Checking",
    "savings": "Savings",
    "credit": "Credit",
    "investment": "Investment",
    "cash": "Cash",
    "other": "Other",
}


@dataclass
class Account:
    id: str
    name: str
    type: str = "checking"
    currency: str = "USD"
    initial_balance: float = 0.0
    created_at: str = ""

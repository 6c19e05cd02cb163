from dataclasses import dataclass
from typing import Optional


@dataclass
class Goal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    target_date: Optional[str] = None
    linked_account_id: Optional[str] = None

    @property
    def progress(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return min(self.current_amount / self.target_amount, 1.0)

    @property
    def remaining(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)

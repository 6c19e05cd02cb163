from dataclasses import dataclass


@dataclass
class Budget:
    id: str
    category_id: str
    period: str         # 'weekly' | 'monthly' | 'yearly'
    limit_amount: float
    category_name: str = ""
    color: str = "#888888"
    spent_amount: float = 0.0

    @property
    def percentage(self) -> float:
        if self.limit_amount <= 0:
            return 0.0
        return self.spent_amount / self.limit_amount

    @property
    def remaining(self) -> float:
        return max(0.0, self.limit_amount - self.spent_amount)

    @property
    def is_exceeded(self) -> bool:
        return self.spent_amount > self.limit_amount

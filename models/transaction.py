from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Transaction:
    id: str
    account_id: str
    type: str               # 'income' | 'expense' | 'transfer'
    amount: float           # magnitude; sign comes from type
    date: str               # 'YYYY-MM-DD'
    category_id: Optional[str] = None
    to_account_id: Optional[str] = None
    merchant: str = ""
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    tax_amount: float = 0.0
    created_at: str = ""
    # Joined display columns, not persisted
    category_name: str = ""
    account_name: str = ""
    to_account_name: str = ""

    @property
    def is_transfer(self) -> bool:
        return self.type == "transfer"

from dataclasses import dataclass


@dataclass
class Category:
    id: str
    name: str
    type: str           # 'income' | 'expense'
    color: str = "#888888"
    icon: str = ""
    is_default: bool = False

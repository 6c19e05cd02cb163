from dataclasses import dataclass


@dataclass
class Plan:
    id: str
    item_type: str          # 'transaction' | 'loan' | 'goal'
    item_id: str
    title: str
    scenario_if: str = ""
    scenario_else: str = ""
    what_if: str = ""
    outcome: str = ""
    months_overdue: int = 0

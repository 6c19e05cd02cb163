import math
from dataclasses import dataclass

RUNWAY_STATUSES = ("safe", "warning", "danger", "critical")


@dataclass(frozen=True)
class RunwayEstimate:
    """One consistent snapshot: every field comes from the same sample."""
    current_cash: float
    avg_burn: float
    avg_income: float
    net_burn: float
    runway_months: float    # math.inf when unbounded
    status: str
    risk_level: int
    sample_size: int

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.runway_months)

from dataclasses import dataclass
from typing import Optional

TAX_MODES = ("flat", "included")


@dataclass
class TaxRule:
    id: str
    rate: float
    category_id: Optional[str] = None
    mode: str = "flat"

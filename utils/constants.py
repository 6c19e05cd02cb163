APP_NAME = "Finance Desk"
APP_WIDTH = 1200
APP_HEIGHT = 750
DEFAULT_PROFILE = "default"


def db_file_for_profile(profile: str) -> str:
    return f"finance_{profile}.db"


DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
BUDGET_ALERT_THRESHOLD = 0.90
UPCOMING_BILL_DAYS = 7
HIGH_INTEREST_RATE = 7.0

DEFAULT_CATEGORIES = [
    {"id": "cat_salary",        "name": "Salary",        "type": "income",  "color": "#10B981", "icon": "money-bill"},
    {"id": "cat_freelance",     "name": "Freelance",     "type": "income",  "color": "#34D399", "icon": "laptop"},
    {"id": "cat_food",          "name": "Food & Dining", "type": "expense", "color": "#EF4444", "icon": "utensils"},
    {"id": "cat_transport",     "name": "Transport",     "type": "expense", "color": "#F59E0B", "icon": "bus"},
    {"id": "cat_housing",       "name": "Housing",       "type": "expense", "color": "#3B82F6", "icon": "home"},
    {"id": "cat_utilities",     "name": "Utilities",     "type": "expense", "color": "#6366F1", "icon": "bolt"},
    {"id": "cat_shopping",      "name": "Shopping",      "type": "expense", "color": "#EC4899", "icon": "shopping-bag"},
    {"id": "cat_entertainment", "name": "Entertainment", "type": "expense", "color": "#8B5CF6", "icon": "film"},
    {"id": "cat_health",        "name": "Health",        "type": "expense", "color": "#EF4444", "icon": "heart"},
    {"id": "cat_education",     "name": "Education",     "type": "expense", "color": "#14B8A6", "icon": "book"},
]

RUNWAY_STATUS_COLORS = {
    "safe":     "#4CAF50",
    "warning":  "#FF9800",
    "danger":   "#F44336",
    "critical": "#B71C1C",
}

IMPORT_STATUS_COLORS = {
    "add":    "#4CAF50",
    "update": "#2196F3",
    "error":  "#F44336",
}

TRANSACTION_TYPES = ["income", "expense", "transfer"]
BUDGET_PERIODS = ["weekly", "monthly", "yearly"]
BILL_RECURRENCES = ["weekly", "biweekly", "monthly", "quarterly", "yearly"]
LOAN_FREQUENCIES = ["monthly", "biweekly", "weekly"]
PLAN_ITEM_TYPES = ["transaction", "loan", "goal"]

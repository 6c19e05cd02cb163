from datetime import date, datetime, timedelta
import calendar
from loguru import logger
from utils.constants import DATE_FORMAT, MONTH_FORMAT

WEEKLY_WINDOW_DAYS = 7


def today() -> date:
    return date.today()


def today_str() -> str:
    return date.today().strftime(DATE_FORMAT)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def month_range(month_str: str) -> tuple[str, str]:
    """Return (first_day_str, last_day_str) for a YYYY-MM month."""
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    last_day = calendar.monthrange(d.year, d.month)[1]
    return (
        format_date(d),
        format_date(d.replace(day=last_day)),
    )


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def trailing_months(n: int, ref: date | None = None) -> list[str]:
    """The last n YYYY-MM strings ending with ref's month, oldest first."""
    start = (ref or today()).replace(day=1)
    return [format_month(add_months(start, -i)) for i in range(n - 1, -1, -1)]


def friendly_month(month_str: str) -> str:
    """Convert YYYY-MM to e.g. 'February 2026'."""
    d = parse_month(month_str)
    if d is None:
        return month_str
    return d.strftime("%B %Y")


def period_window(period: str, now: date | None = None) -> tuple[str, str]:
    """Return the (start, end) YYYY-MM-DD window a budget period sums over.

    weekly  -> the 7 days ending today
    monthly -> first of the current month through today
    yearly  -> 1 January through today
    Anything else falls back to the monthly window.
    """
    now = now or today()
    if period == "weekly":
        start = now - timedelta(days=WEEKLY_WINDOW_DAYS)
    elif period == "yearly":
        start = now.replace(month=1, day=1)
    else:
        if period != "monthly":
            logger.debug(f"Unknown budget period {period!r}, using monthly window")
        start = now.replace(day=1)
    return format_date(start), format_date(now)

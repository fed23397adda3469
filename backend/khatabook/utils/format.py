"""Display formatting shared by reports and exports."""
import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from khatabook.core.config import settings
from khatabook.db.base import utcnow


def format_currency(amount, symbol: Optional[str] = None) -> str:
    """Amount with thousands separators; paise shown only when non-zero."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    value = Decimal(str(amount or 0))
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        return f"{sign}{symbol}{value:,.0f}"
    return f"{sign}{symbol}{value:,.2f}"


def format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def format_datetime(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else ""


def format_phone(phone: str) -> str:
    """10-digit Indian numbers become '+91 XXXXX XXXXX'; anything else is returned as is."""
    cleaned = re.sub(r"\D", "", phone or "")
    if len(cleaned) == 10:
        return f"+91 {cleaned[:5]} {cleaned[5:]}"
    return phone


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def format_relative_time(value: datetime, now: Optional[datetime] = None) -> str:
    """'3 minutes ago', 'about 2 hours ago', 'in 1 day'. Both times naive UTC."""
    now = now or utcnow()
    delta = (now - value).total_seconds()
    minutes = round(abs(delta) / 60)

    if abs(delta) < 30:
        text = "less than a minute"
    elif minutes < 45:
        text = f"{minutes} minute" + ("s" if minutes != 1 else "")
    elif minutes < 90:
        text = "about 1 hour"
    elif minutes < 24 * 60:
        text = f"about {round(minutes / 60)} hours"
    elif minutes < 42 * 60:
        text = "1 day"
    elif minutes < 30 * 24 * 60:
        text = f"{round(minutes / (24 * 60))} days"
    elif minutes < 365 * 24 * 60:
        months = round(minutes / (30 * 24 * 60))
        prefix = "about " if months < 3 else ""
        text = f"{prefix}{months} month" + ("s" if months != 1 else "")
    else:
        years = minutes // (365 * 24 * 60)
        text = f"about {years} year" + ("s" if years != 1 else "")

    return f"in {text}" if delta < 0 else f"{text} ago"

"""
Input validation shared by the record store and the balance engine.
Every check raises ValidationError naming the offending field.
"""
import math
import re
from datetime import date, datetime
from typing import Optional

from chitfund import config
from chitfund.exceptions import ValidationError

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_YEAR_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
PREFIX_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]{0,9}$")


def require_text(data: dict, field: str) -> str:
    value = data.get(field)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field, f"{field} is required")
    return value.strip()


def optional_text(data: dict, field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be text")
    return value.strip() or None


def require_positive(data: dict, field: str) -> float:
    value = data.get(field)
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"{field} must be a positive number")
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(field, f"{field} must be a positive number")
    return number


def require_positive_int(data: dict, field: str) -> int:
    value = data.get(field)
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a positive whole number")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(field, f"{field} must be a positive whole number")
    if number != float(value) or number <= 0:
        raise ValidationError(field, f"{field} must be a positive whole number")
    return number


def parse_iso_date(value, field: str) -> date:
    if not isinstance(value, str) or not ISO_DATE_RE.match(value.strip()):
        raise ValidationError(field, f"{field} must be a date in YYYY-MM-DD format")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(field, f"{field} is not a valid calendar date")


def require_date(data: dict, field: str, allow_future: bool = True, today: date = None) -> str:
    parsed = parse_iso_date(data.get(field), field)
    if not allow_future and parsed > (today or date.today()):
        raise ValidationError(field, f"{field} cannot be in the future")
    return parsed.isoformat()


def require_month_year(value, field: str = "month_year") -> str:
    if not isinstance(value, str) or not MONTH_YEAR_RE.match(value.strip()):
        raise ValidationError(field, f"{field} must be in YYYY-MM format")
    return value.strip()


def validate_phone(value) -> str:
    if not isinstance(value, str) or not re.match(config.PHONE_PATTERN, value.strip()):
        raise ValidationError(
            "phone", "phone must be 7 to 15 characters of digits, spaces, +, - or parentheses"
        )
    return value.strip()


def validate_customer_code_format(value: str) -> str:
    """Check a client-supplied code against the configured format and range."""
    code = value.strip()
    match = (
        re.match(config.CUSTOMER_CODE_PATTERN, code)
        or re.match(rf"^{re.escape(config.CUSTOMER_CODE_PREFIX)}(\d+)$", code, re.IGNORECASE)
    )
    if not match:
        raise ValidationError("customer_code", f"customer_code '{code}' has an invalid format")
    number = int(match.group(1))
    if not config.CUSTOMER_CODE_MIN <= number <= config.CUSTOMER_CODE_MAX:
        raise ValidationError(
            "customer_code",
            f"customer_code number must be between {config.CUSTOMER_CODE_MIN} and {config.CUSTOMER_CODE_MAX}",
        )
    return code


def validate_prefix(value: str) -> str:
    """Scheme prefixes lead every scheme customer code, so they follow its format."""
    prefix = value.strip()
    if not PREFIX_RE.match(prefix):
        raise ValidationError("prefix", "prefix must start with a letter and contain only letters and digits")
    return prefix


def require_amounts(value, duration: int) -> list:
    """Per-month scheme amounts: one positive number per month."""
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("amounts", "amounts must be a non-empty list")
    amounts = [require_positive({"amounts": item}, "amounts") for item in value]
    if len(amounts) != duration:
        raise ValidationError("amounts", f"amounts must list one value for each of the {duration} months")
    return amounts


def format_money(value) -> str:
    """Render an amount with the currency symbol, dropping a zero fraction."""
    text = f"{float(value):.2f}".rstrip("0").rstrip(".")
    return f"{config.CURRENCY_SYMBOL}{text}"

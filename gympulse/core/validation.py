"""Field validation rules shared by the CRUD layer and the GraphQL inputs."""
import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from gympulse.core.conversions import coerce_decimal

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^[+]?[0-9]{10,15}$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s-]+$")
SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

MIN_CAPACITY = 1
MAX_CAPACITY = 100


def is_not_empty(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def sanitize(value: Optional[str]) -> Optional[str]:
    """Trim and collapse internal whitespace."""
    if value is None:
        return None
    return re.sub(r"\s+", " ", value.strip())


def is_valid_email(email: Optional[str]) -> bool:
    if not is_not_empty(email):
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_phone(phone: Optional[str]) -> bool:
    if not is_not_empty(phone):
        return False
    cleaned = re.sub(r"[\s()-]", "", phone.strip())
    return bool(PHONE_PATTERN.match(cleaned))


def is_valid_username(username: Optional[str]) -> bool:
    if not is_not_empty(username):
        return False
    cleaned = username.strip()
    return 3 <= len(cleaned) <= 20 and bool(USERNAME_PATTERN.match(cleaned))


def is_valid_name(name: Optional[str]) -> bool:
    if not is_not_empty(name):
        return False
    cleaned = name.strip()
    return 2 <= len(cleaned) <= 50 and bool(NAME_PATTERN.match(cleaned))


def is_valid_password(password: Optional[str]) -> bool:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    if password is None or len(password) < 8:
        return False
    return (
        any(ch.isupper() for ch in password)
        and any(ch.islower() for ch in password)
        and any(ch.isdigit() for ch in password)
    )


def password_strength_message(password: Optional[str]) -> str:
    if not password:
        return "Password is required"
    if len(password) < 8:
        return "Password must be at least 8 characters"
    if not any(ch.isupper() for ch in password):
        return "Password must contain at least one uppercase letter"
    if not any(ch.islower() for ch in password):
        return "Password must contain at least one lowercase letter"
    if not any(ch.isdigit() for ch in password):
        return "Password must contain at least one number"

    has_special = any(ch in SPECIAL_CHARS for ch in password)
    if len(password) >= 12 and has_special:
        return "Strong password"
    if len(password) >= 10:
        return "Good password"
    return "Weak password - consider adding special characters"


def is_valid_capacity(capacity: Optional[int], minimum: int = MIN_CAPACITY, maximum: int = MAX_CAPACITY) -> bool:
    if capacity is None or isinstance(capacity, bool):
        return False
    return minimum <= capacity <= maximum


def is_valid_time_range(start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None or end is None:
        return False
    return end > start


def time_ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open overlap: ranges that only touch at an endpoint do not overlap."""
    if None in (start1, end1, start2, end2):
        return False
    return start1 < end2 and end1 > start2


def is_positive_number(value: object) -> bool:
    amount = coerce_decimal(value)
    return amount is not None and amount > 0


def duration_minutes(start: Optional[datetime], end: Optional[datetime]) -> int:
    if start is None or end is None:
        return 0
    return int((end - start).total_seconds() // 60)


def format_duration(minutes: int) -> str:
    if minutes < 0:
        return "Invalid duration"
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def format_date(value) -> str:
    return value.strftime("%b %d, %Y") if value else ""


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%b %d, %Y %H:%M") if value else ""


# Composite validators: each returns a list of human readable messages,
# empty when the input is acceptable.

def validate_user_fields(
    *,
    username: Optional[str],
    email: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    phone: Optional[str] = None,
    password: Optional[str] = None,
    require_password: bool = True,
) -> List[str]:
    errors: List[str] = []
    if not is_valid_username(username):
        errors.append("Username must be 3-20 characters (letters, numbers, underscore)")
    if not is_valid_email(email):
        errors.append("Email address is not valid")
    if not is_valid_name(first_name):
        errors.append("First name must be 2-50 letters")
    if not is_valid_name(last_name):
        errors.append("Last name must be 2-50 letters")
    if is_not_empty(phone) and not is_valid_phone(phone):
        errors.append("Phone number must have 10-15 digits")
    if require_password or is_not_empty(password):
        if not is_valid_password(password):
            errors.append(password_strength_message(password))
    return errors


def validate_class_fields(
    *,
    class_name: Optional[str],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    max_capacity: Optional[int],
    trainer_id: Optional[int],
) -> List[str]:
    errors: List[str] = []
    if not is_not_empty(class_name):
        errors.append("Class name is required")
    if not is_valid_time_range(start_time, end_time):
        errors.append("End time must be after start time")
    if not is_valid_capacity(max_capacity):
        errors.append(f"Capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}")
    if not trainer_id or trainer_id <= 0:
        errors.append("A trainer must be assigned")
    return errors


def validate_trainer_fields(
    *,
    specialization: Optional[str],
    hourly_rate: object,
) -> List[str]:
    errors: List[str] = []
    if not is_not_empty(specialization):
        errors.append("Specialization is required")
    rate = coerce_decimal(hourly_rate)
    if rate is None or rate < 0:
        errors.append("Hourly rate must be zero or a positive number")
    return errors


def validate_payment_fields(*, amount: object, discount: object = None) -> List[str]:
    errors: List[str] = []
    if not is_positive_number(amount):
        errors.append("Amount must be a positive number")
        return errors
    value = coerce_decimal(amount)
    off = coerce_decimal(discount) if discount is not None else Decimal("0")
    if off is None or off < 0:
        errors.append("Discount cannot be negative")
    elif off > value:
        errors.append("Discount cannot exceed the amount")
    return errors

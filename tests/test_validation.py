from datetime import datetime, timedelta

from gympulse.core.validation import (
    format_duration,
    is_positive_number,
    is_valid_capacity,
    is_valid_email,
    is_valid_name,
    is_valid_password,
    is_valid_phone,
    is_valid_time_range,
    is_valid_username,
    password_strength_message,
    sanitize,
    time_ranges_overlap,
    validate_class_fields,
    validate_payment_fields,
    validate_user_fields,
)


def test_email_format():
    assert is_valid_email("jane.doe+gym@example.co")
    assert not is_valid_email("jane@example")
    assert not is_valid_email("  ")
    assert not is_valid_email(None)


def test_phone_accepts_common_separators():
    assert is_valid_phone("+1 (555) 123-4567")
    assert is_valid_phone("9876543210")
    assert not is_valid_phone("12345")
    assert not is_valid_phone("phone-number")


def test_username_and_name_rules():
    assert is_valid_username("gym_rat_01")
    assert not is_valid_username("ab")
    assert not is_valid_username("bad name")
    assert not is_valid_username("x" * 21)
    assert is_valid_name("Mary-Jane")
    assert not is_valid_name("J")
    assert not is_valid_name("R2D2")


def test_password_rules_and_strength():
    assert is_valid_password("Secret123")
    assert not is_valid_password("secret123")
    assert not is_valid_password("SECRET123")
    assert not is_valid_password("Secretabc")
    assert not is_valid_password("Sh0rt")

    assert password_strength_message("") == "Password is required"
    assert password_strength_message("abc") == "Password must be at least 8 characters"
    assert password_strength_message("lowercase1") == "Password must contain at least one uppercase letter"
    assert password_strength_message("Secret12!xyz") == "Strong password"
    assert password_strength_message("Secret1234") == "Good password"
    assert password_strength_message("Secret12").startswith("Weak password")


def test_capacity_bounds():
    assert is_valid_capacity(1)
    assert is_valid_capacity(100)
    assert not is_valid_capacity(0)
    assert not is_valid_capacity(101)
    assert not is_valid_capacity(None)


def test_time_ranges():
    start = datetime(2026, 5, 1, 9, 0)
    assert is_valid_time_range(start, start + timedelta(hours=1))
    assert not is_valid_time_range(start, start)
    assert time_ranges_overlap(start, start + timedelta(hours=1),
                               start + timedelta(minutes=30), start + timedelta(hours=2))
    # touching at the boundary is not an overlap
    assert not time_ranges_overlap(start, start + timedelta(hours=1),
                                   start + timedelta(hours=1), start + timedelta(hours=2))


def test_format_duration():
    assert format_duration(90) == "1h 30m"
    assert format_duration(60) == "1h"
    assert format_duration(45) == "45m"
    assert format_duration(-5) == "Invalid duration"


def test_sanitize_and_positive_number():
    assert sanitize("  Power   Yoga ") == "Power Yoga"
    assert sanitize(None) is None
    assert is_positive_number("10.50")
    assert not is_positive_number(0)
    assert not is_positive_number("abc")


def test_validate_user_fields_collects_every_problem():
    errors = validate_user_fields(
        username="x",
        email="nope",
        first_name="A",
        last_name="Smith",
        phone="123",
        password="weak",
    )
    assert len(errors) == 5
    assert "Email address is not valid" in errors


def test_validate_user_fields_optional_password():
    errors = validate_user_fields(
        username="valid_user",
        email="valid@example.com",
        first_name="Valid",
        last_name="User",
        password="",
        require_password=False,
    )
    assert errors == []


def test_validate_class_fields():
    start = datetime(2026, 5, 1, 9, 0)
    assert validate_class_fields(
        class_name="Spin", start_time=start, end_time=start + timedelta(hours=1),
        max_capacity=20, trainer_id=1,
    ) == []
    errors = validate_class_fields(
        class_name=" ", start_time=start, end_time=start,
        max_capacity=0, trainer_id=None,
    )
    assert len(errors) == 4


def test_validate_payment_fields():
    assert validate_payment_fields(amount="100", discount="10") == []
    assert validate_payment_fields(amount=0) == ["Amount must be a positive number"]
    assert validate_payment_fields(amount=100, discount=-1) == ["Discount cannot be negative"]
    assert validate_payment_fields(amount=100, discount=150) == ["Discount cannot exceed the amount"]

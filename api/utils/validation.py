"""Input validation, sanitizing and password policy helpers."""
from __future__ import annotations

import re

PASSWORD_MIN_LENGTH = 8
MAX_INPUT_LENGTH = 1000

NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]{7,20}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UNSAFE_CHARS_RE = re.compile(r"[<>'\"]")
SPECIAL_RE = re.compile(r"[^A-Za-z0-9]")


def sanitize_input(value: str | None) -> str:
    """Strip <>'" characters, trim and cap at 1000 chars."""
    if not value:
        return ""
    return UNSAFE_CHARS_RE.sub("", value).strip()[:MAX_INPUT_LENGTH]


def validate_name(name: str) -> bool:
    name = (name or "").strip()
    return 2 <= len(name) <= 100 and bool(NAME_RE.match(name))


def validate_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(phone or ""))


def validate_email(email: str) -> bool:
    email = (email or "").strip()
    if not email or len(email) > 255:
        return False
    if ".." in email or UNSAFE_CHARS_RE.search(email):
        return False
    return bool(EMAIL_RE.match(email))


def _password_checks(password: str) -> dict[str, bool]:
    return {
        "length": len(password) >= PASSWORD_MIN_LENGTH,
        "lowercase": bool(re.search(r"[a-z]", password)),
        "uppercase": bool(re.search(r"[A-Z]", password)),
        "number": bool(re.search(r"\d", password)),
        "special": bool(SPECIAL_RE.search(password)),
    }


PASSWORD_ERRORS = {
    "length": f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
    "lowercase": "Password must contain at least one lowercase letter",
    "uppercase": "Password must contain at least one uppercase letter",
    "number": "Password must contain at least one number",
    "special": "Password must contain at least one special character",
}


def validate_password(password: str) -> tuple[bool, list[str]]:
    """Return (ok, errors) for the password policy."""
    checks = _password_checks(password or "")
    errors = [PASSWORD_ERRORS[k] for k, ok in checks.items() if not ok]
    return not errors, errors


def password_strength(password: str) -> str:
    """weak / medium / strong by number of policy checks met."""
    score = sum(_password_checks(password or "").values())
    if score == 5:
        return "strong"
    if score >= 3:
        return "medium"
    return "weak"

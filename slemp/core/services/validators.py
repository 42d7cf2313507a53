"""
Input validators — pure accept/reject checks for wizard answers.

No I/O. Every function returns a bool (or a strength tier) and never
raises: a rejection means "reprompt", not "abort".
"""

from __future__ import annotations

import re
from enum import Enum

_PROJECT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_DOMAIN_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*[A-Za-z0-9]$")
_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
_DB_IDENT_RE = re.compile(r"^[A-Za-z0-9_]+$")
_WORKER_COUNT_RE = re.compile(r"[1-9][0-9]*")

PROJECT_NAME_MIN = 3
PROJECT_NAME_MAX = 50
DB_NAME_MAX = 64
DB_USER_MAX = 32
WORKERS_MIN = 1
WORKERS_MAX = 20
MANUAL_PASSWORD_MIN = 8


class PasswordStrength(str, Enum):
    """Strength tier of a candidate password."""

    WEAK = "WEAK"
    MEDIUM = "MEDIUM"
    STRONG = "STRONG"


def is_valid_project_name(name: str) -> bool:
    """Letters, digits, hyphen, underscore; 3–50 chars (safe as a path segment)."""
    if not isinstance(name, str):
        return False
    return (
        PROJECT_NAME_MIN <= len(name) <= PROJECT_NAME_MAX
        and _PROJECT_NAME_RE.match(name) is not None
    )


def is_valid_domain(domain: str) -> bool:
    """Dot-separated alnum/hyphen labels, at least one dot, alnum at both ends."""
    if not isinstance(domain, str) or "." not in domain:
        return False
    if _DOMAIN_RE.match(domain) is None:
        return False
    return all(label for label in domain.split("."))


def is_valid_email(email: str) -> bool:
    if not isinstance(email, str):
        return False
    return _EMAIL_RE.match(email) is not None


def is_valid_db_name(name: str) -> bool:
    if not isinstance(name, str):
        return False
    return 0 < len(name) <= DB_NAME_MAX and _DB_IDENT_RE.match(name) is not None


def is_valid_db_user(user: str) -> bool:
    if not isinstance(user, str):
        return False
    return 0 < len(user) <= DB_USER_MAX and _DB_IDENT_RE.match(user) is not None


def is_valid_worker_count(value: int | str) -> bool:
    """Integer (or ASCII digit string without leading zeros) within [1, 20]."""
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        if _WORKER_COUNT_RE.fullmatch(value) is None:
            return False
        value = int(value)
    if not isinstance(value, int):
        return False
    return WORKERS_MIN <= value <= WORKERS_MAX


def is_valid_manual_secret(secret: str) -> bool:
    """At least MANUAL_PASSWORD_MIN characters and no whitespace."""
    if not isinstance(secret, str):
        return False
    return len(secret) >= MANUAL_PASSWORD_MIN and not any(c.isspace() for c in secret)


def password_score(password: str) -> int:
    """Score a password: up to 2 points for length, 1 per character class."""
    score = 0
    if len(password) >= 12:
        score += 2
    elif len(password) >= 8:
        score += 1

    if any(c.islower() and c.isascii() for c in password):
        score += 1
    if any(c.isupper() and c.isascii() for c in password):
        score += 1
    if any(c.isdigit() and c.isascii() for c in password):
        score += 1
    if any(not (c.isascii() and c.isalnum()) for c in password):
        score += 1
    return score


def password_strength(password: str) -> PasswordStrength:
    """Classify a password.

    Returns:
        WEAK (score < 3, reject), MEDIUM (3–4, allow after explicit
        confirmation) or STRONG (>= 5, accept).
    """
    score = password_score(password)
    if score >= 5:
        return PasswordStrength.STRONG
    if score >= 3:
        return PasswordStrength.MEDIUM
    return PasswordStrength.WEAK

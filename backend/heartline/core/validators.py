import re
from typing import Optional

PASSWORD_SYMBOLS = "!@#$%^&*"

PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)(?=.*[!@#$%^&*])[A-Za-z\d!@#$%^&*]{8,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Leading "+", 1-3 digit country code, 10-15 digit subscriber number
PHONE_PATTERN = re.compile(r"^\+\d{1,3}\d{10,15}$")

EMAIL = "email"
PHONE = "phone"

PASSWORD_RULES = (
    "Password must be 8-20 characters long and contain at least one letter, "
    "one number, and one special character."
)


def is_valid_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.fullmatch(password or ""))


def classify_identifier(identifier: str) -> Optional[str]:
    """Return EMAIL or PHONE for the delivery channel, None if it is neither."""
    if not identifier:
        return None
    if EMAIL_PATTERN.fullmatch(identifier):
        return EMAIL
    if PHONE_PATTERN.fullmatch(identifier):
        return PHONE
    return None

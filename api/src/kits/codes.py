"""Redemption code generation."""

import secrets
import string


# Uppercase letters and digits; printed on kit boxes and QR labels
CODE_ALPHABET = string.ascii_uppercase + string.digits

CODE_LENGTH = 8


def generate_code(length: int = CODE_LENGTH) -> str:
    """Generate a random redemption code (e.g. "K7Q2ZP0M")."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str | None) -> str:
    """Trim user input; codes are matched exactly as generated."""
    return (code or "").strip()

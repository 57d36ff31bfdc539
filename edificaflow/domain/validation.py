from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str | None) -> bool:
    if not value or not value.strip():
        return True
    return bool(EMAIL_PATTERN.match(value))

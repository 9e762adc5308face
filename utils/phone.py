# utils/phone.py
import re

_NON_DIGITS = re.compile(r"\D")


def format_phone(raw) -> str:
    """Keep digits only: '+970 (599) 123-456' -> '970599123456'."""
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))

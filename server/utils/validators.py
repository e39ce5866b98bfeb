# Argument validators shared by the operations classes

from typing import Any, Optional


def validate_positive_integer(value: Any) -> bool:
    """
    True for ints (not bools) greater than zero
    """
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_non_negative_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_string_length(value: Any, min_length: int = 0, max_length: Optional[int] = None) -> bool:
    """
    Check a string's length after stripping surrounding whitespace.

    Args:
        value: string value
        min_length: minimum length
        max_length: maximum length, None for unbounded
    """
    if not isinstance(value, str):
        return False

    length = len(value.strip())
    if length < min_length:
        return False

    if max_length is not None and length > max_length:
        return False

    return True


def validate_phone_number(value: Any) -> bool:
    """Loose check: 6-20 chars of digits, spaces, dashes, parentheses and a leading +"""
    if not validate_string_length(value, 6, 20):
        return False
    stripped = value.strip()
    body = stripped[1:] if stripped.startswith('+') else stripped
    return all(ch.isdigit() or ch in ' -()' for ch in body)

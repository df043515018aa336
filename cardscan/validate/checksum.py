# cardscan/validate/checksum.py
from __future__ import annotations
import logging

log = logging.getLogger(__name__)

CARD_NUMBER_LENGTH = 16


def is_ascii_digits(s: str) -> bool:
    # str.isdigit() alone accepts '²', '٣' etc.
    return s.isascii() and s.isdigit()


def mask_card_number(digits: str) -> str:
    """'4539148803436467' -> '************6467'"""
    if not digits:
        return ""
    keep = digits[-4:]
    return "*" * (len(digits) - len(keep)) + keep


def validate(digits: str) -> bool:
    """
    Luhn check for a 16-digit card number.

    The last digit is the check digit. Over the remaining 15, walking
    right-to-left, every even-indexed digit (0 = rightmost) is doubled and
    reduced by 9 if it exceeds 9. The number is valid iff
    (sum * 9) % 10 equals the check digit.

    Anything that is not a 16 character ASCII digit string returns False.
    """
    if not isinstance(digits, str) or len(digits) != CARD_NUMBER_LENGTH or not is_ascii_digits(digits):
        size = len(digits) if isinstance(digits, str) else None
        log.debug("[checksum] not a %d-digit string (len=%s)", CARD_NUMBER_LENGTH, size)
        return False

    body, check = digits[:-1], int(digits[-1])
    total = 0
    for i, ch in enumerate(reversed(body)):
        d = int(ch)
        if i % 2 == 0:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return (total * 9) % 10 == check

# cardscan/ocr/digits.py
from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from cardscan.validate.checksum import CARD_NUMBER_LENGTH, is_ascii_digits, mask_card_number, validate

log = logging.getLogger(__name__)

GROUP_LENGTH = 4
GROUP_COUNT = CARD_NUMBER_LENGTH // GROUP_LENGTH


def digit_strings(raw_strings: Iterable[str]) -> List[str]:
    """Trimmed readings that consist of digits only (empty strings pass)."""
    out = []
    for s in raw_strings:
        t = s.strip()
        if t == "" or is_ascii_digits(t):
            out.append(t)
    return out


def extract_card_number(raw_strings: Iterable[str]) -> Optional[str]:
    """
    Turn raw OCR readings into a validated 16-digit card number, or None.

    A card number is read either as one 16-digit line or as exactly four
    4-digit groups (embossed layout), joined in reading order. A single
    16-digit reading wins over groups. The result must pass the checksum.
    """
    digits = digit_strings(raw_strings)

    number = next((d for d in digits if len(d) == CARD_NUMBER_LENGTH), None)
    if number is None:
        groups = [d for d in digits if len(d) == GROUP_LENGTH]
        if len(groups) != GROUP_COUNT:
            if groups:
                log.debug("[digits] %d groups of %d digits, need exactly %d",
                          len(groups), GROUP_LENGTH, GROUP_COUNT)
            return None
        number = "".join(groups)

    log.debug("[digits] candidate %s", mask_card_number(number))
    if not validate(number):
        log.debug("[digits] checksum rejected %s", mask_card_number(number))
        return None
    return number

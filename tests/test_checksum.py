from __future__ import annotations

import pytest

from cardscan.validate.checksum import CARD_NUMBER_LENGTH, mask_card_number, validate

VALID = "4539148803436467"


def test_known_valid_vectors():
    assert validate(VALID)
    assert validate("4111111111111111")
    assert validate("5555555555554444")


@pytest.mark.parametrize("digits", [
    "",
    "4539",
    "453914880343646",      # 15
    "45391488034364670",    # 17
    "453914880343646X",
    "4539 1488 0343 646",
    "４５３９１４８８０３４３６４６７",  # full-width digits
    "453914880343646²",
])
def test_rejects_wrong_length_or_non_digits(digits):
    assert validate(digits) is False


def test_rejects_non_string_without_raising():
    assert validate(None) is False  # type: ignore[arg-type]
    assert validate(4539148803436467) is False  # type: ignore[arg-type]


def test_checksum_mismatch():
    assert not validate("4539148803436468")
    assert not validate("4111111111111112")


def test_single_digit_mutations_are_caught():
    for pos in range(CARD_NUMBER_LENGTH):
        for d in "0123456789":
            if d == VALID[pos]:
                continue
            mutated = VALID[:pos] + d + VALID[pos + 1:]
            assert not validate(mutated), f"mutation at {pos} -> {d} passed"


def test_validate_is_idempotent():
    results = {validate(VALID) for _ in range(50)}
    assert results == {True}
    results = {validate("4539148803436468") for _ in range(50)}
    assert results == {False}


def test_mask_card_number():
    assert mask_card_number(VALID) == "************6467"
    assert mask_card_number("123") == "123"
    assert mask_card_number("") == ""

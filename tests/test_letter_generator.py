"""Tests for round letter generation and replacement."""
import random
from collections import Counter

import pytest

from wordrace.services.letter_generator import (
    TOUGH_LETTERS,
    VOWELS,
    generate_round_letters,
    has_tough_letter,
    is_tough_letter,
    is_valid_letter_set,
    replace_used_letter,
)


@pytest.mark.parametrize("seed", range(50))
def test_generated_sets_hold_invariants(seed):
    letters = generate_round_letters(random.Random(seed))

    assert len(letters) == 5
    assert sum(1 for letter in letters if letter in TOUGH_LETTERS) == 1
    assert any(letter in VOWELS for letter in letters)
    assert max(Counter(letters).values()) <= 2
    assert is_valid_letter_set(letters)


def test_generation_falls_back_when_every_draw_repeats():
    """A generator that always draws the same letter still yields a valid set."""

    class StuckRandom(random.Random):
        def choice(self, seq):
            return "A" if "A" in seq else seq[0]

    letters = generate_round_letters(StuckRandom(1))

    assert is_valid_letter_set(letters)


def test_is_tough_letter_is_case_insensitive():
    assert is_tough_letter("q")
    assert is_tough_letter("Z")
    assert not is_tough_letter("A")
    assert not is_tough_letter("")


def test_is_valid_letter_set_rejects_broken_sets():
    assert not is_valid_letter_set(["Q", "X", "A", "B", "C"])  # two tough letters
    assert not is_valid_letter_set(["Q", "B", "C", "D", "F"])  # no vowel
    assert not is_valid_letter_set(["Q", "A", "A", "A", "B"])  # letter three times
    assert not is_valid_letter_set(["Q", "A", "B", "C"])       # too short


def test_replacing_the_only_vowel_restores_a_vowel():
    letters = replace_used_letter(["Q", "A", "B", "C", "D"], "A", random.Random(3))

    assert len(letters) == 5
    assert any(letter in VOWELS for letter in letters)
    assert is_valid_letter_set(letters)


def test_replacing_the_tough_letter_restores_a_tough_letter():
    letters = replace_used_letter(["Q", "A", "B", "C", "D"], "Q", random.Random(4))

    assert has_tough_letter(letters)
    assert is_valid_letter_set(letters)


def test_replacing_a_common_letter_keeps_one_tough_letter():
    for seed in range(20):
        letters = replace_used_letter(["Z", "E", "B", "C", "D"], "B", random.Random(seed))
        assert is_valid_letter_set(letters), letters


def test_replacing_a_missing_letter_keeps_full_set_unchanged():
    letters = replace_used_letter(["Z", "E", "B", "C", "D"], "M")

    assert letters == ["Z", "E", "B", "C", "D"]

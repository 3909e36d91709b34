"""Answer grading.

An answer is correct iff the submitted text equals the item's word after
both are trimmed and case-folded. No partial credit, no fuzzy matching.
"""

from __future__ import annotations


def normalize_answer(text: str | None) -> str:
    """Trim surrounding whitespace and case-fold."""
    if text is None:
        return ""
    return text.strip().casefold()


def is_correct(submitted: str | None, word: str) -> bool:
    """Grade one answer against the expected word.

    Examples:
        is_correct("  Apple ", "apple")  -> True
        is_correct("Apple!", "apple")    -> False
    """
    return normalize_answer(submitted) == normalize_answer(word)

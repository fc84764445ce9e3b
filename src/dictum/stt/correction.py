"""Custom vocabulary correction applied to local transcripts.

Each word of the transcript is compared with the user's custom words using a
normalized Levenshtein distance. Candidates that also sound alike (same
Soundex code) get their distance scaled down, which catches mis-hearings such
as "wrold" for "world" that plain edit distance scores poorly.
"""

from __future__ import annotations

from collections.abc import Sequence

MAX_WORD_LENGTH = 50
MAX_LENGTH_DIFFERENCE = 5
PHONETIC_WEIGHT = 0.3

_SOUNDEX_CODES = {
    **dict.fromkeys("bfpv", "1"),
    **dict.fromkeys("cgjkqsxz", "2"),
    **dict.fromkeys("dt", "3"),
    "l": "4",
    **dict.fromkeys("mn", "5"),
    "r": "6",
}


def levenshtein(a: str, b: str) -> int:
    """Return the character edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def soundex(word: str) -> str:
    """Return the four-character American Soundex code of a word.

    Non-ASCII letters and other characters are ignored. An empty string is
    returned when the word holds no letters.
    """
    letters = [c for c in word.lower() if "a" <= c <= "z"]
    if not letters:
        return ""

    first = letters[0]
    code = [first.upper()]
    previous = _SOUNDEX_CODES.get(first, "")
    for c in letters[1:]:
        if c in "hw":
            continue
        digit = _SOUNDEX_CODES.get(c, "")
        if digit and digit != previous:
            code.append(digit)
            if len(code) == 4:
                break
        previous = digit
    return "".join(code).ljust(4, "0")


def sounds_alike(a: str, b: str) -> bool:
    """True when both words have the same, non-empty Soundex code."""
    code_a = soundex(a)
    return bool(code_a) and code_a == soundex(b)


def _split_token(token: str) -> tuple[str, str, str]:
    """Split a token into (leading punctuation, alphabetic core, trailing punctuation)."""
    start = 0
    while start < len(token) and not token[start].isalpha():
        start += 1
    end = len(token)
    while end > start and not token[end - 1].isalpha():
        end -= 1
    return token[:start], token[start:end], token[end:]


def _match_case(original: str, replacement: str) -> str:
    letters = [c for c in original if c.isalpha()]
    if letters and all(c.isupper() for c in letters):
        return replacement.upper()
    if letters and letters[0].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _best_candidate(core: str, candidates: Sequence[str]) -> tuple[int, float] | None:
    best: tuple[int, float] | None = None
    for index, candidate in enumerate(candidates):
        if abs(len(core) - len(candidate)) > MAX_LENGTH_DIFFERENCE:
            continue

        max_len = max(len(core), len(candidate))
        distance = levenshtein(core, candidate) / max_len if max_len else 1.0
        score = distance * PHONETIC_WEIGHT if sounds_alike(core, candidate) else distance

        if best is None or score < best[1]:
            best = (index, score)
    return best


def correct(text: str, words: Sequence[str], threshold: float) -> str:
    """Replace near-miss words in text with entries from a custom vocabulary.

    Args:
        text: Transcript to correct.
        words: Custom vocabulary, in priority order (earlier wins ties).
        threshold: Maximum combined score (0..1) for a replacement.

    Returns:
        Corrected text with tokens joined by single spaces, or text unchanged
        when words is empty.
    """
    if not words:
        return text

    candidates = [w.lower() for w in words]
    corrected: list[str] = []

    for token in text.split():
        prefix, core, suffix = _split_token(token)
        cleaned = core.lower()
        if not cleaned or len(cleaned) > MAX_WORD_LENGTH:
            corrected.append(token)
            continue

        best = _best_candidate(cleaned, candidates)
        if best is None or best[1] >= threshold:
            corrected.append(token)
            continue

        replacement = _match_case(core, candidates[best[0]])
        corrected.append(f"{prefix}{replacement}{suffix}")

    return " ".join(corrected)

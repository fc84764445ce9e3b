"""Application language codes and their provider equivalents."""

from __future__ import annotations

# Marker returned for "auto"; each provider turns it into its own
# language-detection switch.
DETECT = "detect"

# Codes the language selector offers that every provider accepts verbatim
COMMON_LANGUAGES = (
    "en", "es", "fr", "de", "it", "pt", "nl", "hi", "ja", "ko",
    "pl", "ru", "tr", "vi", "uk", "zh", "ar", "ca", "cs", "da",
    "fi", "el", "he", "hu", "id", "ms", "no", "ro", "sk", "sv",
    "th", "ur", "fa", "bg", "hr", "et", "lv", "lt", "mk", "sl",
    "sr", "az", "bn", "kn", "ml", "ta", "te", "cy",
)  # fmt: skip


def build_language_table(**overrides: str) -> dict[str, str]:
    """Build an exact-match table from the common codes plus overrides."""
    table = {code: code for code in COMMON_LANGUAGES}
    table.update(overrides)
    return table


def map_language(code: str, table: dict[str, str], fallback: str) -> str:
    """Translate an application language code for one provider.

    Args:
        code: Application code, e.g. "fr" or "auto".
        table: Provider's exact-match table.
        fallback: Provider's English code, used for unknown codes.

    Returns:
        Provider code, or DETECT for "auto".
    """
    if code == "auto":
        return DETECT
    return table.get(code, fallback)

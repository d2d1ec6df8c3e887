"""Small text helpers for raw provider payloads.

Profile search results arrive as one markdown-ish text blob per profile.
Before enrichment runs, a couple of fields (``Location:``, ``Position:``)
are pulled out of that blob so listing filters work on unprocessed
records.  Reverse job lookups need a country code guessed from the
free-text location the LLM extracted.  Enum-like fields the LLM fills
in are matched loosely against their allowed values.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Keyword table for reverse lookups.  Checked in order; first hit wins.
_COUNTRY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    (
        "gb",
        (
            "london", "manchester", "birmingham", "glasgow", "edinburgh",
            "bristol", "liverpool", "leeds", "sheffield", "newcastle",
            "brighton", "uk", "united kingdom", "england", "scotland",
            "wales", "northern ireland",
        ),
    ),
    (
        "us",
        (
            "new york", "los angeles", "chicago", "houston", "phoenix",
            "philadelphia", "san antonio", "san diego", "dallas", "san jose",
            "austin", "jacksonville", "san francisco", "columbus", "charlotte",
            "fort worth", "indianapolis", "seattle", "denver", "boston",
            "usa", "united states", "america",
        ),
    ),
    (
        "ca",
        (
            "toronto", "montreal", "vancouver", "calgary", "ottawa",
            "edmonton", "mississauga", "winnipeg", "quebec", "hamilton",
            "canada",
        ),
    ),
    (
        "au",
        (
            "sydney", "melbourne", "brisbane", "perth", "adelaide",
            "gold coast", "canberra", "sunshine coast", "wollongong",
            "australia",
        ),
    ),
    (
        "de",
        (
            "berlin", "hamburg", "munich", "cologne", "frankfurt",
            "stuttgart", "düsseldorf", "dortmund", "essen", "leipzig",
            "bremen", "dresden", "hanover", "nuremberg", "germany",
            "deutschland",
        ),
    ),
    (
        "fr",
        (
            "paris", "marseille", "lyon", "toulouse", "nice", "nantes",
            "strasbourg", "montpellier", "bordeaux", "lille", "rennes",
            "reims", "france",
        ),
    ),
]

UNKNOWN_COUNTRY = "unknown"


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with a single space and strip the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_profile_field(text: str | None, label: str) -> str | None:
    """Return the value of a ``<label>: value`` line in *text*, if present.

    Matching is case-insensitive on the label and stops at the end of the
    line.  Empty values count as missing.
    """
    if not text:
        return None
    pattern = re.compile(rf"^\s*{re.escape(label)}\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)
    match = pattern.search(text)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


def infer_country_code(location: str | None) -> str:
    """Guess an ISO-ish country code from a free-text job location.

    Returns ``"unknown"`` when no keyword matches.
    """
    if not location:
        return UNKNOWN_COUNTRY
    lowered = location.lower()
    for code, keywords in _COUNTRY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return code
    return UNKNOWN_COUNTRY


def _choice_key(value: str) -> str:
    key = _NON_ALNUM_RE.sub("", value.lower())
    if key.endswith("level") and len(key) > len("level"):
        key = key[: -len("level")]
    return key


def match_choice(
    value: str | None,
    choices: Iterable[str],
    aliases: Mapping[str, str] | None = None,
) -> str | None:
    """Map a loosely written label onto one of *choices*.

    Matching ignores case, anything that is not a letter or digit, and a
    trailing "level", so ``"mid-level"`` matches ``"Mid"`` and ``"onsite"``
    matches ``"On-site"``.
    *aliases* maps extra normalised keys (``"junior"``) to a choice.
    Returns ``None`` when nothing matches.
    """
    if not value:
        return None
    key = _choice_key(value)
    for choice in choices:
        if _choice_key(choice) == key:
            return choice
    if aliases:
        return aliases.get(key)
    return None

"""
Keyword tagging for interest-rate decision markets.

Both venue normalizers derive a keyword set per record from its titles so the
matcher can score candidate pairs without re-parsing text. Tags fall into four
groups:

  institution  fed / fomc / federal / us, ecb / european / euro, boj / japan / japanese
  direction    decrease / cut, increase / hike, nochange / unchanged
  magnitude    "<n>bps" (e.g. "25bps" from "25 bps decrease" or "50+ bps cut")
  time         three-letter month ("mar"), or the Opinion period verbatim
"""

from __future__ import annotations

import re

# Shared tokens that earn a scoring bonus in the matcher
INSTITUTION_TAGS = frozenset({"fed", "ecb", "boj"})
DIRECTION_TAGS = frozenset({"decrease", "increase", "nochange"})
MAGNITUDE_MARKER = "bps"

# Institution family → tags that identify it. Mixing families is never a match.
INSTITUTION_FAMILIES: dict[str, frozenset[str]] = {
    "fed": frozenset({"fed", "fomc"}),
    "ecb": frozenset({"ecb"}),
    "boj": frozenset({"boj"}),
}

MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "oct", "nov", "dec",
)

_BPS_RE = re.compile(r"(\d+)\+?\s*bps", re.IGNORECASE)
_DECREASE_RE = re.compile(r"decrease|cut", re.IGNORECASE)
_INCREASE_RE = re.compile(r"increase|hike", re.IGNORECASE)
_NO_CHANGE_RE = re.compile(r"no\s*change|unchanged", re.IGNORECASE)


# ------------------------------------------------------------------
# Venue-specific extraction
# ------------------------------------------------------------------

def extract_opinion_keywords(
    parent_title: str,
    child_title: str,
    period: str = "",
    country_code: str = "",
) -> frozenset[str]:
    """
    Tags for an Opinion option. Institution comes from the indicator title,
    direction/magnitude from the option title, time from the period field.
    """
    keywords: set[str] = set()

    if re.search(r"ECB|European Central Bank", parent_title, re.IGNORECASE):
        keywords.update(("ecb", "european", "euro"))
    if re.search(r"Fed|FOMC|Federal", parent_title, re.IGNORECASE):
        keywords.update(("fed", "fomc", "federal", "us"))
    if re.search(r"BoJ|Bank of Japan", parent_title, re.IGNORECASE):
        keywords.update(("boj", "japan", "japanese"))

    keywords.update(_option_tags(child_title))

    if period:
        keywords.add(period.lower())
    if country_code:
        keywords.add(country_code.lower())

    return frozenset(keywords)


def extract_polymarket_keywords(event_title: str, option_title: str) -> frozenset[str]:
    """
    Tags for a Polymarket option. Institution and month come from the event
    and option text combined, direction/magnitude from the option title only.
    """
    keywords: set[str] = set()
    combined = f"{event_title} {option_title}".lower()

    if re.search(r"ecb|european central", combined):
        keywords.update(("ecb", "european", "euro"))
    if re.search(r"fed|fomc|federal", combined):
        keywords.update(("fed", "fomc", "federal", "us"))
    if re.search(r"boj|bank of japan|japan", combined):
        keywords.update(("boj", "japan", "japanese"))

    keywords.update(_option_tags(option_title))

    # Whole words only: "decision" and "decrease" must not tag "dec"
    for name in _MONTH_NAMES:
        if re.search(rf"\b{name}\b", combined):
            keywords.add(name[:3])

    return frozenset(keywords)


def _option_tags(option_title: str) -> set[str]:
    tags: set[str] = set()
    if _DECREASE_RE.search(option_title):
        tags.update(("decrease", "cut"))
    if _INCREASE_RE.search(option_title):
        tags.update(("increase", "hike"))
    if _NO_CHANGE_RE.search(option_title):
        tags.update(("nochange", "unchanged"))
    bps = extract_bps(option_title)
    if bps is not None:
        tags.add(f"{bps}{MAGNITUDE_MARKER}")
    return tags


# ------------------------------------------------------------------
# Helpers shared with the matcher
# ------------------------------------------------------------------

def extract_bps(text: str) -> str | None:
    """'50+ bps decrease' → '50'. None when no basis-point figure is present."""
    m = _BPS_RE.search(text or "")
    return m.group(1) if m else None


def institution_families(keywords: frozenset[str] | set[str]) -> set[str]:
    """Return every institution family the keyword set references."""
    return {
        family for family, tags in INSTITUTION_FAMILIES.items()
        if keywords & tags
    }


def first_month(keywords: frozenset[str] | set[str]) -> str | None:
    """First month tag in calendar order, or None."""
    for month in MONTHS:
        if month in keywords:
            return month
    return None


def normalize_option_title(title: str) -> str:
    """Canonical form for exact option comparison: '50+ BPS  cut' → '50plus bps cut'."""
    t = re.sub(r"\s+", " ", (title or "").lower())
    t = re.sub(r"no\s*change", "nochange", t)
    t = t.replace("+", "plus")
    return t.strip()


def is_similar_option(title1: str, title2: str) -> bool:
    """
    Fuzzy option match: same bps figure with the same direction flags,
    or both options describe "no change".
    """
    t1 = (title1 or "").lower()
    t2 = (title2 or "").lower()

    bps1 = extract_bps(t1)
    bps2 = extract_bps(t2)
    if bps1 is not None and bps1 == bps2:
        same_decrease = bool(_DECREASE_RE.search(t1)) == bool(_DECREASE_RE.search(t2))
        same_increase = bool(_INCREASE_RE.search(t1)) == bool(_INCREASE_RE.search(t2))
        if same_decrease and same_increase:
            return True

    return bool(_NO_CHANGE_RE.search(t1)) and bool(_NO_CHANGE_RE.search(t2))

"""
Normalization of free-text form input.

Category input comes from a dropdown that uses syllabus wording ("Kiso Kumite")
and from callers that infer the category from the form name, so both paths are
reduced to the FormCategory enum through explicit tables.
"""

import re
from typing import Any, Dict, Optional

from app.core.enums import FormCategory

# Keys are case-folded and whitespace-collapsed. Anything else maps to OTHER.
CATEGORY_SYNONYMS: Dict[str, FormCategory] = {
    "kata": FormCategory.KATA,
    "bunkai": FormCategory.BUNKAI,
    "kumite": FormCategory.KUMITE,
    "kiso kumite": FormCategory.KUMITE,
    "weapon": FormCategory.WEAPON,
    "other": FormCategory.OTHER,
}

DEFAULT_CATEGORY = FormCategory.OTHER

_WEAPON_WORDS = re.compile(r"\b(bo|sai|tonfa|nunchaku|nunti[- ]?bo|tsuken|kama|knife)\b")


def normalize_name_key(value: Any) -> str:
    """Comparison key for names: case-folded, inner whitespace collapsed."""
    return " ".join(str(value or "").split()).casefold()


def normalize_category(value: Any) -> FormCategory:
    if isinstance(value, FormCategory):
        return value
    return CATEGORY_SYNONYMS.get(normalize_name_key(value), DEFAULT_CATEGORY)


def infer_category(name: Any) -> FormCategory:
    """Guess the category from a form name, e.g. "Sai Kata #1" -> Weapon."""
    s = normalize_name_key(name)
    if re.search(r"kiso\s*kumite", s):
        return FormCategory.KUMITE
    if "bunkai" in s:
        return FormCategory.BUNKAI
    if _WEAPON_WORDS.search(s):
        return FormCategory.WEAPON
    if "kata" in s:
        return FormCategory.KATA
    return FormCategory.OTHER


def normalize_belt_color(value: Any) -> Optional[str]:
    color = str(value or "").strip().lower()
    return color or None

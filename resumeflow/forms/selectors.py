"""Selector patterns for logical form fields on unknown application pages."""
from enum import Enum
from typing import Optional


class FieldKind(Enum):
    """How a located field is acted on."""
    TEXT = "text"
    FILE = "file"
    ACTION = "action"


# Fill order is fixed; submit always comes last
FIELD_ORDER: list[str] = ["name", "email", "resume", "submit"]

FIELD_KINDS: dict[str, FieldKind] = {
    "name": FieldKind.TEXT,
    "email": FieldKind.TEXT,
    "resume": FieldKind.FILE,
    "submit": FieldKind.ACTION,
}

# Logical field -> selectors, most specific first
FIELD_SELECTORS: dict[str, list[str]] = {
    "name": [
        'input[name*="name" i]',
        'input[placeholder*="name" i]',
    ],
    "email": [
        'input[type="email"]',
        'input[name*="email" i]',
    ],
    "resume": [
        'input[type="file"]',
        'input[accept=".pdf"]',
    ],
    "submit": [
        'button[type="submit"]',
        'input[type="submit"]',
    ],
}


def build_selector_table(
    extra: Optional[dict[str, list[str]]] = None,
) -> dict[str, list[str]]:
    """Default table with configured selectors appended after the built-ins.

    Unknown field names in `extra` are ignored; they have no fill action.
    """
    table = {name: list(selectors) for name, selectors in FIELD_SELECTORS.items()}
    for name, selectors in (extra or {}).items():
        if name not in table:
            continue
        for selector in selectors:
            if selector not in table[name]:
                table[name].append(selector)
    return table

"""Form handling: selector table, field locator and form filler."""
from .filler import FieldOutcome, FillOutcome, FormFiller
from .locator import FieldLocator, LocatedField
from .selectors import FIELD_ORDER, FIELD_SELECTORS, FieldKind, build_selector_table

__all__ = [
    "FieldOutcome",
    "FillOutcome",
    "FormFiller",
    "FieldLocator",
    "LocatedField",
    "FIELD_ORDER",
    "FIELD_SELECTORS",
    "FieldKind",
    "build_selector_table",
]

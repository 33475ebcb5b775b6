"""Unit classification and quantity scaling.

Estimator units are free text. Bulk foods are priced per "100g" or "100ml",
so their canonical quantity counts hundreds: 1.5 canonical is shown as 150 in
the quantity input. Discrete units ("1 slice", "1 large egg") are shown as-is.
"""

from decimal import Decimal
from enum import Enum

_BULK_SCALE = Decimal(100)


class UnitKind(str, Enum):
    """How a unit string is interpreted for display."""

    BULK_WEIGHT = "bulk_weight"
    BULK_VOLUME = "bulk_volume"
    DISCRETE = "discrete"

    @property
    def is_bulk(self) -> bool:
        return self is not UnitKind.DISCRETE


def classify_unit(unit: str) -> UnitKind:
    """Classify a unit by substring; "100g" wins over "100ml" if both appear."""
    if "100g" in unit:
        return UnitKind.BULK_WEIGHT
    if "100ml" in unit:
        return UnitKind.BULK_VOLUME
    return UnitKind.DISCRETE


def display_suffix(unit: str) -> str:
    """Return the label shown next to the quantity input."""
    kind = classify_unit(unit)
    if kind is UnitKind.BULK_WEIGHT:
        return "g"
    if kind is UnitKind.BULK_VOLUME:
        return "ml"
    if unit.startswith("1 "):
        return unit[2:].lstrip()
    return unit


def input_step(unit: str) -> float:
    """Return the step of the quantity input for a unit."""
    return 10.0 if classify_unit(unit).is_bulk else 0.5


def display_from_canonical(quantity: float, unit: str) -> float:
    """Scale a stored quantity to the value shown in the quantity input."""
    if not classify_unit(unit).is_bulk:
        return quantity
    return float(Decimal(repr(float(quantity))) * _BULK_SCALE)


def canonical_from_display(value: float, unit: str) -> float:
    """Convert a quantity input value back to the stored quantity."""
    if not classify_unit(unit).is_bulk:
        return value
    return float(Decimal(repr(float(value))) / _BULK_SCALE)

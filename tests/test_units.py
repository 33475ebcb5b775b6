"""Tests for unit classification and quantity scaling."""

import pytest

from macro_snap.domain.units import (
    UnitKind,
    canonical_from_display,
    classify_unit,
    display_from_canonical,
    display_suffix,
    input_step,
)


@pytest.mark.parametrize(
    ("unit", "kind"),
    [
        ("100g", UnitKind.BULK_WEIGHT),
        ("100ml", UnitKind.BULK_VOLUME),
        ("1 large egg", UnitKind.DISCRETE),
        ("1 cup", UnitKind.DISCRETE),
        ("per 100g cooked", UnitKind.BULK_WEIGHT),
        ("100 grams", UnitKind.DISCRETE),
    ],
)
def test_classify_unit(unit: str, kind: UnitKind) -> None:
    assert classify_unit(unit) is kind


def test_weight_wins_when_both_bulk_markers_present() -> None:
    assert classify_unit("100g or 100ml") is UnitKind.BULK_WEIGHT
    assert display_suffix("100ml / 100g") == "g"


def test_display_suffix() -> None:
    assert display_suffix("100g") == "g"
    assert display_suffix("100ml") == "ml"
    assert display_suffix("1 large egg") == "large egg"
    assert display_suffix("1 slice") == "slice"
    assert display_suffix("slice") == "slice"
    assert display_suffix("2 slices") == "2 slices"


def test_input_step_depends_on_kind() -> None:
    assert input_step("100g") == 10
    assert input_step("100ml") == 10
    assert input_step("1 slice") == 0.5


def test_bulk_display_scales_by_hundred() -> None:
    assert display_from_canonical(1.5, "100g") == 150
    assert display_from_canonical(0.07, "100g") == 7
    assert canonical_from_display(150, "100ml") == 1.5
    assert canonical_from_display(7, "100g") == 0.07


@pytest.mark.parametrize("quantity", [0.0, 0.01, 0.07, 0.1, 0.29, 1.0, 1.5, 2.35, 12.3])
def test_bulk_round_trip(quantity: float) -> None:
    shown = display_from_canonical(quantity, "100g")

    assert canonical_from_display(shown, "100g") == pytest.approx(quantity, abs=1e-9)


def test_discrete_transforms_are_identity() -> None:
    assert display_from_canonical(2.5, "1 slice") == 2.5
    assert canonical_from_display(3, "1 large egg") == 3

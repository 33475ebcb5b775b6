"""Domain models for meal analysis and the editable item ledger."""

import math
from dataclasses import dataclass, replace
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

Confidence = Literal["High", "Medium", "Low"]


class EstimatedItem(BaseModel):
    """Single food item as reported by the estimator."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: str
    unit: str
    quantity: float = 1.0
    base_protein: float = Field(alias="baseProtein")
    base_calories: float = Field(alias="baseCalories")

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, value: object) -> object:
        return 1.0 if value is None else value

    @field_validator("quantity", "base_protein", "base_calories")
    @classmethod
    def _clamp_negative(cls, value: float) -> float:
        return max(value, 0.0)


class MealAnalysis(BaseModel):
    """Structured estimator response. Totals and confidence are advisory."""

    model_config = ConfigDict(populate_by_name=True)

    meal_name: str = Field(alias="mealName")
    items: list[EstimatedItem]
    total_protein: float | None = Field(default=None, alias="totalProtein")
    total_calories: float | None = Field(default=None, alias="totalCalories")
    confidence: Confidence | None = None


@dataclass(frozen=True)
class FoodItem:
    """Food item held in the ledger, with a canonical quantity."""

    id: UUID
    name: str
    unit: str
    quantity: float
    base_protein: float
    base_calories: float

    @property
    def protein(self) -> float:
        return self.base_protein * self.quantity

    @property
    def calories(self) -> float:
        return self.base_calories * self.quantity


@dataclass(frozen=True)
class MacroTotals:
    """Aggregate protein (g) and calories (kcal)."""

    protein: float = 0.0
    calories: float = 0.0


def non_negative(value: float) -> float:
    """Clamp a numeric input to zero, rejecting NaN and infinities."""
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return max(number, 0.0)


def non_blank(name: str) -> str:
    """Reject names that are empty after trimming."""
    if not name.strip():
        raise ValueError("Item name must not be blank")
    return name


@dataclass(frozen=True)
class NameEdit:
    value: str

    def apply(self, item: FoodItem) -> FoodItem:
        return replace(item, name=non_blank(self.value))


@dataclass(frozen=True)
class UnitEdit:
    value: str

    def apply(self, item: FoodItem) -> FoodItem:
        return replace(item, unit=self.value)


@dataclass(frozen=True)
class QuantityEdit:
    """Set the canonical quantity (already converted from the display value)."""

    value: float

    def apply(self, item: FoodItem) -> FoodItem:
        return replace(item, quantity=non_negative(self.value))


@dataclass(frozen=True)
class BaseProteinEdit:
    value: float

    def apply(self, item: FoodItem) -> FoodItem:
        return replace(item, base_protein=non_negative(self.value))


@dataclass(frozen=True)
class BaseCaloriesEdit:
    value: float

    def apply(self, item: FoodItem) -> FoodItem:
        return replace(item, base_calories=non_negative(self.value))


ItemEdit = NameEdit | UnitEdit | QuantityEdit | BaseProteinEdit | BaseCaloriesEdit

"""Request models for the meal API."""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from macro_snap.domain.meals import (
    BaseCaloriesEdit,
    BaseProteinEdit,
    ItemEdit,
    NameEdit,
    QuantityEdit,
    UnitEdit,
)
from macro_snap.domain.units import canonical_from_display

_NUMERIC_FIELDS = {"quantity", "baseProtein", "baseCalories"}


class AddItemRequest(BaseModel):
    """Defaults for a user-entered item the estimator missed."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    name: str = "New Food"
    unit: str = "1 serving"
    quantity: float = Field(default=1.0, ge=0)
    base_protein: float = Field(default=0.0, ge=0, alias="baseProtein")
    base_calories: float = Field(default=0.0, ge=0, alias="baseCalories")

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class ItemUpdateRequest(BaseModel):
    """Single-field update; ``quantity`` is the value shown in the input box."""

    field: Literal["name", "unit", "quantity", "baseProtein", "baseCalories"]
    value: str | float

    @field_validator("value", mode="before")
    @classmethod
    def _reject_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("value must be a string or a number")
        return value

    @model_validator(mode="after")
    def _check_value_type(self) -> "ItemUpdateRequest":
        if self.field in _NUMERIC_FIELDS:
            if isinstance(self.value, str):
                raise ValueError(f"{self.field} must be a number")
            if not math.isfinite(self.value) or self.value < 0:
                raise ValueError(f"{self.field} must be a non-negative number")
        elif not isinstance(self.value, str):
            raise ValueError(f"{self.field} must be a string")
        elif self.field == "name" and not self.value.strip():
            raise ValueError("name must not be blank")
        return self

    def to_edit(self, unit: str) -> ItemEdit:
        """Convert to a typed ledger edit for an item with the given unit."""
        if self.field == "name":
            return NameEdit(str(self.value))
        if self.field == "unit":
            return UnitEdit(str(self.value))
        if self.field == "quantity":
            return QuantityEdit(canonical_from_display(float(self.value), unit))
        if self.field == "baseProtein":
            return BaseProteinEdit(float(self.value))
        return BaseCaloriesEdit(float(self.value))

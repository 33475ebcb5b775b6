"""Meal session coordinating estimator calls with the item ledger."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from uuid import UUID

from macro_snap.domain.errors import EstimatorError, MealError, OperationInProgressError
from macro_snap.domain.meals import (
    Confidence,
    FoodItem,
    ItemEdit,
    MacroTotals,
    MealAnalysis,
)
from macro_snap.domain.units import (
    display_from_canonical,
    display_suffix,
    input_step,
)
from macro_snap.services.estimator import EstimateResult, EstimatorService
from macro_snap.services.ledger import ItemLedger

_logger = logging.getLogger(__name__)

_BUSY_MESSAGE = "Another analysis is already in progress."


@dataclass(frozen=True)
class ItemView:
    """Render-ready view of a ledger item."""

    id: UUID
    name: str
    unit: str
    quantity: float
    display_value: float
    display_suffix: str
    input_step: float
    base_protein: float
    base_calories: float
    protein: float
    calories: float


@dataclass(frozen=True)
class MealView:
    """Render-ready snapshot of the whole session."""

    meal_name: str | None
    confidence: Confidence | None
    items: list[ItemView]
    totals: MacroTotals
    busy: bool
    error: str | None


@dataclass
class MealSession:
    """Single-user meal session.

    Image analysis and recalculation share one in-flight flag, so at most one
    estimator call can replace the ledger at a time. While it is set, further
    estimator requests and item edits are rejected, not queued.
    """

    estimator: EstimatorService
    ledger: ItemLedger = field(default_factory=ItemLedger)
    meal_name: str | None = None
    confidence: Confidence | None = None
    last_error: str | None = None
    _busy: bool = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def analyze_image(
        self,
        image_bytes: bytes | None,
        mime_type: str | None = None,
        context: str | None = None,
    ) -> MealAnalysis | MealError:
        """Estimate a meal photo and load the result into the ledger."""
        return await self._run(
            "analyze",
            lambda: self.estimator.analyze_image(image_bytes, mime_type, context),
        )

    async def recalculate(self) -> MealAnalysis | MealError:
        """Re-estimate the current items and replace the ledger wholesale.

        Names and quantities are sent as queries; any edits to base macros are
        discarded in favour of the new estimate.
        """
        queries = build_queries(self.ledger.items)
        return await self._run(
            "recalculate", lambda: self.estimator.recalculate(queries)
        )

    def add_item(  # noqa: PLR0913
        self,
        name: str = "New Food",
        unit: str = "1 serving",
        quantity: float = 1.0,
        base_protein: float = 0.0,
        base_calories: float = 0.0,
    ) -> FoodItem | OperationInProgressError:
        """Append a user-entered item unless an estimator call is pending."""
        if self._busy:
            return self._reject("add")
        return self.ledger.add(
            name=name,
            unit=unit,
            quantity=quantity,
            base_protein=base_protein,
            base_calories=base_calories,
        )

    def update_item(
        self, item_id: UUID, edit: ItemEdit
    ) -> FoodItem | OperationInProgressError | None:
        """Edit one item field unless an estimator call is pending."""
        if self._busy:
            return self._reject("update")
        return self.ledger.update(item_id, edit)

    def remove_item(self, item_id: UUID) -> bool | OperationInProgressError:
        """Remove an item unless an estimator call is pending."""
        if self._busy:
            return self._reject("remove")
        return self.ledger.remove(item_id)

    def _reject(self, action: str) -> OperationInProgressError:
        _logger.info("Rejected %s: another operation is in flight", action)
        return OperationInProgressError(_BUSY_MESSAGE)

    async def _run(
        self, action: str, call: Callable[[], Awaitable[EstimateResult]]
    ) -> MealAnalysis | MealError:
        if self._busy:
            return self._reject(action)
        self._busy = True
        self.last_error = None
        try:
            result = await call()
        finally:
            self._busy = False
        if isinstance(result, EstimatorError):
            self.last_error = result.message
            _logger.warning("Meal %s failed: %s (%s)", action, result, result.detail)
            return result
        self.ledger.replace_all(result.items)
        self.meal_name = result.meal_name
        self.confidence = result.confidence
        _logger.info("Meal %s loaded %s items", action, len(result.items))
        return result

    def view(self) -> MealView:
        """Build the current render-ready snapshot."""
        return MealView(
            meal_name=self.meal_name,
            confidence=self.confidence,
            items=[item_view(item) for item in self.ledger.items],
            totals=self.ledger.totals(),
            busy=self._busy,
            error=self.last_error,
        )


def build_queries(items: Sequence[FoodItem]) -> list[str]:
    """Build one ``"{quantity}x {name}"`` query per item, canonical quantity."""
    return [f"{_format_number(item.quantity)}x {item.name}" for item in items]


def item_view(item: FoodItem) -> ItemView:
    """Project a ledger item through the unit model for display."""
    return ItemView(
        id=item.id,
        name=item.name,
        unit=item.unit,
        quantity=item.quantity,
        display_value=display_from_canonical(item.quantity, item.unit),
        display_suffix=display_suffix(item.unit),
        input_step=input_step(item.unit),
        base_protein=item.base_protein,
        base_calories=item.base_calories,
        protein=item.protein,
        calories=item.calories,
    )


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))

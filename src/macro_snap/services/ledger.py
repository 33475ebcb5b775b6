"""In-memory ledger of the food items in the current meal."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from macro_snap.domain.meals import (
    EstimatedItem,
    FoodItem,
    ItemEdit,
    MacroTotals,
    non_blank,
    non_negative,
)


@dataclass
class ItemLedger:
    """Ordered collection of food items with derived totals.

    Totals are never stored: every call to ``totals`` sums the current items.
    Ids are fresh ``uuid4`` values and do not survive ``replace_all``.
    """

    _items: list[FoodItem] = field(default_factory=list)
    generation: int = 0

    @property
    def items(self) -> tuple[FoodItem, ...]:
        """Snapshot of the current items in order."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: UUID) -> FoodItem | None:
        """Return the item with the given id, if present."""
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def replace_all(self, items: Iterable[EstimatedItem]) -> list[FoodItem]:
        """Discard every item and ingest new ones with fresh ids, in order."""
        self._items = [
            FoodItem(
                id=uuid4(),
                name=item.name,
                unit=item.unit,
                quantity=item.quantity,
                base_protein=item.base_protein,
                base_calories=item.base_calories,
            )
            for item in items
        ]
        self.generation += 1
        return list(self._items)

    def update(self, item_id: UUID, edit: ItemEdit) -> FoodItem | None:
        """Apply a single-field edit; unknown ids are ignored."""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                updated = edit.apply(item)
                self._items[index] = updated
                return updated
        return None

    def remove(self, item_id: UUID) -> bool:
        """Remove an item if present and report whether anything changed."""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[index]
                return True
        return False

    def add(  # noqa: PLR0913
        self,
        name: str = "New Food",
        unit: str = "1 serving",
        quantity: float = 1.0,
        base_protein: float = 0.0,
        base_calories: float = 0.0,
    ) -> FoodItem:
        """Append a user-entered item the estimator missed."""
        item = FoodItem(
            id=uuid4(),
            name=non_blank(name),
            unit=unit,
            quantity=non_negative(quantity),
            base_protein=non_negative(base_protein),
            base_calories=non_negative(base_calories),
        )
        self._items.append(item)
        return item

    def totals(self) -> MacroTotals:
        """Sum protein and calories over the current items."""
        return MacroTotals(
            protein=sum((item.protein for item in self._items), 0.0),
            calories=sum((item.calories for item in self._items), 0.0),
        )

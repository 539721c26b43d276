from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import InvalidRequestError

LOCATIONS: Tuple[str, ...] = ("pantry", "fridge", "freezer")
MEAL_SLOTS: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "dessert")
MAX_PLAN_DAYS = 7
UNKNOWN_QUANTITY = "unknown"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class InventoryItem:
    """A persisted inventory row as handed over by the storage layer."""

    id: Optional[int]
    name: str
    category: str  # pantry | fridge | freezer
    quantity: Optional[str] = None
    added_at: Optional[str] = None
    expiry_estimate: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class DetectedItem:
    name: str
    quantity: str
    expiry_estimate: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectedItem":
        return cls(
            name=_text(data.get("name")),
            quantity=_text(data.get("quantity")),
            expiry_estimate=_text(data.get("expiry_estimate")),
        )

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "quantity": self.quantity, "expiry_estimate": self.expiry_estimate}

    def confirm(self, location: str) -> InventoryItem:
        """Unsaved InventoryItem for this detection once the user accepts it."""
        return InventoryItem(
            id=None,
            name=self.name,
            category=location,
            quantity=self.quantity or None,
            expiry_estimate=self.expiry_estimate or None,
        )


@dataclass(frozen=True)
class InventoryLine:
    name: str
    quantity: str
    category: str

    @classmethod
    def coerce(cls, value: Union["InventoryLine", InventoryItem, Mapping[str, Any]]) -> "InventoryLine":
        if isinstance(value, InventoryLine):
            line = value
        elif isinstance(value, InventoryItem):
            line = cls(_text(value.name), _text(value.quantity) or UNKNOWN_QUANTITY, _text(value.category))
        elif isinstance(value, Mapping):
            line = cls(
                name=_text(value.get("name")),
                quantity=_text(value.get("quantity")) or UNKNOWN_QUANTITY,
                category=_text(value.get("category") or value.get("location")),
            )
        else:
            raise TypeError(f"Cannot build an inventory line from {type(value).__name__}")
        if not line.name or not line.category:
            raise InvalidRequestError(f"Inventory record needs a name and a category: {value!r}")
        return line

    def render(self) -> str:
        return f"- {self.name} ({self.quantity}) [{self.category}]"


@dataclass
class MealEntry:
    meal: str
    ingredients: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "MealEntry":
        if isinstance(data, str):
            return cls(meal=data.strip())
        if not isinstance(data, Mapping):
            return cls(meal="")
        raw_ingredients = data.get("ingredients")
        if isinstance(raw_ingredients, list):
            ingredients = [_text(i) for i in raw_ingredients if _text(i)]
        else:
            ingredients = []
        notes = data.get("notes")
        return cls(
            meal=_text(data.get("meal")),
            ingredients=ingredients,
            notes=_text(notes) if notes is not None else None,
        )

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"meal": self.meal, "ingredients": list(self.ingredients)}
        if self.notes is not None:
            out["notes"] = self.notes
        return out


@dataclass
class MealDay:
    day: str
    breakfast: MealEntry
    lunch: MealEntry
    dinner: MealEntry
    dessert: MealEntry

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MealDay":
        slots = {slot: MealEntry.from_dict(data.get(slot) or {}) for slot in MEAL_SLOTS}
        return cls(day=_text(data.get("day")), **slots)

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"day": self.day}
        for slot in MEAL_SLOTS:
            out[slot] = getattr(self, slot).as_dict()
        return out


@dataclass
class MealPlan:
    days: List[MealDay] = field(default_factory=list)
    grocery_list: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "MealPlan":
        return cls(days=[], grocery_list=[])

    def is_empty(self) -> bool:
        return not self.days

    def as_dict(self) -> Dict[str, Any]:
        return {
            "days": [d.as_dict() for d in self.days],
            "grocery_list": list(self.grocery_list),
        }


def week_start(today: Optional[date] = None) -> str:
    """ISO date of the Monday starting the week that contains ``today``."""
    today = today or date.today()
    return (today - timedelta(days=today.weekday())).isoformat()

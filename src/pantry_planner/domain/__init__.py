"""Food inventory and meal plan record types."""

from .models import (
    LOCATIONS,
    MAX_PLAN_DAYS,
    MEAL_SLOTS,
    UNKNOWN_QUANTITY,
    DetectedItem,
    InventoryItem,
    InventoryLine,
    MealDay,
    MealEntry,
    MealPlan,
    week_start,
)

__all__ = [
    "LOCATIONS",
    "MAX_PLAN_DAYS",
    "MEAL_SLOTS",
    "UNKNOWN_QUANTITY",
    "DetectedItem",
    "InventoryItem",
    "InventoryLine",
    "MealDay",
    "MealEntry",
    "MealPlan",
    "week_start",
]

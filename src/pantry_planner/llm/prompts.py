"""Fixed instructions sent to the backends."""

from __future__ import annotations

from typing import Sequence

from ..domain.models import InventoryLine

DETECTION_EXAMPLE = (
    "[\n"
    '  {"name": "Milk", "quantity": "1 gallon, half full", "expiry_estimate": "5 days"},\n'
    '  {"name": "Eggs", "quantity": "~8 eggs", "expiry_estimate": "2 weeks"}\n'
    "]"
)

MEAL_PLAN_FORMAT = (
    "{\n"
    '  "days": [\n'
    "    {\n"
    '      "day": "Monday",\n'
    '      "breakfast": {"meal": "...", "ingredients": ["..."], "notes": "..."},\n'
    '      "lunch": {"meal": "...", "ingredients": ["..."], "notes": "..."},\n'
    '      "dinner": {"meal": "...", "ingredients": ["..."], "notes": "..."},\n'
    '      "dessert": {"meal": "...", "ingredients": ["..."], "notes": "..."}\n'
    "    }\n"
    "  ],\n"
    '  "grocery_list": ["items not in inventory that are needed"]\n'
    "}"
)


def detection_prompt(location: str) -> str:
    return (
        f"You are analyzing a photo of a {location}. Identify all visible food items.\n"
        "\n"
        "For each item, provide:\n"
        "- name: the food item name\n"
        '- quantity: estimated quantity (e.g., "1 bottle", "2 lbs", "half full", "3 cans")\n'
        "- expiry_estimate: rough estimate of when it might expire "
        '(e.g., "3 days", "1 week", "2 months", "N/A" for non-perishables)\n'
        "\n"
        "Respond ONLY with a JSON array. No other text. Example:\n"
        f"{DETECTION_EXAMPLE}"
    )


def meal_plan_prompt(inventory: Sequence[InventoryLine]) -> str:
    item_list = "\n".join(line.render() for line in inventory)
    return (
        "Based on the following food inventory, create a 7-day meal plan with breakfast, lunch, "
        "dinner, and one dessert per day. Use primarily items from the inventory. "
        "Note when grocery shopping is needed for missing ingredients.\n"
        "\n"
        "INVENTORY:\n"
        f"{item_list}\n"
        "\n"
        "Respond ONLY with JSON in this format:\n"
        f"{MEAL_PLAN_FORMAT}"
    )

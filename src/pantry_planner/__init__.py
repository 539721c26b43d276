"""
pantry-planner: an LLM gateway for a household food inventory.

Detects food items on pantry/fridge/freezer photos and drafts a 7-day meal
plan from the current inventory, using either a local Ollama server or the
hosted Anthropic API.
"""

__all__ = [
    "config",
    "domain",
    "errors",
    "llm",
    "logging",
]

"""LLM gateway: backend selection, prompts, and reply extraction."""

from .backends import AnthropicBackend, ChatBackend, ImageAttachment, OllamaBackend, create_backend
from .extraction import ExtractionOutcome
from .gateway import (
    DetectionResult,
    FoodGateway,
    MealPlanResult,
    build_gateway,
    detect_items,
    generate_meal_plan,
    get_gateway,
    reset_gateway,
)

__all__ = [
    "AnthropicBackend",
    "ChatBackend",
    "ImageAttachment",
    "OllamaBackend",
    "create_backend",
    "ExtractionOutcome",
    "DetectionResult",
    "FoodGateway",
    "MealPlanResult",
    "build_gateway",
    "detect_items",
    "generate_meal_plan",
    "get_gateway",
    "reset_gateway",
]

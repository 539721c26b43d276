from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from ..config import ProviderConfig, get_provider_config
from ..domain.models import LOCATIONS, DetectedItem, InventoryItem, InventoryLine, MealPlan
from ..errors import EmptyInventoryError, InvalidRequestError
from ..logging import get_logger
from .backends import SUPPORTED_IMAGE_TYPES, ChatBackend, ImageAttachment, create_backend
from .extraction import ExtractionOutcome, parse_detected_items, parse_meal_plan
from .prompts import detection_prompt, meal_plan_prompt

LOG = get_logger("llm-gateway")

InventoryInput = Union[InventoryLine, InventoryItem, Mapping[str, Any]]


@dataclass
class DetectionResult:
    items: List[DetectedItem]
    raw_response: str
    outcome: ExtractionOutcome


@dataclass
class MealPlanResult:
    plan: MealPlan
    raw_response: str
    outcome: ExtractionOutcome


class FoodGateway:
    """Provider-agnostic entry point for image analysis and meal planning.

    The backend is fixed at construction. Configuration and backend failures
    propagate as :class:`ConfigurationError` / :class:`BackendError`; replies
    without usable JSON degrade to empty results (see ``extraction``).
    """

    def __init__(self, backend: ChatBackend) -> None:
        self.backend = backend

    @property
    def provider(self) -> str:
        return self.backend.name

    def detect_items(self, image_bytes: bytes, mime_type: str, location: str) -> DetectionResult:
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            raise InvalidRequestError(
                f"Unsupported image type {mime_type!r}; expected one of {', '.join(SUPPORTED_IMAGE_TYPES)}"
            )
        if location not in LOCATIONS:
            raise InvalidRequestError(f"Unknown location {location!r}; expected one of {', '.join(LOCATIONS)}")
        if not image_bytes:
            raise InvalidRequestError("No image provided")

        image = ImageAttachment(data=bytes(image_bytes), mime_type=mime_type)
        LOG.info(
            f"Detecting items in {location} photo ({len(image_bytes)} bytes, {mime_type})"
            f" via {self.provider} model={self.backend.model_for(image)}"
        )
        text = self.backend.chat(detection_prompt(location), image=image)
        items, outcome = parse_detected_items(text)
        return DetectionResult(items=items, raw_response=text, outcome=outcome)

    def generate_meal_plan(self, inventory: Iterable[InventoryInput]) -> MealPlanResult:
        lines = [InventoryLine.coerce(entry) for entry in inventory]
        if not lines:
            raise EmptyInventoryError()

        LOG.info(
            f"Generating meal plan from {len(lines)} inventory item(s)"
            f" via {self.provider} model={self.backend.model_for(None)}"
        )
        text = self.backend.chat(meal_plan_prompt(lines))
        plan, outcome = parse_meal_plan(text)
        if plan.is_empty():
            LOG.warning(f"Meal plan generation produced no days (outcome={outcome.value})")
        return MealPlanResult(plan=plan, raw_response=text, outcome=outcome)


def build_gateway(config: ProviderConfig) -> FoodGateway:
    return FoodGateway(create_backend(config))


_gateway_lock = threading.Lock()
_gateway: Optional[FoodGateway] = None


def get_gateway() -> FoodGateway:
    """Return the process-wide gateway, resolving provider configuration once."""
    global _gateway
    if _gateway is None:
        with _gateway_lock:
            if _gateway is None:
                _gateway = build_gateway(get_provider_config())
    return _gateway


def reset_gateway() -> None:
    global _gateway
    with _gateway_lock:
        _gateway = None


def detect_items(image_bytes: bytes, mime_type: str, location: str) -> DetectionResult:
    return get_gateway().detect_items(image_bytes, mime_type, location)


def generate_meal_plan(inventory: Iterable[InventoryInput]) -> MealPlanResult:
    return get_gateway().generate_meal_plan(inventory)

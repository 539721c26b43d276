from __future__ import annotations

import json
from typing import List, Optional, Tuple

import pytest

from pantry_planner.domain.models import InventoryItem, InventoryLine
from pantry_planner.errors import ConfigurationError, EmptyInventoryError, InvalidRequestError
from pantry_planner.llm import gateway as gateway_mod
from pantry_planner.llm.backends import AnthropicBackend, ChatBackend, ImageAttachment, OllamaBackend
from pantry_planner.llm.extraction import ExtractionOutcome
from pantry_planner.llm.gateway import FoodGateway


class RecordingBackend(ChatBackend):
    name = "recording"

    def __init__(self, reply: str = "") -> None:
        self.reply = reply
        self.calls: List[Tuple[str, Optional[ImageAttachment]]] = []

    def model_for(self, image):
        return "fake"

    def chat(self, prompt, *, image=None):
        self.calls.append((prompt, image))
        return self.reply


PLAN_REPLY = json.dumps(
    {
        "days": [
            {
                "day": "Monday",
                "breakfast": {"meal": "Oatmeal", "ingredients": ["oats", "milk"]},
                "lunch": {"meal": "Grilled cheese", "ingredients": ["bread", "cheese"]},
                "dinner": {"meal": "Pasta", "ingredients": ["pasta", "tomatoes"], "notes": "Buy basil"},
                "dessert": {"meal": "Apple slices", "ingredients": ["apples"]},
            }
        ],
        "grocery_list": ["basil"],
    }
)


def test_detect_items_sends_location_prompt_and_image():
    backend = RecordingBackend('[{"name": "Milk", "quantity": "1 gal", "expiry_estimate": "5 days"}]')
    gateway = FoodGateway(backend)

    result = gateway.detect_items(b"\xff\xd8jpeg", "image/jpeg", "fridge")

    prompt, image = backend.calls[0]
    assert "You are analyzing a photo of a fridge." in prompt
    assert "Respond ONLY with a JSON array" in prompt
    assert image == ImageAttachment(data=b"\xff\xd8jpeg", mime_type="image/jpeg")
    assert [i.name for i in result.items] == ["Milk"]
    assert result.outcome is ExtractionOutcome.PARSED


def test_detect_items_keeps_raw_text_when_nothing_parses():
    reply = "I couldn't identify any items."
    gateway = FoodGateway(RecordingBackend(reply))

    result = gateway.detect_items(b"png-bytes", "image/png", "pantry")

    assert result.items == []
    assert result.raw_response == reply
    assert result.outcome is ExtractionOutcome.NOT_FOUND


@pytest.mark.parametrize(
    "mime,location,data",
    [("image/bmp", "fridge", b"x"), ("image/png", "garage", b"x"), ("image/png", "fridge", b"")],
)
def test_detect_items_rejects_bad_input_before_calling_backend(mime, location, data):
    backend = RecordingBackend("[]")
    gateway = FoodGateway(backend)

    with pytest.raises(InvalidRequestError):
        gateway.detect_items(data, mime, location)
    assert backend.calls == []


def test_empty_inventory_fails_before_any_backend_call():
    backend = RecordingBackend(PLAN_REPLY)
    gateway = FoodGateway(backend)

    with pytest.raises(EmptyInventoryError):
        gateway.generate_meal_plan([])
    assert backend.calls == []


def test_empty_inventory_error_is_a_client_error():
    assert issubclass(EmptyInventoryError, ValueError)


def test_meal_plan_prompt_lists_inventory_lines_in_order():
    backend = RecordingBackend(PLAN_REPLY)
    gateway = FoodGateway(backend)
    inventory = [
        {"name": "Eggs", "quantity": "12", "category": "fridge"},
        InventoryItem(id=3, name="Rice", category="pantry", quantity=None),
        InventoryLine("Peas", "1 bag", "freezer"),
    ]

    result = gateway.generate_meal_plan(inventory)

    prompt, image = backend.calls[0]
    assert image is None
    assert "INVENTORY:\n- Eggs (12) [fridge]\n- Rice (unknown) [pantry]\n- Peas (1 bag) [freezer]\n" in prompt
    assert result.outcome is ExtractionOutcome.PARSED
    assert result.plan.days[0].dinner.notes == "Buy basil"
    assert result.plan.grocery_list == ["basil"]
    assert result.raw_response == PLAN_REPLY


def test_unusable_plan_reply_degrades_to_zero_plan():
    gateway = FoodGateway(RecordingBackend("Here are some ideas: eat vegetables."))

    result = gateway.generate_meal_plan([InventoryLine("Carrots", "1 lb", "fridge")])

    assert result.plan.as_dict() == {"days": [], "grocery_list": []}
    assert result.outcome is ExtractionOutcome.NOT_FOUND


def test_module_functions_use_process_gateway(monkeypatch):
    backend = RecordingBackend("[]")
    monkeypatch.setattr(gateway_mod, "_gateway", FoodGateway(backend))

    result = gateway_mod.detect_items(b"gif", "image/gif", "freezer")

    assert result.outcome is ExtractionOutcome.PARSED
    assert len(backend.calls) == 1


def test_no_provider_configured_fails_without_network(monkeypatch):
    def _no_network(*_, **__):  # pragma: no cover - must not be reached
        raise AssertionError("network call attempted")

    monkeypatch.setattr("pantry_planner.llm.backends.requests.post", _no_network)

    with pytest.raises(ConfigurationError):
        gateway_mod.generate_meal_plan([InventoryLine("Milk", "1 gal", "fridge")])


def test_process_gateway_prefers_local_backend(monkeypatch):
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://localhost:11434")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")

    gateway = gateway_mod.get_gateway()

    assert isinstance(gateway.backend, OllamaBackend)
    assert gateway_mod.get_gateway() is gateway


def test_process_gateway_uses_hosted_backend_with_key_only(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_MODEL", "claude-test")

    gateway = gateway_mod.get_gateway()

    assert isinstance(gateway.backend, AnthropicBackend)
    assert gateway.backend.model == "claude-test"
    assert gateway.provider == "anthropic"


def test_deeply_nested_replies_degrade_instead_of_raising():
    gateway = FoodGateway(RecordingBackend("[" * 5000 + "]" * 5000))
    detected = gateway.detect_items(b"raw", "image/png", "fridge")
    assert detected.items == []
    assert detected.outcome is ExtractionOutcome.MALFORMED

    gateway = FoodGateway(RecordingBackend('{"a":' * 5000 + "1" + "}" * 5000))
    planned = gateway.generate_meal_plan([InventoryLine("Carrots", "1 lb", "fridge")])
    assert planned.plan.is_empty()
    assert planned.outcome is ExtractionOutcome.MALFORMED


@pytest.mark.parametrize(
    "record",
    [
        {"quantity": "3", "category": "fridge"},
        {"name": "  ", "category": "fridge"},
        {"name": "Milk", "quantity": "3"},
        InventoryItem(id=1, name="", category="pantry"),
    ],
)
def test_inventory_records_without_name_or_category_are_rejected_before_calling_backend(record):
    backend = RecordingBackend(PLAN_REPLY)
    gateway = FoodGateway(backend)

    with pytest.raises(InvalidRequestError):
        gateway.generate_meal_plan([{"name": "Eggs", "quantity": "12", "category": "fridge"}, record])
    assert backend.calls == []

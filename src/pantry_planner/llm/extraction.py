"""Locate and validate JSON embedded in free-form model replies.

Models are asked for bare JSON but routinely wrap it in prose or code
fences. Extraction takes the span from the first opening bracket to the last
closing one and, if that does not parse, retries with shorter spans ending at
earlier closing brackets. The parsed value is then checked against the shape
the caller expects.

Failure policy (EMPTY_ON_FAILURE): an unusable reply never raises. The caller
gets the empty result plus an ``ExtractionOutcome`` saying why, so "the model
found nothing" (PARSED with no items) stays distinguishable from "the reply
could not be used" (any other outcome).

Meal plans keep one entry per day label: a repeated label (compared
case-insensitively) is dropped before the 7-day cap is applied.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple

from ..domain.models import MAX_PLAN_DAYS, DetectedItem, MealDay, MealPlan
from ..logging import get_logger

LOG = get_logger("llm-extraction")

PREVIEW_CHARS = 200


class ExtractionOutcome(str, Enum):
    PARSED = "parsed"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    WRONG_SHAPE = "wrong_shape"


@dataclass(frozen=True)
class Extraction:
    value: Any
    outcome: ExtractionOutcome

    @property
    def ok(self) -> bool:
        return self.outcome is ExtractionOutcome.PARSED


def scavenge_json(text: str, opener: str, closer: str) -> Extraction:
    """Parse the widest ``opener ... closer`` span of ``text`` that is valid JSON."""
    if not text:
        return Extraction(None, ExtractionOutcome.NOT_FOUND)
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end == -1 or end <= start:
        return Extraction(None, ExtractionOutcome.NOT_FOUND)
    for j in range(end, start, -1):
        if text[j] != closer:
            continue
        try:
            return Extraction(json.loads(text[start : j + 1]), ExtractionOutcome.PARSED)
        except (ValueError, RecursionError):
            # nesting past the interpreter limit counts as unparseable
            continue
    return Extraction(None, ExtractionOutcome.MALFORMED)


def extract_json_array(text: str) -> Extraction:
    return scavenge_json(text, "[", "]")


def extract_json_object(text: str) -> Extraction:
    return scavenge_json(text, "{", "}")


def _log_failure(kind: str, outcome: ExtractionOutcome, text: str) -> None:
    LOG.warning(
        "No usable %s in model reply (%s); returning empty result. First %d chars: %r",
        kind,
        outcome.value,
        PREVIEW_CHARS,
        (text or "")[:PREVIEW_CHARS],
    )


def parse_detected_items(text: str) -> Tuple[List[DetectedItem], ExtractionOutcome]:
    extraction = extract_json_array(text)
    if not extraction.ok:
        _log_failure("item array", extraction.outcome, text)
        return [], extraction.outcome

    value = extraction.value
    if not isinstance(value, list) or not all(isinstance(entry, dict) for entry in value):
        _log_failure("item array", ExtractionOutcome.WRONG_SHAPE, text)
        return [], ExtractionOutcome.WRONG_SHAPE

    items: List[DetectedItem] = []
    for entry in value:
        item = DetectedItem.from_dict(entry)
        if not item.name:
            LOG.debug(f"Skipping detected entry without a name: {entry!r}")
            continue
        items.append(item)
    LOG.info(f"Extracted {len(items)} detected item(s)")
    return items, ExtractionOutcome.PARSED


def parse_meal_plan(text: str) -> Tuple[MealPlan, ExtractionOutcome]:
    extraction = extract_json_object(text)
    if not extraction.ok:
        _log_failure("meal plan object", extraction.outcome, text)
        return MealPlan.empty(), extraction.outcome

    value = extraction.value
    raw_days = value.get("days") if isinstance(value, dict) else None
    raw_grocery = (value.get("grocery_list") or []) if isinstance(value, dict) else None
    if not isinstance(raw_days, list) or not isinstance(raw_grocery, list):
        _log_failure("meal plan object", ExtractionOutcome.WRONG_SHAPE, text)
        return MealPlan.empty(), ExtractionOutcome.WRONG_SHAPE

    days: List[MealDay] = []
    seen_labels = set()
    for entry in raw_days:
        if not isinstance(entry, dict):
            LOG.debug(f"Skipping non-object day entry: {entry!r}")
            continue
        day = MealDay.from_dict(entry)
        label = day.day.casefold()
        if label and label in seen_labels:
            LOG.warning(f"Dropping repeated day label {day.day!r}")
            continue
        seen_labels.add(label)
        days.append(day)
    if len(days) > MAX_PLAN_DAYS:
        LOG.warning(f"Model returned {len(days)} days; keeping the first {MAX_PLAN_DAYS}")
        days = days[:MAX_PLAN_DAYS]

    grocery_list = [str(g).strip() for g in raw_grocery if g is not None and str(g).strip()]
    LOG.info(f"Extracted meal plan with {len(days)} day(s) and {len(grocery_list)} grocery item(s)")
    return MealPlan(days=days, grocery_list=grocery_list), ExtractionOutcome.PARSED

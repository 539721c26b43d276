from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import Any, List, Sequence

from ..config import get_provider_config
from ..domain.models import LOCATIONS, week_start
from ..errors import BackendError, ConfigurationError, InvalidRequestError
from ..images import expand_abs, guess_image_mime, read_image_bytes
from ..llm import detect_items, generate_meal_plan
from ..llm.backends import SUPPORTED_IMAGE_TYPES
from ..logging import get_logger

LOG = get_logger("cli-main")

EXIT_OK = 0
EXIT_BACKEND_ERROR = 1
EXIT_USAGE_ERROR = 2


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _load_inventory(path: str) -> List[Any]:
    with open(expand_abs(path), "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        raise InvalidRequestError("Inventory file must hold a JSON list or an object with an 'items' list")
    return data


def _provider(_: argparse.Namespace) -> int:
    _emit(get_provider_config().describe())
    return EXIT_OK


def _detect(ns: argparse.Namespace) -> int:
    mime = ns.mime or guess_image_mime(ns.image)
    try:
        data = read_image_bytes(ns.image)
    except OSError as exc:
        LOG.error(f"Could not read image: {exc}")
        return EXIT_USAGE_ERROR
    result = detect_items(data, mime, ns.location)
    _emit(
        {
            "detected_items": [i.as_dict() for i in result.items],
            "raw_response": result.raw_response,
            "outcome": result.outcome.value,
            "message": f"Detected {len(result.items)} items in your {ns.location}",
        }
    )
    return EXIT_OK


def _plan(ns: argparse.Namespace) -> int:
    try:
        inventory = _load_inventory(ns.inventory)
    except (OSError, ValueError) as exc:
        LOG.error(f"Could not load inventory: {exc}")
        return EXIT_USAGE_ERROR
    try:
        result = generate_meal_plan(inventory)
    except TypeError as exc:
        LOG.error(f"Invalid inventory record: {exc}")
        return EXIT_USAGE_ERROR
    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    _emit(
        {
            "plan": result.plan.as_dict(),
            "raw_response": result.raw_response,
            "outcome": result.outcome.value,
            "generated_at": generated_at,
            "week_start": week_start(),
        }
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pantry-planner",
        description="Detect food items on inventory photos and plan a week of meals with an LLM.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    provider = subparsers.add_parser("provider", help="Show the resolved LLM provider and models.")
    provider.set_defaults(handler=_provider)

    detect = subparsers.add_parser("detect", help="Detect food items on a pantry/fridge/freezer photo.")
    detect.add_argument("--image", required=True, help="Path to the photo")
    detect.add_argument("--location", choices=LOCATIONS, default="fridge")
    detect.add_argument("--mime", choices=SUPPORTED_IMAGE_TYPES, help="Override the MIME type guessed from the file name")
    detect.set_defaults(handler=_detect)

    plan = subparsers.add_parser("plan", help="Generate a 7-day meal plan from an inventory JSON file.")
    plan.add_argument("--inventory", required=True, help="JSON list of {name, quantity, category} records")
    plan.set_defaults(handler=_plan)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")
    args = build_parser().parse_args(provided)
    try:
        code = args.handler(args)
    except (ConfigurationError, InvalidRequestError) as exc:
        LOG.error(str(exc))
        code = EXIT_USAGE_ERROR
    except BackendError as exc:
        LOG.error(f"Backend call failed: {exc}")
        code = EXIT_BACKEND_ERROR
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())

"""Helpers for turning raw model output into schema-checked results."""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from fieldflow.errors import GatewayError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_json_response(response: str | None) -> dict:
    """Extract a JSON object from an LLM response, tolerating markdown fences."""
    if not response:
        raise GatewayError("Empty response from model")
    text = response.strip()
    try:
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0]
        elif "```" in text:
            text = text.split("```")[1].split("```")[0]
        data = json.loads(text)
    except (json.JSONDecodeError, IndexError) as e:
        logger.warning(f"Model response is not JSON: {response[:200]!r}")
        raise GatewayError("Model response is not valid JSON") from e
    if not isinstance(data, dict):
        raise GatewayError("Model response is not a JSON object")
    return data


def validate_response(model: type[M], response: str | None) -> M:
    """Parse and validate a response against ``model``; any mismatch is a GatewayError."""
    data = parse_json_response(response)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise GatewayError(f"Model response does not match {model.__name__}: {fields}") from e


def format_part_lines(part_costs) -> str:
    if not part_costs:
        return "  (none)"
    return "\n".join(
        f"  - {p.part_name}: {p.cost:.2f} x {p.quantity} = {p.cost * p.quantity:.2f}"
        for p in part_costs
    )

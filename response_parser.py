"""
Parsing of classification replies from free-form model text
"""

import json
import logging
import math
import re
from typing import Sequence, Tuple

from config import DEFAULT_CONFIDENCE
from exceptions import InvalidCategoryError, ParseError

logger = logging.getLogger(__name__)

# greedy: first "{" to last "}"
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(raw_text: str) -> dict:
    """Pull the JSON object out of model text that may carry surrounding prose."""
    match = _JSON_OBJECT_RE.search(raw_text or "")
    if not match:
        raise ParseError("No JSON found in response")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(parsed, dict):
        raise ParseError("Response JSON is not an object")
    return parsed


def normalize_confidence(value) -> float:
    """Return the confidence when it is a number in [0, 1], else the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.debug(f"Invalid confidence value: {value!r}, setting to {DEFAULT_CONFIDENCE}")
        return DEFAULT_CONFIDENCE
    if math.isnan(value) or value < 0 or value > 1:
        logger.debug(f"Confidence out of range: {value!r}, setting to {DEFAULT_CONFIDENCE}")
        return DEFAULT_CONFIDENCE
    return float(value)


def parse_classification(raw_text: str, categories: Sequence[str], strict: bool = True) -> Tuple[str, float]:
    """
    Parse a model reply into (category, confidence).

    Args:
        raw_text: Text generated by the model
        categories: Active category set
        strict: When True an unknown category is an error (and is retried);
            when False it is logged and passed through

    Raises:
        ParseError: no JSON object could be read from the text
        InvalidCategoryError: category missing, not a string, or unknown in strict mode
    """
    result = extract_json_object(raw_text)

    category = result.get("category")
    if not isinstance(category, str) or not category.strip():
        raise InvalidCategoryError(f"Invalid category: {category!r}")

    category = category.strip().upper()
    if category not in categories:
        if strict:
            raise InvalidCategoryError(f"Invalid category: {category}")
        logger.warning(f'Category "{category}" is not in the predefined list. Using anyway.')

    return category, normalize_confidence(result.get("confidence"))

import json
import math
import re
from typing import Any, Dict, List

from app.core.exceptions import InvalidStructure, MalformedResponse

SENTIMENTS = ("Positive", "Negative", "Neutral")
MAX_SUMMARY_POINTS = 5


def clean_json_string(json_str: str) -> str:
    # Greedy: first "{" through last "}", across newlines
    match = re.search(r'\{.*\}', json_str, re.DOTALL)
    if match:
        return match.group(0)
    return json_str.strip()


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints are exact; math.isfinite overflows on huge ones
    return isinstance(value, int) or math.isfinite(value)


def validate_analysis_response(data: Any) -> List[str]:
    """Return every schema violation found in a parsed model answer."""
    if not isinstance(data, dict):
        return ["response must be a JSON object"]

    errors = []

    summary = data.get("summary")
    if not isinstance(summary, list):
        errors.append("summary must be an array")
    elif len(summary) == 0:
        errors.append("summary cannot be empty")
    elif len(summary) > MAX_SUMMARY_POINTS:
        errors.append(f"summary cannot have more than {MAX_SUMMARY_POINTS} points")

    if data.get("sentiment") not in SENTIMENTS:
        errors.append('sentiment must be exactly "Positive", "Negative", or "Neutral"')

    reasoning = data.get("sentiment_reasoning")
    if not isinstance(reasoning, str) or not reasoning:
        errors.append("sentiment_reasoning must be a non-empty string")

    wrongdoings = data.get("wrongdoings_and_solutions")
    if not isinstance(wrongdoings, list):
        errors.append("wrongdoings_and_solutions must be an array")
    else:
        for index, item in enumerate(wrongdoings):
            if not isinstance(item, dict) or not item.get("wrongdoing") or not item.get("solution"):
                errors.append(
                    f"wrongdoings_and_solutions[{index}] must have both wrongdoing and solution fields"
                )

    score = data.get("overall_score")
    if not _is_number(score) or score < 0 or score > 10:
        errors.append("overall_score must be a number between 0 and 10")

    return errors


def parse_llm_response(raw_text: str) -> Dict[str, Any]:
    """
    Turn the model's raw text into a validated analysis object.

    The text is parsed as-is first; when the model wrapped the JSON in prose,
    the outermost {...} span is extracted and parsed instead. The returned
    object is exactly what the model produced, no fields are coerced.

    Raises:
        MalformedResponse: no parseable JSON could be found.
        InvalidStructure: JSON parsed but broke one or more schema rules.
    """
    text = raw_text.strip()
    try:
        data = json.loads(text)
    except RecursionError as e:
        raise MalformedResponse(
            "LLM returned invalid JSON format", context={"reason": "JSON nested too deeply"}
        ) from e
    except ValueError:
        # JSONDecodeError, or an integer literal past the interpreter's digit limit
        try:
            data = json.loads(clean_json_string(text))
        except (ValueError, RecursionError) as e:
            raise MalformedResponse(
                "LLM returned invalid JSON format", context={"reason": str(e)}
            ) from e

    errors = validate_analysis_response(data)
    if errors:
        raise InvalidStructure(errors)
    return data
